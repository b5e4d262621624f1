#!/usr/bin/env python3
"""
Import Fillups

Imports a fillup spreadsheet (CSV) into a vehicle's history. The whole file
is validated first; if any row has an error nothing is written.

Usage:
    python scripts/import_fillups.py fillups.csv --vehicle-id 3
    python scripts/import_fillups.py fillups.csv --vehicle-id 3 --dry-run
    python scripts/import_fillups.py fillups.csv --vehicle-id 3 --db sqlite:///justfuel.db
    python scripts/import_fillups.py fillups.csv --vehicle-id 3 --tie-break odometer
"""

import argparse
import logging
import os
import sys

# Add parent directory to path for imports when running from scripts/
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from justfuel.config import Config  # noqa: E402


def _line(stats: dict, row: int) -> str:
    """File line for a 1-based batch row."""
    line_numbers = stats.get('line_numbers', [])
    if 1 <= row <= len(line_numbers):
        return f"line {line_numbers[row - 1]}"
    return "file"


def _print_errors(errors, stats: dict):
    for error in errors:
        print(f"  {_line(stats, error.row)} [{error.field or '-'}]: {error.message}")


def import_file(
    db_url: str,
    path: str,
    vehicle_id: int,
    dry_run: bool = False,
    tie_break: str = Config.FILLUP_TIE_BREAK
) -> int:
    """Import one CSV file. Returns a process exit code."""
    from sqlalchemy.orm import sessionmaker

    from justfuel.database import init_db, session_scope
    from justfuel.exceptions import CSVImportError, ImportRejectedError, JustFuelError
    from justfuel.models import get_engine
    from justfuel.services import FillupService, ImportReconciler, get_tie_break
    from justfuel.utils.csv_importer import FillupCSVImporter

    engine = get_engine(db_url)
    init_db(engine)

    try:
        ordering = get_tie_break(tie_break)

        with session_scope(sessionmaker(bind=engine)) as db:
            service = FillupService(db, tie_break=ordering)
            vehicle = service.get_vehicle(vehicle_id)
            mileage_field = 'odometer' if vehicle.mileage_input_preference == 'odometer' else 'distance'

            with open(path, encoding='utf-8-sig') as f:
                content = f.read()

            try:
                rows, stats = FillupCSVImporter.parse_csv(content, mileage_field=mileage_field, filename=path)
            except CSVImportError as e:
                print(f"ERROR [{e.details.get('code')}]: {e.message}")
                return 1

            print(f"Parsed {stats['parsed_rows']} rows ({stats['skipped_rows']} blank rows skipped)")
            if stats['ignored_columns']:
                print(f"Ignored columns: {', '.join(stats['ignored_columns'])}")

            if dry_run:
                reconciler = ImportReconciler(tie_break=ordering)
                report = reconciler.reconcile(rows, vehicle, service.list_fillups(vehicle.id))
            else:
                try:
                    report = service.import_fillups(vehicle.id, rows, filename=os.path.basename(path))
                except ImportRejectedError as e:
                    print(f"\nImport rejected: {len(e.errors)} errors, nothing was written")
                    _print_errors(e.errors, stats)
                    return 1

            if report.newest_first:
                print("File is sorted newest first")
            for warning in report.warnings:
                print(f"  WARNING {_line(stats, warning.row)} [{warning.field}]: {warning.message}")

            if report.errors:
                print(f"\n[DRY RUN] {len(report.errors)} errors, import would be rejected")
                _print_errors(report.errors, stats)
                return 1

        print("\n=== Summary ===")
        print(f"Valid rows: {len(report.valid_rows)}")
        print(f"Warnings: {len(report.warnings)}")
        if dry_run:
            print("[DRY RUN] Nothing was written")
        else:
            print(f"Imported: {len(report.valid_rows)}")
        return 0

    except JustFuelError as e:
        print(f"ERROR: {e}")
        return 1
    finally:
        engine.dispose()


def main():
    from justfuel.services import TIE_BREAKS

    parser = argparse.ArgumentParser(description='Import fillups from a CSV file')
    parser.add_argument('csv_file', help='CSV file to import')
    parser.add_argument('--vehicle-id', type=int, required=True,
                        help='Vehicle to import into')
    parser.add_argument('--db', type=str, default=Config.DATABASE_URL,
                        help='Database URL')
    parser.add_argument('--dry-run', action='store_true',
                        help='Validate the file without writing anything')
    parser.add_argument('--tie-break', choices=sorted(TIE_BREAKS), default=Config.FILLUP_TIE_BREAK,
                        help='Ordering of fillups sharing a date')

    args = parser.parse_args()

    logging.basicConfig(level=Config.LOG_LEVEL)

    print(f"Database: {args.db.split('@')[-1]}")  # Hide password in output
    print(f"Dry run: {args.dry_run}")
    print()

    sys.exit(import_file(args.db, args.csv_file, args.vehicle_id, dry_run=args.dry_run, tie_break=args.tie_break))


if __name__ == '__main__':
    main()
