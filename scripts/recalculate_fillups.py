#!/usr/bin/env python3
"""
Recalculate Fillups

Recomputes distance, consumption and price per liter for every fillup of a
vehicle (or of all vehicles) from the chronological chain. Use after manual
database edits or to repair data written by older versions.

Usage:
    python scripts/recalculate_fillups.py
    python scripts/recalculate_fillups.py --vehicle-id 3 --dry-run
    python scripts/recalculate_fillups.py --tie-break odometer
"""

import argparse
import logging
import os
import sys

# Add parent directory to path for imports when running from scripts/
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from justfuel.config import Config  # noqa: E402


def recalculate(
    db_url: str,
    vehicle_id: int = None,
    dry_run: bool = False,
    tie_break: str = Config.FILLUP_TIE_BREAK
) -> int:
    """Recalculate derived fields. Returns the number of fillups changed."""
    from sqlalchemy.orm import sessionmaker

    from justfuel.database import session_scope
    from justfuel.models import Vehicle, get_engine
    from justfuel.services import FillupService, FillupValidator, get_tie_break

    ordering = get_tie_break(tie_break)
    engine = get_engine(db_url)

    try:
        with session_scope(sessionmaker(bind=engine)) as db:
            service = FillupService(db, tie_break=ordering)

            if vehicle_id is not None:
                vehicles = [service.get_vehicle(vehicle_id)]
            else:
                vehicles = db.query(Vehicle).order_by(Vehicle.id).all()

            print(f"Found {len(vehicles)} vehicles to recalculate")

            total_changed = 0
            for vehicle in vehicles:
                print(f"\n--- Vehicle {vehicle.id} ({vehicle.name}, {vehicle.mileage_input_preference}) ---")

                if dry_run:
                    fillups = service.list_fillups(vehicle.id)
                    changed = 0
                    for fillup, derived in FillupValidator(vehicle, tie_break=ordering).recalculate(fillups):
                        if (fillup.distance_traveled, fillup.fuel_consumption) != (
                            derived.distance_traveled, derived.fuel_consumption
                        ):
                            changed += 1
                            print(
                                f"  [DRY RUN] {fillup.date}: distance {fillup.distance_traveled} -> "
                                f"{derived.distance_traveled}, consumption {fillup.fuel_consumption} -> "
                                f"{derived.fuel_consumption}"
                            )
                else:
                    changed = service.recalculate_fillups(vehicle.id)

                print(f"  Changed: {changed}")
                total_changed += changed

        print("\n=== Summary ===")
        print(f"Vehicles: {len(vehicles)}")
        print(f"Fillups changed: {total_changed}")
        return total_changed

    finally:
        engine.dispose()


def main():
    from justfuel.services import TIE_BREAKS

    parser = argparse.ArgumentParser(description='Recalculate derived fillup fields')
    parser.add_argument('--vehicle-id', type=int, default=None,
                        help='Only recalculate this vehicle')
    parser.add_argument('--db', type=str, default=Config.DATABASE_URL,
                        help='Database URL')
    parser.add_argument('--dry-run', action='store_true',
                        help='Show what would change without writing')
    parser.add_argument('--tie-break', choices=sorted(TIE_BREAKS), default=Config.FILLUP_TIE_BREAK,
                        help='Ordering of fillups sharing a date')

    args = parser.parse_args()

    logging.basicConfig(level=Config.LOG_LEVEL)

    print(f"Database: {args.db.split('@')[-1]}")  # Hide password in output
    print(f"Dry run: {args.dry_run}")

    from justfuel.exceptions import JustFuelError

    try:
        recalculate(args.db, vehicle_id=args.vehicle_id, dry_run=args.dry_run, tie_break=args.tie_break)
    except JustFuelError as e:
        print(f"ERROR: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
