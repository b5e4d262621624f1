"""CSV import and export for fillup spreadsheets."""

import csv
import io
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from justfuel.exceptions import CSVImportError
from justfuel.utils.error_codes import ErrorCode
from justfuel.utils.time_utils import format_fillup_date

logger = logging.getLogger(__name__)


REQUIRED_COLUMNS = ['date', 'fuel_amount', 'total_price']
MILEAGE_COLUMNS = ['odometer', 'distance']
EXPORT_COLUMNS = [
    'date',
    'fuel_amount',
    'total_price',
    'odometer',
    'distance',
    'price_per_liter',
    'fuel_consumption',
]


class FillupCSVImporter:
    """
    Parse fillup spreadsheets into raw rows and render fillups back to CSV.

    Parsing does not validate values; rows come out as the raw strings found
    in the file and go through ImportReconciler afterwards. Only structural
    problems (unreadable content, missing columns) are raised here.

    Accepted layout:
    - Header row with date, fuel amount, total price and odometer or distance
      (case-insensitive, common aliases accepted)
    - ``,``, ``;`` or tab delimited
    - Dates as ``YYYY-MM-DD`` or ``DD.MM.YYYY``
    - Decimal comma or point
    """

    # Column name aliases (case-insensitive)
    COLUMN_MAP = {
        # Date
        'date': 'date',
        'fillup date': 'date',
        'data': 'date',

        # Fuel
        'fuel_amount': 'fuel_amount',
        'fuel amount': 'fuel_amount',
        'fuel amount (l)': 'fuel_amount',
        'amount': 'fuel_amount',
        'liters': 'fuel_amount',
        'litres': 'fuel_amount',
        'ilosc': 'fuel_amount',

        # Price
        'total_price': 'total_price',
        'total price': 'total_price',
        'total': 'total_price',
        'cost': 'total_price',
        'total cost': 'total_price',
        'cena': 'total_price',

        # Mileage
        'odometer': 'odometer',
        'odometer (km)': 'odometer',
        'odometer(km)': 'odometer',
        'mileage': 'odometer',
        'przebieg': 'odometer',
        'distance': 'distance',
        'distance (km)': 'distance',
        'distance(km)': 'distance',
        'distance_traveled': 'distance',
        'dystans': 'distance',
    }

    @classmethod
    def _detect_dialect(cls, csv_content: str):
        """Sniff the delimiter from the header line, falling back to plain commas."""
        header_line = csv_content.lstrip('\ufeff').splitlines()[0]
        try:
            return csv.Sniffer().sniff(header_line, delimiters=',;\t')
        except csv.Error:
            return csv.excel

    @classmethod
    def _map_columns(
        cls,
        fieldnames: List[str],
        mileage_field: Optional[str] = None
    ) -> Tuple[Dict[str, str], List[str]]:
        """
        Map file columns onto fillup fields.

        When ``mileage_field`` is given, the other mileage column (e.g. the
        derived distance in an export of an odometer vehicle) is ignored.

        Returns:
            (column mapping, ignored columns)
        """
        column_mapping = {}
        ignored = []
        for col in fieldnames:
            if col is None:
                continue
            field = cls.COLUMN_MAP.get(col.lower().strip().lstrip('\ufeff'))
            if field is None:
                ignored.append(col)
                continue
            if mileage_field and field in MILEAGE_COLUMNS and field != mileage_field:
                ignored.append(col)
                continue
            if field in column_mapping.values():
                ignored.append(col)
                continue
            column_mapping[col] = field
        return column_mapping, ignored

    @classmethod
    def parse_csv(
        cls,
        csv_content: str,
        mileage_field: Optional[str] = None,
        filename: Optional[str] = None
    ) -> Tuple[List[Dict[str, Any]], Dict[str, Any]]:
        """
        Parse CSV content into raw fillup rows.

        Args:
            csv_content: Raw CSV file content as string
            mileage_field: 'odometer' or 'distance' to require that column
                and ignore the other one
            filename: Used in error messages

        Returns:
            Tuple of (list of raw row dicts, stats dict)

        Raises:
            CSVImportError: content is empty or unreadable (E102), or required
                columns are missing (E101)
        """
        stats = {
            'total_rows': 0,
            'parsed_rows': 0,
            'skipped_rows': 0,
            'columns_found': [],
            'ignored_columns': [],
            'line_numbers': [],
        }

        if not csv_content or not csv_content.strip():
            raise CSVImportError("CSV file is empty", filename=filename)

        dialect = cls._detect_dialect(csv_content)
        reader = csv.DictReader(io.StringIO(csv_content.lstrip('\ufeff')), dialect=dialect)

        column_mapping, ignored = cls._map_columns(reader.fieldnames or [], mileage_field)
        stats['columns_found'] = list(column_mapping.values())
        stats['ignored_columns'] = ignored

        required = list(REQUIRED_COLUMNS)
        if mileage_field:
            required.append(mileage_field)
        missing = [c for c in required if c not in column_mapping.values()]
        if not mileage_field and not any(c in column_mapping.values() for c in MILEAGE_COLUMNS):
            missing.append('odometer|distance')
        if missing:
            raise CSVImportError(
                f"Missing required columns: {', '.join(missing)}",
                row_number=1,
                filename=filename,
                code=ErrorCode.E101_MISSING_COLUMN,
            )

        rows = []
        try:
            for row_num, row in enumerate(reader, start=2):  # Start at 2 (header is row 1)
                stats['total_rows'] += 1

                record = cls._parse_row(row, column_mapping)
                if record is None:
                    stats['skipped_rows'] += 1
                    logger.debug(f"Skipping blank row {row_num}")
                    continue

                rows.append(record)
                stats['line_numbers'].append(row_num)
                stats['parsed_rows'] += 1
        except csv.Error as e:
            raise CSVImportError(
                f"Could not read CSV: {e}",
                row_number=stats['total_rows'] + 2,
                filename=filename,
            ) from e

        return rows, stats

    @classmethod
    def _parse_row(cls, row: Dict[str, str], column_mapping: Dict[str, str]) -> Optional[Dict[str, Any]]:
        """Pick the mapped columns out of a CSV row; None for a blank row."""
        record = {
            'date': None,
            'fuel_amount': None,
            'total_price': None,
            'odometer': None,
            'distance': None,
        }

        for csv_col, field_name in column_mapping.items():
            value = (row.get(csv_col) or '').strip()
            if not value or value == '-':
                continue
            record[field_name] = value

        if all(v is None for v in record.values()):
            return None
        return record

    @staticmethod
    def _format_value(value) -> str:
        if value is None:
            return ''
        return str(value)

    @classmethod
    def generate_csv(cls, fillups: Iterable) -> str:
        """
        Render fillups as CSV with dates as DD.MM.YYYY.

        Args:
            fillups: Fillup model instances in the order they should appear

        Returns:
            CSV text including the header row
        """
        output = io.StringIO()
        writer = csv.writer(output, lineterminator='\n')
        writer.writerow(EXPORT_COLUMNS)

        for f in fillups:
            writer.writerow([
                format_fillup_date(f.date),
                cls._format_value(f.fuel_amount),
                cls._format_value(f.total_price),
                cls._format_value(f.odometer),
                cls._format_value(f.distance_traveled),
                cls._format_value(f.price_per_liter),
                cls._format_value(f.fuel_consumption),
            ])

        return output.getvalue()
