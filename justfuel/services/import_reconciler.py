"""
Import Reconciler

Validates a bulk batch of fillup rows (usually parsed from CSV) before
anything is written.

Each row is field-validated on its own. Rows that survive are then placed
into a merged timeline together with the vehicle's stored history, so a row is
derived against its true chronological neighbour, whether that is a stored
fillup or another row of the same batch.

Same-day rows keep the order they were recorded in. A file whose first date
is later than its last is read as newest first, so its same-day rows are
taken bottom-up.

Committing is all-or-nothing: a single row error blocks the whole batch.
"""

from typing import Iterable, List

from justfuel.utils.error_codes import ErrorCode

from .fillup_validator import FillupValidator, RawFillupInput, ValidatedFillup
from .timeline import PENDING, Timeline, TimelineEntry, insertion_order


class ImportRowError:
    """Hard failure on one field of one row. Row numbers are 1-based; 0 means the whole batch."""

    def __init__(self, row: int, field, message: str, code: ErrorCode = None):
        self.row = row
        self.field = field
        self.message = message
        self.code = code

    def to_dict(self):
        return {
            'row': self.row,
            'field': self.field,
            'message': self.message,
            'code': self.code.value if self.code else None,
        }

    def __repr__(self):
        return f"<ImportRowError row={self.row} {self.field}: {self.message}>"


class ImportRowWarning:
    """Advisory warning raised by one row. Does not block the import."""

    def __init__(self, row: int, warning):
        self.row = row
        self.field = warning.field
        self.message = warning.message
        self.code = warning.code
        self.context = warning.context

    def to_dict(self):
        return {
            'row': self.row,
            'field': self.field,
            'message': self.message,
            'code': self.code.value,
        }


class ImportReport:
    """Result of reconciling a batch."""

    def __init__(self, total_rows: int = 0):
        self.total_rows = total_rows
        self.valid_rows: List[ValidatedFillup] = []
        self.valid_row_numbers: List[int] = []
        self.errors: List[ImportRowError] = []
        self.warnings: List[ImportRowWarning] = []
        # valid_rows ordered by date and same-day tie-break
        self.chronological_rows: List[ValidatedFillup] = []
        self.newest_first = False

    @property
    def can_commit(self) -> bool:
        return self.total_rows > 0 and not self.errors

    @property
    def error_rows(self) -> List[int]:
        return sorted({e.row for e in self.errors})

    def to_dict(self):
        return {
            'total_rows': self.total_rows,
            'valid_row_count': len(self.valid_rows),
            'can_commit': self.can_commit,
            'newest_first': self.newest_first,
            'errors': [e.to_dict() for e in self.errors],
            'warnings': [w.to_dict() for w in self.warnings],
        }


class ImportReconciler:
    """
    Validates import batches for a vehicle.

    Args:
        tie_break: same-day ordering comparator used for the merged timeline
        today: fixed current date (defaults to today's UTC date)
        **limits: validator bounds, see FillupValidator
    """

    def __init__(self, tie_break=insertion_order, today=None, **limits):
        self.tie_break = tie_break
        self.today = today
        self.limits = limits

    def reconcile(self, rows: Iterable, vehicle, existing_fillups: Iterable = ()) -> ImportReport:
        """
        Validate every row and derive the surviving ones.

        Args:
            rows: dicts of raw values or RawFillupInput objects, in file order
            vehicle: target vehicle
            existing_fillups: the vehicle's stored fillups

        Returns:
            ImportReport; ``valid_rows`` are in file order,
            ``chronological_rows`` in the order they should be stored
        """
        rows = list(rows)
        report = ImportReport(total_rows=len(rows))

        if not rows:
            report.errors.append(
                ImportRowError(0, None, "Import contains no rows", ErrorCode.E100_EMPTY_IMPORT)
            )
            return report

        validator = FillupValidator(vehicle, tie_break=self.tie_break, today=self.today, **self.limits)

        existing = list(existing_fillups)
        entries = [TimelineEntry.from_fillup(f, position) for position, f in enumerate(existing)]

        # Pass 1: field validation, row by row
        survivors = []
        for row_number, row in enumerate(rows, start=1):
            candidate = row if isinstance(row, RawFillupInput) else RawFillupInput.from_dict(row, fillup_id=None)
            values, rejections = validator.normalize(candidate)
            if rejections:
                report.errors.extend(
                    ImportRowError(row_number, r.field, r.message, r.code) for r in rejections
                )
                continue
            survivors.append((row_number, values))

        # Same-day rows of a newest-first file were recorded in reverse
        report.newest_first = is_newest_first([values['date'] for _, values in survivors])
        pending = []
        for row_number, values in survivors:
            position = report.total_rows + 1 - row_number if report.newest_first else row_number
            entry = validator.candidate_entry(values, sequence=(PENDING, len(existing) + position))
            entries.append(entry)
            pending.append((row_number, values, entry))

        # Pass 2: derivation against the merged timeline
        timeline = Timeline(entries, tie_break=self.tie_break, initial_odometer=validator.initial_odometer)
        derived = []
        for row_number, values, entry in pending:
            fillup, warnings = validator.derive(values, entry, timeline)
            report.valid_rows.append(fillup)
            report.valid_row_numbers.append(row_number)
            report.warnings.extend(ImportRowWarning(row_number, w) for w in warnings)
            derived.append((timeline.sort_key(entry), fillup))

        report.chronological_rows = [fillup for _, fillup in sorted(derived, key=lambda item: item[0])]
        return report


def is_newest_first(dates: List) -> bool:
    """
    Whether a file lists fillups newest first, judged by its first and last dates.

    Examples:
        >>> from datetime import date
        >>> is_newest_first([date(2025, 3, 1), date(2025, 3, 1), date(2025, 2, 1)])
        True
        >>> is_newest_first([date(2025, 3, 1), date(2025, 3, 1)])
        False
    """
    if len(dates) < 2:
        return False
    return dates[0] > dates[-1]
