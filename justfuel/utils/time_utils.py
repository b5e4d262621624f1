"""
Date parsing utilities for JustFuel.

Fillups carry a calendar date only. Input arrives as ISO strings from forms,
as ``DD.MM.YYYY`` from spreadsheet exports, or already as ``date``/``datetime``
objects from the database layer; everything is normalized to ``date`` here.
"""

import logging
from datetime import date, datetime, timezone
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)


# Explicit day-first formats are tried before dateutil so "01.02.2025"
# is read as 1 February, not 2 January.
DATE_FORMATS = [
    "%Y-%m-%d",  # 2025-01-15
    "%d.%m.%Y",  # 15.01.2025
    "%Y/%m/%d",  # 2025/01/15
    "%d/%m/%Y",  # 15/01/2025
]


def utc_today() -> date:
    """Current calendar date in UTC."""
    return datetime.now(timezone.utc).date()


def parse_fillup_date(value) -> Optional[date]:
    """
    Parse a fillup date into a calendar ``date``.

    Supports:
    - ``date`` and ``datetime`` objects (time of day is dropped)
    - "2025-01-15", "15.01.2025", "2025/01/15", "15/01/2025"
    - Full ISO 8601 timestamps: "2025-01-15T10:30:00Z"

    Returns:
        date, or None if the value is blank or cannot be parsed

    Example:
        >>> parse_fillup_date("15.01.2025")
        datetime.date(2025, 1, 15)
        >>> parse_fillup_date("yesterday") is None
        True
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if not isinstance(value, str):
        return None

    date_string = value.strip()
    if not date_string:
        return None

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(date_string, fmt).date()
        except ValueError:
            continue

    try:
        return date_parser.isoparse(date_string).date()
    except (ValueError, OverflowError):
        logger.debug(f"Could not parse fillup date: {date_string}")
        return None


def date_horizon(today: date, years: int) -> date:
    """
    Oldest accepted fillup date.

    Example:
        >>> date_horizon(date(2025, 3, 1), 10)
        datetime.date(2015, 3, 1)
    """
    return today - relativedelta(years=years)


def format_fillup_date(value: Optional[date]) -> str:
    """Format a date as DD.MM.YYYY for spreadsheet exports."""
    if value is None:
        return ""
    return value.strftime("%d.%m.%Y")
