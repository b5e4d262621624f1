"""
Utility modules for JustFuel.

The CSV importer and wide events are imported from their own modules.
"""

from .error_codes import ErrorCategory, ErrorCode, WarningCode, get_error_metadata
from .time_utils import (
    date_horizon,
    format_fillup_date,
    parse_fillup_date,
    utc_today,
)

__all__ = [
    'ErrorCategory',
    'ErrorCode',
    'WarningCode',
    'get_error_metadata',
    'date_horizon',
    'format_fillup_date',
    'parse_fillup_date',
    'utc_today',
]
