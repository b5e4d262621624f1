"""
Services module for JustFuel.

The validator, import reconciler and timeline are pure; FillupService wraps
them with persistence.
"""

from .timeline import (
    TIE_BREAKS,
    Timeline,
    TimelineEntry,
    flag_odometer_regressions,
    get_tie_break,
    insertion_order,
    odometer_order,
)
from .fillup_validator import (
    FieldRejection,
    FillupValidator,
    RawFillupInput,
    ValidatedFillup,
    ValidationResult,
    ValidationWarning,
    validate_fillup,
)
from .import_reconciler import (
    ImportReconciler,
    ImportReport,
    ImportRowError,
    ImportRowWarning,
)
from .fillup_service import FillupService

__all__ = [
    # Timeline
    'TIE_BREAKS',
    'Timeline',
    'TimelineEntry',
    'flag_odometer_regressions',
    'get_tie_break',
    'insertion_order',
    'odometer_order',
    # Validator
    'FieldRejection',
    'FillupValidator',
    'RawFillupInput',
    'ValidatedFillup',
    'ValidationResult',
    'ValidationWarning',
    'validate_fillup',
    # Import
    'ImportReconciler',
    'ImportReport',
    'ImportRowError',
    'ImportRowWarning',
    # Persistence
    'FillupService',
]
