"""
Error Code Taxonomy for JustFuel

Structured codes attached to every rejection and warning so that clients can
map them to their own messages and the logs can be grouped by cause.

Error Code Format:
- E001-E099: Field validation rejections (bad input data)
- E100-E199: Import and CSV errors
- E200-E299: Persistence errors (lookups, immutable attributes)
- W001-W099: Advisory warnings (plausible but suspicious data)
"""

from enum import Enum
from typing import Union


class ErrorCategory(str, Enum):
    """High-level categories for grouping and alerting."""

    VALIDATION = "validation"
    PLAUSIBILITY = "plausibility"
    IMPORT = "import"
    DATABASE = "database"


class ErrorCode(str, Enum):
    """Hard failure codes."""

    # Validation Errors (E001-E099)
    E001_MISSING_REQUIRED_FIELD = "E001"  # Required field missing or blank
    E002_INVALID_NUMBER = "E002"  # Not a finite number
    E003_OUT_OF_RANGE = "E003"  # Number outside accepted bounds
    E004_NOT_AN_INTEGER = "E004"  # Odometer with a fractional part
    E005_INVALID_DATE = "E005"  # Unparseable date
    E006_DATE_IN_FUTURE = "E006"  # Date after today
    E007_DATE_TOO_OLD = "E007"  # Date before the accepted horizon
    E008_MILEAGE_CONFLICT = "E008"  # Both or neither of odometer/distance supplied
    E009_MILEAGE_MODE_MISMATCH = "E009"  # Field does not match vehicle preference

    # Import Errors (E100-E199)
    E100_EMPTY_IMPORT = "E100"  # Batch contains no rows
    E101_MISSING_COLUMN = "E101"  # CSV header lacks a required column
    E102_INVALID_CSV = "E102"  # Content could not be read as CSV

    # Persistence Errors (E200-E299)
    E200_VEHICLE_NOT_FOUND = "E200"
    E201_FILLUP_NOT_FOUND = "E201"
    E202_IMMUTABLE_ATTRIBUTE = "E202"  # Vehicle preference / initial odometer change


class WarningCode(str, Enum):
    """Advisory codes. The record may still be stored after confirmation."""

    W001_ODOMETER_DECREASED = "W001"  # Lower than chronological predecessor
    W002_SHORT_DISTANCE = "W002"  # Very short distance since last fillup
    W003_CONSUMPTION_OUT_OF_RANGE = "W003"  # Outside the plausible absolute range
    W004_ODOMETER_EXCEEDS_NEXT = "W004"  # Higher than chronological successor


ERROR_METADATA = {
    ErrorCode.E001_MISSING_REQUIRED_FIELD: {
        "category": ErrorCategory.VALIDATION,
        "description": "Required field missing",
        "severity": "error",
    },
    ErrorCode.E002_INVALID_NUMBER: {
        "category": ErrorCategory.VALIDATION,
        "description": "Field is not a valid number",
        "severity": "error",
    },
    ErrorCode.E003_OUT_OF_RANGE: {
        "category": ErrorCategory.VALIDATION,
        "description": "Value outside acceptable range",
        "severity": "error",
    },
    ErrorCode.E004_NOT_AN_INTEGER: {
        "category": ErrorCategory.VALIDATION,
        "description": "Value must be a whole number",
        "severity": "error",
    },
    ErrorCode.E005_INVALID_DATE: {
        "category": ErrorCategory.VALIDATION,
        "description": "Date could not be parsed",
        "severity": "error",
    },
    ErrorCode.E006_DATE_IN_FUTURE: {
        "category": ErrorCategory.VALIDATION,
        "description": "Date is in the future",
        "severity": "error",
    },
    ErrorCode.E007_DATE_TOO_OLD: {
        "category": ErrorCategory.VALIDATION,
        "description": "Date is older than the accepted horizon",
        "severity": "error",
    },
    ErrorCode.E008_MILEAGE_CONFLICT: {
        "category": ErrorCategory.VALIDATION,
        "description": "Exactly one of odometer or distance is required",
        "severity": "error",
    },
    ErrorCode.E009_MILEAGE_MODE_MISMATCH: {
        "category": ErrorCategory.VALIDATION,
        "description": "Mileage field does not match the vehicle preference",
        "severity": "error",
    },
    ErrorCode.E100_EMPTY_IMPORT: {
        "category": ErrorCategory.IMPORT,
        "description": "Import contains no rows",
        "severity": "error",
    },
    ErrorCode.E101_MISSING_COLUMN: {
        "category": ErrorCategory.IMPORT,
        "description": "Required CSV column missing",
        "severity": "error",
    },
    ErrorCode.E102_INVALID_CSV: {
        "category": ErrorCategory.IMPORT,
        "description": "Content could not be parsed as CSV",
        "severity": "error",
    },
    ErrorCode.E200_VEHICLE_NOT_FOUND: {
        "category": ErrorCategory.DATABASE,
        "description": "Vehicle not found",
        "severity": "warning",
    },
    ErrorCode.E201_FILLUP_NOT_FOUND: {
        "category": ErrorCategory.DATABASE,
        "description": "Fillup not found",
        "severity": "warning",
    },
    ErrorCode.E202_IMMUTABLE_ATTRIBUTE: {
        "category": ErrorCategory.DATABASE,
        "description": "Attribute cannot be changed after creation",
        "severity": "warning",
    },
    WarningCode.W001_ODOMETER_DECREASED: {
        "category": ErrorCategory.PLAUSIBILITY,
        "description": "Odometer lower than previous entry",
        "severity": "warning",
    },
    WarningCode.W002_SHORT_DISTANCE: {
        "category": ErrorCategory.PLAUSIBILITY,
        "description": "Very short distance since last fillup",
        "severity": "warning",
    },
    WarningCode.W003_CONSUMPTION_OUT_OF_RANGE: {
        "category": ErrorCategory.PLAUSIBILITY,
        "description": "Consumption outside plausible range",
        "severity": "warning",
    },
    WarningCode.W004_ODOMETER_EXCEEDS_NEXT: {
        "category": ErrorCategory.PLAUSIBILITY,
        "description": "Odometer higher than the next entry",
        "severity": "warning",
    },
}


def get_error_metadata(code: Union[ErrorCode, WarningCode]) -> dict:
    """Get metadata for an error or warning code."""
    return ERROR_METADATA.get(
        code,
        {
            "category": ErrorCategory.VALIDATION,
            "description": "Unknown error",
            "severity": "error",
        },
    )
