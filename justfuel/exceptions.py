"""
Custom exceptions for JustFuel.

The validation core never raises these; it returns structured results. The
service layer translates rejected results into the exceptions below so that
callers can handle them the same way they handle database or lookup failures.

Exceptions tied to an error code carry it in ``details['code']``.
"""

from justfuel.utils.error_codes import ErrorCode


class JustFuelError(Exception):
    """Base exception for all JustFuel errors."""

    code = None

    def __init__(self, message: str, details: dict = None, code: ErrorCode = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if code is not None:
            self.code = code
        if self.code is not None:
            self.details.setdefault('code', self.code.value)

    def __str__(self):
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class DatabaseError(JustFuelError):
    """Database operation failed."""

    pass


class ConfigurationError(JustFuelError):
    """Invalid or missing configuration."""

    def __init__(self, message: str, config_key: str = None):
        details = {}
        if config_key:
            details['config_key'] = config_key
        super().__init__(message, details)
        self.config_key = config_key


class VehicleNotFoundError(JustFuelError):
    """Vehicle does not exist."""

    code = ErrorCode.E200_VEHICLE_NOT_FOUND

    def __init__(self, vehicle_id):
        super().__init__("Vehicle not found", {'vehicle_id': vehicle_id})
        self.vehicle_id = vehicle_id


class FillupNotFoundError(JustFuelError):
    """Fillup does not exist."""

    code = ErrorCode.E201_FILLUP_NOT_FOUND

    def __init__(self, fillup_id):
        super().__init__("Fillup not found", {'fillup_id': fillup_id})
        self.fillup_id = fillup_id


class VehicleValidationError(JustFuelError):
    """Invalid vehicle attribute."""

    def __init__(self, message: str, field: str = None, code: ErrorCode = None):
        details = {}
        if field:
            details['field'] = field
        super().__init__(message, details, code=code)
        self.field = field


class VehicleUpdateError(VehicleValidationError):
    """Rejected change to an existing vehicle, e.g. an immutable attribute."""

    pass


class FillupRejectedError(JustFuelError):
    """Fillup submission failed hard validation and must not be persisted."""

    def __init__(self, rejections: list):
        fields = [r.field for r in rejections]
        super().__init__("Fillup rejected", {'fields': fields})
        self.rejections = list(rejections)


class ImportRejectedError(JustFuelError):
    """Bulk import blocked because at least one row failed validation."""

    def __init__(self, errors: list, filename: str = None):
        details = {'error_count': len(errors)}
        if filename:
            details['filename'] = filename
        super().__init__("Import rejected", details)
        self.errors = list(errors)
        self.filename = filename


class CSVImportError(JustFuelError):
    """CSV file could not be read into fillup rows."""

    code = ErrorCode.E102_INVALID_CSV

    def __init__(self, message: str, row_number: int = None, filename: str = None, code: ErrorCode = None):
        details = {}
        if row_number:
            details['row_number'] = row_number
        if filename:
            details['filename'] = filename
        super().__init__(message, details, code=code)
        self.row_number = row_number
        self.filename = filename
