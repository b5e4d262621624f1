"""
Tests for custom exception classes.
"""

import pytest

from justfuel.exceptions import (
    ConfigurationError,
    CSVImportError,
    DatabaseError,
    FillupNotFoundError,
    FillupRejectedError,
    ImportRejectedError,
    JustFuelError,
    VehicleNotFoundError,
    VehicleUpdateError,
    VehicleValidationError,
)
from justfuel.services.fillup_validator import FieldRejection
from justfuel.services.import_reconciler import ImportRowError
from justfuel.utils.error_codes import ErrorCode


class TestJustFuelError:
    """Tests for base exception class."""

    def test_basic_error(self):
        error = JustFuelError("Something went wrong")

        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.details == {}

    def test_error_with_details(self):
        error = JustFuelError("Failed", {"vehicle_id": 3})

        assert error.details == {"vehicle_id": 3}
        assert "vehicle_id" in str(error)

    @pytest.mark.parametrize("error", [
        DatabaseError("db down"),
        ConfigurationError("bad", config_key="DATABASE_URL"),
        VehicleNotFoundError(1),
        FillupNotFoundError(1),
        VehicleValidationError("nope"),
        VehicleUpdateError("nope"),
        FillupRejectedError([]),
        ImportRejectedError([]),
        CSVImportError("bad csv"),
    ])
    def test_hierarchy(self, error):
        assert isinstance(error, JustFuelError)


class TestSpecificErrors:
    """Details carried by each exception."""

    def test_configuration_error(self):
        error = ConfigurationError("Missing", config_key="DATABASE_URL")

        assert error.config_key == "DATABASE_URL"
        assert error.details == {"config_key": "DATABASE_URL"}

    def test_not_found_errors(self):
        assert VehicleNotFoundError(5).details == {"vehicle_id": 5, "code": "E200"}
        assert FillupNotFoundError(7).fillup_id == 7
        assert FillupNotFoundError(7).details["code"] == "E201"

    def test_vehicle_update_error(self):
        error = VehicleUpdateError("initial_odometer cannot be changed after creation", field="initial_odometer")

        assert error.field == "initial_odometer"
        assert error.details == {"field": "initial_odometer"}
        assert error.code is None

    def test_vehicle_update_error_with_code(self):
        error = VehicleUpdateError("locked", field="initial_odometer", code=ErrorCode.E202_IMMUTABLE_ATTRIBUTE)

        assert isinstance(error, VehicleValidationError)
        assert error.details == {"field": "initial_odometer", "code": "E202"}
        assert "E202" in str(error)

    def test_vehicle_validation_error(self):
        error = VehicleValidationError("Vehicle name is required", field="name")

        assert error.field == "name"
        assert error.details == {"field": "name"}
        assert not isinstance(error, VehicleUpdateError)

    def test_fillup_rejected_error(self):
        rejections = [
            FieldRejection("date", ErrorCode.E005_INVALID_DATE, "Invalid date: x"),
            FieldRejection("fuel_amount", ErrorCode.E001_MISSING_REQUIRED_FIELD, "fuel_amount is required"),
        ]
        error = FillupRejectedError(rejections)

        assert error.details == {"fields": ["date", "fuel_amount"]}
        assert error.rejections == rejections

    def test_import_rejected_error(self):
        errors = [ImportRowError(2, "odometer", "odometer must be a number", ErrorCode.E002_INVALID_NUMBER)]
        error = ImportRejectedError(errors, filename="fillups.csv")

        assert error.details == {"error_count": 1, "filename": "fillups.csv"}
        assert error.errors == errors

    def test_csv_import_error(self):
        error = CSVImportError("Missing required columns: date", row_number=1, filename="a.csv")

        assert error.row_number == 1
        assert error.details == {"row_number": 1, "filename": "a.csv", "code": "E102"}

    def test_csv_import_error_code_override(self):
        error = CSVImportError("Missing required columns: date", code=ErrorCode.E101_MISSING_COLUMN)

        assert error.code == ErrorCode.E101_MISSING_COLUMN
        assert error.details == {"code": "E101"}
        assert CSVImportError.code == ErrorCode.E102_INVALID_CSV

    def test_can_be_caught_as_base(self):
        with pytest.raises(JustFuelError):
            raise FillupNotFoundError(1)

    def test_uncoded_errors_leave_details_alone(self):
        assert "code" not in DatabaseError("db down").details
        assert "code" not in ImportRejectedError([]).details

    def test_explicit_code_in_details_wins(self):
        error = JustFuelError("x", {"code": "custom"}, code=ErrorCode.E200_VEHICLE_NOT_FOUND)

        assert error.code == ErrorCode.E200_VEHICLE_NOT_FOUND
        assert error.details == {"code": "custom"}
