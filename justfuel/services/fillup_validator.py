"""
Fillup Validator

Validates a single fillup submission (new or edited) against a vehicle's
history and derives its computed fields.

Pipeline:
1. normalize: parse raw values, collect every field rejection
2. derive: locate the chronological predecessor, compute distance,
   consumption and price per liter
3. plausibility: attach advisory warnings (never blocking)

The validator is pure. History is passed in, nothing is read or written,
and the current date is injectable so results are reproducible.
"""

import math
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from justfuel.calculations.constants import (
    DATE_HORIZON_YEARS,
    MAX_FUEL_AMOUNT_LITERS,
    MAX_PLAUSIBLE_CONSUMPTION,
    MAX_TOTAL_PRICE,
    MIN_PLAUSIBLE_CONSUMPTION,
    MIN_PLAUSIBLE_DISTANCE_KM,
)
from justfuel.calculations.consumption import (
    calculate_distance_traveled,
    calculate_fuel_consumption,
    calculate_odometer,
    calculate_price_per_liter,
    is_consumption_plausible,
)
from justfuel.config import Config
from justfuel.models import MileageInputPreference
from justfuel.utils.error_codes import ErrorCode, WarningCode
from justfuel.utils.time_utils import date_horizon, parse_fillup_date, utc_today

from .timeline import (
    CANDIDATE,
    PERSISTED,
    Timeline,
    TimelineEntry,
    insertion_order,
    read_field,
)


class RawFillupInput:
    """
    Unvalidated fillup submission, values exactly as received (usually strings).

    ``fillup_id`` is set when the submission edits an existing record.
    """

    def __init__(
        self,
        date=None,
        fuel_amount=None,
        total_price=None,
        odometer=None,
        distance=None,
        fillup_id=None
    ):
        self.date = date
        self.fuel_amount = fuel_amount
        self.total_price = total_price
        self.odometer = odometer
        self.distance = distance
        self.fillup_id = fillup_id

    @classmethod
    def from_dict(cls, data: dict, fillup_id=None) -> "RawFillupInput":
        """Build from a form or CSV row; ``distance_traveled`` is accepted for ``distance``."""
        distance = data.get('distance')
        if distance is None:
            distance = data.get('distance_traveled')
        return cls(
            date=data.get('date'),
            fuel_amount=data.get('fuel_amount'),
            total_price=data.get('total_price'),
            odometer=data.get('odometer'),
            distance=distance,
            fillup_id=fillup_id if fillup_id is not None else data.get('id'),
        )

    def to_dict(self):
        return {
            'date': self.date,
            'fuel_amount': self.fuel_amount,
            'total_price': self.total_price,
            'odometer': self.odometer,
            'distance': self.distance,
            'fillup_id': self.fillup_id,
        }


class FieldRejection:
    """Hard validation failure on one field. The submission must not be stored."""

    def __init__(self, field: str, code: ErrorCode, message: str):
        self.field = field
        self.code = code
        self.message = message

    def to_dict(self):
        return {
            'field': self.field,
            'code': self.code.value,
            'message': self.message,
        }

    def __repr__(self):
        return f"<FieldRejection {self.field} {self.code.value}: {self.message}>"


class ValidationWarning:
    """Advisory signal. The submission may be stored once the user confirms."""

    def __init__(self, field: str, code: WarningCode, message: str, context: dict = None):
        self.field = field
        self.code = code
        self.message = message
        self.context = context or {}

    def to_dict(self):
        return {
            'field': self.field,
            'code': self.code.value,
            'message': self.message,
            'context': self.context,
        }

    def __repr__(self):
        return f"<ValidationWarning {self.field} {self.code.value}: {self.message}>"


class ValidatedFillup:
    """Accepted fillup with its derived fields, ready to be persisted."""

    def __init__(
        self,
        date,
        fuel_amount: float,
        total_price: float,
        odometer: Optional[int],
        distance_traveled: Optional[float],
        fuel_consumption: Optional[float],
        price_per_liter: Optional[float],
        absolute_odometer: Optional[float] = None,
        fillup_id=None
    ):
        self.date = date
        self.fuel_amount = fuel_amount
        self.total_price = total_price
        self.odometer = odometer
        self.distance_traveled = distance_traveled
        self.fuel_consumption = fuel_consumption
        self.price_per_liter = price_per_liter
        self.absolute_odometer = absolute_odometer
        self.fillup_id = fillup_id

    def to_dict(self):
        return {
            'fillup_id': self.fillup_id,
            'date': self.date.isoformat() if self.date else None,
            'fuel_amount': self.fuel_amount,
            'total_price': self.total_price,
            'odometer': self.odometer,
            'distance_traveled': self.distance_traveled,
            'fuel_consumption': self.fuel_consumption,
            'price_per_liter': self.price_per_liter,
            'absolute_odometer': self.absolute_odometer,
        }

    def __repr__(self):
        return (
            f"<ValidatedFillup date={self.date} odometer={self.odometer} "
            f"distance={self.distance_traveled} consumption={self.fuel_consumption}>"
        )


class ValidationResult:
    """Outcome of validating one submission: an accepted fillup or rejections, plus warnings."""

    def __init__(
        self,
        fillup: Optional[ValidatedFillup] = None,
        rejections: List[FieldRejection] = None,
        warnings: List[ValidationWarning] = None
    ):
        self.fillup = fillup
        self.rejections = rejections or []
        self.warnings = warnings or []
        # Set by the persistence layer once stored
        self.persisted = False

    @property
    def is_valid(self) -> bool:
        return not self.rejections

    @property
    def requires_confirmation(self) -> bool:
        """Accepted but with warnings the user has to acknowledge first."""
        return self.is_valid and bool(self.warnings)

    def rejected_fields(self) -> List[str]:
        return [r.field for r in self.rejections]

    def to_dict(self):
        return {
            'is_valid': self.is_valid,
            'requires_confirmation': self.requires_confirmation,
            'persisted': self.persisted,
            'fillup': self.fillup.to_dict() if self.fillup else None,
            'rejections': [r.to_dict() for r in self.rejections],
            'warnings': [w.to_dict() for w in self.warnings],
        }


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_number(value) -> Optional[float]:
    """
    Parse a user-entered number.

    Accepts ints, floats, Decimals and numeric strings with either ``.`` or
    ``,`` as decimal separator. Booleans, NaN and infinities are not numbers.

    Examples:
        >>> parse_number("45,5")
        45.5
        >>> parse_number("abc") is None
        True
        >>> parse_number(float("nan")) is None
        True
    """
    if isinstance(value, bool):
        return None

    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip().replace(' ', '').replace(',', '.')
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None

    if not math.isfinite(number):
        return None
    return number


class FillupValidator:
    """
    Validates fillups for one vehicle.

    Args:
        vehicle: object with ``initial_odometer`` and ``mileage_input_preference``
        tie_break: same-day ordering comparator (see ``timeline``)
        today: fixed current date; defaults to today's UTC date at call time
        max_fuel_amount: upper bound for fuel_amount (litres)
        max_total_price: upper bound for total_price
        date_horizon_years: oldest accepted date, in years before today
        min_plausible_distance: distances below this trigger a warning (km)
        min_consumption, max_consumption: plausible consumption range (L/100km)
    """

    def __init__(
        self,
        vehicle,
        tie_break=insertion_order,
        today=None,
        max_fuel_amount: float = MAX_FUEL_AMOUNT_LITERS,
        max_total_price: float = MAX_TOTAL_PRICE,
        date_horizon_years: int = DATE_HORIZON_YEARS,
        min_plausible_distance: float = MIN_PLAUSIBLE_DISTANCE_KM,
        min_consumption: float = MIN_PLAUSIBLE_CONSUMPTION,
        max_consumption: float = MAX_PLAUSIBLE_CONSUMPTION
    ):
        self.vehicle = vehicle
        self.mode = MileageInputPreference(
            read_field(vehicle, 'mileage_input_preference')
            or Config.DEFAULT_MILEAGE_INPUT_PREFERENCE
        )
        self.initial_odometer = read_field(vehicle, 'initial_odometer') or 0
        self.tie_break = tie_break
        self._today = today
        self.max_fuel_amount = max_fuel_amount
        self.max_total_price = max_total_price
        self.date_horizon_years = date_horizon_years
        self.min_plausible_distance = min_plausible_distance
        self.min_consumption = min_consumption
        self.max_consumption = max_consumption

    @property
    def today(self):
        return self._today if self._today is not None else utc_today()

    @property
    def mileage_field(self) -> str:
        """Name of the mileage field this vehicle accepts."""
        if self.mode == MileageInputPreference.ODOMETER:
            return 'odometer'
        return 'distance'

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def validate(self, candidate: RawFillupInput, prior_fillups: Iterable = ()) -> ValidationResult:
        """
        Validate a submission against the vehicle's stored history.

        Args:
            candidate: raw submission; ``fillup_id`` marks an edit
            prior_fillups: the vehicle's stored fillups in any order. When
                editing, the record being edited is ignored.

        Returns:
            ValidationResult with either the accepted fillup or every field
            rejection, plus advisory warnings
        """
        values, rejections = self.normalize(candidate)
        if rejections:
            return ValidationResult(rejections=rejections)

        timeline = self.build_timeline(prior_fillups, exclude_id=candidate.fillup_id)
        entry = self.candidate_entry(values, fillup_id=candidate.fillup_id)
        fillup, warnings = self.derive(values, entry, timeline, fillup_id=candidate.fillup_id)
        return ValidationResult(fillup=fillup, warnings=warnings)

    def build_timeline(self, fillups: Iterable, exclude_id=None) -> Timeline:
        return Timeline.from_fillups(
            fillups,
            tie_break=self.tie_break,
            initial_odometer=self.initial_odometer,
            exclude_id=exclude_id,
        )

    def candidate_entry(self, values: dict, fillup_id=None, sequence=None) -> TimelineEntry:
        """Timeline entry for a normalized candidate."""
        if sequence is None:
            sequence = (PERSISTED, fillup_id) if fillup_id is not None else (CANDIDATE, 0)
        return TimelineEntry(
            date=values['date'],
            odometer=values.get('odometer'),
            distance=values.get('distance'),
            sequence=sequence,
        )

    # ------------------------------------------------------------------
    # Field validation
    # ------------------------------------------------------------------

    def normalize(self, candidate: RawFillupInput) -> Tuple[dict, List[FieldRejection]]:
        """
        Parse and bound-check every field.

        All rejections are collected; nothing fails fast.

        Returns:
            (values, rejections) where values holds the parsed fields
        """
        rejections: List[FieldRejection] = []
        values = {}

        values['date'] = self._normalize_date(candidate.date, rejections)
        values['fuel_amount'] = self._normalize_bounded(
            'fuel_amount', candidate.fuel_amount, self.max_fuel_amount, rejections
        )
        values['total_price'] = self._normalize_bounded(
            'total_price', candidate.total_price, self.max_total_price, rejections
        )
        values['odometer'], values['distance'] = self._normalize_mileage(
            candidate.odometer, candidate.distance, rejections
        )

        return values, rejections

    def _normalize_date(self, raw, rejections: List[FieldRejection]):
        if _is_blank(raw):
            rejections.append(FieldRejection('date', ErrorCode.E001_MISSING_REQUIRED_FIELD, "Date is required"))
            return None

        parsed = parse_fillup_date(raw)
        if parsed is None:
            rejections.append(FieldRejection('date', ErrorCode.E005_INVALID_DATE, f"Invalid date: {raw}"))
            return None

        today = self.today
        if parsed > today:
            rejections.append(
                FieldRejection('date', ErrorCode.E006_DATE_IN_FUTURE, "Date cannot be in the future")
            )
            return None

        oldest = date_horizon(today, self.date_horizon_years)
        if parsed < oldest:
            rejections.append(
                FieldRejection(
                    'date',
                    ErrorCode.E007_DATE_TOO_OLD,
                    f"Date cannot be more than {self.date_horizon_years} years in the past",
                )
            )
            return None

        return parsed

    def _normalize_bounded(
        self,
        field: str,
        raw,
        upper_bound: float,
        rejections: List[FieldRejection]
    ) -> Optional[float]:
        """Required positive number no larger than upper_bound."""
        if _is_blank(raw):
            rejections.append(FieldRejection(field, ErrorCode.E001_MISSING_REQUIRED_FIELD, f"{field} is required"))
            return None

        number = parse_number(raw)
        if number is None:
            rejections.append(FieldRejection(field, ErrorCode.E002_INVALID_NUMBER, f"{field} must be a number"))
            return None

        if number <= 0:
            rejections.append(FieldRejection(field, ErrorCode.E003_OUT_OF_RANGE, f"{field} must be positive"))
            return None

        if number > upper_bound:
            rejections.append(
                FieldRejection(field, ErrorCode.E003_OUT_OF_RANGE, f"{field} must not exceed {upper_bound:g}")
            )
            return None

        return number

    def _normalize_mileage(
        self,
        raw_odometer,
        raw_distance,
        rejections: List[FieldRejection]
    ) -> Tuple[Optional[int], Optional[float]]:
        has_odometer = not _is_blank(raw_odometer)
        has_distance = not _is_blank(raw_distance)

        if has_odometer and has_distance:
            message = "Provide either odometer or distance, not both"
            rejections.append(FieldRejection('odometer', ErrorCode.E008_MILEAGE_CONFLICT, message))
            rejections.append(FieldRejection('distance', ErrorCode.E008_MILEAGE_CONFLICT, message))
            return None, None

        if not has_odometer and not has_distance:
            message = f"{self.mileage_field} is required"
            rejections.append(FieldRejection('odometer', ErrorCode.E008_MILEAGE_CONFLICT, message))
            rejections.append(FieldRejection('distance', ErrorCode.E008_MILEAGE_CONFLICT, message))
            return None, None

        supplied = 'odometer' if has_odometer else 'distance'
        if supplied != self.mileage_field:
            rejections.append(
                FieldRejection(
                    self.mileage_field,
                    ErrorCode.E001_MISSING_REQUIRED_FIELD,
                    f"{self.mileage_field} is required for this vehicle",
                )
            )
            rejections.append(
                FieldRejection(
                    supplied,
                    ErrorCode.E009_MILEAGE_MODE_MISMATCH,
                    f"This vehicle tracks {self.mileage_field}, not {supplied}",
                )
            )
            return None, None

        if has_odometer:
            return self._normalize_odometer(raw_odometer, rejections), None
        return None, self._normalize_distance(raw_distance, rejections)

    def _normalize_odometer(self, raw, rejections: List[FieldRejection]) -> Optional[int]:
        number = parse_number(raw)
        if number is None:
            rejections.append(FieldRejection('odometer', ErrorCode.E002_INVALID_NUMBER, "odometer must be a number"))
            return None

        if not number.is_integer():
            rejections.append(
                FieldRejection('odometer', ErrorCode.E004_NOT_AN_INTEGER, "odometer must be a whole number")
            )
            return None

        if number < 0:
            rejections.append(FieldRejection('odometer', ErrorCode.E003_OUT_OF_RANGE, "odometer cannot be negative"))
            return None

        return int(number)

    def _normalize_distance(self, raw, rejections: List[FieldRejection]) -> Optional[float]:
        number = parse_number(raw)
        if number is None:
            rejections.append(FieldRejection('distance', ErrorCode.E002_INVALID_NUMBER, "distance must be a number"))
            return None

        if number < 0:
            rejections.append(FieldRejection('distance', ErrorCode.E003_OUT_OF_RANGE, "distance cannot be negative"))
            return None

        return number

    # ------------------------------------------------------------------
    # Derivation
    # ------------------------------------------------------------------

    def derive(
        self,
        values: dict,
        entry: TimelineEntry,
        timeline: Timeline,
        fillup_id=None
    ) -> Tuple[ValidatedFillup, List[ValidationWarning]]:
        """
        Compute derived fields and warnings for normalized values.

        ``entry`` is the candidate's position; it may or may not be a member
        of ``timeline`` (it is never its own predecessor either way).
        """
        fuel_amount = values['fuel_amount']
        total_price = values['total_price']
        warnings: List[ValidationWarning] = []

        if self.mode == MileageInputPreference.ODOMETER:
            odometer = values['odometer']
            previous = timeline.previous_reading(entry)
            if previous is not None:
                reference = previous.odometer
                reference_label = "the previous entry"
            elif self.initial_odometer:
                reference = self.initial_odometer
                reference_label = "the vehicle's initial odometer"
            else:
                reference = None
                reference_label = None

            distance = (
                calculate_distance_traveled(odometer, reference)
                if reference is not None else None
            )
            absolute_odometer = odometer

            if distance is not None and distance < 0:
                warnings.append(
                    ValidationWarning(
                        'odometer',
                        WarningCode.W001_ODOMETER_DECREASED,
                        f"Odometer is lower than {reference_label} ({reference:g} km)",
                        {'previous_odometer': reference, 'distance_traveled': distance},
                    )
                )

            following = timeline.next_reading(entry)
            if following is not None and odometer > following.odometer:
                warnings.append(
                    ValidationWarning(
                        'odometer',
                        WarningCode.W004_ODOMETER_EXCEEDS_NEXT,
                        f"Odometer is higher than the next entry ({following.odometer:g} km)",
                        {'next_odometer': following.odometer},
                    )
                )
        else:
            odometer = None
            distance = values['distance']
            absolute_odometer = (
                calculate_odometer(timeline.absolute_odometer_before(entry), distance)
                if distance is not None else None
            )

        if distance is not None and 0 <= distance < self.min_plausible_distance:
            warnings.append(
                ValidationWarning(
                    self.mileage_field,
                    WarningCode.W002_SHORT_DISTANCE,
                    f"Very short distance since last fillup ({distance:g} km)",
                    {'distance_traveled': distance},
                )
            )

        consumption = calculate_fuel_consumption(distance, fuel_amount)
        if not is_consumption_plausible(consumption, self.min_consumption, self.max_consumption):
            warnings.append(
                ValidationWarning(
                    'fuel_amount',
                    WarningCode.W003_CONSUMPTION_OUT_OF_RANGE,
                    f"Fuel consumption of {consumption:.2f} L/100km is outside the plausible range "
                    f"({self.min_consumption:g}-{self.max_consumption:g} L/100km)",
                    {'fuel_consumption': consumption},
                )
            )

        fillup = ValidatedFillup(
            date=values['date'],
            fuel_amount=fuel_amount,
            total_price=total_price,
            odometer=odometer,
            distance_traveled=distance,
            fuel_consumption=consumption,
            price_per_liter=calculate_price_per_liter(total_price, fuel_amount),
            absolute_odometer=absolute_odometer,
            fillup_id=fillup_id,
        )
        return fillup, warnings

    def recalculate(self, fillups: Iterable) -> List[Tuple[object, ValidatedFillup]]:
        """
        Re-derive every stored fillup against its chronological neighbours.

        Stored values are trusted (no date horizon check), only the derived
        fields are recomputed.

        Returns:
            (source fillup, ValidatedFillup) pairs in chronological order
        """
        timeline = self.build_timeline(fillups)
        results = []
        for entry in timeline:
            source = entry.source
            values = {
                'date': entry.date,
                'fuel_amount': read_field(source, 'fuel_amount'),
                'total_price': read_field(source, 'total_price'),
                'odometer': entry.odometer,
                'distance': entry.distance,
            }
            fillup, _ = self.derive(values, entry, timeline, fillup_id=read_field(source, 'id'))
            results.append((source, fillup))
        return results


def validate_fillup(
    vehicle,
    candidate,
    prior_fillups: Iterable = (),
    tie_break=insertion_order,
    today=None
) -> ValidationResult:
    """
    Validate one submission without keeping a validator around.

    ``candidate`` may be a RawFillupInput or a plain dict of raw values.
    """
    if isinstance(candidate, dict):
        candidate = RawFillupInput.from_dict(candidate)
    validator = FillupValidator(vehicle, tie_break=tie_break, today=today)
    return validator.validate(candidate, prior_fillups)
