"""
Fillup service for JustFuel.

Owns all I/O around the validation core: loads vehicles and history, runs the
validator or import reconciler, persists accepted fillups and keeps every
derived field consistent with the chronological chain.

Writes for one vehicle are serialized by locking the vehicle row
(``SELECT ... FOR UPDATE``) for the duration of the transaction.
"""

import logging
from contextlib import contextmanager
from typing import Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from justfuel.calculations import (
    calculate_average_consumption,
    calculate_vehicle_statistics,
    classify_consumption,
)
from justfuel.exceptions import (
    DatabaseError,
    FillupNotFoundError,
    FillupRejectedError,
    ImportRejectedError,
    VehicleNotFoundError,
    VehicleUpdateError,
    VehicleValidationError,
)
from justfuel.models import Fillup, MileageInputPreference, Vehicle
from justfuel.utils.csv_importer import FillupCSVImporter
from justfuel.utils.error_codes import ErrorCode, WarningCode
from justfuel.utils.wide_events import track_operation

from .fillup_validator import FillupValidator, RawFillupInput, ValidationResult, parse_number
from .import_reconciler import ImportReconciler, ImportReport
from .timeline import Timeline, flag_odometer_regressions, insertion_order

logger = logging.getLogger(__name__)

IMMUTABLE_VEHICLE_FIELDS = ('initial_odometer', 'mileage_input_preference')
MUTABLE_VEHICLE_FIELDS = ('name',)


def _same_value(new, current) -> bool:
    """Compare a submitted attribute with the stored one (numbers by value)."""
    if isinstance(new, MileageInputPreference):
        new = new.value
    if isinstance(current, (int, float)):
        return parse_number(new) == current
    return str(new) == str(current)


class FillupService:
    """
    Vehicle and fillup operations over a SQLAlchemy session.

    Args:
        db: SQLAlchemy session
        tie_break: same-day ordering comparator for every timeline
        today: fixed current date for validation (defaults to today's UTC date)
    """

    def __init__(self, db, tie_break=insertion_order, today=None):
        self.db = db
        self.tie_break = tie_break
        self.today = today

    @contextmanager
    def _transaction(self):
        """Commit on success; roll back and re-raise on failure."""
        try:
            yield
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Fillup transaction failed: {e}", exc_info=True)
            raise DatabaseError("Fillup transaction failed", {'error': str(e)}) from e
        except Exception:
            self.db.rollback()
            raise

    def _validator(self, vehicle) -> FillupValidator:
        return FillupValidator(vehicle, tie_break=self.tie_break, today=self.today)

    # ------------------------------------------------------------------
    # Vehicles
    # ------------------------------------------------------------------

    def create_vehicle(
        self,
        name: str,
        initial_odometer=0,
        mileage_input_preference=MileageInputPreference.ODOMETER
    ) -> Vehicle:
        """
        Create a vehicle. Odometer and preference are fixed from here on.

        Raises:
            VehicleValidationError: blank name, invalid initial odometer or
                unknown mileage input preference
        """
        if not name or not str(name).strip():
            raise VehicleValidationError("Vehicle name is required", field='name')

        odometer = parse_number(initial_odometer if initial_odometer is not None else 0)
        if odometer is None or odometer < 0 or not odometer.is_integer():
            raise VehicleValidationError(
                "Initial odometer must be a non-negative whole number",
                field='initial_odometer',
            )

        try:
            preference = MileageInputPreference(mileage_input_preference)
        except ValueError:
            raise VehicleValidationError(
                f"Unknown mileage input preference: {mileage_input_preference}",
                field='mileage_input_preference',
            )

        vehicle = Vehicle(
            name=str(name).strip(),
            initial_odometer=int(odometer),
            mileage_input_preference=preference.value,
        )
        with self._transaction():
            self.db.add(vehicle)

        logger.info(f"Vehicle created: {vehicle.id} ({preference.value})")
        return vehicle

    def get_vehicle(self, vehicle_id, for_update: bool = False) -> Vehicle:
        query = self.db.query(Vehicle).filter(Vehicle.id == vehicle_id)
        if for_update:
            query = query.with_for_update()
        vehicle = query.first()
        if vehicle is None:
            raise VehicleNotFoundError(vehicle_id)
        return vehicle

    def update_vehicle(self, vehicle_id, **changes) -> Vehicle:
        """
        Update mutable vehicle attributes.

        Raises:
            VehicleUpdateError: immutable attribute change, unknown attribute
                or blank name
        """
        with self._transaction():
            vehicle = self.get_vehicle(vehicle_id, for_update=True)

            for field, value in changes.items():
                if field in IMMUTABLE_VEHICLE_FIELDS:
                    if not _same_value(value, getattr(vehicle, field)):
                        raise VehicleUpdateError(
                            f"{field} cannot be changed after creation",
                            field=field,
                            code=ErrorCode.E202_IMMUTABLE_ATTRIBUTE,
                        )
                    continue
                if field not in MUTABLE_VEHICLE_FIELDS:
                    raise VehicleUpdateError(f"Unknown vehicle attribute: {field}", field=field)
                if not value or not str(value).strip():
                    raise VehicleUpdateError("Vehicle name is required", field='name')
                vehicle.name = str(value).strip()

        return vehicle

    # ------------------------------------------------------------------
    # Fillups
    # ------------------------------------------------------------------

    def _history(self, vehicle_id) -> List[Fillup]:
        return (
            self.db.query(Fillup)
            .filter(Fillup.vehicle_id == vehicle_id)
            .order_by(Fillup.date, Fillup.id)
            .all()
        )

    def list_fillups(self, vehicle_id) -> List[Fillup]:
        """Fillups in chronological order (date, then the tie-break)."""
        vehicle = self.get_vehicle(vehicle_id)
        timeline = Timeline.from_fillups(
            self._history(vehicle.id),
            tie_break=self.tie_break,
            initial_odometer=vehicle.initial_odometer,
        )
        return [entry.source for entry in timeline]

    def get_fillup(self, fillup_id) -> Fillup:
        fillup = self.db.query(Fillup).filter(Fillup.id == fillup_id).first()
        if fillup is None:
            raise FillupNotFoundError(fillup_id)
        return fillup

    def _recalculate_chain(self, vehicle, fillups: Iterable[Fillup]) -> int:
        """Re-derive every fillup and write back the ones that changed."""
        updated = 0
        for fillup, derived in self._validator(vehicle).recalculate(fillups):
            current = (fillup.distance_traveled, fillup.fuel_consumption, fillup.price_per_liter)
            recomputed = (derived.distance_traveled, derived.fuel_consumption, derived.price_per_liter)
            if current != recomputed:
                fillup.apply_derived(derived)
                updated += 1
        return updated

    @staticmethod
    def _as_candidate(raw, fillup_id=None) -> RawFillupInput:
        if isinstance(raw, RawFillupInput):
            candidate = RawFillupInput(**{**raw.to_dict(), 'fillup_id': fillup_id})
        else:
            candidate = RawFillupInput.from_dict(raw, fillup_id=fillup_id)
            candidate.fillup_id = fillup_id
        return candidate

    def create_fillup(self, vehicle_id, raw, confirmed: bool = False) -> ValidationResult:
        """
        Validate and store a new fillup.

        Args:
            vehicle_id: Target vehicle
            raw: dict of raw values or RawFillupInput
            confirmed: the user acknowledged the warnings. Without it a
                submission with warnings is returned unsaved.

        Returns:
            ValidationResult; ``persisted`` tells whether it was stored

        Raises:
            FillupRejectedError: hard validation failure
        """
        with track_operation("fillup_create", vehicle_id=vehicle_id) as event:
            with self._transaction():
                vehicle = self.get_vehicle(vehicle_id, for_update=True)
                history = self._history(vehicle.id)

                with event.timer("validation"):
                    result = self._validator(vehicle).validate(self._as_candidate(raw), history)
                event.add_business_metric("warnings", len(result.warnings))

                if not result.is_valid:
                    raise FillupRejectedError(result.rejections)

                if result.requires_confirmation and not confirmed:
                    event.add_business_metric("awaiting_confirmation", True)
                    return result

                validated = result.fillup
                fillup = Fillup(
                    vehicle_id=vehicle.id,
                    date=validated.date,
                    fuel_amount=validated.fuel_amount,
                    total_price=validated.total_price,
                    odometer=validated.odometer,
                )
                fillup.apply_derived(validated)
                self.db.add(fillup)
                self.db.flush()

                with event.timer("recalculation"):
                    updated = self._recalculate_chain(vehicle, history + [fillup])

            validated.fillup_id = fillup.id
            result.persisted = True
            event.add_context(fillup_id=fillup.id)
            event.add_business_metric("fillup_created", True)
            event.add_business_metric("successors_updated", updated)
            event.add_business_metric("odometer_decreased", any(
                w.code == WarningCode.W001_ODOMETER_DECREASED for w in result.warnings
            ))

        return result

    def update_fillup(self, fillup_id, raw, confirmed: bool = False) -> ValidationResult:
        """
        Edit an existing fillup.

        The edit is validated against the history without the record itself,
        so moving a fillup to another date is checked against its new
        neighbours. Derived fields of the whole chain are refreshed.
        """
        with track_operation("fillup_update", fillup_id=fillup_id) as event:
            with self._transaction():
                fillup = self.get_fillup(fillup_id)
                vehicle = self.get_vehicle(fillup.vehicle_id, for_update=True)
                event.add_context(fillup_id=fillup.id, vehicle_id=vehicle.id)
                history = self._history(vehicle.id)

                with event.timer("validation"):
                    result = self._validator(vehicle).validate(self._as_candidate(raw, fillup.id), history)
                event.add_business_metric("warnings", len(result.warnings))

                if not result.is_valid:
                    raise FillupRejectedError(result.rejections)

                if result.requires_confirmation and not confirmed:
                    event.add_business_metric("awaiting_confirmation", True)
                    return result

                validated = result.fillup
                fillup.date = validated.date
                fillup.fuel_amount = validated.fuel_amount
                fillup.total_price = validated.total_price
                fillup.odometer = validated.odometer
                fillup.apply_derived(validated)
                self.db.flush()

                with event.timer("recalculation"):
                    updated = self._recalculate_chain(vehicle, history)

            result.persisted = True
            event.add_business_metric("entries_updated", updated)

        return result

    def delete_fillup(self, fillup_id) -> int:
        """
        Delete a fillup and recompute the records that depended on it.

        Returns:
            Number of remaining fillups whose derived fields changed
        """
        with track_operation("fillup_delete", fillup_id=fillup_id) as event:
            with self._transaction():
                fillup = self.get_fillup(fillup_id)
                vehicle = self.get_vehicle(fillup.vehicle_id, for_update=True)
                event.add_context(fillup_id=fillup.id, vehicle_id=vehicle.id)

                self.db.delete(fillup)
                self.db.flush()

                with event.timer("recalculation"):
                    updated = self._recalculate_chain(vehicle, self._history(vehicle.id))

            event.add_business_metric("fillup_deleted", True)
            event.add_business_metric("entries_updated", updated)

        logger.info(f"Fillup {fillup_id} deleted, {updated} entries recalculated")
        return updated

    def import_fillups(self, vehicle_id, rows: Iterable, filename: Optional[str] = None) -> ImportReport:
        """
        Validate a batch and store it all-or-nothing.

        Warnings are reported but do not block the import.

        Raises:
            ImportRejectedError: at least one row failed validation
        """
        with track_operation("fillup_import", vehicle_id=vehicle_id, filename=filename) as event:
            with self._transaction():
                vehicle = self.get_vehicle(vehicle_id, for_update=True)
                history = self._history(vehicle.id)

                reconciler = ImportReconciler(tie_break=self.tie_break, today=self.today)
                with event.timer("reconciliation"):
                    report = reconciler.reconcile(rows, vehicle, history)

                event.add_business_metric("rows", report.total_rows)
                event.add_business_metric("row_errors", len(report.errors))
                event.add_business_metric("row_warnings", len(report.warnings))

                if not report.can_commit:
                    raise ImportRejectedError(report.errors, filename=filename)

                inserted = []
                for validated in report.chronological_rows:
                    fillup = Fillup(
                        vehicle_id=vehicle.id,
                        date=validated.date,
                        fuel_amount=validated.fuel_amount,
                        total_price=validated.total_price,
                        odometer=validated.odometer,
                    )
                    fillup.apply_derived(validated)
                    self.db.add(fillup)
                    inserted.append(fillup)
                self.db.flush()

                with event.timer("recalculation"):
                    updated = self._recalculate_chain(vehicle, history + inserted)

            event.add_business_metric("import_committed", True)
            event.add_business_metric("rows_imported", len(inserted))
            event.add_business_metric("entries_updated", updated)

        logger.info(f"Imported {len(inserted)} fillups for vehicle {vehicle_id}")
        return report

    def recalculate_fillups(self, vehicle_id) -> int:
        """
        Recompute every derived field of a vehicle's fillups.

        Returns:
            Number of fillups that changed
        """
        with track_operation("fillup_recalculate", vehicle_id=vehicle_id) as event:
            with self._transaction():
                vehicle = self.get_vehicle(vehicle_id, for_update=True)
                updated = self._recalculate_chain(vehicle, self._history(vehicle.id))
            event.add_business_metric("entries_updated", updated)

        return updated

    # ------------------------------------------------------------------
    # Read models
    # ------------------------------------------------------------------

    def get_statistics(self, vehicle_id) -> dict:
        """Totals and averages over a vehicle's fillups."""
        vehicle = self.get_vehicle(vehicle_id)
        stats = calculate_vehicle_statistics(self._history(vehicle.id))
        stats['vehicle_id'] = vehicle.id
        return stats

    def list_fillups_annotated(self, vehicle_id) -> List[dict]:
        """
        Chronological fillups with their deviation level and regression flag.

        The regression flag compares each record with its chronological
        predecessor (or the vehicle's initial odometer for the first reading),
        so it does not depend on how a client sorts or pages the list.
        """
        vehicle = self.get_vehicle(vehicle_id)
        fillups = self.list_fillups(vehicle.id)
        average = calculate_average_consumption(fillups)
        regressions = flag_odometer_regressions(
            fillups,
            tie_break=self.tie_break,
            initial_odometer=vehicle.initial_odometer,
        )

        annotated = []
        for fillup in fillups:
            level = classify_consumption(fillup.fuel_consumption, average)
            item = fillup.to_dict()
            item['deviation'] = level.value
            item['deviation_severity'] = level.severity
            item['odometer_decreased'] = fillup.id in regressions
            annotated.append(item)
        return annotated

    def export_fillups(self, vehicle_id) -> str:
        """Vehicle history as CSV."""
        return FillupCSVImporter.generate_csv(self.list_fillups(vehicle_id))
