"""
Property-based tests using Hypothesis.

These tests generate many inputs to check invariants that should hold for
every fillup history, not just the hand-picked examples elsewhere.
"""

from datetime import date, timedelta

from hypothesis import HealthCheck, given, settings, strategies as st

from tests.conftest import TODAY

finite_floats = st.floats(allow_nan=False, allow_infinity=False, min_value=-1e6, max_value=1e6)


# ============================================================================
# Deviation Property Tests
# ============================================================================

class TestDeviationClassification:
    """Property-based tests for deviation levels."""

    @given(finite_floats)
    def test_every_deviation_has_a_level(self, deviation):
        """
        Property: classification is total over finite percentages.
        """
        from justfuel.calculations import ConsumptionDeviation, classify_deviation_percent

        assert isinstance(classify_deviation_percent(deviation), ConsumptionDeviation)

    @given(finite_floats, finite_floats)
    def test_classification_is_monotonic(self, a, b):
        """
        Property: a larger deviation never maps to a less severe level.
        """
        from justfuel.calculations import classify_deviation_percent

        low, high = sorted((a, b))
        assert classify_deviation_percent(low).severity <= classify_deviation_percent(high).severity

    @given(st.floats(min_value=0.1, max_value=100, allow_nan=False))
    def test_consumption_equal_to_average_is_neutral(self, consumption):
        from justfuel.calculations import ConsumptionDeviation, classify_consumption

        assert classify_consumption(consumption, consumption) is ConsumptionDeviation.NEUTRAL


# ============================================================================
# Consumption Property Tests
# ============================================================================

class TestConsumption:
    """Property-based tests for consumption arithmetic."""

    @given(
        st.floats(min_value=0.01, max_value=100000, allow_nan=False),
        st.floats(min_value=0.01, max_value=2000, allow_nan=False),
    )
    def test_positive_inputs_give_positive_consumption(self, distance, fuel):
        from justfuel.calculations import calculate_fuel_consumption

        consumption = calculate_fuel_consumption(distance, fuel)

        assert consumption is not None
        assert consumption > 0

    @given(st.floats(max_value=0, allow_nan=False), st.floats(min_value=0.01, max_value=2000))
    def test_no_consumption_without_positive_distance(self, distance, fuel):
        from justfuel.calculations import calculate_fuel_consumption

        assert calculate_fuel_consumption(distance, fuel) is None

    @given(st.floats(min_value=0.001, max_value=2000, allow_nan=False))
    def test_comma_and_point_parse_the_same(self, value):
        from justfuel.services.fillup_validator import parse_number

        text = repr(value)
        assert parse_number(text.replace('.', ',')) == parse_number(text)


# ============================================================================
# Validator Property Tests
# ============================================================================

odometer_steps = st.lists(st.integers(min_value=1, max_value=5000), min_size=1, max_size=12)


class TestValidatorProperties:
    """Property-based tests for fillup validation."""

    @given(odometer_steps)
    @settings(suppress_health_check=[HealthCheck.too_slow], deadline=None)
    def test_increasing_odometers_never_warn_of_regression(self, steps):
        """
        Property: a strictly increasing history produces no decreasing-odometer
        warning and positive distances.
        """
        from justfuel.services.fillup_validator import FillupValidator
        from justfuel.utils.error_codes import WarningCode
        from tests.factories import FillupFactory, VehicleFactory

        validator = FillupValidator(VehicleFactory.build(), today=TODAY)
        start = TODAY - timedelta(days=len(steps))

        history = []
        odometer = 0
        for i, step in enumerate(steps, start=1):
            odometer += step
            history.append(FillupFactory.build(id=i, date=start + timedelta(days=i - 1), odometer=odometer))

        for source, derived in validator.recalculate(history):
            assert derived.distance_traveled is None or derived.distance_traveled > 0

        result = validator.validate(
            validator_input(TODAY, odometer + 1),
            history,
        )
        assert WarningCode.W001_ODOMETER_DECREASED not in [w.code for w in result.warnings]
        assert result.fillup.distance_traveled == 1

    @given(odometer_steps, st.randoms(use_true_random=False))
    @settings(suppress_health_check=[HealthCheck.too_slow], deadline=None)
    def test_history_order_does_not_matter(self, steps, rng):
        """
        Property: derivation depends on chronology, not on the order the
        history is supplied in.
        """
        from justfuel.services.fillup_validator import FillupValidator
        from tests.factories import FillupFactory, VehicleFactory

        validator = FillupValidator(VehicleFactory.build(), today=TODAY)
        history = [
            FillupFactory.build(id=i, date=date(2025, 1, 1) + timedelta(days=i), odometer=1000 + sum(steps[:i]))
            for i in range(1, len(steps) + 1)
        ]
        shuffled = list(history)
        rng.shuffle(shuffled)

        candidate = validator_input(date(2025, 3, 15), 1000 + sum(steps) // 2)

        assert validator.validate(candidate, history).to_dict() == validator.validate(candidate, shuffled).to_dict()
        assert [d.to_dict() for _, d in validator.recalculate(history)] == \
            [d.to_dict() for _, d in validator.recalculate(shuffled)]


def validator_input(day, odometer):
    from justfuel.services.fillup_validator import RawFillupInput

    return RawFillupInput(date=day.isoformat(), fuel_amount='40', total_price='240', odometer=str(odometer))
