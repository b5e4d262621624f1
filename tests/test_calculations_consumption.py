"""
Tests for fillup derived-field calculations
"""

import math

import pytest

from justfuel.calculations.consumption import (
    calculate_distance_traveled,
    calculate_fuel_consumption,
    calculate_odometer,
    calculate_price_per_liter,
    is_consumption_plausible,
)


class TestFuelConsumption:
    """Test L/100km calculation"""

    def test_typical_consumption(self):
        """40 L over 500 km = 8 L/100km"""
        assert calculate_fuel_consumption(500.0, 40.0) == pytest.approx(8.0)

    def test_not_rounded(self):
        result = calculate_fuel_consumption(333.0, 25.0)
        assert result == 25.0 / 333.0 * 100

    def test_zero_distance_is_none(self):
        assert calculate_fuel_consumption(0, 40.0) is None

    def test_negative_distance_is_none(self):
        """Decreasing odometer never produces a consumption"""
        assert calculate_fuel_consumption(-50, 40.0) is None

    def test_missing_values(self):
        assert calculate_fuel_consumption(None, 40.0) is None
        assert calculate_fuel_consumption(500.0, None) is None


class TestPricePerLiter:
    """Test price per liter"""

    def test_price_per_liter_unrounded(self):
        """45.5 L for 250.00 = 5.4945..."""
        result = calculate_price_per_liter(250.0, 45.5)
        assert result == pytest.approx(5.4945, abs=1e-4)
        assert result == 250.0 / 45.5

    def test_zero_fuel_is_none(self):
        assert calculate_price_per_liter(250.0, 0) is None

    def test_missing_values(self):
        assert calculate_price_per_liter(None, 45.5) is None
        assert calculate_price_per_liter(250.0, None) is None


class TestDistanceAndOdometer:
    """Test odometer/distance conversions"""

    def test_distance_from_readings(self):
        assert calculate_distance_traveled(1500, 1000) == 500

    def test_decreasing_odometer_gives_negative_distance(self):
        assert calculate_distance_traveled(150, 200) == -50

    def test_odometer_from_distance(self):
        assert calculate_odometer(1000, 450.5) == 1450.5


class TestConsumptionPlausibility:
    """Test absolute plausibility range"""

    @pytest.mark.parametrize("consumption", [1.0, 7.5, 50.0])
    def test_plausible(self, consumption):
        assert is_consumption_plausible(consumption) is True

    @pytest.mark.parametrize("consumption", [0.5, 50.5, 80.0, math.inf, math.nan])
    def test_implausible(self, consumption):
        assert is_consumption_plausible(consumption) is False

    def test_missing_consumption_is_not_implausible(self):
        assert is_consumption_plausible(None) is True

    def test_custom_range(self):
        assert is_consumption_plausible(12.0, min_consumption=2.0, max_consumption=10.0) is False
        assert is_consumption_plausible(8.0, min_consumption=2.0, max_consumption=10.0) is True
