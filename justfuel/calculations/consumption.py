"""
Fillup Calculations

Arithmetic behind the derived fillup fields:
- Fuel consumption (L/100km)
- Price per liter
- Distance from odometer readings
- Odometer reconstruction from distances

No rounding happens here; rounding is a display concern.
"""

import math
from typing import Optional

from .constants import (
    CONSUMPTION_DISTANCE_BASE_KM,
    MAX_PLAUSIBLE_CONSUMPTION,
    MIN_PLAUSIBLE_CONSUMPTION,
)


def calculate_fuel_consumption(
    distance_traveled: Optional[float],
    fuel_amount: float
) -> Optional[float]:
    """
    Calculate fuel consumption in L/100km.

    Args:
        distance_traveled: Distance since the previous fillup (km)
        fuel_amount: Fuel added at this fillup (litres)

    Returns:
        Consumption in L/100km, or None if distance is missing or not positive

    Examples:
        >>> calculate_fuel_consumption(500.0, 40.0)
        8.0
        >>> calculate_fuel_consumption(0, 40.0) is None
        True
        >>> calculate_fuel_consumption(None, 40.0) is None
        True
    """
    if distance_traveled is None or fuel_amount is None:
        return None

    if distance_traveled <= 0:
        return None

    return (fuel_amount / distance_traveled) * CONSUMPTION_DISTANCE_BASE_KM


def calculate_price_per_liter(
    total_price: float,
    fuel_amount: float
) -> Optional[float]:
    """
    Calculate price per liter.

    Examples:
        >>> calculate_price_per_liter(300.0, 50.0)
        6.0
        >>> calculate_price_per_liter(300.0, 0) is None
        True
    """
    if total_price is None or fuel_amount is None or fuel_amount <= 0:
        return None

    return total_price / fuel_amount


def calculate_distance_traveled(
    current_odometer: float,
    previous_odometer: float
) -> float:
    """
    Distance between two odometer readings.

    Negative results are returned as-is; they mark a decreasing odometer.

    Examples:
        >>> calculate_distance_traveled(1500, 1000)
        500
        >>> calculate_distance_traveled(150, 200)
        -50
    """
    return current_odometer - previous_odometer


def calculate_odometer(
    previous_odometer: float,
    distance_traveled: float
) -> float:
    """
    Reconstruct an absolute odometer position from a point-to-point distance.

    Examples:
        >>> calculate_odometer(1000, 450.5)
        1450.5
    """
    return previous_odometer + distance_traveled


def is_consumption_plausible(
    consumption: Optional[float],
    min_consumption: float = MIN_PLAUSIBLE_CONSUMPTION,
    max_consumption: float = MAX_PLAUSIBLE_CONSUMPTION
) -> bool:
    """
    Check consumption against the absolute plausible range.

    Missing consumption (first fillup, zero distance) is not implausible.

    Examples:
        >>> is_consumption_plausible(7.5)
        True
        >>> is_consumption_plausible(80.0)
        False
        >>> is_consumption_plausible(None)
        True
    """
    if consumption is None:
        return True
    if not math.isfinite(consumption):
        return False
    return min_consumption <= consumption <= max_consumption
