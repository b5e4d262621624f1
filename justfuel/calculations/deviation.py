"""
Consumption Deviation Classification

Buckets a fillup's consumption relative to the vehicle's average into seven
ordered levels. Every display consumer (list cards, charts, exports) maps
these levels to its own colours; the decision itself lives only here.

    d = (consumption - average) / average * 100

    d <= -15          EXTREMELY_LOW
    -15 < d <= -8     VERY_LOW
    -8 < d < 0        LOW
    0 <= d < 5        NEUTRAL
    5 <= d < 10       HIGH
    10 <= d < 20      VERY_HIGH
    d >= 20           EXTREMELY_HIGH

When no deviation can be computed the level is NEUTRAL (``UNKNOWN`` is an
alias of it).
"""

import math
from enum import Enum
from typing import Optional

from .constants import (
    EXTREMELY_HIGH_MIN_PERCENT,
    EXTREMELY_LOW_MAX_PERCENT,
    HIGH_MIN_PERCENT,
    NEUTRAL_MIN_PERCENT,
    VERY_HIGH_MIN_PERCENT,
    VERY_LOW_MAX_PERCENT,
)


class ConsumptionDeviation(str, Enum):
    """Ordered deviation levels, best (lowest consumption) first."""

    EXTREMELY_LOW = "EXTREMELY_LOW"
    VERY_LOW = "VERY_LOW"
    LOW = "LOW"
    NEUTRAL = "NEUTRAL"
    HIGH = "HIGH"
    VERY_HIGH = "VERY_HIGH"
    EXTREMELY_HIGH = "EXTREMELY_HIGH"

    # No deviation computable
    UNKNOWN = "NEUTRAL"

    @property
    def severity(self) -> int:
        """Signed severity from -3 (extremely low) to 3 (extremely high)."""
        return _SEVERITY[self]


_SEVERITY = {
    ConsumptionDeviation.EXTREMELY_LOW: -3,
    ConsumptionDeviation.VERY_LOW: -2,
    ConsumptionDeviation.LOW: -1,
    ConsumptionDeviation.NEUTRAL: 0,
    ConsumptionDeviation.HIGH: 1,
    ConsumptionDeviation.VERY_HIGH: 2,
    ConsumptionDeviation.EXTREMELY_HIGH: 3,
}


def _is_finite_number(value) -> bool:
    if value is None or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except TypeError:
        return False


def calculate_deviation_percent(
    consumption: Optional[float],
    average: Optional[float]
) -> Optional[float]:
    """
    Percentage deviation of consumption from the average.

    Returns:
        Deviation in percent, or None when it cannot be computed

    Examples:
        >>> calculate_deviation_percent(8.0, 10.0)
        -20.0
        >>> calculate_deviation_percent(None, 10.0) is None
        True
        >>> calculate_deviation_percent(8.0, 0) is None
        True
    """
    if not _is_finite_number(consumption) or not _is_finite_number(average):
        return None
    if average <= 0:
        return None

    deviation = (consumption - average) / average * 100
    if not math.isfinite(deviation):
        return None
    return deviation


def classify_deviation_percent(deviation: Optional[float]) -> ConsumptionDeviation:
    """Map a percentage deviation onto its level."""
    if deviation is None:
        return ConsumptionDeviation.NEUTRAL

    if deviation <= EXTREMELY_LOW_MAX_PERCENT:
        return ConsumptionDeviation.EXTREMELY_LOW
    if deviation <= VERY_LOW_MAX_PERCENT:
        return ConsumptionDeviation.VERY_LOW
    if deviation < NEUTRAL_MIN_PERCENT:
        return ConsumptionDeviation.LOW
    if deviation < HIGH_MIN_PERCENT:
        return ConsumptionDeviation.NEUTRAL
    if deviation < VERY_HIGH_MIN_PERCENT:
        return ConsumptionDeviation.HIGH
    if deviation < EXTREMELY_HIGH_MIN_PERCENT:
        return ConsumptionDeviation.VERY_HIGH
    return ConsumptionDeviation.EXTREMELY_HIGH


def classify_consumption(
    consumption: Optional[float],
    average: Optional[float]
) -> ConsumptionDeviation:
    """
    Classify a fillup's consumption against the vehicle's average.

    Args:
        consumption: Fillup consumption (L/100km), may be None
        average: Vehicle's historical average consumption (L/100km)

    Returns:
        ConsumptionDeviation level

    Examples:
        >>> classify_consumption(8.0, 10.0)
        <ConsumptionDeviation.EXTREMELY_LOW: 'EXTREMELY_LOW'>
        >>> classify_consumption(10.5, 10.0)
        <ConsumptionDeviation.HIGH: 'HIGH'>
        >>> classify_consumption(None, 10.0)
        <ConsumptionDeviation.NEUTRAL: 'NEUTRAL'>
    """
    return classify_deviation_percent(calculate_deviation_percent(consumption, average))
