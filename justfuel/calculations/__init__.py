"""
JustFuel Calculation Module

Pure calculation utilities for fillup derived fields, consumption deviation
levels and vehicle statistics.

Usage:
    from justfuel.calculations import calculate_fuel_consumption, classify_consumption
    from justfuel.calculations.constants import MAX_FUEL_AMOUNT_LITERS
"""

# Derived fillup fields
from .consumption import (
    calculate_distance_traveled,
    calculate_fuel_consumption,
    calculate_odometer,
    calculate_price_per_liter,
    is_consumption_plausible,
)

# Deviation levels
from .deviation import (
    ConsumptionDeviation,
    calculate_deviation_percent,
    classify_consumption,
    classify_deviation_percent,
)

# Statistics
from .statistics import (
    calculate_average_consumption,
    calculate_average_price_per_liter,
    calculate_vehicle_statistics,
)

# Constants (re-export for convenience)
from .constants import (
    DATE_HORIZON_YEARS,
    MAX_FUEL_AMOUNT_LITERS,
    MAX_PLAUSIBLE_CONSUMPTION,
    MAX_TOTAL_PRICE,
    MIN_PLAUSIBLE_CONSUMPTION,
    MIN_PLAUSIBLE_DISTANCE_KM,
)

__all__ = [
    # Derived fields
    "calculate_fuel_consumption",
    "calculate_price_per_liter",
    "calculate_distance_traveled",
    "calculate_odometer",
    "is_consumption_plausible",
    # Deviation
    "ConsumptionDeviation",
    "calculate_deviation_percent",
    "classify_deviation_percent",
    "classify_consumption",
    # Statistics
    "calculate_average_consumption",
    "calculate_average_price_per_liter",
    "calculate_vehicle_statistics",
    # Constants
    "MAX_FUEL_AMOUNT_LITERS",
    "MAX_TOTAL_PRICE",
    "DATE_HORIZON_YEARS",
    "MIN_PLAUSIBLE_DISTANCE_KM",
    "MIN_PLAUSIBLE_CONSUMPTION",
    "MAX_PLAUSIBLE_CONSUMPTION",
]
