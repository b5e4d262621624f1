"""
Calculation Constants for JustFuel

Centralized location for the thresholds used in fillup calculations.
Configurable values are read from Config to keep a single source of truth.
"""

from justfuel.config import Config

# Input bounds
MAX_FUEL_AMOUNT_LITERS = Config.MAX_FUEL_AMOUNT  # Upper bound for a single fillup
MAX_TOTAL_PRICE = Config.MAX_TOTAL_PRICE  # Upper bound for a single receipt
DATE_HORIZON_YEARS = Config.DATE_HORIZON_YEARS  # Oldest accepted fillup, in years

# Plausibility thresholds
MIN_PLAUSIBLE_DISTANCE_KM = Config.MIN_PLAUSIBLE_DISTANCE_KM  # Below this = "very short distance"
MIN_PLAUSIBLE_CONSUMPTION = Config.MIN_PLAUSIBLE_CONSUMPTION  # L/100km
MAX_PLAUSIBLE_CONSUMPTION = Config.MAX_PLAUSIBLE_CONSUMPTION  # L/100km

# Units
CONSUMPTION_DISTANCE_BASE_KM = 100.0  # Consumption is expressed per 100 km

# Deviation thresholds (percent of vehicle average)
EXTREMELY_LOW_MAX_PERCENT = -15.0  # d <= -15
VERY_LOW_MAX_PERCENT = -8.0  # -15 < d <= -8
NEUTRAL_MIN_PERCENT = 0.0  # 0 <= d < 5
HIGH_MIN_PERCENT = 5.0  # 5 <= d < 10
VERY_HIGH_MIN_PERCENT = 10.0  # 10 <= d < 20
EXTREMELY_HIGH_MIN_PERCENT = 20.0  # d >= 20
