import os


class Config:
    """Application configuration from environment variables."""

    # Database
    DATABASE_URL = os.environ.get(
        'DATABASE_URL',
        'sqlite:///justfuel.db'
    )
    SLOW_QUERY_THRESHOLD_MS = int(os.environ.get('SLOW_QUERY_THRESHOLD_MS', 500))

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    WIDE_EVENT_SAMPLE_RATE = float(os.environ.get('WIDE_EVENT_SAMPLE_RATE', 0.05))

    # Input bounds (hard rejections)
    MAX_FUEL_AMOUNT = float(os.environ.get('MAX_FUEL_AMOUNT', 2000))  # litres
    MAX_TOTAL_PRICE = float(os.environ.get('MAX_TOTAL_PRICE', 100000))
    DATE_HORIZON_YEARS = int(os.environ.get('DATE_HORIZON_YEARS', 10))

    # Plausibility thresholds (advisory warnings)
    MIN_PLAUSIBLE_DISTANCE_KM = float(os.environ.get('MIN_PLAUSIBLE_DISTANCE_KM', 1.0))
    MIN_PLAUSIBLE_CONSUMPTION = float(os.environ.get('MIN_PLAUSIBLE_CONSUMPTION', 1.0))  # L/100km
    MAX_PLAUSIBLE_CONSUMPTION = float(os.environ.get('MAX_PLAUSIBLE_CONSUMPTION', 50.0))  # L/100km

    # Same-day ordering: "insertion" or "odometer"
    FILLUP_TIE_BREAK = os.environ.get('FILLUP_TIE_BREAK', 'insertion')

    # Vehicle defaults
    DEFAULT_MILEAGE_INPUT_PREFERENCE = os.environ.get('DEFAULT_MILEAGE_INPUT_PREFERENCE', 'odometer')
