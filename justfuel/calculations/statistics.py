"""
Vehicle Statistics

Aggregates over a vehicle's fillup history:
- Average consumption (the reference for deviation levels)
- Totals for fuel, cost and distance
- Average price per liter
"""

import statistics as stats_module
from typing import Iterable, List, Optional


def _values(fillups: Iterable, attribute: str) -> List[float]:
    return [
        getattr(f, attribute) for f in fillups
        if getattr(f, attribute, None) is not None
    ]


def calculate_average_consumption(fillups: Iterable) -> Optional[float]:
    """
    Average of the fillups' computed consumption values.

    Fillups without a consumption (first fillup, zero or negative distance)
    are ignored.

    Returns:
        Mean L/100km, or None when no fillup has a consumption
    """
    consumptions = _values(fillups, "fuel_consumption")
    if not consumptions:
        return None
    return stats_module.mean(consumptions)


def calculate_average_price_per_liter(fillups: Iterable) -> Optional[float]:
    """Mean price per liter across fillups, or None for an empty history."""
    prices = _values(fillups, "price_per_liter")
    if not prices:
        return None
    return stats_module.mean(prices)


def calculate_vehicle_statistics(fillups: Iterable) -> dict:
    """
    Summary statistics for a vehicle.

    Total distance only counts positive distances so that a decreasing
    odometer does not shrink the total.

    Returns:
        Dict with fillup_count, total_fuel_amount, total_fuel_cost,
        total_distance, average_consumption, average_price_per_liter

    Examples:
        >>> calculate_vehicle_statistics([])['fillup_count']
        0
    """
    fillups = list(fillups)

    distances = [d for d in _values(fillups, "distance_traveled") if d > 0]

    return {
        "fillup_count": len(fillups),
        "total_fuel_amount": sum(_values(fillups, "fuel_amount")),
        "total_fuel_cost": sum(_values(fillups, "total_price")),
        "total_distance": sum(distances),
        "average_consumption": calculate_average_consumption(fillups),
        "average_price_per_liter": calculate_average_price_per_liter(fillups),
    }
