"""
Numeric helpers shared by the rating formulas.

Python's built-in round() uses banker's rounding. Every rating here rounds
half away from zero on the positive axis (2.5 -> 3, 0.25 -> 0.3), so the
formulas use these helpers instead.
"""

import math


def clamp(value: float, low: float, high: float) -> float:
    """Clamps value into [low, high]."""
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Rounds to the nearest integer, with .5 going up (towards +inf)."""
    return math.floor(value + 0.5)


def round_to_tenth(value: float) -> float:
    """Rounds to one decimal place, with .05 going up."""
    return math.floor(value * 10 + 0.5) / 10


def mean_or_zero(values: list[float]) -> float:
    """Arithmetic mean, or 0 for an empty list."""
    if not values:
        return 0.0
    return sum(values) / len(values)
