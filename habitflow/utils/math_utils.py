# File: utils/math_utils.py
"""Math and calculation utilities for habitflow.

Functions:
    - round_half_up: Rounding that matches the app's minute arithmetic
    - minutes_between: Signed whole minutes between two instants
    - calculate_percentage: Whole-number progress percentage
"""

from __future__ import annotations

from datetime import datetime
import math

SECONDS_PER_MINUTE = 60


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going towards positive infinity.

    Python's built-in `round` uses banker's rounding; minute differences are
    rounded like the rest of the app expects.

    Examples:
        round_half_up(2.5) → 3
        round_half_up(-2.5) → -2
        round_half_up(-60.0) → -60
    """
    return math.floor(value + 0.5)


def minutes_between(start: datetime, end: datetime) -> int:
    """Signed minutes from `start` to `end`, rounded half-up."""
    return round_half_up((end - start).total_seconds() / SECONDS_PER_MINUTE)


def calculate_percentage(current: int, total: int) -> int:
    """Calculate whole-number progress percentage.

    Returns:
        Percentage (0-100), or 0 if total is 0

    Examples:
        calculate_percentage(4, 5) → 80
        calculate_percentage(1, 3) → 33
        calculate_percentage(5, 0) → 0
    """
    if total <= 0:
        return 0
    return round_half_up(current / total * 100)
