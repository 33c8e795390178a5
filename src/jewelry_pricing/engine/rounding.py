"""
Rounding policies for jewelry prices and rate table cells.

All functions take an already-computed rupee amount and return the rounded
amount. New jewelry rounds up to the next 50, scrap buy-back rounds down to
the previous 50, and rate table columns use their own configurable policy.
"""
import math

from .models import RoundDirection, RoundingType

# Amounts are products of percentages and per-gram rates, so binary floating
# point can land a hair below a whole rupee (73499.99999999999 for 73500).
_NOISE_DIGITS = 9


def _whole(amount: float) -> int:
    """Integer part of an amount, ignoring floating point noise."""
    return math.floor(round(amount, _NOISE_DIGITS))


def round_half_up(value: float, digits: int = 2) -> float:
    """Round half away from zero (Python's round() is banker's rounding)."""
    factor = 10 ** digits
    return math.floor(round(value * factor, _NOISE_DIGITS) + 0.5) / factor


def round_new_jewelry(amount: float) -> int:
    """
    Round a new jewelry selling amount up to the next 50.

    Last two digits 00 or 50 stay as they are, 01-49 go to 50 and 51-99 go
    to the next hundred.
    """
    whole = _whole(amount)
    hundreds = whole // 100 * 100
    last_two = whole % 100

    if last_two in (0, 50):
        return whole
    if last_two < 50:
        return hundreds + 50
    return hundreds + 100


def round_old_jewelry(amount: float) -> int:
    """Floor a scrap value to the nearest 50 below it."""
    return _whole(amount) // 50 * 50


def round_table_cell(value: float, rounding_type: RoundingType, round_direction: RoundDirection) -> float:
    """
    Apply a rate table column's rounding policy, then round to 2 decimals.

    ``decimals`` rounds to a whole rupee. ``nearest_5_0`` moves the last
    digit to 0 or 5 and ``last_digit_0`` to 0, both in the column's
    direction. A value already ending in 0 (or 5 for ``nearest_5_0``) keeps
    only its integer part.
    """
    return round_half_up(_apply_policy(value, rounding_type, round_direction), 2)


def _apply_policy(value: float, rounding_type: RoundingType, round_direction: RoundDirection) -> float:
    try:
        rounding_type = RoundingType(rounding_type)
    except ValueError:
        return value
    high = RoundDirection(round_direction) is RoundDirection.HIGH

    if rounding_type is RoundingType.DECIMALS:
        cleaned = round(value, _NOISE_DIGITS)
        return math.ceil(cleaned) if high else math.floor(cleaned)

    int_value = _whole(value)
    last_digit = int_value % 10

    if last_digit == 0:
        return int_value

    if rounding_type is RoundingType.NEAREST_5_0:
        if last_digit == 5:
            return int_value
        if high:
            return int_value - last_digit + (5 if last_digit < 5 else 10)
        return int_value - last_digit + (0 if last_digit < 5 else 5)

    # last_digit_0
    if high:
        return int_value - last_digit + 10
    return int_value - last_digit
