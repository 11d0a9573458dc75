"""Whole-unit money helpers.

All monetary values in the engine are whole currency units. Internal
multiplication happens on ``Decimal`` so that rate products such as
``106350 * 0.1281`` round the same way on every platform.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

UNIT = Decimal("1")


def to_decimal(value: Any) -> Decimal:
    """Convert an int/float/str/Decimal to Decimal without float noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_half_up(value: Any) -> int:
    """Round to the nearest whole unit, halves away from zero."""
    return int(to_decimal(value).quantize(UNIT, rounding=ROUND_HALF_UP))


def parse_amount(value: Any) -> int:
    """Coerce user input to a non-negative whole amount.

    Accepts ints, Decimals, floats and strings with thousands separators.
    Non-numeric or negative input becomes 0.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, str):
        value = value.replace(",", "").strip()
        if not value:
            return 0
    try:
        amount = to_decimal(value)
    except (InvalidOperation, ValueError):
        return 0
    if not amount.is_finite() or amount < 0:
        return 0
    return int(amount.to_integral_value(rounding=ROUND_HALF_UP))


def parse_hours(value: Any) -> Decimal:
    """Coerce an hour input to a non-negative Decimal (invalid input is 0)."""
    if value is None or isinstance(value, bool):
        return Decimal("0")
    if isinstance(value, str):
        value = value.replace(",", "").strip()
        if not value:
            return Decimal("0")
    try:
        hours = to_decimal(value)
    except (InvalidOperation, ValueError):
        return Decimal("0")
    if not hours.is_finite() or hours < 0:
        return Decimal("0")
    return hours
