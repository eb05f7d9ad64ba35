"""Amount and fee arithmetic in smallest units."""

from __future__ import annotations

from decimal import ROUND_CEILING, Decimal, InvalidOperation
from typing import Any


def to_base_units(value: Any, decimals: int) -> int:
    """Convert an amount to smallest units.

    Integers are taken as already expressed in smallest units. Strings and
    Decimals are whole-coin amounts scaled by 10**decimals ("1.0" -> 10**18
    with 18 decimals).

    Raises:
        ValueError: If the value is negative, not a number, or has more
            fractional digits than the unit supports.
    """
    if isinstance(value, bool):
        raise ValueError("value must be a number, not a bool")
    if isinstance(value, int):
        if value < 0:
            raise ValueError("value must be non-negative")
        return value
    if isinstance(value, float):
        value = repr(value)
    if not isinstance(value, (str, Decimal)):
        raise ValueError(f"Unsupported value type: {type(value).__name__}")
    try:
        amount = Decimal(value.strip()) if isinstance(value, str) else value
    except InvalidOperation as e:
        raise ValueError(f"value is not a number: {value!r}") from e
    if not amount.is_finite():
        raise ValueError(f"value is not finite: {value!r}")
    if amount < 0:
        raise ValueError("value must be non-negative")
    scaled = amount.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"value {value!r} has more than {decimals} decimal places")
    return int(scaled)


def format_units(amount: int, decimals: int) -> str:
    """Render smallest units as a whole-coin decimal string (4.2e14 wei -> "0.00042")."""
    scaled = Decimal(amount).scaleb(-decimals)
    text = format(scaled.normalize(), "f")
    return text


def bump_fee(amount: int, multiplier: float | Decimal) -> int:
    """Multiply a per-gas price by multiplier, rounding up so the result is strictly higher.

    bump_fee(20 * 10**9, 1.10) == 22 * 10**9.

    Raises:
        ValueError: If multiplier is not greater than 1.
    """
    factor = Decimal(str(multiplier))
    if factor <= 1:
        raise ValueError(f"multiplier must be greater than 1 (got {multiplier})")
    bumped = int((Decimal(amount) * factor).to_integral_value(rounding=ROUND_CEILING))
    return max(bumped, amount + 1)
