"""Conversions between display amounts and integer minor units (cents)."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

CENT = Decimal("0.01")


def to_minor_units(value: Union[str, int, float, Decimal]) -> int:
    """
    Convert a major-unit amount to integer minor units.

    ``"12.99"`` -> 1299, ``12.999`` -> 1300 (half-up).

    Raises:
        ValueError: If the value is not a finite number
    """
    if isinstance(value, bool) or not isinstance(value, (str, int, float, Decimal)):
        raise ValueError(f"Amount must be a string or number, got {type(value).__name__}")

    try:
        # str() keeps floats like 0.1 from dragging in binary noise
        amount = Decimal(value.strip() if isinstance(value, str) else str(value))
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {value!r}") from None

    if not amount.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")

    return int((amount.quantize(CENT, rounding=ROUND_HALF_UP) * 100).to_integral_value())


def to_display(minor_units: int, include_symbol: bool = True) -> str:
    """Format minor units for display, e.g. 1299 -> ``"$12.99"``."""
    if isinstance(minor_units, bool) or not isinstance(minor_units, int):
        raise ValueError("Amount in minor units must be an integer")

    formatted = f"{Decimal(minor_units) / 100:.2f}"
    return f"${formatted}" if include_symbol else formatted
