from __future__ import annotations

from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from .errors import InvalidAmountError

D = Decimal

CENT = D("0.01")
ZERO = D("0.00")


def round2(x: D) -> D:
    """Currency rounding, half-up to 2 decimals. The only rounding used for money."""
    return x.quantize(CENT, rounding=ROUND_HALF_UP)


def floor_int(x: D) -> int:
    return int(x.to_integral_value(rounding=ROUND_FLOOR))


def to_decimal(value: Any, *, field: str) -> D:
    """
    Boundary conversion for JSON numbers/strings.
    Floats go through str() so 0.05 stays 0.05 and not its binary expansion.
    """
    if value is None:
        raise InvalidAmountError(f"{field} is required", {"field": field})
    if isinstance(value, bool):
        raise InvalidAmountError(f"{field} must be a number", {"field": field})
    if isinstance(value, D):
        d = value
    else:
        try:
            d = D(str(value).strip())
        except (InvalidOperation, ValueError):
            raise InvalidAmountError(
                f"{field} must be a number, got {value!r}", {"field": field}
            ) from None

    if not d.is_finite():
        raise InvalidAmountError(f"{field} must be finite, got {value!r}", {"field": field})
    return d


def non_negative(value: Any, *, field: str) -> D:
    d = to_decimal(value, field=field)
    if d < 0:
        raise InvalidAmountError(f"{field} must be >= 0, got {d}", {"field": field})
    return d


def format_number(x: D) -> str:
    """Plain notation without trailing zeros: 10 -> '10', 0.050 -> '0.05'."""
    s = format(x.normalize(), "f")
    return s if s != "-0" else "0"
