from __future__ import annotations

from decimal import Decimal
from typing import Any

from ..domain.errors import InvalidAmountError
from ..domain.money import floor_int, non_negative, round2, to_decimal

D = Decimal

DEFAULT_POINT_VALUE_RM = D("0.01")  # 1 point = RM0.01

# milestone bonus: credited once after this many delivered purchases
MILESTONE_COMPLETED_PURCHASES = 2
MILESTONE_BONUS_POINTS = 20


def point_value(value: Any) -> D:
    pv = to_decimal(value, field="point_value_rm")
    if pv <= 0:
        raise InvalidAmountError(f"point_value_rm must be > 0, got {pv}", {"field": "point_value_rm"})
    return pv


def max_redeemable_points(balance: Any, total_amount: Any, point_value_rm: Any = DEFAULT_POINT_VALUE_RM) -> int:
    """Upper bound for the redeem slider: min(balance, floor(total / point value))."""
    bal = floor_int(non_negative(balance, field="balance"))
    total = non_negative(total_amount, field="total_amount")
    max_by_total = floor_int(total / point_value(point_value_rm))
    return max(0, min(bal, max_by_total))


def clamp_redeemed_points(
    requested: Any,
    balance: Any,
    total_amount: Any,
    point_value_rm: Any = DEFAULT_POINT_VALUE_RM,
) -> int:
    """
    clamp(requested, 0, min(balance, floor(total / point value))).
    Negative requests clamp to 0; fractional points are floored.
    """
    req = floor_int(to_decimal(requested, field="requested_points"))
    upper = max_redeemable_points(balance, total_amount, point_value_rm)
    return max(0, min(req, upper))


def points_value_rm(points: Any, point_value_rm: Any = DEFAULT_POINT_VALUE_RM) -> D:
    """RM worth of a point balance ("available is worth approx. RM x")."""
    pts = non_negative(points, field="points")
    return round2(pts * point_value(point_value_rm))


def milestone_bonus_points(completed_purchases: int, already_claimed: bool) -> int:
    """
    Bonus the ledger owner should credit for the delivered-purchases milestone.
    Computes the number only; this module never touches a balance.
    """
    if already_claimed or completed_purchases < MILESTONE_COMPLETED_PURCHASES:
        return 0
    return MILESTONE_BONUS_POINTS
