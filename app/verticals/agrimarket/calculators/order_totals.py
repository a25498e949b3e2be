from __future__ import annotations

from typing import Any, Optional

from ..domain.models import (
    D,
    LoyaltyRedemption,
    OrderPricingSnapshot,
    OrderTotals,
    ShippingQuote,
)
from ..domain.money import ZERO, non_negative, round2
from .loyalty import clamp_redeemed_points, point_value


def compute_totals(
    unit_price: Any,
    quantity: Any,
    shipping_cost: Any,
    loyalty: Optional[LoyaltyRedemption] = None,
) -> OrderTotals:
    """
    subtotal       = round2(unit_price × quantity)
    total_amount   = round2(subtotal + shipping_cost)
    adjusted_total = max(0, round2(total_amount − loyalty discount))

    MOQ and unit_price > 0 are the caller's checks; here only negative/NaN
    input is rejected. Balances are read, never changed.
    """
    price = non_negative(unit_price, field="unit_price")
    qty = non_negative(quantity, field="quantity")
    shipping = non_negative(shipping_cost, field="shipping_cost")

    subtotal = round2(price * qty)
    total_amount = round2(subtotal + shipping)

    if loyalty is None:
        return OrderTotals(
            subtotal=subtotal,
            total_amount=total_amount,
            redeemed_points=0,
            discount_rm=ZERO,
            adjusted_total=total_amount,
        )

    pv = point_value(loyalty.point_value_rm)
    redeemed = clamp_redeemed_points(
        loyalty.requested_points,
        loyalty.balance,
        total_amount,
        pv,
    )
    discount = round2(D(redeemed) * pv)
    adjusted = max(ZERO, round2(total_amount - discount))

    return OrderTotals(
        subtotal=subtotal,
        total_amount=total_amount,
        redeemed_points=redeemed,
        discount_rm=discount,
        adjusted_total=adjusted,
    )


def build_order_snapshot(
    unit_price: Any,
    quantity: Any,
    quote: ShippingQuote,
    totals: OrderTotals,
    currency: str,
) -> OrderPricingSnapshot:
    """Pricing fields the order-creation endpoint persists at confirmation time."""
    return OrderPricingSnapshot(
        unit_price=non_negative(unit_price, field="unit_price"),
        quantity=non_negative(quantity, field="quantity"),
        subtotal=totals.subtotal,
        shipping_cost=quote.cost,
        total_amount=totals.total_amount,
        redeemed_points=totals.redeemed_points,
        discount_rm=totals.discount_rm,
        adjusted_total=totals.adjusted_total,
        currency=currency,
        shipping_distance_km=quote.distance_km,
    )
