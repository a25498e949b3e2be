from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from app.core.logging_config import logger

from .calculators.order_totals import build_order_snapshot, compute_totals
from .calculators.shipping import ShippingCostCalculator
from .domain.errors import LogisticsProviderNotFoundError
from .domain.models import (
    D,
    LoyaltyRedemption,
    OrderPricingSnapshot,
    OrderTotals,
    ShippingContext,
    ShippingMethod,
    ShippingQuote,
)
from .domain.money import non_negative
from .storage.repositories import LogisticsProviderRepository, LoyaltyLedger


@dataclass
class CheckoutRequest:
    """One checkout attempt, as the checkout page submits it."""

    unit_price: Any
    quantity: Any
    shipping_method: str
    currency: Optional[str] = None

    # third-party
    logistics_provider_id: Optional[str] = None
    carrier: Optional[str] = None
    origin: Optional[str] = None
    destination: Optional[str] = None
    distance_km: Optional[Any] = None

    # direct
    direct_shipping_cost: Optional[Any] = None
    direct_estimated_days: Optional[str] = None

    # loyalty
    buyer_id: Optional[str] = None
    requested_points: Optional[Any] = None


@dataclass(frozen=True)
class CheckoutPricing:
    quote: ShippingQuote
    totals: OrderTotals
    snapshot: OrderPricingSnapshot

    def to_dict(self) -> Dict[str, Any]:
        return {
            "shipping": self.quote.to_dict(),
            "totals": self.totals.to_dict(),
            "snapshot": self.snapshot.to_dict(),
        }


class CheckoutPricingService:
    """
    Resolver -> ShippingCostCalculator -> OrderTotalsEngine, in sequence.
    Reads the logistics profile and loyalty balance; writes nothing.
    """

    def __init__(
        self,
        calculator: ShippingCostCalculator,
        logistics_repo: LogisticsProviderRepository,
        ledger: LoyaltyLedger,
        *,
        point_value_rm: D = D("0.01"),
        currency: str = "RM",
    ):
        self.calculator = calculator
        self.logistics_repo = logistics_repo
        self.ledger = ledger
        self.point_value_rm = point_value_rm
        self.currency = currency

    def _shipping_context(self, req: CheckoutRequest) -> ShippingContext:
        # order quantity doubles as shipment weight (kg)
        ctx = ShippingContext(
            weight=non_negative(req.quantity, field="quantity"),
            origin=req.origin,
            destination=req.destination,
            distance_km=req.distance_km,
            carrier=req.carrier,
            direct_shipping_cost=req.direct_shipping_cost,
            direct_estimated_days=req.direct_estimated_days,
        )

        if req.shipping_method == ShippingMethod.DIRECT or not req.logistics_provider_id:
            return ctx

        profile = self.logistics_repo.get_by_id(req.logistics_provider_id)
        if profile is None:
            raise LogisticsProviderNotFoundError(
                f"Logistics provider {req.logistics_provider_id} not found",
                {"logistics_provider_id": req.logistics_provider_id},
            )

        ctx.pricing_model = profile.pricing_model
        ctx.pricing_config = profile.pricing_config
        ctx.partner_delivery_time = profile.estimated_delivery_time
        ctx.carrier = req.carrier or profile.carrier
        return ctx

    def _loyalty(self, req: CheckoutRequest) -> Optional[LoyaltyRedemption]:
        if not req.buyer_id or req.requested_points is None:
            return None
        balance = self.ledger.get_balance(req.buyer_id)
        return LoyaltyRedemption(
            balance=D(balance),
            requested_points=req.requested_points,
            point_value_rm=self.point_value_rm,
        )

    async def price_checkout(self, req: CheckoutRequest) -> CheckoutPricing:
        ctx = self._shipping_context(req)
        quote = await self.calculator.compute_shipping_cost(req.shipping_method, ctx)

        totals = compute_totals(req.unit_price, req.quantity, quote.cost, self._loyalty(req))
        snapshot = build_order_snapshot(
            req.unit_price,
            req.quantity,
            quote,
            totals,
            req.currency or self.currency,
        )

        logger.bind(
            buyer_id=req.buyer_id,
            logistics_provider_id=req.logistics_provider_id,
            total_amount=str(totals.total_amount),
            adjusted_total=str(totals.adjusted_total),
            redeemed_points=totals.redeemed_points,
        ).info("checkout_priced")
        return CheckoutPricing(quote=quote, totals=totals, snapshot=snapshot)
