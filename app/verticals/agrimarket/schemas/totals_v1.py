# app/verticals/agrimarket/schemas/totals_v1.py
from __future__ import annotations

from decimal import Decimal
from typing import Literal, Optional

from pydantic import Field

from .base_v1 import ContractV1
from .shipping_v1 import ShippingQuoteOutputV1


class LoyaltyInputV1(ContractV1):
    balance: Decimal
    requested_points: Decimal = Decimal("0")
    point_value_rm: Optional[Decimal] = Field(None, alias="pointValueRM")


class TotalsInputV1(ContractV1):
    unit_price: Decimal
    quantity: Decimal
    shipping_cost: Decimal = Decimal("0")
    loyalty: Optional[LoyaltyInputV1] = None


class TotalsOutputV1(ContractV1):
    subtotal: float
    total_amount: float
    redeemed_points: int
    discount_rm: float = Field(alias="discountRM")
    adjusted_total: float


class CheckoutQuoteInputV1(ContractV1):
    """Full checkout pricing: stored logistics profile + buyer loyalty balance."""

    unit_price: Decimal
    quantity: Decimal
    shipping_method: Literal["direct", "third-party"]
    currency: Optional[str] = None

    logistics_provider_id: Optional[str] = None
    carrier: Optional[str] = None
    origin: Optional[str] = None
    destination: Optional[str] = None
    distance_km: Optional[Decimal] = None

    direct_shipping_cost: Optional[Decimal] = None
    direct_estimated_days: Optional[str] = None

    buyer_id: Optional[str] = None
    requested_points: Optional[Decimal] = None


class OrderSnapshotOutputV1(ContractV1):
    unit_price: float
    quantity: float
    subtotal: float
    shipping_cost: float
    total_amount: float
    redeemed_points: int
    discount_rm: float = Field(alias="discountRM")
    adjusted_total: float
    currency: str
    shipping_distance: Optional[float] = None


class CheckoutQuoteOutputV1(ContractV1):
    version: Literal["v1"] = "v1"
    shipping: ShippingQuoteOutputV1
    totals: TotalsOutputV1
    snapshot: OrderSnapshotOutputV1
