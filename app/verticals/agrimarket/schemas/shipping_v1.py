# app/verticals/agrimarket/schemas/shipping_v1.py
from __future__ import annotations

from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import Field

from .base_v1 import ContractV1


class ShippingCalculateInputV1(ContractV1):
    shipping_method: Literal["direct", "third-party"] = "third-party"

    # order quantity, used as shipment weight (kg)
    weight: Optional[Decimal] = None

    # distance: either pre-resolved, or looked up from origin -> destination
    distance_km: Optional[Decimal] = None
    origin: Optional[str] = None
    destination: Optional[str] = None

    # partner pricing: by stored profile id, or inline (profile preview)
    logistics_provider_id: Optional[str] = None
    pricing_model: Optional[str] = None
    pricing_config: Optional[List[str]] = None
    partner_delivery_time: Optional[str] = None
    carrier: Optional[str] = Field(None, description="Named carrier, e.g. 'DHL', 'Pos Laju'")

    # seller-managed shipping
    direct_shipping_cost: Optional[Decimal] = None
    direct_estimated_days: Optional[str] = None


class ShippingQuoteOutputV1(ContractV1):
    cost: float
    estimated_days: Optional[str] = None
    method: Literal["direct", "third-party"]
    distance_km: Optional[float] = None
    rate: Optional[float] = None
    provider: Optional[str] = None
