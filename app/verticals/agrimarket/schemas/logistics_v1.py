# app/verticals/agrimarket/schemas/logistics_v1.py
from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

from .base_v1 import ContractV1


class CarrierV1(ContractV1):
    id: str
    name: str
    delivery_time: str
    rate_per_kg_km: float
    rate_method: str


class CarrierListV1(ContractV1):
    providers: List[CarrierV1]


class TierRowV1(ContractV1):
    min: Any = None
    max: Any = None
    rate: Any = None


class PricingPreviewInputV1(ContractV1):
    """
    Logistics profile editor payload. Either the stored string list
    (pricing_config) or the structured form (flat_rate / tiers).
    """

    pricing_model: str
    pricing_config: Optional[List[str]] = None
    flat_rate: Optional[Decimal] = None
    tiers: Optional[List[TierRowV1]] = None


class PricingPreviewOutputV1(ContractV1):
    pricing_model: str
    pricing_config: List[str]
    summary: str
    validation: Dict[str, Any]
