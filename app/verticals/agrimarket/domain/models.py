from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import StrEnum
from typing import Any, Dict, Optional, Tuple, Union

from .errors import ConfigurationError

D = Decimal


def _num(x: Optional[D]) -> Optional[float]:
    return None if x is None else float(x)


# -----------------------------
# Pricing model + config
# -----------------------------


class PricingModel(StrEnum):
    FLAT_RATE = "Flat Rate Model"
    TIERED_BY_WEIGHT = "Tiered Rate by Weight"
    TIERED_BY_DISTANCE = "Tiered Rate by Distance"

    @classmethod
    def from_label(cls, label: str) -> "PricingModel":
        """
        Stored labels plus the looser ones the checkout page used
        ("flat rate", "tiered by weight", ...). Case-insensitive.
        """
        key = " ".join((label or "").lower().split())
        model = _MODEL_ALIASES.get(key)
        if model is None:
            raise ConfigurationError(f"Unknown pricing model: {label!r}", {"label": label})
        return model

    @property
    def is_tiered(self) -> bool:
        return self is not PricingModel.FLAT_RATE

    @property
    def legacy_prefix(self) -> str:
        return _LEGACY_PREFIX[self]

    @property
    def unit(self) -> str:
        """Unit of the tier key (empty for flat rate)."""
        return {"Tiered Rate by Weight": "kg", "Tiered Rate by Distance": "km"}.get(self.value, "")


_MODEL_ALIASES: Dict[str, PricingModel] = {
    "flat rate model": PricingModel.FLAT_RATE,
    "flat rate": PricingModel.FLAT_RATE,
    "flat": PricingModel.FLAT_RATE,
    "tiered rate by weight": PricingModel.TIERED_BY_WEIGHT,
    "tiered by weight": PricingModel.TIERED_BY_WEIGHT,
    "tiered rate by distance": PricingModel.TIERED_BY_DISTANCE,
    "tiered by distance": PricingModel.TIERED_BY_DISTANCE,
}

_LEGACY_PREFIX: Dict[PricingModel, str] = {
    PricingModel.FLAT_RATE: "flat:",
    PricingModel.TIERED_BY_WEIGHT: "w:",
    PricingModel.TIERED_BY_DISTANCE: "d:",
}


@dataclass(frozen=True)
class Tier:
    """Half-open bracket [min, max) with a rate per kg per km. max=None is open-ended ("+")."""

    min: D
    max: Optional[D]
    rate: D

    def __post_init__(self) -> None:
        if self.min < 0:
            raise ConfigurationError(f"Tier min must be >= 0, got {self.min}")
        if self.rate < 0:
            raise ConfigurationError(f"Tier rate must be >= 0, got {self.rate}")
        if self.max is not None and self.max <= self.min:
            raise ConfigurationError(f"Tier max must be > min, got {self.min}-{self.max}")

    def contains(self, value: D) -> bool:
        if value < self.min:
            return False
        return self.max is None or value < self.max


@dataclass(frozen=True)
class FlatRateConfig:
    rate: D

    def __post_init__(self) -> None:
        if self.rate < 0:
            raise ConfigurationError(f"Flat rate must be >= 0, got {self.rate}")

    @property
    def model(self) -> PricingModel:
        return PricingModel.FLAT_RATE


@dataclass(frozen=True)
class TieredRateConfig:
    model: PricingModel
    tiers: Tuple[Tier, ...] = ()

    def __post_init__(self) -> None:
        if not self.model.is_tiered:
            raise ConfigurationError(f"{self.model} is not a tiered pricing model")
        # lists from callers become tuples (hashable, immutable)
        object.__setattr__(self, "tiers", tuple(self.tiers))


PricingConfig = Union[FlatRateConfig, TieredRateConfig]


# -----------------------------
# Shipping
# -----------------------------


class ShippingMethod(StrEnum):
    DIRECT = "direct"
    THIRD_PARTY = "third-party"


@dataclass
class ShippingContext:
    """
    Everything one shipping quote needs. Plain data, supplied by the checkout flow.

    weight: order quantity, used as a proxy for shipment weight (kg).
    distance_km: pre-resolved distance; when None the calculator looks it up
        from origin (product location) to destination (delivery address).
    """

    weight: Optional[D] = None
    origin: Optional[str] = None
    destination: Optional[str] = None
    distance_km: Optional[D] = None

    # third-party logistics partner
    pricing_model: Optional[PricingModel] = None
    pricing_config: Optional[PricingConfig] = None
    partner_delivery_time: Optional[str] = None
    carrier: Optional[str] = None

    # seller-managed shipping
    direct_shipping_cost: Optional[D] = None
    direct_estimated_days: Optional[str] = None


@dataclass(frozen=True)
class ShippingQuote:
    cost: D
    estimated_days: Optional[str]
    method: ShippingMethod
    distance_km: Optional[D] = None
    rate: Optional[D] = None
    provider: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cost": float(self.cost),
            "estimatedDays": self.estimated_days,
            "method": self.method.value,
            "distanceKm": _num(self.distance_km),
            "rate": _num(self.rate),
            "provider": self.provider,
        }


# -----------------------------
# Totals + loyalty
# -----------------------------


@dataclass(frozen=True)
class LoyaltyRedemption:
    balance: D
    requested_points: D
    point_value_rm: D = D("0.01")


@dataclass(frozen=True)
class OrderTotals:
    subtotal: D
    total_amount: D
    redeemed_points: int = 0
    discount_rm: D = D("0.00")
    adjusted_total: D = D("0.00")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subtotal": float(self.subtotal),
            "totalAmount": float(self.total_amount),
            "redeemedPoints": self.redeemed_points,
            "discountRM": float(self.discount_rm),
            "adjustedTotal": float(self.adjusted_total),
        }


@dataclass(frozen=True)
class OrderPricingSnapshot:
    """Written once by order creation; adjusted_total is display-only and never replaces total_amount."""

    unit_price: D
    quantity: D
    subtotal: D
    shipping_cost: D
    total_amount: D
    redeemed_points: int
    discount_rm: D
    adjusted_total: D
    currency: str
    shipping_distance_km: Optional[D] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "unitPrice": float(self.unit_price),
            "quantity": float(self.quantity),
            "subtotal": float(self.subtotal),
            "shippingCost": float(self.shipping_cost),
            "totalAmount": float(self.total_amount),
            "redeemedPoints": self.redeemed_points,
            "discountRM": float(self.discount_rm),
            "adjustedTotal": float(self.adjusted_total),
            "currency": self.currency,
            "shippingDistance": _num(self.shipping_distance_km),
        }


# -----------------------------
# Collaborator records
# -----------------------------


@dataclass(frozen=True)
class LogisticsProviderProfile:
    id: str
    company_name: str
    pricing_model: Optional[PricingModel] = None
    pricing_config: Optional[PricingConfig] = None
    estimated_delivery_time: Optional[str] = None
    carrier: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict, compare=False)
