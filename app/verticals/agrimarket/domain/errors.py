from __future__ import annotations

from typing import Any, Dict, Optional


class PricingError(Exception):
    """
    Base for every failure of a single pricing computation.

    None of these may be turned into a fabricated shipping cost of 0;
    checkout withholds "proceed to payment" until the cause is resolved.
    """

    code: str = "PRICING_ERROR"
    http_status: int = 422

    def __init__(self, message: str, meta: Optional[Dict[str, Any]] = None):
        self.message = str(message)
        self.meta = meta or {}
        super().__init__(f"{self.code}: {self.message}")

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message, "meta": self.meta}


class ConfigurationError(PricingError):
    """Pricing model/config mismatch or missing config. Owned by the seller/admin, not retryable."""

    code = "CONFIGURATION_ERROR"
    http_status = 422


class LogisticsProviderNotFoundError(ConfigurationError):
    """Checkout or profile edit names a logistics provider that does not exist."""

    code = "LOGISTICS_PROVIDER_NOT_FOUND"
    http_status = 404


class NoMatchingTierError(PricingError):
    """Tier table has no tier for the given weight/distance (gap in the table)."""

    code = "NO_MATCHING_TIER"
    http_status = 422


class DistanceUnavailableError(PricingError):
    """External geolocation failed; the caller may retry (e.g. buyer re-enters the address)."""

    code = "DISTANCE_UNAVAILABLE"
    http_status = 503


class InvalidAmountError(PricingError):
    """Negative / NaN monetary input. Programmer error, fails fast."""

    code = "INVALID_AMOUNT"
    http_status = 400
