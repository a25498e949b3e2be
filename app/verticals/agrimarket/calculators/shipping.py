from __future__ import annotations

import asyncio
import time
from typing import Optional, Tuple, Union

from app.core.logging_config import logger
from app.observability.metrics import distance_lookup_hist, shipping_quote_counter

from ..carriers.catalog import CarrierCatalog
from ..domain.errors import (
    ConfigurationError,
    DistanceUnavailableError,
    InvalidAmountError,
    PricingError,
)
from ..domain.models import (
    D,
    PricingConfig,
    PricingModel,
    ShippingContext,
    ShippingMethod,
    ShippingQuote,
)
from ..domain.money import non_negative, round2, to_decimal
from ..geo.distance import GeolocationDistanceProvider
from .rate_resolver import resolve_rate


class ShippingCostCalculator:
    """
    Shipping quote for one checkout attempt.

    direct       -> seller's fixed cost, no distance lookup, no tiers.
    third-party  -> distance_km × weight × rate, rate from the partner's
                    pricing model (or the named carrier's default flat rate).

    Holds no per-call state; one instance can serve concurrent checkouts.
    """

    def __init__(
        self,
        distance_provider: Optional[GeolocationDistanceProvider] = None,
        *,
        carriers: Optional[CarrierCatalog] = None,
        distance_timeout_s: float = 10.0,
    ):
        self.distance_provider = distance_provider
        self.carriers = carriers or CarrierCatalog()
        self.distance_timeout_s = distance_timeout_s

    async def compute_shipping_cost(
        self,
        shipping_method: Union[ShippingMethod, str],
        ctx: ShippingContext,
    ) -> ShippingQuote:
        method = self._method(shipping_method)
        try:
            if method is ShippingMethod.DIRECT:
                quote = self._direct_quote(ctx)
            else:
                quote = await self._third_party_quote(ctx)
        except PricingError as e:
            shipping_quote_counter.labels(method=method.value, result=e.code).inc()
            logger.bind(method=method.value, error=e.code).warning("shipping_quote_failed", message=e.message)
            raise

        shipping_quote_counter.labels(method=method.value, result="ok").inc()
        logger.bind(
            method=method.value,
            cost=str(quote.cost),
            distance_km=str(quote.distance_km) if quote.distance_km is not None else None,
            rate=str(quote.rate) if quote.rate is not None else None,
        ).info("shipping_quote_computed")
        return quote

    # ----------------------------
    # direct
    # ----------------------------
    @staticmethod
    def _method(value: Union[ShippingMethod, str]) -> ShippingMethod:
        try:
            return ShippingMethod(value)
        except ValueError:
            raise ConfigurationError(
                f"Unknown shipping method: {value!r}", {"shipping_method": str(value)}
            ) from None

    def _direct_quote(self, ctx: ShippingContext) -> ShippingQuote:
        if ctx.direct_shipping_cost is None:
            raise ConfigurationError("Direct shipping selected but seller set no shipping cost")
        cost = round2(non_negative(ctx.direct_shipping_cost, field="direct_shipping_cost"))
        return ShippingQuote(
            cost=cost,
            estimated_days=ctx.direct_estimated_days,
            method=ShippingMethod.DIRECT,
        )

    # ----------------------------
    # third-party
    # ----------------------------
    def _pricing(self, ctx: ShippingContext) -> Tuple[PricingModel, PricingConfig, Optional[str]]:
        carrier = self.carriers.get(ctx.carrier)
        provider = carrier.name if carrier else ctx.carrier

        if ctx.pricing_model is None:
            if carrier is None:
                raise ConfigurationError(
                    "Logistics partner has no pricing model and no known carrier",
                    {"carrier": ctx.carrier},
                )
            return PricingModel.FLAT_RATE, carrier.pricing_config, provider

        if ctx.pricing_config is None or ctx.pricing_config.model is not ctx.pricing_model:
            raise ConfigurationError(
                f"Missing or mismatched pricing config for {ctx.pricing_model}",
                {"model": ctx.pricing_model.value},
            )
        return ctx.pricing_model, ctx.pricing_config, provider

    async def _third_party_quote(self, ctx: ShippingContext) -> ShippingQuote:
        weight = non_negative(ctx.weight, field="weight")
        model, config, provider = self._pricing(ctx)

        # nothing is computed before the distance is known
        distance_km = await self._distance_km(ctx)

        rate = resolve_rate(model, config, weight=weight, distance=distance_km)
        cost = round2(distance_km * weight * rate)

        estimated_days = ctx.partner_delivery_time or self.carriers.default_delivery_time(ctx.carrier)

        return ShippingQuote(
            cost=cost,
            estimated_days=estimated_days,
            method=ShippingMethod.THIRD_PARTY,
            distance_km=round2(distance_km),
            rate=rate,
            provider=provider,
        )

    async def _distance_km(self, ctx: ShippingContext) -> D:
        if ctx.distance_km is not None:
            km = to_decimal(ctx.distance_km, field="distance_km")
            if km < 0:
                raise InvalidAmountError(f"distance_km must be >= 0, got {km}", {"field": "distance_km"})
            if km == 0:
                raise DistanceUnavailableError("Distance is 0 km; refusing to quote free shipping")
            return km

        if self.distance_provider is None:
            raise DistanceUnavailableError("No geolocation provider configured")
        if not ctx.origin or not ctx.destination:
            raise DistanceUnavailableError(
                "Origin and delivery address are required for a distance lookup",
                {"origin": ctx.origin, "destination": ctx.destination},
            )

        t0 = time.perf_counter()
        try:
            raw = await asyncio.wait_for(
                self.distance_provider.lookup_distance_km(ctx.origin, ctx.destination),
                timeout=self.distance_timeout_s,
            )
        except asyncio.TimeoutError:
            distance_lookup_hist.labels(result="unavailable").observe(time.perf_counter() - t0)
            raise DistanceUnavailableError(
                f"Distance lookup timed out after {self.distance_timeout_s}s"
            ) from None
        except Exception as e:
            # CancelledError is a BaseException and passes straight through
            distance_lookup_hist.labels(result="unavailable").observe(time.perf_counter() - t0)
            logger.bind(origin=ctx.origin, destination=ctx.destination).warning(
                "distance_lookup_failed", error=repr(e)
            )
            raise DistanceUnavailableError(f"Distance lookup failed: {e}") from e

        elapsed = time.perf_counter() - t0
        km = self._valid_km(raw)
        if km is None:
            distance_lookup_hist.labels(result="unavailable").observe(elapsed)
            raise DistanceUnavailableError(
                "No route found between origin and delivery address",
                {"origin": ctx.origin, "destination": ctx.destination, "raw": repr(raw)},
            )

        distance_lookup_hist.labels(result="ok").observe(elapsed)
        return km

    @staticmethod
    def _valid_km(raw) -> Optional[D]:
        if raw is None:
            return None
        try:
            km = to_decimal(raw, field="distance_km")
        except InvalidAmountError:
            return None
        return km if km > 0 else None
