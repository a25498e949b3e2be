from __future__ import annotations

from typing import Optional, Sequence

from ..domain.errors import ConfigurationError, NoMatchingTierError
from ..domain.models import (
    D,
    FlatRateConfig,
    PricingConfig,
    PricingModel,
    Tier,
    TieredRateConfig,
)
from ..domain.money import non_negative


def select_tier(tiers: Sequence[Tier], value: D) -> Optional[Tier]:
    """
    First tier (ascending min) whose [min, max) contains value.
    sorted() is stable, so equal mins keep their stored order.
    """
    for t in sorted(tiers, key=lambda t: t.min):
        if t.contains(value):
            return t
    return None


def resolve_rate(
    model: Optional[PricingModel],
    config: Optional[PricingConfig],
    *,
    weight,
    distance,
) -> D:
    """
    Per-unit rate (currency per kg per km) for a shipment.

    Flat rate ignores weight/distance; the caller multiplies them in.
    Tiered models pick the bracket by weight or distance.
    Pure function of its inputs.
    """
    w = non_negative(weight, field="weight")
    km = non_negative(distance, field="distance")

    if model is None:
        raise ConfigurationError("No pricing model configured")
    if config is None:
        raise ConfigurationError(f"Missing pricing config for {model}", {"model": model.value})
    if config.model is not model:
        raise ConfigurationError(
            f"Pricing config for {config.model} does not match model {model}",
            {"model": model.value, "config_model": config.model.value},
        )

    if isinstance(config, FlatRateConfig):
        return config.rate

    assert isinstance(config, TieredRateConfig)
    key = w if model is PricingModel.TIERED_BY_WEIGHT else km

    tier = select_tier(config.tiers, key)
    if tier is None:
        raise NoMatchingTierError(
            f"No {model.unit} tier matches {key}{model.unit}",
            {"model": model.value, "value": str(key), "tier_count": len(config.tiers)},
        )
    return tier.rate
