from __future__ import annotations

from typing import Optional

from ..domain.models import FlatRateConfig, PricingConfig, PricingModel
from ..domain.money import format_number
from .config_codec import OPEN_ENDED


def pricing_summary_text(model: Optional[PricingModel], config: Optional[PricingConfig]) -> str:
    """One-line summary shown next to the logistics profile pricing editor."""
    if model is None:
        return "No pricing model selected"

    if model is PricingModel.FLAT_RATE:
        rate = config.rate if isinstance(config, FlatRateConfig) else None
        return f"Flat rate: {format_number(rate) if rate is not None else '0'}/kg/km"

    tiers = getattr(config, "tiers", ()) if config is not None and config.model is model else ()
    label = "Weight" if model is PricingModel.TIERED_BY_WEIGHT else "Distance"
    if not tiers:
        return f"No {label.lower()} tiers defined"

    parts = []
    for t in tiers:
        tmax = OPEN_ENDED if t.max is None else format_number(t.max)
        parts.append(f"{format_number(t.min)}-{tmax}{model.unit} @ {format_number(t.rate)}/kg/km")
    return f"{label} tiers: " + "; ".join(parts)
