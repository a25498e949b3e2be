from __future__ import annotations

import re
from typing import Any, Iterable, List, Optional, Tuple, Union

from app.core.logging_config import logger
from app.observability.metrics import pricing_config_skipped_counter

from ..domain.errors import ConfigurationError
from ..domain.models import (
    D,
    FlatRateConfig,
    PricingConfig,
    PricingModel,
    Tier,
    TieredRateConfig,
)
from ..domain.money import format_number

# =========================
# Storage format
#
#   flat:    ["0.14"]                        legacy: ["flat:0.14"]
#   tiered:  ["0-10@0.06", "10-+@0.03"]      legacy: ["w:0-10@0.06"], ["d:10-50@0.06"]
#
# Only non-negative plain decimals are accepted as numbers.
# =========================

OPEN_ENDED = "+"

_NUMBER_RE = re.compile(r"^\d+(?:\.\d+)?$")

_LEGACY_PREFIXES = tuple(m.legacy_prefix for m in PricingModel)


def _to_str(v: Any) -> str:
    if v is None:
        return ""
    return str(v).strip()


def _parse_number(s: str) -> Optional[D]:
    s = s.strip()
    if not _NUMBER_RE.match(s):
        return None
    return D(s)


def _as_model(model: Union[PricingModel, str, None]) -> Optional[PricingModel]:
    if model is None or model == "":
        return None
    if isinstance(model, PricingModel):
        return model
    return PricingModel.from_label(model)


def _skip(model: PricingModel, entry: str, reason: str) -> None:
    # skipped entries are always logged and counted
    logger.warning(
        "pricing_config_entry_skipped",
        model=model.value,
        entry=entry,
        reason=reason,
    )
    pricing_config_skipped_counter.labels(model=model.value, reason=reason).inc()


# =========================
# Parse
# =========================


def _parse_flat(lines: List[str]) -> Optional[FlatRateConfig]:
    prefix = PricingModel.FLAT_RATE.legacy_prefix
    labeled = next((l for l in lines if l.startswith(prefix)), None)

    if labeled is not None:
        rate = _parse_number(labeled[len(prefix):])
        if rate is None:
            _skip(PricingModel.FLAT_RATE, labeled, "bad_rate")
            return None
        return FlatRateConfig(rate=rate)

    for l in lines:
        rate = _parse_number(l)
        if rate is not None:
            return FlatRateConfig(rate=rate)

    for l in lines:
        _skip(PricingModel.FLAT_RATE, l, "bad_rate")
    return None


def _parse_tier(model: PricingModel, raw: str) -> Tuple[Optional[Tier], Optional[str]]:
    """Returns (tier, None) or (None, reason)."""
    line = raw
    if line.startswith(model.legacy_prefix):
        line = line[len(model.legacy_prefix):]
    elif line.startswith(_LEGACY_PREFIXES):
        return None, "foreign_label"

    if "@" not in line:
        return None, "missing_at"

    range_part, _, rate_part = line.partition("@")
    rate = _parse_number(rate_part)
    if rate is None:
        return None, "bad_rate"

    min_part, _, max_part = range_part.partition("-")
    # "-50@0.06": an empty min starts at 0
    tier_min = D(0) if min_part.strip() == "" else _parse_number(min_part)
    if tier_min is None:
        return None, "bad_min"

    max_part = max_part.strip()
    if max_part in ("", OPEN_ENDED):
        tier_max = None
    else:
        tier_max = _parse_number(max_part)
        if tier_max is None:
            return None, "bad_max"

    try:
        return Tier(min=tier_min, max=tier_max, rate=rate), None
    except ConfigurationError:
        return None, "invalid_range"


def _parse_tiers(model: PricingModel, lines: List[str]) -> List[Tier]:
    tiers: List[Tier] = []
    for raw in lines:
        tier, reason = _parse_tier(model, raw)
        if tier is None:
            _skip(model, raw, reason or "invalid")
            continue
        tiers.append(tier)
    return tiers


def parse_pricing_config(
    model: Union[PricingModel, str, None],
    entries: Optional[Iterable[Any]],
) -> Optional[PricingConfig]:
    """
    Stored string list -> typed config. Runs once, at the storage/API boundary.

    Malformed entries are skipped (logged + counted), never raised.
    Returns None when there is nothing usable to price with: no model,
    no entries, or no readable flat rate. A tiered model whose entries are
    all broken yields an empty tier table.
    """
    m = _as_model(model)
    if m is None or entries is None:
        return None

    lines = [s for s in (_to_str(e) for e in entries) if s != ""]
    if not lines:
        return None

    if m is PricingModel.FLAT_RATE:
        return _parse_flat(lines)

    return TieredRateConfig(model=m, tiers=tuple(_parse_tiers(m, lines)))


# =========================
# Serialize
# =========================


def format_tier(tier: Tier) -> str:
    tier_max = OPEN_ENDED if tier.max is None else format_number(tier.max)
    return f"{format_number(tier.min)}-{tier_max}@{format_number(tier.rate)}"


def serialize_pricing_config(
    model: Union[PricingModel, str, None],
    config: Optional[PricingConfig],
) -> List[str]:
    """Typed config -> canonical (unlabeled) string list for storage."""
    m = _as_model(model)
    if m is None or config is None:
        return []

    if config.model is not m:
        raise ConfigurationError(
            f"Pricing config for {config.model} does not match model {m}",
            {"model": m.value, "config_model": config.model.value},
        )

    if isinstance(config, FlatRateConfig):
        return [format_number(config.rate)]

    return [format_tier(t) for t in config.tiers]
