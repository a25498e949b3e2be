from decimal import Decimal

import pytest

from app.verticals.agrimarket.calculators.rate_resolver import resolve_rate, select_tier
from app.verticals.agrimarket.domain.errors import (
    ConfigurationError,
    InvalidAmountError,
    NoMatchingTierError,
)
from app.verticals.agrimarket.domain.models import (
    FlatRateConfig,
    PricingModel,
    Tier,
    TieredRateConfig,
)

D = Decimal

W = PricingModel.TIERED_BY_WEIGHT
DIST = PricingModel.TIERED_BY_DISTANCE
FLAT = PricingModel.FLAT_RATE


def test_flat_rate_ignores_weight_and_distance(flat_config):
    assert resolve_rate(FLAT, flat_config, weight=D("500"), distance=D("120")) == D("0.05")
    assert resolve_rate(FLAT, flat_config, weight=D("0"), distance=D("9999")) == D("0.05")


@pytest.mark.parametrize(
    "weight,expected",
    [
        ("0", "0.06"),
        ("9.99", "0.06"),
        ("11", "0.04"),
        ("49.5", "0.04"),
        ("51", "0.03"),
        ("75", "0.03"),
        ("100000", "0.03"),
    ],
)
def test_weight_tier_selection(weight_tiers, weight, expected):
    assert resolve_rate(W, weight_tiers, weight=D(weight), distance=D("40")) == D(expected)


def test_weight_tier_ignores_distance(weight_tiers):
    a = resolve_rate(W, weight_tiers, weight=D("75"), distance=D("1"))
    b = resolve_rate(W, weight_tiers, weight=D("75"), distance=D("5000"))
    assert a == b == D("0.03")


def test_distance_tier_selection(distance_tiers):
    assert resolve_rate(DIST, distance_tiers, weight=D("1"), distance=D("49.9")) == D("0.08")
    assert resolve_rate(DIST, distance_tiers, weight=D("1"), distance=D("50")) == D("0.05")
    assert resolve_rate(DIST, distance_tiers, weight=D("1"), distance=D("200")) == D("0.02")


def test_tier_upper_bound_is_exclusive():
    cfg = TieredRateConfig(model=W, tiers=(Tier(D("0"), D("10"), D("0.06")), Tier(D("10"), None, D("0.03"))))
    assert resolve_rate(W, cfg, weight=D("10"), distance=D("1")) == D("0.03")


def test_gap_between_tiers_raises(weight_tiers):
    # tiers [0,10) and [11,50): 10.5 falls in between
    with pytest.raises(NoMatchingTierError):
        resolve_rate(W, weight_tiers, weight=D("10.5"), distance=D("1"))


def test_weight_below_first_tier_raises():
    cfg = TieredRateConfig(model=W, tiers=(Tier(D("10"), D("50"), D("0.04")), Tier(D("50"), None, D("0.03"))))
    with pytest.raises(NoMatchingTierError) as ei:
        resolve_rate(W, cfg, weight=D("5"), distance=D("40"))
    assert ei.value.meta["value"] == "5"
    assert ei.value.meta["tier_count"] == 2


def test_empty_tier_table_raises():
    with pytest.raises(NoMatchingTierError):
        resolve_rate(DIST, TieredRateConfig(model=DIST), weight=D("1"), distance=D("1"))


def test_unsorted_tiers_are_matched_by_min():
    cfg = TieredRateConfig(model=W, tiers=(Tier(D("10"), None, D("0.03")), Tier(D("0"), D("10"), D("0.06"))))
    assert resolve_rate(W, cfg, weight=D("3"), distance=D("1")) == D("0.06")


def test_select_tier_equal_min_keeps_stored_order():
    first = Tier(D("0"), D("10"), D("0.06"))
    second = Tier(D("0"), None, D("0.09"))
    assert select_tier([first, second], D("5")) is first
    assert select_tier([first, second], D("20")) is second


def test_missing_model_raises(flat_config):
    with pytest.raises(ConfigurationError):
        resolve_rate(None, flat_config, weight=D("1"), distance=D("1"))


def test_missing_config_raises():
    with pytest.raises(ConfigurationError) as ei:
        resolve_rate(W, None, weight=D("1"), distance=D("1"))
    assert ei.value.meta == {"model": W.value}


def test_model_config_mismatch_raises(flat_config, weight_tiers):
    with pytest.raises(ConfigurationError):
        resolve_rate(W, flat_config, weight=D("1"), distance=D("1"))
    with pytest.raises(ConfigurationError):
        resolve_rate(DIST, weight_tiers, weight=D("1"), distance=D("1"))


@pytest.mark.parametrize("weight,distance", [("-1", "10"), ("1", "-10"), ("NaN", "10"), (None, "10")])
def test_invalid_inputs_raise(flat_config, weight, distance):
    w = None if weight is None else D(weight)
    with pytest.raises(InvalidAmountError):
        resolve_rate(FLAT, flat_config, weight=w, distance=D(distance))


def test_resolve_is_deterministic(distance_tiers):
    results = {resolve_rate(DIST, distance_tiers, weight=D("3"), distance=D("120")) for _ in range(20)}
    assert results == {D("0.05")}
