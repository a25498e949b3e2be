from decimal import Decimal

import pytest

from app.verticals.agrimarket.domain.errors import ConfigurationError
from app.verticals.agrimarket.domain.models import Tier
from app.verticals.agrimarket.pricing.tier_validation import build_tiers, validate_tier_table

D = Decimal


def codes(issues):
    return [(i.row, i.code) for i in issues]


def test_contiguous_open_ended_table_is_clean():
    tiers = [Tier(D("0"), D("10"), D("0.06")), Tier(D("10"), D("50"), D("0.04")), Tier(D("50"), None, D("0.03"))]
    res = validate_tier_table(tiers)
    assert res.ok
    assert res.errors == []
    assert res.warnings == []


def test_gap_is_a_warning(weight_tiers):
    res = validate_tier_table(weight_tiers.tiers)
    assert res.ok
    assert codes(res.warnings) == [(2, "COVERAGE_GAP"), (3, "COVERAGE_GAP")]


def test_first_tier_not_at_zero_warns():
    res = validate_tier_table([Tier(D("10"), None, D("0.03"))])
    assert codes(res.warnings) == [(1, "COVERAGE_GAP")]


def test_closed_last_tier_warns():
    res = validate_tier_table([Tier(D("0"), D("100"), D("0.03"))])
    assert res.ok
    assert codes(res.warnings) == [(1, "COVERAGE_GAP")]


def test_empty_table_warns():
    res = validate_tier_table([])
    assert res.ok
    assert codes(res.warnings) == [(None, "COVERAGE_GAP")]


def test_overlap_is_an_error():
    res = validate_tier_table([Tier(D("0"), D("20"), D("0.06")), Tier(D("10"), None, D("0.04"))])
    assert not res.ok
    assert codes(res.errors) == [(2, "OVERLAP")]


def test_unsorted_is_an_error():
    res = validate_tier_table([Tier(D("10"), D("20"), D("0.06")), Tier(D("0"), D("10"), D("0.04"))])
    assert codes(res.errors) == [(2, "UNSORTED")]


def test_tier_after_open_ended_is_an_error():
    res = validate_tier_table([Tier(D("0"), None, D("0.06")), Tier(D("50"), None, D("0.04"))])
    assert codes(res.errors) == [(2, "AFTER_OPEN_ENDED")]


def test_raise_for_errors():
    res = validate_tier_table([Tier(D("0"), D("20"), D("0.06")), Tier(D("10"), None, D("0.04"))])
    with pytest.raises(ConfigurationError) as ei:
        res.raise_for_errors()
    assert ei.value.meta["errors"][0]["code"] == "OVERLAP"


def test_raise_for_errors_ignores_warnings(weight_tiers):
    validate_tier_table(weight_tiers.tiers).raise_for_errors()


# ----------------------------
# edit-form rows
# ----------------------------


def test_build_tiers_from_rows():
    tiers, res = build_tiers(
        [
            {"min": "0", "max": "10", "rate": "0.06"},
            {"min": 10, "max": "", "rate": 0.03},
        ]
    )
    assert res.ok
    assert tiers == [Tier(D("0"), D("10"), D("0.06")), Tier(D("10"), None, D("0.03"))]


def test_build_tiers_reports_bad_rows():
    tiers, res = build_tiers(
        [
            {"min": "abc", "max": "10", "rate": "0.06"},
            {"min": "0", "max": "10", "rate": "-0.06"},
            {"min": "10", "max": "5", "rate": "0.06"},
            {"min": "10", "max": "+", "rate": "0.02"},
        ]
    )
    assert not res.ok
    assert codes(res.errors) == [(1, "INVALID_NUMBER"), (2, "NEGATIVE_RATE"), (3, "INVALID_RANGE")]
    assert tiers == [Tier(D("10"), None, D("0.02"))]


def test_build_tiers_missing_rate():
    _, res = build_tiers([{"min": "0", "max": "10"}])
    assert codes(res.errors) == [(1, "INVALID_NUMBER")]
