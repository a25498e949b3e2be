from decimal import Decimal
from typing import Dict, Optional

import pytest

from app.verticals.agrimarket.calculators.shipping import ShippingCostCalculator
from app.verticals.agrimarket.domain.errors import (
    DistanceUnavailableError,
    LogisticsProviderNotFoundError,
)
from app.verticals.agrimarket.domain.models import (
    LogisticsProviderProfile,
    PricingModel,
)
from app.verticals.agrimarket.service import CheckoutPricingService, CheckoutRequest

D = Decimal

pytestmark = pytest.mark.anyio


class InMemoryLogistics:
    def __init__(self, *profiles: LogisticsProviderProfile):
        self.profiles = {p.id: p for p in profiles}

    def get_by_id(self, provider_id: str) -> Optional[LogisticsProviderProfile]:
        return self.profiles.get(provider_id)


class InMemoryLedger:
    def __init__(self, balances: Optional[Dict[str, int]] = None):
        self.balances = balances or {}

    def get_balance(self, buyer_id: str) -> int:
        return self.balances.get(buyer_id, 0)


@pytest.fixture
def partner(flat_config) -> LogisticsProviderProfile:
    return LogisticsProviderProfile(
        id="lp1",
        company_name="Tani Express",
        pricing_model=PricingModel.FLAT_RATE,
        pricing_config=flat_config,
        estimated_delivery_time="2-3 days",
        carrier="DHL",
    )


@pytest.fixture
def service(calculator, partner) -> CheckoutPricingService:
    return CheckoutPricingService(
        calculator,
        InMemoryLogistics(partner),
        InMemoryLedger({"buyer-1": 1000}),
    )


async def test_third_party_checkout(service, provider):
    req = CheckoutRequest(
        unit_price=D("2.00"),
        quantity=D("10"),
        shipping_method="third-party",
        logistics_provider_id="lp1",
        origin="Cameron Highlands",
        destination="Kuala Lumpur",
        buyer_id="buyer-1",
        requested_points=D("1000"),
    )

    pricing = await service.price_checkout(req)

    # 120 km × 10 kg × 0.05
    assert pricing.quote.cost == D("60.00")
    assert pricing.quote.estimated_days == "2-3 days"
    assert pricing.totals.subtotal == D("20.00")
    assert pricing.totals.total_amount == D("80.00")
    assert pricing.totals.redeemed_points == 1000
    assert pricing.totals.adjusted_total == D("70.00")
    assert pricing.snapshot.currency == "RM"
    assert pricing.snapshot.shipping_distance_km == D("120.00")
    assert provider.calls == [("Cameron Highlands", "Kuala Lumpur")]


async def test_direct_checkout_never_looks_up_distance(service, provider):
    req = CheckoutRequest(
        unit_price=D("3.50"),
        quantity=D("4"),
        shipping_method="direct",
        logistics_provider_id="lp1",
        direct_shipping_cost=D("15.00"),
        direct_estimated_days="Same day",
    )
    pricing = await service.price_checkout(req)

    assert pricing.quote.cost == D("15.00")
    assert pricing.totals.total_amount == D("29.00")
    assert pricing.totals.redeemed_points == 0
    assert provider.calls == []


async def test_request_carrier_overrides_profile_carrier(service):
    req = CheckoutRequest(
        unit_price=D("1"),
        quantity=D("1"),
        shipping_method="third-party",
        logistics_provider_id="lp1",
        carrier="FedEx",
        distance_km=D("10"),
    )
    pricing = await service.price_checkout(req)
    assert pricing.quote.provider == "FedEx"
    # partner rate still applies
    assert pricing.quote.rate == D("0.05")


async def test_unknown_logistics_provider(service):
    req = CheckoutRequest(unit_price=1, quantity=1, shipping_method="third-party", logistics_provider_id="nope")
    with pytest.raises(LogisticsProviderNotFoundError) as ei:
        await service.price_checkout(req)
    assert ei.value.meta == {"logistics_provider_id": "nope"}


async def test_distance_failure_blocks_checkout(partner, make_provider, carriers):
    failing = ShippingCostCalculator(make_provider(km=None), carriers=carriers)
    service = CheckoutPricingService(failing, InMemoryLogistics(partner), InMemoryLedger())
    req = CheckoutRequest(
        unit_price=1,
        quantity=1,
        shipping_method="third-party",
        logistics_provider_id="lp1",
        origin="a",
        destination="b",
    )
    with pytest.raises(DistanceUnavailableError):
        await service.price_checkout(req)


async def test_point_value_and_currency_are_configurable(calculator, partner):
    service = CheckoutPricingService(
        calculator,
        InMemoryLogistics(partner),
        InMemoryLedger({"b": 50}),
        point_value_rm=D("0.10"),
        currency="SGD",
    )
    req = CheckoutRequest(
        unit_price=D("10"),
        quantity=D("1"),
        shipping_method="direct",
        direct_shipping_cost=D("0"),
        buyer_id="b",
        requested_points=D("50"),
    )
    pricing = await service.price_checkout(req)
    assert pricing.totals.discount_rm == D("5.00")
    assert pricing.snapshot.currency == "SGD"


async def test_no_buyer_means_no_redemption(service):
    req = CheckoutRequest(
        unit_price=D("10"),
        quantity=D("1"),
        shipping_method="direct",
        direct_shipping_cost=D("1"),
        requested_points=D("500"),
    )
    pricing = await service.price_checkout(req)
    assert pricing.totals.redeemed_points == 0
    assert pricing.to_dict()["totals"]["adjustedTotal"] == 11.0


async def test_inline_carrier_only_partner(calculator):
    profile = LogisticsProviderProfile(id="lp2", company_name="Kargo", carrier="J&T")
    service = CheckoutPricingService(calculator, InMemoryLogistics(profile), InMemoryLedger())
    req = CheckoutRequest(
        unit_price=D("1"), quantity=D("10"), shipping_method="third-party", logistics_provider_id="lp2", distance_km=D("100")
    )
    pricing = await service.price_checkout(req)
    assert pricing.quote.rate == D("0.10")
    assert pricing.quote.cost == D("100.00")
    assert pricing.quote.estimated_days == "2-4 business days"