from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import List, Optional, Tuple

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import get_settings
from app.db import Base
from app.verticals.agrimarket.calculators.shipping import ShippingCostCalculator
from app.verticals.agrimarket.carriers.catalog import CarrierCatalog
from app.verticals.agrimarket.domain.models import (
    FlatRateConfig,
    PricingModel,
    Tier,
    TieredRateConfig,
)
from app.verticals.agrimarket.storage import orm  # noqa: F401 (register tables)

D = Decimal


class FakeDistanceProvider:
    """Records calls; returns a fixed km value, raises, or hangs."""

    def __init__(self, km: Optional[float] = 120.0, *, error: Optional[Exception] = None, delay: float = 0.0):
        self.km = km
        self.error = error
        self.delay = delay
        self.calls: List[Tuple[str, str]] = []

    async def lookup_distance_km(self, origin: str, destination: str) -> Optional[float]:
        self.calls.append((origin, destination))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.km


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def carriers() -> CarrierCatalog:
    return CarrierCatalog.from_yaml_file(get_settings().carriers_catalog_path)


@pytest.fixture
def provider() -> FakeDistanceProvider:
    return FakeDistanceProvider(km=120.0)


@pytest.fixture
def calculator(provider, carriers) -> ShippingCostCalculator:
    return ShippingCostCalculator(provider, carriers=carriers, distance_timeout_s=1.0)


@pytest.fixture
def make_provider():
    return FakeDistanceProvider


@pytest.fixture
def flat_config() -> FlatRateConfig:
    return FlatRateConfig(rate=D("0.05"))


@pytest.fixture
def weight_tiers() -> TieredRateConfig:
    return TieredRateConfig(
        model=PricingModel.TIERED_BY_WEIGHT,
        tiers=(
            Tier(min=D("0"), max=D("10"), rate=D("0.06")),
            Tier(min=D("11"), max=D("50"), rate=D("0.04")),
            Tier(min=D("51"), max=None, rate=D("0.03")),
        ),
    )


@pytest.fixture
def distance_tiers() -> TieredRateConfig:
    return TieredRateConfig(
        model=PricingModel.TIERED_BY_DISTANCE,
        tiers=(
            Tier(min=D("0"), max=D("50"), rate=D("0.08")),
            Tier(min=D("50"), max=D("200"), rate=D("0.05")),
            Tier(min=D("200"), max=None, rate=D("0.02")),
        ),
    )


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    db = Session()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
