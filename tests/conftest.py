import os
os.environ.setdefault("METRICS_ENABLED", "1")
os.environ.setdefault("DATABASE_URL", "sqlite://")  # geen bestand op schijf tijdens tests

from typing import List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db import Base, get_db
from app.main import app
from app.verticals.agrimarket.api.dependencies import get_distance_provider
from app.verticals.agrimarket.storage import orm  # noqa: F401 (tabellen registreren)


class StubDistanceProvider:
    def __init__(self, km: Optional[float] = 120.0):
        self.km = km
        self.calls: List[Tuple[str, str]] = []

    async def lookup_distance_km(self, origin: str, destination: str) -> Optional[float]:
        self.calls.append((origin, destination))
        return self.km


@pytest.fixture
def anyio_backend():
    # Dwing anyio om alleen asyncio te gebruiken (geen Trio nodig)
    return "asyncio"


@pytest.fixture
def db_session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def distance_provider():
    return StubDistanceProvider(km=120.0)


@pytest.fixture
def client(db_session_factory, distance_provider):
    def _get_db():
        db = db_session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_distance_provider] = lambda: distance_provider
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def seed(db_session_factory):
    """Insert ORM rows: seed(LogisticsProviderORM(...), BuyerLoyaltyORM(...))."""

    def _seed(*rows):
        db = db_session_factory()
        try:
            db.add_all(rows)
            db.commit()
        finally:
            db.close()

    return _seed
