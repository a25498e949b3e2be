# app/verticals/agrimarket/api/dependencies.py
from __future__ import annotations

from typing import Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from app.config import get_settings
from app.db import get_db

from ..calculators.shipping import ShippingCostCalculator
from ..carriers.catalog import CarrierCatalog, load_catalog
from ..geo.distance import GeolocationDistanceProvider, GoogleDistanceMatrixProvider
from ..service import CheckoutPricingService
from ..storage.repositories import SqlLogisticsProviderRepository, SqlLoyaltyLedger


def get_carrier_catalog() -> CarrierCatalog:
    return load_catalog(get_settings().carriers_catalog_path)


def get_distance_provider() -> Optional[GeolocationDistanceProvider]:
    # No key -> no lookups; requests must then carry distance_km themselves.
    s = get_settings()
    if not s.google_maps_api_key:
        return None
    return GoogleDistanceMatrixProvider(
        s.google_maps_api_key,
        base_url=s.google_maps_base_url,
        timeout=s.distance_lookup_timeout_s,
    )


def get_shipping_calculator(
    provider: Optional[GeolocationDistanceProvider] = Depends(get_distance_provider),
    carriers: CarrierCatalog = Depends(get_carrier_catalog),
) -> ShippingCostCalculator:
    return ShippingCostCalculator(
        provider,
        carriers=carriers,
        distance_timeout_s=get_settings().distance_lookup_timeout_s,
    )


def get_logistics_repo(db: Session = Depends(get_db)) -> SqlLogisticsProviderRepository:
    return SqlLogisticsProviderRepository(db)


def get_loyalty_ledger(db: Session = Depends(get_db)) -> SqlLoyaltyLedger:
    return SqlLoyaltyLedger(db)


def get_checkout_service(
    calculator: ShippingCostCalculator = Depends(get_shipping_calculator),
    logistics_repo: SqlLogisticsProviderRepository = Depends(get_logistics_repo),
    ledger: SqlLoyaltyLedger = Depends(get_loyalty_ledger),
) -> CheckoutPricingService:
    s = get_settings()
    return CheckoutPricingService(
        calculator,
        logistics_repo,
        ledger,
        point_value_rm=s.point_value_rm,
        currency=s.default_currency,
    )
