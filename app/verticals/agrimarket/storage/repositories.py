from __future__ import annotations

from typing import Optional, Protocol

from sqlalchemy.orm import Session

from app.core.logging_config import logger

from ..domain.errors import ConfigurationError, LogisticsProviderNotFoundError
from ..domain.models import (
    LogisticsProviderProfile,
    PricingConfig,
    PricingModel,
    TieredRateConfig,
)
from ..pricing.config_codec import parse_pricing_config, serialize_pricing_config
from ..pricing.tier_validation import validate_tier_table
from .orm import BuyerLoyaltyORM, LogisticsProviderORM


class LogisticsProviderRepository(Protocol):
    def get_by_id(self, provider_id: str) -> Optional[LogisticsProviderProfile]:
        ...


class LoyaltyLedger(Protocol):
    def get_balance(self, buyer_id: str) -> int:
        ...


def _to_profile(row: LogisticsProviderORM) -> LogisticsProviderProfile:
    # Raw strings stop here; everything past the repository is typed.
    model = PricingModel.from_label(row.pricing_model) if row.pricing_model else None
    return LogisticsProviderProfile(
        id=row.id,
        company_name=row.company_name,
        pricing_model=model,
        pricing_config=parse_pricing_config(model, row.pricing_config),
        estimated_delivery_time=row.estimated_delivery_time,
        carrier=row.carrier,
        meta={"raw_pricing_config": list(row.pricing_config or [])},
    )


class SqlLogisticsProviderRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, provider_id: str) -> Optional[LogisticsProviderProfile]:
        row = self.db.get(LogisticsProviderORM, provider_id)
        if row is None:
            return None
        return _to_profile(row)

    def update_pricing(
        self,
        provider_id: str,
        model: Optional[PricingModel],
        config: Optional[PricingConfig],
    ) -> LogisticsProviderProfile:
        """
        Profile-update path: validate, then store the canonical serialization.
        Tier tables with overlaps or ordering errors are rejected; gaps are
        stored (they show up as warnings in the preview endpoint).
        """
        row = self.db.get(LogisticsProviderORM, provider_id)
        if row is None:
            raise LogisticsProviderNotFoundError(
                f"Logistics provider {provider_id} not found", {"logistics_provider_id": provider_id}
            )

        if model is not None and config is None:
            raise ConfigurationError(f"Pricing config required for {model}", {"model": model.value})
        if isinstance(config, TieredRateConfig):
            validate_tier_table(config.tiers).raise_for_errors()

        row.pricing_model = model.value if model is not None else None
        row.pricing_config = serialize_pricing_config(model, config)

        self.db.commit()
        self.db.refresh(row)

        logger.bind(provider_id=provider_id, model=row.pricing_model).info("pricing_config_updated")
        return _to_profile(row)


class SqlLoyaltyLedger:
    """Read-only view on buyer point balances. Unknown buyer -> 0 points."""

    def __init__(self, db: Session):
        self.db = db

    def get_balance(self, buyer_id: str) -> int:
        row = self.db.get(BuyerLoyaltyORM, buyer_id)
        if row is None:
            return 0
        return max(0, int(row.loyalty_points or 0))
