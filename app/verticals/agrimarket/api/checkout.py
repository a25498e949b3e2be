from __future__ import annotations

import time
from typing import Any, List, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from app.config import get_settings
from app.core.logging_config import logger

from ..calculators.loyalty import milestone_bonus_points, points_value_rm
from ..calculators.order_totals import compute_totals
from ..calculators.shipping import ShippingCostCalculator
from ..carriers.catalog import CarrierCatalog
from ..domain.errors import ConfigurationError, LogisticsProviderNotFoundError, PricingError
from ..domain.models import (
    FlatRateConfig,
    LoyaltyRedemption,
    PricingConfig,
    PricingModel,
    ShippingContext,
    ShippingMethod,
    TieredRateConfig,
)
from ..pricing.config_codec import parse_pricing_config, serialize_pricing_config
from ..pricing.summary import pricing_summary_text
from ..pricing.tier_validation import (
    TierIssue,
    ValidationResult,
    build_tiers,
    validate_tier_table,
)
from ..schemas.logistics_v1 import (
    CarrierListV1,
    PricingPreviewInputV1,
    PricingPreviewOutputV1,
)
from ..schemas.loyalty_v1 import LoyaltySummaryV1
from ..schemas.shipping_v1 import ShippingCalculateInputV1, ShippingQuoteOutputV1
from ..schemas.totals_v1 import (
    CheckoutQuoteInputV1,
    CheckoutQuoteOutputV1,
    TotalsInputV1,
    TotalsOutputV1,
)
from ..service import CheckoutPricingService, CheckoutRequest
from ..storage.repositories import SqlLogisticsProviderRepository, SqlLoyaltyLedger
from .dependencies import (
    get_carrier_catalog,
    get_checkout_service,
    get_logistics_repo,
    get_loyalty_ledger,
    get_shipping_calculator,
)

# ----------------------------
# Routers
# ----------------------------
router = APIRouter(prefix="/api", tags=["agrimarket", "checkout"])


# ----------------------------
# Helpers
# ----------------------------
def _http_error(e: PricingError) -> HTTPException:
    return HTTPException(status_code=e.http_status, detail=e.to_dict())


def _log_obs(*, request: Request, endpoint: str, t0: float, result: str, **extra: Any) -> None:
    request_id = getattr(request.state, "request_id", None) or request.headers.get(
        "X-Request-ID", "unknown"
    )
    logger.bind(
        request_id=request_id,
        endpoint=endpoint,
        duration_ms=round((time.time() - t0) * 1000, 2),
        result=result,
        **extra,
    ).info("pricing_request")


def _inline_pricing(payload: ShippingCalculateInputV1) -> tuple[Optional[PricingModel], Optional[PricingConfig]]:
    if not payload.pricing_model:
        return None, None
    model = PricingModel.from_label(payload.pricing_model)
    return model, parse_pricing_config(model, payload.pricing_config)


# ----------------------------
# 1) Shipping
# ----------------------------
@router.post("/shipping/calculate", response_model=ShippingQuoteOutputV1)
async def calculate_shipping(
    payload: ShippingCalculateInputV1,
    request: Request,
    calculator: ShippingCostCalculator = Depends(get_shipping_calculator),
    logistics_repo: SqlLogisticsProviderRepository = Depends(get_logistics_repo),
) -> ShippingQuoteOutputV1:
    t0 = time.time()
    try:
        ctx = ShippingContext(
            weight=payload.weight,
            origin=payload.origin,
            destination=payload.destination,
            distance_km=payload.distance_km,
            partner_delivery_time=payload.partner_delivery_time,
            carrier=payload.carrier,
            direct_shipping_cost=payload.direct_shipping_cost,
            direct_estimated_days=payload.direct_estimated_days,
        )

        # direct shipping never reads partner pricing
        if payload.shipping_method == ShippingMethod.THIRD_PARTY:
            if payload.logistics_provider_id:
                profile = logistics_repo.get_by_id(payload.logistics_provider_id)
                if profile is None:
                    raise LogisticsProviderNotFoundError(
                        f"Logistics provider {payload.logistics_provider_id} not found",
                        {"logistics_provider_id": payload.logistics_provider_id},
                    )
                ctx.pricing_model = profile.pricing_model
                ctx.pricing_config = profile.pricing_config
                ctx.partner_delivery_time = ctx.partner_delivery_time or profile.estimated_delivery_time
                ctx.carrier = ctx.carrier or profile.carrier
            else:
                ctx.pricing_model, ctx.pricing_config = _inline_pricing(payload)

        quote = await calculator.compute_shipping_cost(payload.shipping_method, ctx)
    except PricingError as e:
        _log_obs(request=request, endpoint="shipping_calculate", t0=t0, result=e.code)
        raise _http_error(e)

    _log_obs(request=request, endpoint="shipping_calculate", t0=t0, result="ok")
    return ShippingQuoteOutputV1.model_validate(quote.to_dict())


# ----------------------------
# 2) Totals
# ----------------------------
@router.post("/checkout/totals", response_model=TotalsOutputV1)
def calculate_totals(payload: TotalsInputV1, request: Request) -> TotalsOutputV1:
    t0 = time.time()
    loyalty = None
    if payload.loyalty is not None:
        point_value_rm = payload.loyalty.point_value_rm
        if point_value_rm is None:
            point_value_rm = get_settings().point_value_rm
        loyalty = LoyaltyRedemption(
            balance=payload.loyalty.balance,
            requested_points=payload.loyalty.requested_points,
            point_value_rm=point_value_rm,
        )

    try:
        totals = compute_totals(payload.unit_price, payload.quantity, payload.shipping_cost, loyalty)
    except PricingError as e:
        _log_obs(request=request, endpoint="checkout_totals", t0=t0, result=e.code)
        raise _http_error(e)

    _log_obs(request=request, endpoint="checkout_totals", t0=t0, result="ok")
    return TotalsOutputV1.model_validate(totals.to_dict())


@router.post("/checkout/quote", response_model=CheckoutQuoteOutputV1)
async def checkout_quote(
    payload: CheckoutQuoteInputV1,
    request: Request,
    service: CheckoutPricingService = Depends(get_checkout_service),
) -> CheckoutQuoteOutputV1:
    t0 = time.time()
    req = CheckoutRequest(**payload.model_dump())
    try:
        pricing = await service.price_checkout(req)
    except PricingError as e:
        _log_obs(request=request, endpoint="checkout_quote", t0=t0, result=e.code)
        raise _http_error(e)

    _log_obs(request=request, endpoint="checkout_quote", t0=t0, result="ok")
    return CheckoutQuoteOutputV1.model_validate(pricing.to_dict())


# ----------------------------
# 3) Logistics profile
# ----------------------------
@router.get("/logistics/carriers", response_model=CarrierListV1)
def list_carriers(catalog: CarrierCatalog = Depends(get_carrier_catalog)) -> CarrierListV1:
    return CarrierListV1.model_validate({"providers": [c.to_dict() for c in catalog.carriers]})


def _merge(results: List[ValidationResult]) -> ValidationResult:
    merged = ValidationResult(ok=all(r.ok for r in results))
    for r in results:
        merged.errors.extend(r.errors)
        merged.warnings.extend(r.warnings)
    return merged


def _editor_config(
    payload: PricingPreviewInputV1,
) -> Tuple[PricingModel, Optional[PricingConfig], ValidationResult]:
    """Profile editor payload -> typed config plus row and table validation."""
    model = PricingModel.from_label(payload.pricing_model)

    results: List[ValidationResult] = []
    config: Optional[PricingConfig]
    if model.is_tiered and payload.tiers is not None:
        tiers, row_result = build_tiers([t.model_dump() for t in payload.tiers])
        results.append(row_result)
        config = TieredRateConfig(model=model, tiers=tuple(tiers))
    elif model is PricingModel.FLAT_RATE and payload.flat_rate is not None:
        config = FlatRateConfig(rate=payload.flat_rate)
    else:
        config = parse_pricing_config(model, payload.pricing_config)

    if isinstance(config, TieredRateConfig):
        results.append(validate_tier_table(config.tiers))
    elif config is None:
        results.append(
            ValidationResult(
                ok=False,
                errors=[TierIssue(None, "MISSING_CONFIG", f"No usable config for {model}.")],
            )
        )

    return model, config, _merge(results)


@router.post("/logistics/pricing-config/preview", response_model=PricingPreviewOutputV1)
def preview_pricing_config(payload: PricingPreviewInputV1) -> PricingPreviewOutputV1:
    try:
        model, config, validation = _editor_config(payload)
        canonical = serialize_pricing_config(model, config)
    except ConfigurationError as e:
        raise _http_error(e)

    return PricingPreviewOutputV1(
        pricing_model=model.value,
        pricing_config=canonical,
        summary=pricing_summary_text(model, config),
        validation=validation.to_dict(),
    )


@router.put("/logistics/providers/{provider_id}/pricing-config", response_model=PricingPreviewOutputV1)
def save_pricing_config(
    provider_id: str,
    payload: PricingPreviewInputV1,
    request: Request,
    logistics_repo: SqlLogisticsProviderRepository = Depends(get_logistics_repo),
) -> PricingPreviewOutputV1:
    t0 = time.time()
    try:
        model, config, validation = _editor_config(payload)
        # row errors block the save
        validation.raise_for_errors()
        profile = logistics_repo.update_pricing(provider_id, model, config)
    except ConfigurationError as e:
        _log_obs(request=request, endpoint="pricing_config_save", t0=t0, result=e.code)
        raise _http_error(e)

    _log_obs(request=request, endpoint="pricing_config_save", t0=t0, result="ok")
    return PricingPreviewOutputV1(
        pricing_model=model.value,
        pricing_config=serialize_pricing_config(profile.pricing_model, profile.pricing_config),
        summary=pricing_summary_text(profile.pricing_model, profile.pricing_config),
        validation=validation.to_dict(),
    )


# ----------------------------
# 4) Loyalty
# ----------------------------
@router.get("/loyalty/{buyer_id}", response_model=LoyaltySummaryV1)
def loyalty_summary(
    buyer_id: str,
    completed_purchases: int = Query(0, ge=0, alias="completedPurchases"),
    bonus_claimed: bool = Query(False, alias="bonusClaimed"),
    ledger: SqlLoyaltyLedger = Depends(get_loyalty_ledger),
) -> LoyaltySummaryV1:
    balance = ledger.get_balance(buyer_id)
    return LoyaltySummaryV1(
        buyer_id=buyer_id,
        balance=balance,
        worth_rm=float(points_value_rm(balance, get_settings().point_value_rm)),
        milestone_bonus_points=milestone_bonus_points(completed_purchases, bonus_claimed),
    )
