# app/observability/metrics.py
from fastapi import APIRouter
from starlette.responses import Response

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

router = APIRouter(tags=["observability"])

pricing_config_skipped_counter = Counter(
    "agrimarket_pricing_config_skipped_total",
    "Stored pricing config entries dropped while parsing",
    ["model", "reason"],  # reason: missing_at|bad_min|bad_max|bad_rate|...
)

shipping_quote_counter = Counter(
    "agrimarket_shipping_quote_total",
    "Shipping quotes computed",
    ["method", "result"],  # method: direct|third-party, result: ok|<error code>
)

distance_lookup_hist = Histogram(
    "agrimarket_distance_lookup_seconds",
    "Latency of external distance lookups",
    ["result"],  # ok|unavailable
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)


@router.get("/metrics", include_in_schema=True)
def metrics() -> Response:
    # Prometheus expects text/plain; version=0.0.4
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
