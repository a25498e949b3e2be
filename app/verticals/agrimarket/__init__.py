# Checkout pricing: shipping quotes, pricing tiers, order totals + loyalty redemption.
from .calculators.order_totals import build_order_snapshot, compute_totals  # noqa
from .calculators.rate_resolver import resolve_rate  # noqa
from .calculators.shipping import ShippingCostCalculator  # noqa
from .domain.errors import (  # noqa
    ConfigurationError,
    DistanceUnavailableError,
    InvalidAmountError,
    LogisticsProviderNotFoundError,
    NoMatchingTierError,
    PricingError,
)
from .pricing.config_codec import parse_pricing_config, serialize_pricing_config  # noqa
