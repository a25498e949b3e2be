# app/config.py
import os
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_CARRIERS = (
    Path(__file__).resolve().parent / "verticals" / "agrimarket" / "carriers" / "carriers.yaml"
)


class Settings(BaseSettings):
    # === Algemene app settings ===
    app_env: str = "local"  # local | development | production

    # === Database ===
    database_url: str = "sqlite:///./agrimarket.db"

    # === Logging ===
    log_level: str = "INFO"

    # === Metrics ===
    metrics_enabled: bool = True

    # === Checkout pricing ===
    point_value_rm: Decimal = Field(Decimal("0.01"), description="RM value of one loyalty point")
    default_currency: str = "RM"
    carriers_catalog_path: str = str(_DEFAULT_CARRIERS)

    # === Geolocation ===
    distance_lookup_timeout_s: float = Field(10.0, gt=0)
    google_maps_api_key: Optional[str] = None
    google_maps_base_url: str = "https://maps.googleapis.com"

    # === Pydantic Settings config ===
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Singleton Settings instance met simpele env-overrides."""
    s = Settings()

    env = os.getenv("ENVIRONMENT", s.app_env).lower()
    if env == "production":
        s.log_level = "WARNING"

    return s
