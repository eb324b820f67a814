from decimal import Decimal
from typing import List
import os

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    env: str = "dev"
    secret_key: str = "change_me_super_secret"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    refresh_token_expire_minutes: int = 60 * 24 * 30
    database_url: str = "postgresql+psycopg2://pricing:pricing@db:5432/jewelry_pricing"
    backend_cors_origins: str = "http://localhost:3000"
    log_level: str = "INFO"

    # Pricing
    gst_rate: Decimal = Decimal("0.03")
    default_making_charge_pct: Decimal = Decimal("10")
    default_wastage_pct: Decimal = Decimal("2")

    # Rate freshness and refresh
    rate_stale_after_minutes: int = 15
    enforce_fresh_rates: bool = False
    rate_refresh_minutes: int = 5
    scheduler_enabled: bool = False

    # External rate feeds
    goldapi_key: str = ""
    goldapi_base_url: str = "https://www.goldapi.io/api"
    metalpriceapi_key: str = ""
    metalpriceapi_url: str = "https://api.metalpriceapi.com/v1/latest"
    rate_feed_timeout_seconds: float = 10.0
    rate_feed_retries: int = 3

    port: int = int(os.getenv("PORT", "8000"))

    @property
    def cors_origins(self) -> List[str]:
        """Parse CORS origins from a comma-separated string"""
        origins = self.backend_cors_origins
        return [origin.strip() for origin in origins.split(",") if origin.strip()]

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
