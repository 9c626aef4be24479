from decimal import Decimal
from functools import lru_cache
from typing import Any, List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_CORS = ["http://localhost:3000"]


def _parse_cors_origins(v: Any) -> List[str]:
    try:
        if v is None or v == "":
            return _DEFAULT_CORS.copy()
        if isinstance(v, list):
            return [x for x in v if isinstance(x, str) and x.strip()]
        s = str(v).strip()
        if not s:
            return _DEFAULT_CORS.copy()
        if s.startswith("["):
            import json
            out = json.loads(s)
            return [x for x in out if isinstance(x, str) and x.strip()] or _DEFAULT_CORS.copy()
        return [x.strip() for x in s.split(",") if x.strip()] or _DEFAULT_CORS.copy()
    except Exception:
        return _DEFAULT_CORS.copy()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # App
    env: str = Field(default="development", description="ENV")
    debug: bool = Field(default=False, description="DEBUG")

    # Order store: "mongo" | "memory"
    order_store_backend: str = Field(default="mongo", alias="ORDER_STORE_BACKEND")

    # MongoDB
    mongodb_uri: str = Field(default="mongodb://localhost:27017/payment-app", alias="MONGODB_URI")
    mongodb_db_name: str = Field(default="payment-app", alias="MONGODB_DB_NAME")

    # UroPay (validated per request, not at startup)
    uropay_api_key: str = Field(default="", alias="URO_API_KEY")
    uropay_secret_key: str = Field(default="", alias="UROPAY_SECRET_KEY")
    owner_upi: str = Field(default="", alias="OWNER_UPI")
    uropay_base_url: str = Field(default="https://api.uropay.me", alias="UROPAY_BASE_URL")
    uropay_timeout_seconds: float = Field(default=15.0, alias="UROPAY_TIMEOUT_SECONDS")

    # Checkout
    merchant_display_name: str = Field(default="SimplePay Merchant", alias="MERCHANT_DISPLAY_NAME")
    default_customer_email: str = Field(default="customer@example.com", alias="DEFAULT_CUSTOMER_EMAIL")
    currency: str = "INR"
    # Largest single UPI payment accepted, in major units.
    max_amount: Decimal = Field(default=Decimal("500000"), alias="MAX_AMOUNT")
    poll_interval_ms: int = Field(default=3000, alias="POLL_INTERVAL_MS")

    # Sentry
    sentry_dsn: str | None = Field(default=None, alias="SENTRY_DSN")

    # CORS: env as string, exposed as list
    cors_origins_raw: str = Field(
        default="http://localhost:3000",
        alias="CORS_ORIGINS",
        description="Comma-separated or JSON list",
    )

    @property
    def cors_origins(self) -> List[str]:
        return _parse_cors_origins(getattr(self, "cors_origins_raw", None))

    @property
    def is_production(self) -> bool:
        return self.env.lower() in ("production", "prod")

    @property
    def uropay_configured(self) -> bool:
        return bool(self.uropay_api_key and self.uropay_secret_key and self.owner_upi)


@lru_cache
def get_settings() -> Settings:
    return Settings()
