"""Application settings loaded from the environment (and ``.env``).

Domain infrastructure (databases, brokers, event store) is configured in
``domain.toml``; this module only holds what the HTTP surface and the
payment gateway need.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Storefront API"

    # Payment gateway: "fake" for development/tests, "webpay" for Transbank Webpay Plus
    PAYMENT_GATEWAY: Literal["fake", "webpay"] = "fake"
    TRANSBANK_ENVIRONMENT: Literal["integration", "production"] = "integration"
    TRANSBANK_COMMERCE_CODE: str | None = None
    TRANSBANK_API_KEY: str | None = None
    GATEWAY_TIMEOUT_SECONDS: float = 10.0

    # The gateway redirects the browser back to <FRONTEND_URL>/payment/return
    FRONTEND_URL: str | None = "http://localhost:3000"

    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"

    CORS_ORIGINS: list[str] = ["*"]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def payment_return_url(self) -> str | None:
        if not self.FRONTEND_URL:
            return None
        return f"{self.FRONTEND_URL.rstrip('/')}/payment/return"


@lru_cache
def get_settings() -> Settings:
    """Cached settings loader."""
    return Settings()
