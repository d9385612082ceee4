from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List

# BaseSettings from pydantic-settings pulls values from the system environment first, then the .env file, then the defaults below.
# Settings() is instantiated at import time, so a missing required key fails the process at startup, never at first request.


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Stripe keys (required)
    STRIPE_SECRET_KEY: str
    STRIPE_PUBLISHABLE_KEY: str

    # Webhook signing secret. When unset the webhook endpoint fails closed with a 500.
    STRIPE_WEBHOOK_SECRET: Optional[str] = None
    STRIPE_WEBHOOK_TOLERANCE: int = 300  # seconds
    STRIPE_API_VERSION: Optional[str] = None

    # API Settings
    API_PREFIX: str = "/api"
    LOG_LEVEL: str = "INFO"

    # domains
    APP_URL: str = "http://localhost:3000"
    ALLOWED_ORIGINS: Optional[str] = None  # comma separated
    STRIPE_SUCCESS_URL: Optional[str] = None
    STRIPE_CANCEL_URL: Optional[str] = None

    # per tier provider identifiers
    STRIPE_BASIC_PRICE_ID: str = "price_basic"
    STRIPE_BASIC_PRODUCT_ID: str = "prod_basic"
    STRIPE_PRO_PRICE_ID: str = "price_pro"
    STRIPE_PRO_PRODUCT_ID: str = "prod_pro"
    STRIPE_ENTERPRISE_PRICE_ID: str = "price_enterprise"
    STRIPE_ENTERPRISE_PRODUCT_ID: str = "prod_enterprise"

    @property
    def allowed_origins(self) -> List[str]:
        if self.ALLOWED_ORIGINS:
            return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]
        return [self.APP_URL]

    @property
    def success_url(self) -> str:
        return self.STRIPE_SUCCESS_URL or f"{self.APP_URL}/success"

    @property
    def cancel_url(self) -> str:
        return self.STRIPE_CANCEL_URL or f"{self.APP_URL}/cancel"


# every "from app.configs.app_settings import settings" reuses this one cached instance
settings = Settings()
