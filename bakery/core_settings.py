from pydantic_settings import BaseSettings
from functools import lru_cache
from decimal import Decimal
from typing import Optional

class Settings(BaseSettings):
    POSTGRES_HOST: str = "postgres"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "bakery"
    POSTGRES_USER: str = "bakery"
    POSTGRES_PASSWORD: str = "bakery"
    # Full DSN override, e.g. sqlite:///./bakery.db for local runs
    DATABASE_URL: Optional[str] = None

    JWT_SECRET: str = "change-me"
    JWT_ALG: str = "HS256"
    REDIS_URL: Optional[str] = None

    STRIPE_SECRET_KEY: str = "sk_test_change-me"
    STRIPE_WEBHOOK_SECRET: str = "whsec_change-me"
    STRIPE_WEBHOOK_TOLERANCE: int = 300
    STRIPE_AUTOMATIC_TAX: bool = False
    APP_URL: str = "http://localhost:3000"
    CURRENCY: str = "usd"

    # Defaults for the runtime settings store
    DEFAULT_SERVICE_FEE_RATE: float = 0.05
    FREE_DELIVERY_MINIMUM: Decimal = Decimal("50.00")
    DELIVERY_FEE: Decimal = Decimal("8.00")
    TAX_RATE: Decimal = Decimal("0")

    CHECKOUT_RATE_LIMIT: int = 10
    CHECKOUT_RATE_WINDOW_SECONDS: int = 60

    MIN_INQUIRY_LEAD_MONTHS: int = 1
    MAX_INQUIRY_IMAGES: int = 5

    LOG_LEVEL: str = "INFO"
    RUN_MIGRATIONS: bool = True
    SERVICE_VERSION: str = "1.0.0"

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

@lru_cache
def get_settings() -> Settings:
    return Settings()
