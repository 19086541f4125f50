from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load variables from .env if present
load_dotenv()

class Settings(BaseSettings):
    """Project configuration loaded from environment variables or .env file."""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="",
        extra="ignore",  # Ignore unknown env keys (e.g., ADMIN_PORT)
    )

    # Database settings with aliases for UPPERCASE env vars
    postgres_dsn: str | None = Field(None, alias="POSTGRES_DSN")
    postgres_host: str = Field("localhost", alias="POSTGRES_HOST")
    postgres_port: int = Field(5432, alias="POSTGRES_PORT")
    postgres_db: str = Field("danceverse", alias="POSTGRES_DB")
    postgres_user: str = Field("danceverse", alias="POSTGRES_USER")
    postgres_password: str = Field("danceverse", alias="POSTGRES_PASSWORD")

    # Admin API auth
    secret_key: str = Field("change-me-in-production", alias="SECRET_KEY")
    access_token_expire_minutes: int = Field(60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # Stripe transfers
    stripe_secret_key: str | None = Field(None, alias="STRIPE_SECRET_KEY")
    stripe_api_base: str = Field("https://api.stripe.com", alias="STRIPE_API_BASE")
    payout_currency: str = Field("usd", alias="PAYOUT_CURRENCY")

    # Partner commissions
    commission_activity_window_days: int = Field(30, ge=1, alias="COMMISSION_ACTIVITY_WINDOW_DAYS")
    commission_async: bool = Field(False, alias="COMMISSION_ASYNC")

    # Celery / Redis
    redis_host: str = Field("localhost", alias="REDIS_HOST")
    redis_port: int = Field(6379, alias="REDIS_PORT")
    celery_broker_url: str | None = Field(None, alias="CELERY_BROKER_URL")
    celery_result_backend: str | None = Field(None, alias="CELERY_RESULT_BACKEND")

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    @property
    def database_url(self) -> str:
        """Construct database URL from components or use DSN if provided."""
        if self.postgres_dsn:
            return self.postgres_dsn
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def broker_url(self) -> str:
        return self.celery_broker_url or f"redis://{self.redis_host}:{self.redis_port}/0"

    @property
    def result_backend(self) -> str:
        return self.celery_result_backend or f"redis://{self.redis_host}:{self.redis_port}/1"

    @model_validator(mode='after')
    def validate_database_config(self) -> 'Settings':
        """Validate database configuration."""
        if not self.postgres_dsn and not all([
            self.postgres_host,
            self.postgres_port,
            self.postgres_db,
            self.postgres_user,
            self.postgres_password
        ]):
            raise ValueError(
                "Either POSTGRES_DSN or all database connection parameters must be provided"
            )
        return self

@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
