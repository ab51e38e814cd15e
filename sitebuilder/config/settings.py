"""Application settings using Pydantic for environment-based configuration."""
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Stripe Configuration
    stripe_secret_key: str = Field(..., description="Stripe secret API key (sk_test_...)")
    stripe_webhook_secret: str = Field(..., description="Stripe webhook signing secret")
    stripe_api_version: str = Field(default="2023-10-16", description="Stripe API version")
    default_currency: str = Field(default="usd", description="Currency used when a request omits one")
    subscription_interval: str = Field(
        default="month", description="Billing interval for subscription prices"
    )

    # Auth Configuration
    jwt_secret: str = Field(default="dev_secret", description="Token signing secret")
    jwt_algorithm: str = Field(default="HS256", description="Token signing algorithm")
    jwt_expire_days: int = Field(default=30, description="Token validity in days")
    bcrypt_rounds: int = Field(default=8, description="bcrypt work factor for password hashes")

    # Registrar Configuration
    dynadot_api_key: Optional[str] = Field(default=None, description="Dynadot API3 key")
    dynadot_api_url: str = Field(
        default="https://api.dynadot.com/api3.json", description="Dynadot API3 endpoint"
    )
    namecom_username: Optional[str] = Field(default=None, description="Name.com API username")
    namecom_token: Optional[str] = Field(default=None, description="Name.com API token")
    namecom_api_url: str = Field(
        default="https://api.name.com", description="Name.com API base URL"
    )
    registrar_timeout: float = Field(
        default=15.0, description="Registrar HTTP request timeout (seconds)"
    )

    # Admin
    admin_key: Optional[str] = Field(default=None, description="Shared key for admin endpoints")

    # Storage
    data_dir: Path = Field(default=Path("data"), description="Directory holding JSON stores")
    sites_dir: Path = Field(default=Path("sites"), description="Directory holding published sites")

    # Application Configuration
    app_name: str = Field(default="sitebuilder", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/production)")
    log_level: str = Field(default="INFO", description="Logging level")
    debug: bool = Field(default=False, description="Debug mode")

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=3001, description="API port")
    allowed_origins: str = Field(
        default="*", description="CORS allowed origins (comma-separated)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("stripe_secret_key")
    @classmethod
    def validate_stripe_key(cls, v: str) -> str:
        """Validate that the Stripe secret key is a test or live key."""
        if not v.startswith("sk_test_") and not v.startswith("sk_live_"):
            raise ValueError(
                "Invalid Stripe secret key format. Must start with 'sk_test_' or 'sk_live_'"
            )
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v.upper()

    def get_allowed_origins_list(self) -> List[str]:
        """Parse allowed origins from comma-separated string."""
        return [origin.strip() for origin in self.allowed_origins.split(",")]

    @property
    def users_file(self) -> Path:
        return self.data_dir / "users.json"

    @property
    def orders_file(self) -> Path:
        return self.data_dir / "orders.json"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env.lower() == "production"

    @property
    def is_test_mode(self) -> bool:
        """Check if using Stripe test mode."""
        return self.stripe_secret_key.startswith("sk_test_")


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
