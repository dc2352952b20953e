"""Application configuration management using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Integration credentials default to empty strings so the service can boot
    without them; the features that need them fail with clear errors.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="dokkani-checkout", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/staging/production)")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")
    max_request_body_size: int = Field(default=1_048_576, description="Maximum request body size in bytes")

    # CORS
    cors_origins: str = Field(default="*", description="Comma-separated list of allowed CORS origins")

    # Stripe
    stripe_secret_key: str = Field(default="", description="Stripe secret API key")
    stripe_webhook_secret: str = Field(default="", description="Stripe webhook signing secret")

    # Sanity
    sanity_project_id: str = Field(default="", description="Sanity project ID")
    sanity_dataset: str = Field(default="production", description="Sanity dataset name")
    sanity_api_version: str = Field(default="2024-01-01", description="Sanity API version date")
    sanity_token: str = Field(default="", description="Sanity API token with write access")
    sanity_use_cdn: bool = Field(default=False, description="Query through the Sanity API CDN")
    sanity_timeout_seconds: float = Field(default=10.0, description="Timeout for Sanity HTTP calls")

    # Supabase
    supabase_url: str = Field(default="", description="Supabase project URL")
    supabase_secret_key: str = Field(default="", description="Supabase secret key for backend operations")
    supabase_orders_table: str = Field(default="orders", description="Supabase table holding orders")

    # Order storage
    order_store_backend: Literal["sanity", "supabase"] = Field(
        default="sanity",
        description="Document store that receives orders (sanity or supabase)",
    )

    # Checkout
    checkout_currency: str = Field(default="usd", description="ISO currency code for every checkout")
    checkout_allowed_countries: str = Field(
        default="US,QA,AE,SA,KW,BH,OM",
        description="Comma-separated list of countries Stripe may collect shipping addresses for",
    )
    express_shipping_amount: int = Field(default=1500, description="Express shipping price in minor units")
    checkout_success_url: str = Field(
        default="dokkani://checkout/success?session_id={CHECKOUT_SESSION_ID}",
        description="Redirect after payment when the client does not supply one",
    )
    checkout_cancel_url: str = Field(
        default="dokkani://checkout/cancel",
        description="Redirect after cancellation when the client does not supply one",
    )
    order_number_prefix: str = Field(default="DK", description="Prefix of generated order numbers")

    # Webhook
    webhook_dedupe_orders: bool = Field(
        default=False,
        description="Skip the order write when an order for the same Stripe session already exists",
    )
    webhook_fail_on_persist_error: bool = Field(
        default=False,
        description="Answer 500 when an order cannot be persisted so Stripe redelivers the event",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def allowed_countries_list(self) -> list[str]:
        """Parse allowed shipping countries into a list of upper-case codes."""
        return [
            country.strip().upper()
            for country in self.checkout_allowed_countries.split(",")
            if country.strip()
        ]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings: Application settings instance.

    Note:
        Settings are cached using lru_cache for performance.
        Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
