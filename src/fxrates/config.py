"""Configuration system using pydantic-settings with environment variable loading."""

from decimal import Decimal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class GatewaySettings(BaseSettings):
    """FX/banking API connection settings."""

    model_config = SettingsConfigDict(env_prefix="FXAPI_")

    base_url: str = "http://localhost:3001"
    api_token: SecretStr = SecretStr("")
    tenant_id: str = "tenant_demo"
    company_id: str | None = None
    timeout_seconds: float = 10.0


class CacheSettings(BaseSettings):
    """Per-endpoint TTLs (milliseconds) for the in-memory rate cache."""

    model_config = SettingsConfigDict(env_prefix="CACHE_")

    rate_ttl_ms: int = 30_000  # 30 seconds
    popular_pairs_ttl_ms: int = 60_000  # 1 minute
    historical_ttl_ms: int = 300_000  # 5 minutes
    analytics_ttl_ms: int = 300_000  # 5 minutes
    currencies_ttl_ms: int = 3_600_000  # 1 hour
    max_entries: int | None = None  # None = unbounded


class RetrySettings(BaseSettings):
    """Fixed-delay retry parameters for gateway calls."""

    model_config = SettingsConfigDict(env_prefix="RETRY_")

    attempts: int = 3
    delay_seconds: float = 1.0


class LiveSettings(BaseSettings):
    """Live mode polling configuration."""

    model_config = SettingsConfigDict(env_prefix="LIVE_")

    poll_interval: float = 30.0  # seconds between refreshes
    pairs: list[str] = ["USD/EUR", "USD/GBP", "USD/JPY", "EUR/GBP"]


class FeeSettings(BaseSettings):
    """Conversion fee model (flat, no tiers)."""

    model_config = SettingsConfigDict(env_prefix="FEES_")

    conversion_rate: Decimal = Decimal("0.001")  # 0.1%


class AnalyticsSettings(BaseSettings):
    """Technical analytics window configuration."""

    model_config = SettingsConfigDict(env_prefix="ANALYTICS_")

    lookback_days: int = 30
    rsi_period: int = 14


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    gateway: GatewaySettings = GatewaySettings()
    cache: CacheSettings = CacheSettings()
    retry: RetrySettings = RetrySettings()
    live: LiveSettings = LiveSettings()
    fees: FeeSettings = FeeSettings()
    analytics: AnalyticsSettings = AnalyticsSettings()
