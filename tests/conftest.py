"""Shared test fixtures for the fxrates engine."""

import random
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from fxrates.cache import TTLCache
from fxrates.config import (
    AnalyticsSettings,
    AppSettings,
    CacheSettings,
    FeeSettings,
    GatewaySettings,
)
from fxrates.conversion.fee_calculator import ConversionFeeCalculator
from fxrates.gateway.client import RateGateway
from fxrates.market_data.market_stats import SyntheticMarketStats
from fxrates.retry import RetryExecutor
from fxrates.service import CurrencyService
from tests.helpers import FIXED_NOW, FakeClock, rate_payload


@pytest.fixture
def mock_settings() -> AppSettings:
    """Return AppSettings pointing at a fake FX API host."""
    return AppSettings(
        log_level="DEBUG",
        gateway=GatewaySettings(
            base_url="http://fx.test",
            api_token="test-token",  # type: ignore[arg-type]
            tenant_id="tenant_test",
        ),
        fees=FeeSettings(),
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> TTLCache:
    return TTLCache(clock=clock)


@pytest.fixture
def retry() -> RetryExecutor:
    """Three attempts, no delay."""
    return RetryExecutor(attempts=3, delay_seconds=0)


@pytest.fixture
def mock_gateway() -> AsyncMock:
    """Mock RateGateway returning a USD/EUR rate of 0.92."""
    gateway = AsyncMock(spec=RateGateway)
    gateway.fetch_rate = AsyncMock(return_value=rate_payload())
    gateway.force_refresh_rate = AsyncMock(return_value=rate_payload("0.93", "market"))
    gateway.fetch_historical = AsyncMock(return_value={"rates": []})
    gateway.force_refresh_historical = AsyncMock(return_value={"rates": []})
    gateway.fetch_conversion = AsyncMock(
        return_value={
            "success": True,
            "conversion": {
                "convertedAmount": Decimal("920.00"),
                "rate": Decimal("0.92"),
                "timestamp": "2024-03-15T12:00:00Z",
            },
        }
    )
    gateway.fetch_currencies = AsyncMock(
        return_value={
            "currencies": {
                "USD": {"name": "US Dollar", "symbol": "$", "decimals": 2},
                "EUR": {"name": "Euro", "symbol": "€", "decimals": 2},
                "JPY": {"name": "Japanese Yen", "symbol": "¥", "decimals": 0},
            }
        }
    )
    return gateway


@pytest.fixture
def service(
    mock_gateway: AsyncMock, cache: TTLCache, retry: RetryExecutor
) -> CurrencyService:
    """CurrencyService with mocked gateway, fake-clock cache and seeded stats."""
    return CurrencyService(
        gateway=mock_gateway,
        cache=cache,
        retry=retry,
        market_stats=SyntheticMarketStats(random.Random(42)),
        fee_calculator=ConversionFeeCalculator(FeeSettings()),
        cache_settings=CacheSettings(),
        analytics_settings=AnalyticsSettings(),
        now=lambda: FIXED_NOW,
    )
