"""fxrates -- currency rate caching and analytics engine."""

from fxrates.models import (
    ConversionResult,
    CurrencyAnalytics,
    CurrencyInfo,
    CurrencyPair,
    CurrencyRate,
    HistoricalRate,
    MarketStatus,
    Trend,
)
from fxrates.service import CurrencyService

__all__ = [
    "ConversionResult",
    "CurrencyAnalytics",
    "CurrencyInfo",
    "CurrencyPair",
    "CurrencyRate",
    "CurrencyService",
    "HistoricalRate",
    "MarketStatus",
    "Trend",
]
