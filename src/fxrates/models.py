"""Shared data models for the fxrates engine.

CRITICAL: All rates and monetary values use Decimal. Never use float for
prices, amounts, or fees.

Models held in the service cache are frozen: the cache hands the same
instance to every caller.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum


class Trend(str, Enum):
    """Direction classification of a historical rate series."""

    BULLISH = "bullish"
    BEARISH = "bearish"
    SIDEWAYS = "sideways"


@dataclass(frozen=True)
class CurrencyRate:
    """Point exchange rate: price of 1 unit of from_currency in to_currency.

    The 24h fields are filled by SyntheticMarketStats and are presentational
    only; they do not come from a market feed.
    """

    from_currency: str
    to_currency: str
    rate: Decimal
    timestamp: str  # ISO-8601, as reported by the source
    source: str
    change_24h: Decimal | None = None
    change_percent_24h: Decimal | None = None
    high_24h: Decimal | None = None
    low_24h: Decimal | None = None
    volume_24h: int | None = None

    @property
    def pair(self) -> str:
        return f"{self.from_currency}/{self.to_currency}"


@dataclass(frozen=True)
class CurrencyPair:
    """Display-oriented view of a rate plus its 24h stats, keyed by ``FROM/TO``."""

    pair: str
    rate: Decimal
    change_24h: Decimal
    change_percent_24h: Decimal
    high_24h: Decimal
    low_24h: Decimal
    volume_24h: int
    last_updated: str

    @classmethod
    def from_rate(cls, rate: CurrencyRate) -> "CurrencyPair":
        """Build a pair view, defaulting missing stats to 0 or to the rate itself."""
        return cls(
            pair=rate.pair,
            rate=rate.rate,
            change_24h=rate.change_24h or Decimal("0"),
            change_percent_24h=rate.change_percent_24h or Decimal("0"),
            high_24h=rate.high_24h or rate.rate,
            low_24h=rate.low_24h or rate.rate,
            volume_24h=rate.volume_24h or 0,
            last_updated=rate.timestamp,
        )


@dataclass(frozen=True)
class HistoricalRate:
    """One OHLCV bar for a currency pair.

    A series is ordered by date ascending with no duplicate dates,
    and low <= open, close <= high.
    """

    date: date
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal = Decimal("0")


@dataclass(frozen=True)
class CurrencyAnalytics:
    """Technical indicators derived from a historical series. Never persisted."""

    volatility: Decimal
    trend: Trend
    support: Decimal
    resistance: Decimal
    rsi: Decimal  # 0-100
    moving_average_7: Decimal
    moving_average_30: Decimal


@dataclass
class MarketStatus:
    """Simplified FX market session state at a given instant (UTC)."""

    is_open: bool
    next_open: datetime | None
    next_close: datetime | None
    timezone: str = "UTC"


@dataclass
class ConversionResult:
    """Currency conversion with the flat conversion fee applied."""

    amount: Decimal
    from_currency: str
    to_currency: str
    converted_amount: Decimal
    rate: Decimal
    timestamp: str
    fees: Decimal
    total_cost: Decimal


@dataclass(frozen=True)
class CurrencyInfo:
    """Display metadata for a currency code."""

    code: str
    name: str
    symbol: str
    decimals: int = 2
