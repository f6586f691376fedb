"""Currency service -- cache-first access to rates, history, analytics and conversion.

Every public read follows the same path:

  1. CHECK: look up the TTL cache by endpoint + parameters
  2. FETCH: on a miss, call the gateway through the RetryExecutor
  3. ENRICH: synthetic 24h stats for point rates, indicators for history
  4. STORE: cache the enriched result with the endpoint's TTL

Same-currency requests (``from == to``) never reach the gateway or the cache:
they resolve locally to a rate of exactly 1 with source "internal".

Error handling: gateway errors and malformed payloads propagate to the
caller, except in two batch-style paths that degrade instead:
  - historical rates: a payload without ``rates`` yields an empty series
  - popular pairs: a pair whose fetch fails is logged and dropped
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from fxrates.analytics.indicators import compute_analytics
from fxrates.cache import CacheStats, TTLCache, make_cache_key
from fxrates.config import AnalyticsSettings, CacheSettings
from fxrates.conversion.fee_calculator import ConversionFeeCalculator
from fxrates.exceptions import MalformedResponseError
from fxrates.gateway.client import RateGateway
from fxrates.logging import get_logger, pair_context
from fxrates.market_data.market_stats import SyntheticMarketStats
from fxrates.market_data.market_status import get_market_status
from fxrates.models import (
    ConversionResult,
    CurrencyAnalytics,
    CurrencyInfo,
    CurrencyPair,
    CurrencyRate,
    HistoricalRate,
    MarketStatus,
)
from fxrates.retry import RetryExecutor

logger = get_logger(__name__)

#: Pairs shown on the rates board, in display order.
POPULAR_PAIRS: tuple[tuple[str, str], ...] = (
    ("USD", "EUR"),
    ("USD", "GBP"),
    ("USD", "JPY"),
    ("USD", "CAD"),
    ("USD", "AUD"),
    ("EUR", "GBP"),
    ("EUR", "JPY"),
    ("GBP", "JPY"),
)

INTERNAL_SOURCE = "internal"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _to_decimal(value: Any, field_name: str) -> Decimal:
    """Convert a JSON scalar to a finite Decimal, raising MalformedResponseError on junk."""
    if value is None or isinstance(value, bool):
        raise MalformedResponseError(f"Missing or invalid numeric field '{field_name}'")
    try:
        number = Decimal(str(value))
    except InvalidOperation as e:
        raise MalformedResponseError(
            f"Field '{field_name}' is not a number: {value!r}"
        ) from e
    if not number.is_finite():
        raise MalformedResponseError(f"Field '{field_name}' is not finite: {value!r}")
    return number


def _parse_rate(
    response: Any, from_currency: str, to_currency: str, now: datetime
) -> CurrencyRate:
    """Extract a CurrencyRate from ``{"rate": {...}}`` or ``{"rate": <number>, ...}``."""
    if not isinstance(response, dict) or response.get("rate") is None:
        raise MalformedResponseError(
            "Invalid response structure from exchange rate API: missing 'rate'"
        )

    body = response["rate"] if isinstance(response["rate"], dict) else response
    rate = _to_decimal(body.get("rate"), "rate")
    if rate <= 0:
        raise MalformedResponseError(f"Exchange rate must be positive, got {rate}")

    return CurrencyRate(
        from_currency=from_currency,
        to_currency=to_currency,
        rate=rate,
        timestamp=str(body.get("timestamp") or now.isoformat()),
        source=str(body.get("source") or "api"),
    )


def _parse_historical_record(record: dict[str, Any]) -> HistoricalRate:
    """Parse one bar; close-only records collapse OHLC to the close.

    Raises:
        MalformedResponseError: Missing/non-finite numbers, a bad date, a
            non-positive price, or a bar where low/high do not bracket
            open and close.
    """
    close = _to_decimal(record.get("close", record.get("rate")), "close")
    try:
        bar_date = date.fromisoformat(str(record["date"])[:10])
    except (KeyError, ValueError) as e:
        raise MalformedResponseError(f"Invalid historical date: {record.get('date')!r}") from e

    open_ = _to_decimal(record["open"], "open") if "open" in record else close
    high = _to_decimal(record["high"], "high") if "high" in record else max(open_, close)
    low = _to_decimal(record["low"], "low") if "low" in record else min(open_, close)
    volume = _to_decimal(record.get("volume", 0), "volume")

    if min(open_, high, low, close) <= 0:
        raise MalformedResponseError(f"Non-positive price in historical bar for {bar_date}")
    if not low <= min(open_, close) or not max(open_, close) <= high:
        raise MalformedResponseError(
            f"Historical bar for {bar_date} has low={low} high={high} "
            f"not bracketing open={open_} close={close}"
        )
    if volume < 0:
        raise MalformedResponseError(f"Negative volume in historical bar for {bar_date}")

    return HistoricalRate(
        date=bar_date, open=open_, high=high, low=low, close=close, volume=volume
    )


def _parse_historical_payload(response: Any) -> list[HistoricalRate]:
    """Turn a ``rates`` payload (or bare list) into a sorted, de-duplicated series.

    A payload without a ``rates`` list degrades to an empty series. Records
    that cannot be parsed are skipped; duplicate dates keep the last record.
    """
    if isinstance(response, list):
        raw_records = response
    elif isinstance(response, dict) and isinstance(response.get("rates"), list):
        raw_records = response["rates"]
    else:
        logger.warning("historical_rates_missing")
        raw_records = []

    by_date: dict[date, HistoricalRate] = {}
    for record in raw_records:
        try:
            bar = _parse_historical_record(record)
        except (MalformedResponseError, AttributeError, TypeError) as e:
            logger.warning("historical_record_skipped", error=str(e))
            continue
        by_date[bar.date] = bar
    return [by_date[d] for d in sorted(by_date)]


def _parse_currency(code: str, info: Any) -> CurrencyInfo:
    if not isinstance(info, dict):
        raise MalformedResponseError(f"Currency entry for {code} is not an object: {info!r}")
    decimals = _to_decimal(info.get("decimals", 2), "decimals")
    if decimals < 0 or decimals != decimals.to_integral_value():
        raise MalformedResponseError(
            f"Currency {code} has invalid decimals: {info.get('decimals')!r}"
        )
    return CurrencyInfo(
        code=code,
        name=str(info.get("name", code)),
        symbol=str(info.get("symbol", code)),
        decimals=int(decimals),
    )


class CurrencyService:
    """Cache-first facade over the FX gateway.

    Constructed once by ``fxrates.main.build_components``; tests build one
    per test with a mocked gateway and a cache on a fake clock.

    Args:
        gateway: External FX API boundary.
        cache: TTL cache shared by all endpoints of this service.
        retry: Executor wrapping every gateway call.
        market_stats: Synthetic 24h stats estimator for point rates.
        fee_calculator: Conversion fee model.
        cache_settings: Per-endpoint TTLs.
        analytics_settings: History window and RSI period for analytics.
        now: Clock returning an aware UTC datetime (for timestamps and
            analytics date windows).
    """

    def __init__(
        self,
        gateway: RateGateway,
        cache: TTLCache,
        retry: RetryExecutor,
        market_stats: SyntheticMarketStats,
        fee_calculator: ConversionFeeCalculator,
        cache_settings: CacheSettings | None = None,
        analytics_settings: AnalyticsSettings | None = None,
        now: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._gateway = gateway
        self._cache = cache
        self._retry = retry
        self._market_stats = market_stats
        self._fees = fee_calculator
        self._ttl = cache_settings or CacheSettings()
        self._analytics = analytics_settings or AnalyticsSettings()
        self._now = now

    # ──────────────────────────────────────────────
    # Point rates
    # ──────────────────────────────────────────────

    def _internal_rate(self, currency: str) -> CurrencyRate:
        return CurrencyRate(
            from_currency=currency,
            to_currency=currency,
            rate=Decimal("1"),
            timestamp=self._now().isoformat(),
            source=INTERNAL_SOURCE,
        )

    async def get_exchange_rate(
        self, from_currency: str, to_currency: str, date: str | None = None
    ) -> CurrencyRate:
        """Return the rate for a pair, enriched with synthetic 24h stats.

        Args:
            from_currency: Base currency code (e.g. "USD").
            to_currency: Quote currency code (e.g. "EUR").
            date: Optional ISO date for a historical point lookup.

        Raises:
            GatewayError: The API failed on every attempt.
            MalformedResponseError: The payload has no usable ``rate``.
        """
        if from_currency == to_currency:
            return self._internal_rate(from_currency)

        key = make_cache_key(
            "exchange-rate",
            {"fromCurrency": from_currency, "toCurrency": to_currency, "date": date},
        )
        cached = self._cache.get_valid(key)
        if cached is not None:
            return cached

        async def fetch() -> CurrencyRate:
            response = await self._gateway.fetch_rate(from_currency, to_currency, date)
            return _parse_rate(response, from_currency, to_currency, self._now())

        with pair_context(from_currency, to_currency):
            rate = await self._retry.run(fetch)
            enriched = self._market_stats.enrich(rate)
            self._cache.set(key, enriched, self._ttl.rate_ttl_ms)
            logger.debug("exchange_rate_fetched", rate=str(enriched.rate), date=date)
        return enriched

    async def force_refresh_rate(
        self, from_currency: str, to_currency: str
    ) -> CurrencyRate:
        """Bypass the cache, have the API re-source the rate, and cache the result."""
        if from_currency == to_currency:
            return self._internal_rate(from_currency)

        async def fetch() -> CurrencyRate:
            response = await self._gateway.force_refresh_rate(from_currency, to_currency)
            return _parse_rate(response, from_currency, to_currency, self._now())

        with pair_context(from_currency, to_currency):
            rate = await self._retry.run(fetch)
            enriched = self._market_stats.enrich(rate)
            key = make_cache_key(
                "exchange-rate",
                {"fromCurrency": from_currency, "toCurrency": to_currency},
            )
            self._cache.set(key, enriched, self._ttl.rate_ttl_ms)
            logger.info("exchange_rate_force_refreshed", rate=str(enriched.rate))
        return enriched

    async def get_popular_pairs(self) -> list[CurrencyPair]:
        """Fetch the popular pairs concurrently; failed pairs are dropped."""
        key = make_cache_key("popular-pairs")
        cached = self._cache.get_valid(key)
        if cached is not None:
            return list(cached)

        async def fetch_pair(from_currency: str, to_currency: str) -> CurrencyPair | None:
            try:
                rate = await self.get_exchange_rate(from_currency, to_currency)
            except Exception as e:
                logger.warning(
                    "popular_pair_fetch_failed",
                    pair=f"{from_currency}/{to_currency}",
                    error=str(e),
                )
                return None
            return CurrencyPair.from_rate(rate)

        results = await asyncio.gather(
            *(fetch_pair(f, t) for f, t in POPULAR_PAIRS)
        )
        pairs = [p for p in results if p is not None]

        self._cache.set(key, pairs, self._ttl.popular_pairs_ttl_ms)
        logger.debug(
            "popular_pairs_fetched",
            fetched=len(pairs),
            dropped=len(POPULAR_PAIRS) - len(pairs),
        )
        return list(pairs)

    # ──────────────────────────────────────────────
    # History and analytics
    # ──────────────────────────────────────────────

    @staticmethod
    def _historical_key(
        from_currency: str, to_currency: str, start_date: str, end_date: str
    ) -> str:
        return make_cache_key(
            "historical-rates",
            {
                "fromCurrency": from_currency,
                "toCurrency": to_currency,
                "startDate": start_date,
                "endDate": end_date,
            },
        )

    @staticmethod
    def _analytics_key(from_currency: str, to_currency: str) -> str:
        return make_cache_key(
            "currency-analytics",
            {"fromCurrency": from_currency, "toCurrency": to_currency},
        )

    def _analytics_window(self) -> tuple[str, str]:
        """``(start, end)`` ISO dates of the lookback window ending today (UTC)."""
        today = self._now().astimezone(timezone.utc).date()
        start = today - timedelta(days=self._analytics.lookback_days)
        return start.isoformat(), today.isoformat()

    async def get_historical_rates(
        self,
        from_currency: str,
        to_currency: str,
        start_date: str,
        end_date: str,
    ) -> list[HistoricalRate]:
        """Return daily bars between two ISO dates, oldest first.

        A payload without a ``rates`` list degrades to an empty series.
        Records that cannot be parsed (non-positive prices, a low/high that
        does not bracket open and close) are skipped; duplicate dates keep
        the last record seen.
        """
        key = self._historical_key(from_currency, to_currency, start_date, end_date)
        cached = self._cache.get_valid(key)
        if cached is not None:
            return list(cached)

        with pair_context(from_currency, to_currency):
            response = await self._retry.run(
                lambda: self._gateway.fetch_historical(
                    from_currency, to_currency, start_date, end_date
                )
            )
            rates = _parse_historical_payload(response)
            self._cache.set(key, rates, self._ttl.historical_ttl_ms)
            logger.debug(
                "historical_rates_fetched",
                start=start_date,
                end=end_date,
                count=len(rates),
            )
        return list(rates)

    async def force_refresh_historical(
        self,
        from_currency: str,
        to_currency: str,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> list[HistoricalRate]:
        """Have the API re-source history, then overwrite the cached series.

        Dates default to the analytics lookback window. The pair's cached
        analytics are dropped so the next ``get_currency_analytics`` call
        recomputes from the refreshed series.
        """
        default_start, default_end = self._analytics_window()
        start_date = start_date or default_start
        end_date = end_date or default_end

        with pair_context(from_currency, to_currency):
            response = await self._retry.run(
                lambda: self._gateway.force_refresh_historical(
                    from_currency, to_currency, start_date, end_date
                )
            )
            rates = _parse_historical_payload(response)
            self._cache.set(
                self._historical_key(from_currency, to_currency, start_date, end_date),
                rates,
                self._ttl.historical_ttl_ms,
            )
            self._cache.invalidate(self._analytics_key(from_currency, to_currency))
            logger.info(
                "historical_rates_force_refreshed",
                start=start_date,
                end=end_date,
                count=len(rates),
            )
        return list(rates)

    async def get_currency_analytics(
        self, from_currency: str, to_currency: str
    ) -> CurrencyAnalytics:
        """Compute indicators over the configured lookback window ending today (UTC)."""
        key = self._analytics_key(from_currency, to_currency)
        cached = self._cache.get_valid(key)
        if cached is not None:
            return cached

        start, end = self._analytics_window()
        history = await self.get_historical_rates(from_currency, to_currency, start, end)

        analytics = compute_analytics(history, rsi_period=self._analytics.rsi_period)
        self._cache.set(key, analytics, self._ttl.analytics_ttl_ms)
        logger.debug(
            "currency_analytics_computed",
            pair=f"{from_currency}/{to_currency}",
            points=len(history),
            trend=analytics.trend.value,
        )
        return analytics

    async def get_market_status(self) -> MarketStatus:
        """Return the simplified session state for the current instant."""
        return get_market_status(self._now())

    # ──────────────────────────────────────────────
    # Conversion and reference data
    # ──────────────────────────────────────────────

    async def convert_currency(
        self, amount: Decimal, from_currency: str, to_currency: str
    ) -> ConversionResult:
        """Convert ``amount`` and apply the flat conversion fee.

        Same-currency and zero-amount conversions resolve locally at rate 1.

        Raises:
            ValueError: ``amount`` is NaN or infinite.
            GatewayError: The API failed on every attempt.
            MalformedResponseError: The payload has no ``conversion`` object.
        """
        if not amount.is_finite():
            raise ValueError(f"Conversion amount must be finite, got {amount}")
        if from_currency == to_currency or amount == 0:
            converted = amount
            rate = Decimal("1")
            timestamp = self._now().isoformat()
        else:
            with pair_context(from_currency, to_currency):
                response = await self._retry.run(
                    lambda: self._gateway.fetch_conversion(
                        amount, from_currency, to_currency
                    )
                )
            conversion = response.get("conversion") if isinstance(response, dict) else None
            if not isinstance(conversion, dict):
                if not response:
                    raise MalformedResponseError(
                        "Empty response from currency conversion API"
                    )
                raise MalformedResponseError(
                    "Invalid response structure from currency conversion API"
                )
            converted = _to_decimal(conversion.get("convertedAmount"), "convertedAmount")
            rate = _to_decimal(conversion.get("rate"), "rate")
            timestamp = str(conversion.get("timestamp") or self._now().isoformat())

        fees, total_cost = self._fees.calculate_total_cost(converted)
        logger.info(
            "currency_converted",
            pair=f"{from_currency}/{to_currency}",
            amount=str(amount),
            converted_amount=str(converted),
            fees=str(fees),
        )
        return ConversionResult(
            amount=amount,
            from_currency=from_currency,
            to_currency=to_currency,
            converted_amount=converted,
            rate=rate,
            timestamp=timestamp,
            fees=fees,
            total_cost=total_cost,
        )

    async def get_currencies(self) -> dict[str, CurrencyInfo]:
        """Return supported currencies keyed by code."""
        key = make_cache_key("currencies")
        cached = self._cache.get_valid(key)
        if cached is not None:
            return dict(cached)

        response = await self._retry.run(self._gateway.fetch_currencies)
        raw = response.get("currencies") if isinstance(response, dict) else None
        if not isinstance(raw, dict):
            raise MalformedResponseError(
                "Invalid response structure from currencies API: missing 'currencies'"
            )

        currencies: dict[str, CurrencyInfo] = {}
        for code, info in raw.items():
            try:
                currencies[code] = _parse_currency(code, info)
            except MalformedResponseError as e:
                logger.warning("currency_entry_skipped", code=code, error=str(e))
        self._cache.set(key, currencies, self._ttl.currencies_ttl_ms)
        return dict(currencies)

    # ──────────────────────────────────────────────
    # Cache management
    # ──────────────────────────────────────────────

    def clear_cache(self) -> None:
        self._cache.clear()
        logger.info("currency_cache_cleared")

    def get_cache_stats(self) -> CacheStats:
        return self._cache.stats()
