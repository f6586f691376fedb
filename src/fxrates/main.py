"""Dependency wiring for the fxrates engine.

Builds every component exactly once from AppSettings so that the cache is
an explicit object owned by the application rather than module state.

Component wiring order (in build_components):
1. Logging setup
2. HttpRateGateway (FX API client)
3. TTLCache (shared response cache)
4. RetryExecutor (fixed-delay retry)
5. SyntheticMarketStats (24h stats estimator)
6. ConversionFeeCalculator (flat fee model)
7. CurrencyService (cache-first facade)
8. LiveRateMonitor (live mode poller, not started)
"""

import asyncio
import signal
from typing import Any

from fxrates.cache import TTLCache
from fxrates.config import AppSettings
from fxrates.conversion.fee_calculator import ConversionFeeCalculator
from fxrates.formatting import format_exchange_rate
from fxrates.gateway.client import RateGateway
from fxrates.gateway.http_gateway import HttpRateGateway
from fxrates.logging import get_logger, setup_logging
from fxrates.market_data.live_rates import LiveRateMonitor
from fxrates.market_data.market_stats import SyntheticMarketStats
from fxrates.models import CurrencyRate
from fxrates.retry import RetryExecutor
from fxrates.service import CurrencyService


def build_components(
    settings: AppSettings | None = None,
    gateway: RateGateway | None = None,
    configure_logging: bool = True,
) -> dict[str, Any]:
    """Build the full component graph.

    Args:
        settings: Application settings; loaded from env/.env when omitted.
        gateway: Optional gateway override (e.g. a stub for demos and tests).
        configure_logging: Set False when the host application owns logging.

    Returns:
        Dict mapping component names to instances.
    """
    settings = settings or AppSettings()
    if configure_logging:
        setup_logging(settings.log_level)
    logger = get_logger("fxrates.main")

    gateway = gateway or HttpRateGateway(settings.gateway)

    if not settings.gateway.api_token.get_secret_value():
        logger.warning(
            "no_api_token_configured",
            base_url=settings.gateway.base_url,
            note="Requests are sent without an Authorization header.",
        )

    cache = TTLCache(
        default_ttl_ms=settings.cache.rate_ttl_ms,
        max_entries=settings.cache.max_entries,
    )
    retry = RetryExecutor(
        attempts=settings.retry.attempts,
        delay_seconds=settings.retry.delay_seconds,
    )
    market_stats = SyntheticMarketStats()
    fee_calculator = ConversionFeeCalculator(settings.fees)

    service = CurrencyService(
        gateway=gateway,
        cache=cache,
        retry=retry,
        market_stats=market_stats,
        fee_calculator=fee_calculator,
        cache_settings=settings.cache,
        analytics_settings=settings.analytics,
    )

    live_monitor = LiveRateMonitor(
        service,
        pairs=settings.live.pairs,
        poll_interval=settings.live.poll_interval,
    )

    logger.info(
        "fxrates_components_built",
        base_url=settings.gateway.base_url,
        retry_attempts=settings.retry.attempts,
        live_pairs=len(settings.live.pairs),
    )

    return {
        "gateway": gateway,
        "cache": cache,
        "retry": retry,
        "market_stats": market_stats,
        "fee_calculator": fee_calculator,
        "service": service,
        "live_monitor": live_monitor,
    }


async def shutdown(components: dict[str, Any]) -> None:
    """Stop live mode and release the gateway's network resources."""
    await components["live_monitor"].stop()
    await components["gateway"].close()
    get_logger("fxrates.main").info("fxrates_shutdown_complete")


async def _log_rates(rates: dict[str, CurrencyRate]) -> None:
    logger = get_logger("fxrates.live")
    for pair, rate in rates.items():
        logger.info(
            "live_rate",
            pair=pair,
            rate=format_exchange_rate(rate.rate),
            change_percent_24h=str(rate.change_percent_24h),
            source=rate.source,
        )


def _setup_signal_handlers(stop_event: asyncio.Event) -> None:
    """Set ``stop_event`` on SIGINT/SIGTERM. Must run inside the event loop."""
    logger = get_logger("fxrates.main")
    loop = asyncio.get_running_loop()

    def _graceful_handler() -> None:
        logger.info("graceful_shutdown_signal")
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _graceful_handler)


async def run() -> None:
    """Run live mode: poll the configured pairs and log each refresh until signalled."""
    settings = AppSettings()
    components = build_components(settings)
    logger = get_logger("fxrates.main")

    monitor: LiveRateMonitor = components["live_monitor"]
    monitor.set_on_update(_log_rates)

    stop_event = asyncio.Event()
    _setup_signal_handlers(stop_event)

    try:
        await monitor.refresh()
        await monitor.start()
        await stop_event.wait()
    finally:
        await shutdown(components)
        logger.info("fxrates_stopped")


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
