"""Live rate monitor -- re-fetches watched pairs on a fixed interval.

Uses REST polling through CurrencyService.get_exchange_rate, so each refresh
goes through the same cache/retry/enrich path as an ad-hoc request. The
default 30-second interval matches the point-rate TTL, so a refresh normally
finds the previous entry expired and hits the gateway.

Like a browser interval timer, the first refresh happens one interval after
``start()``; call ``refresh()`` directly for an immediate poll.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from fxrates.logging import get_logger
from fxrates.models import CurrencyRate

if TYPE_CHECKING:
    from fxrates.service import CurrencyService

logger = get_logger(__name__)

RatesCallback = Callable[[dict[str, CurrencyRate]], Awaitable[None]]


def parse_pair(pair: str) -> tuple[str, str]:
    """Split ``"USD/EUR"`` into ``("USD", "EUR")``."""
    from_currency, sep, to_currency = pair.partition("/")
    if not sep or not from_currency or not to_currency:
        raise ValueError(f"Invalid currency pair {pair!r}, expected 'FROM/TO'")
    return from_currency.strip().upper(), to_currency.strip().upper()


class LiveRateMonitor:
    """Background poller keeping the latest rate for each watched pair.

    Args:
        service: Currency service used for every fetch.
        pairs: Pairs to watch, as ``"FROM/TO"`` strings.
        poll_interval: Seconds between refreshes.
        on_update: Optional coroutine called with the rates fetched by each
            refresh (only pairs that succeeded).
    """

    def __init__(
        self,
        service: CurrencyService,
        pairs: list[str],
        poll_interval: float = 30.0,
        on_update: RatesCallback | None = None,
    ) -> None:
        self._service = service
        self._pairs = [parse_pair(p) for p in pairs]
        self._poll_interval = poll_interval
        self._on_update = on_update
        self._latest: dict[str, CurrencyRate] = {}
        self._running = False
        self._task: asyncio.Task | None = None  # type: ignore[type-arg]

    @property
    def is_running(self) -> bool:
        return self._running

    def set_on_update(self, callback: RatesCallback | None) -> None:
        """Replace the subscriber called after each refresh."""
        self._on_update = callback

    async def start(self) -> None:
        """Begin polling in the background. No-op if already running."""
        if self._running:
            logger.warning("live_rates_already_running")
            return
        self._running = True
        self._task = asyncio.create_task(self._poll_loop())
        logger.info(
            "live_rates_started",
            poll_interval=self._poll_interval,
            pairs=len(self._pairs),
        )

    async def stop(self) -> None:
        """Stop polling and clear the timer handle."""
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("live_rates_stopped")

    async def _poll_loop(self) -> None:
        while self._running:
            await asyncio.sleep(self._poll_interval)
            if not self._running:
                break
            try:
                await self.refresh()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.warning("live_rates_poll_error", exc_info=True)

    async def refresh(self) -> dict[str, CurrencyRate]:
        """Fetch every watched pair once and update the latest-rate snapshot.

        A pair that fails is logged and keeps its previous value.

        Returns:
            The rates fetched by this refresh, keyed by ``"FROM/TO"``.
        """
        results = await asyncio.gather(
            *(self._service.get_exchange_rate(f, t) for f, t in self._pairs),
            return_exceptions=True,
        )

        fetched: dict[str, CurrencyRate] = {}
        for (from_currency, to_currency), result in zip(self._pairs, results):
            pair = f"{from_currency}/{to_currency}"
            if isinstance(result, BaseException):
                logger.warning("live_rate_fetch_failed", pair=pair, error=str(result))
                continue
            fetched[pair] = result

        self._latest.update(fetched)
        logger.debug("live_rates_refreshed", updated=len(fetched))

        if self._on_update is not None and fetched:
            await self._on_update(fetched)
        return fetched

    def get_latest(self, pair: str) -> CurrencyRate | None:
        """Return the most recent rate for ``"FROM/TO"``, or None if never fetched."""
        from_currency, to_currency = parse_pair(pair)
        return self._latest.get(f"{from_currency}/{to_currency}")

    def get_all_latest(self) -> dict[str, CurrencyRate]:
        """Return a copy of the latest-rate snapshot."""
        return dict(self._latest)
