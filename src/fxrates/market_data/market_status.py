"""Simplified FX market session clock.

The market is modelled as open from 00:00 to 22:00 UTC every day. Weekends
and holidays are not modelled, so Saturday looks like any other day.
Pure function of the instant passed in; no I/O.
"""

from datetime import datetime, timedelta, timezone

from fxrates.models import MarketStatus

MARKET_OPEN_HOUR = 0
MARKET_CLOSE_HOUR = 22


def _as_utc(now: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones."""
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


def next_market_open(now: datetime) -> datetime:
    """Midnight UTC of the day after ``now``."""
    start_of_day = _as_utc(now).replace(hour=0, minute=0, second=0, microsecond=0)
    return start_of_day + timedelta(days=1)


def next_market_close(now: datetime) -> datetime:
    """22:00 UTC on the same day as ``now``."""
    return _as_utc(now).replace(
        hour=MARKET_CLOSE_HOUR, minute=0, second=0, microsecond=0
    )


def get_market_status(now: datetime | None = None) -> MarketStatus:
    """Return open/closed state and the next transition for ``now`` (default: current time).

    While open only ``next_close`` is set; while closed only ``next_open``.
    """
    current = _as_utc(now) if now is not None else datetime.now(timezone.utc)
    is_open = MARKET_OPEN_HOUR <= current.hour < MARKET_CLOSE_HOUR
    return MarketStatus(
        is_open=is_open,
        next_open=None if is_open else next_market_open(current),
        next_close=next_market_close(current) if is_open else None,
        timezone="UTC",
    )
