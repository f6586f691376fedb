"""Test data builders shared across test packages."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from fxrates.models import HistoricalRate

FIXED_NOW = datetime(2024, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock returning epoch seconds."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_bars(closes: list[str], start: date = date(2024, 1, 1)) -> list[HistoricalRate]:
    """Build a daily series from close prices; high/low bracket open and close by 0.5%."""
    bars = []
    prev = Decimal(closes[0])
    for i, c in enumerate(closes):
        close = Decimal(c)
        bars.append(
            HistoricalRate(
                date=start + timedelta(days=i),
                open=prev,
                high=max(prev, close) * Decimal("1.005"),
                low=min(prev, close) * Decimal("0.995"),
                close=close,
                volume=Decimal("1000"),
            )
        )
        prev = close
    return bars


def rate_payload(rate: str = "0.92", source: str = "ecb") -> dict:
    """Mimics the API's ``{success, rate: {...}}`` exchange-rate response."""
    return {
        "success": True,
        "rate": {
            "fromCurrency": "USD",
            "toCurrency": "EUR",
            "rate": Decimal(rate),
            "timestamp": "2024-03-15T12:00:00Z",
            "source": source,
        },
    }
