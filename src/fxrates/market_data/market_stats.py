"""Synthetic 24h market statistics for point rates.

The point-lookup endpoint returns a single rate with no tick history, so the
24h change, high, low and volume shown next to a rate are fabricated here
from bounded pseudo-random draws. They are presentational only and must not
be treated as market data.

Bounds (for rate r):
  - change_24h in [-1%, +1%] of r
  - high_24h in [r, 1.01 r], low_24h in [0.99 r, r]
  - volume_24h = 1.5M for major pairs, 800k otherwise
"""

import math
import random
from dataclasses import replace
from decimal import ROUND_HALF_UP, Decimal

from fxrates.models import CurrencyRate

#: Pairs that get the major-pair volume multiplier. Direction matters:
#: "EUR/USD" is not in this set.
MAJOR_PAIRS = frozenset({"USD/EUR", "USD/GBP", "USD/JPY", "EUR/GBP"})

_BASE_VOLUME = 1_000_000
_MAJOR_MULTIPLIER = Decimal("1.5")
_MINOR_MULTIPLIER = Decimal("0.8")

_RATE_PLACES = Decimal("0.000001")
_PERCENT_PLACES = Decimal("0.0001")


def _draw(rng: random.Random) -> Decimal:
    """Uniform draw in [0, 1) as Decimal."""
    return Decimal(str(rng.random()))


def volume_multiplier(from_currency: str, to_currency: str) -> Decimal:
    """Return 1.5 for a major pair (literal direction only), else 0.8."""
    if f"{from_currency}/{to_currency}" in MAJOR_PAIRS:
        return _MAJOR_MULTIPLIER
    return _MINOR_MULTIPLIER


class SyntheticMarketStats:
    """Fabricates 24h statistics around a point rate.

    Args:
        rng: Source of randomness. Tests pass a seeded ``random.Random``.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def change_24h(self, rate: Decimal) -> Decimal:
        """(U - 0.5) * rate * 0.02, rounded to 6 dp."""
        change = (_draw(self._rng) - Decimal("0.5")) * rate * Decimal("0.02")
        return change.quantize(_RATE_PLACES, rounding=ROUND_HALF_UP)

    @staticmethod
    def change_percent_24h(change: Decimal, rate: Decimal) -> Decimal:
        """change / rate * 100, rounded to 4 dp."""
        return (change / rate * Decimal("100")).quantize(
            _PERCENT_PLACES, rounding=ROUND_HALF_UP
        )

    def high_24h(self, rate: Decimal) -> Decimal:
        """rate * (1 + U * 0.01), never below rate."""
        high = (rate * (Decimal("1") + _draw(self._rng) * Decimal("0.01"))).quantize(
            _RATE_PLACES, rounding=ROUND_HALF_UP
        )
        return max(high, rate)

    def low_24h(self, rate: Decimal) -> Decimal:
        """rate * (1 - U * 0.01), never above rate."""
        low = (rate * (Decimal("1") - _draw(self._rng) * Decimal("0.01"))).quantize(
            _RATE_PLACES, rounding=ROUND_HALF_UP
        )
        return min(low, rate)

    @staticmethod
    def volume_24h(from_currency: str, to_currency: str) -> int:
        """floor(1,000,000 * multiplier)."""
        return math.floor(_BASE_VOLUME * volume_multiplier(from_currency, to_currency))

    def enrich(self, rate: CurrencyRate) -> CurrencyRate:
        """Return a copy of ``rate`` with all 24h fields filled in."""
        change = self.change_24h(rate.rate)
        return replace(
            rate,
            change_24h=change,
            change_percent_24h=self.change_percent_24h(change, rate.rate),
            high_24h=self.high_24h(rate.rate),
            low_24h=self.low_24h(rate.rate),
            volume_24h=self.volume_24h(rate.from_currency, rate.to_currency),
        )
