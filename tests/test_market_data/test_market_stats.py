"""Tests for SyntheticMarketStats.

Uses seeded and stubbed random sources so bounds can be checked at the
extremes of the uniform draw.
"""

import random
from decimal import ROUND_HALF_UP, Decimal

import pytest

from fxrates.market_data.market_stats import (
    MAJOR_PAIRS,
    SyntheticMarketStats,
    volume_multiplier,
)
from fxrates.models import CurrencyRate


class _FixedRandom(random.Random):
    """random.Random whose ``random()`` always returns the same value."""

    def __init__(self, value: float) -> None:
        super().__init__()
        self._value = value

    def random(self) -> float:
        return self._value


def _rate(value: str = "0.92", from_currency: str = "USD", to_currency: str = "EUR") -> CurrencyRate:
    return CurrencyRate(
        from_currency=from_currency,
        to_currency=to_currency,
        rate=Decimal(value),
        timestamp="2024-03-15T12:00:00Z",
        source="ecb",
    )


class TestChange24h:
    """(U - 0.5) * rate * 0.02."""

    def test_zero_at_midpoint(self) -> None:
        stats = SyntheticMarketStats(_FixedRandom(0.5))
        assert stats.change_24h(Decimal("1.25")) == Decimal("0")

    def test_extremes_bounded_by_one_percent(self) -> None:
        rate = Decimal("150.00")
        low = SyntheticMarketStats(_FixedRandom(0.0)).change_24h(rate)
        high = SyntheticMarketStats(_FixedRandom(0.999999)).change_24h(rate)
        assert low == Decimal("-1.500000")
        assert abs(high) <= rate * Decimal("0.01")

    def test_change_percent_uses_given_change(self) -> None:
        pct = SyntheticMarketStats.change_percent_24h(Decimal("0.0092"), Decimal("0.92"))
        assert pct == Decimal("1.0000")

    def test_seeded_draws_stay_in_bounds(self) -> None:
        stats = SyntheticMarketStats(random.Random(7))
        rate = Decimal("0.92")
        for _ in range(200):
            change = stats.change_24h(rate)
            assert abs(change) <= rate * Decimal("0.01")


class TestHighLow:
    """High/low bracket the rate."""

    def test_high_at_max_draw(self) -> None:
        stats = SyntheticMarketStats(_FixedRandom(1.0))
        assert stats.high_24h(Decimal("1.000000")) == Decimal("1.010000")

    def test_low_at_max_draw(self) -> None:
        stats = SyntheticMarketStats(_FixedRandom(1.0))
        assert stats.low_24h(Decimal("1.000000")) == Decimal("0.990000")

    def test_zero_draw_collapses_to_rate(self) -> None:
        stats = SyntheticMarketStats(_FixedRandom(0.0))
        assert stats.high_24h(Decimal("0.92")) == Decimal("0.92")
        assert stats.low_24h(Decimal("0.92")) == Decimal("0.92")

    def test_rounding_never_crosses_rate(self) -> None:
        """A rate with more than 6 dp must still satisfy low <= rate <= high."""
        stats = SyntheticMarketStats(_FixedRandom(0.00000001))
        rate = Decimal("1.23456789")
        assert stats.low_24h(rate) <= rate <= stats.high_24h(rate)

    def test_seeded_invariant(self) -> None:
        stats = SyntheticMarketStats(random.Random(123))
        for value in ["0.92", "149.8731", "1.0000001", "0.0064"]:
            rate = Decimal(value)
            assert stats.low_24h(rate) <= rate <= stats.high_24h(rate)


class TestVolume:
    """Major pairs get 1.5x, everything else 0.8x."""

    @pytest.mark.parametrize("pair", sorted(MAJOR_PAIRS))
    def test_major_pairs(self, pair: str) -> None:
        from_currency, to_currency = pair.split("/")
        assert SyntheticMarketStats.volume_24h(from_currency, to_currency) == 1_500_000

    def test_minor_pair(self) -> None:
        assert SyntheticMarketStats.volume_24h("USD", "CAD") == 800_000

    def test_direction_matters(self) -> None:
        assert volume_multiplier("USD", "EUR") == Decimal("1.5")
        assert volume_multiplier("EUR", "USD") == Decimal("0.8")
        assert SyntheticMarketStats.volume_24h("EUR", "USD") == 800_000


class TestEnrich:
    """enrich() fills every 24h field on a copy."""

    def test_fills_all_fields(self) -> None:
        stats = SyntheticMarketStats(random.Random(42))
        original = _rate()
        enriched = stats.enrich(original)

        assert enriched is not original
        assert original.change_24h is None
        assert enriched.rate == original.rate
        assert enriched.change_24h is not None
        assert enriched.change_percent_24h is not None
        assert enriched.low_24h <= enriched.rate <= enriched.high_24h
        assert enriched.volume_24h == 1_500_000

    def test_percent_consistent_with_change(self) -> None:
        stats = SyntheticMarketStats(random.Random(1))
        enriched = stats.enrich(_rate("1.25", "GBP", "USD"))
        expected = (enriched.change_24h / enriched.rate * 100).quantize(
            Decimal("0.0001"), rounding=ROUND_HALF_UP
        )
        assert enriched.change_percent_24h == expected
