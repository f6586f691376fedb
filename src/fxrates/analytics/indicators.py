"""Technical indicators over a historical rate series.

Pure functions over ``list[HistoricalRate]`` ordered oldest-first. All
arithmetic is Decimal; results are quantized so that displayed values and
equality checks are stable:

  - volatility: 4 dp
  - RSI: 2 dp
  - moving averages: 6 dp

Short series degrade to neutral defaults instead of raising: volatility 0,
trend SIDEWAYS, support/resistance 0, RSI 50, moving average 0.
"""

from decimal import ROUND_HALF_UP, Decimal

from fxrates.models import CurrencyAnalytics, HistoricalRate, Trend

_VOLATILITY_PLACES = Decimal("0.0001")
_RSI_PLACES = Decimal("0.01")
_RATE_PLACES = Decimal("0.000001")

#: Relative first-to-last change beyond which a series counts as trending.
TREND_THRESHOLD = Decimal("0.02")

#: RSI returned when the series is too short to compute one.
NEUTRAL_RSI = Decimal("50")


def _closes(rates: list[HistoricalRate]) -> list[Decimal]:
    return [r.close for r in rates]


def calculate_volatility(rates: list[HistoricalRate]) -> Decimal:
    """Population standard deviation of log returns, as a percentage.

    r_i = ln(close_i / close_{i-1}); volatility = std(r) * 100.

    Returns:
        Volatility rounded to 4 dp, or 0 with fewer than 2 points.
    """
    if len(rates) < 2:
        return Decimal("0")

    closes = _closes(rates)
    returns = [(curr / prev).ln() for prev, curr in zip(closes, closes[1:])]
    n = Decimal(len(returns))
    mean = sum(returns, Decimal("0")) / n
    variance = sum(((r - mean) ** 2 for r in returns), Decimal("0")) / n

    return (variance.sqrt() * Decimal("100")).quantize(
        _VOLATILITY_PLACES, rounding=ROUND_HALF_UP
    )


def calculate_trend(
    rates: list[HistoricalRate],
    threshold: Decimal = TREND_THRESHOLD,
) -> Trend:
    """Classify direction from the first and last close.

    change = (last - first) / first; above ``threshold`` is BULLISH, below
    ``-threshold`` is BEARISH, otherwise SIDEWAYS (also for < 2 points).
    """
    if len(rates) < 2:
        return Trend.SIDEWAYS

    first = rates[0].close
    last = rates[-1].close
    change = (last - first) / first

    if change > threshold:
        return Trend.BULLISH
    if change < -threshold:
        return Trend.BEARISH
    return Trend.SIDEWAYS


def calculate_support(rates: list[HistoricalRate]) -> Decimal:
    """Lowest low in the series, 0 if empty."""
    if not rates:
        return Decimal("0")
    return min(r.low for r in rates)


def calculate_resistance(rates: list[HistoricalRate]) -> Decimal:
    """Highest high in the series, 0 if empty."""
    if not rates:
        return Decimal("0")
    return max(r.high for r in rates)


def calculate_rsi(rates: list[HistoricalRate], period: int = 14) -> Decimal:
    """Relative Strength Index with simple averaging.

    Gains and losses are computed for every consecutive pair of closes, then
    the last ``period`` of each are summed and divided by ``period``:

        rsi = 100 - 100 / (1 + avg_gain / avg_loss)

    Returns:
        RSI in [0, 100] rounded to 2 dp; 100 when there are no losses in the
        window; 50 when the series has fewer than ``period`` points.
    """
    if len(rates) < period:
        return NEUTRAL_RSI

    closes = _closes(rates)
    gains: list[Decimal] = []
    losses: list[Decimal] = []
    for prev, curr in zip(closes, closes[1:]):
        change = curr - prev
        if change > 0:
            gains.append(change)
            losses.append(Decimal("0"))
        else:
            gains.append(Decimal("0"))
            losses.append(abs(change))

    divisor = Decimal(period)
    avg_gain = sum(gains[-period:], Decimal("0")) / divisor
    avg_loss = sum(losses[-period:], Decimal("0")) / divisor

    if avg_loss == 0:
        return Decimal("100")

    rs = avg_gain / avg_loss
    rsi = Decimal("100") - Decimal("100") / (Decimal("1") + rs)
    return rsi.quantize(_RSI_PLACES, rounding=ROUND_HALF_UP)


def calculate_moving_average(rates: list[HistoricalRate], period: int) -> Decimal:
    """Simple mean of the last ``period`` closes (6 dp), 0 if the series is shorter."""
    if period < 1 or len(rates) < period:
        return Decimal("0")

    window = _closes(rates)[-period:]
    mean = sum(window, Decimal("0")) / Decimal(period)
    return mean.quantize(_RATE_PLACES, rounding=ROUND_HALF_UP)


def compute_analytics(
    rates: list[HistoricalRate],
    rsi_period: int = 14,
) -> CurrencyAnalytics:
    """Run every indicator over ``rates`` and bundle the results."""
    return CurrencyAnalytics(
        volatility=calculate_volatility(rates),
        trend=calculate_trend(rates),
        support=calculate_support(rates),
        resistance=calculate_resistance(rates),
        rsi=calculate_rsi(rates, rsi_period),
        moving_average_7=calculate_moving_average(rates, 7),
        moving_average_30=calculate_moving_average(rates, 30),
    )
