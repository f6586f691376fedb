"""Technical analytics over historical FX series."""

from fxrates.analytics.indicators import (
    calculate_moving_average,
    calculate_resistance,
    calculate_rsi,
    calculate_support,
    calculate_trend,
    calculate_volatility,
    compute_analytics,
)

__all__ = [
    "calculate_moving_average",
    "calculate_resistance",
    "calculate_rsi",
    "calculate_support",
    "calculate_trend",
    "calculate_volatility",
    "compute_analytics",
]
