"""Market data layer -- synthetic 24h stats, market session clock, and live polling."""

from fxrates.market_data.live_rates import LiveRateMonitor
from fxrates.market_data.market_stats import SyntheticMarketStats
from fxrates.market_data.market_status import get_market_status

__all__ = ["LiveRateMonitor", "SyntheticMarketStats", "get_market_status"]
