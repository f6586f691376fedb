"""FX gateway layer -- banking API integration via httpx."""

from fxrates.gateway.client import RateGateway
from fxrates.gateway.http_gateway import HttpRateGateway

__all__ = ["HttpRateGateway", "RateGateway"]
