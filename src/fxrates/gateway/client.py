"""Abstract FX rate gateway interface.

Defines the contract for the external banking/FX API. The service layer
depends only on this interface, keeping HTTP details isolated in the
concrete implementation. Methods return the unwrapped JSON payload; field
validation is the caller's job.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any


class RateGateway(ABC):
    """Abstract base class for FX API clients."""

    @abstractmethod
    async def close(self) -> None:
        """Release network resources."""
        ...

    @abstractmethod
    async def fetch_rate(
        self, from_currency: str, to_currency: str, date: str | None = None
    ) -> dict[str, Any]:
        """Fetch a point exchange rate.

        Expected payload: ``{"rate": {"rate": ..., "timestamp": ..., "source": ...}}``.
        """
        ...

    @abstractmethod
    async def fetch_historical(
        self,
        from_currency: str,
        to_currency: str,
        start_date: str,
        end_date: str,
    ) -> dict[str, Any] | list[Any]:
        """Fetch daily OHLCV bars between two ISO dates (inclusive).

        Expected payload: ``{"rates": [{"date", "open", "high", "low", "close", "volume"}, ...]}``.
        """
        ...

    @abstractmethod
    async def fetch_conversion(
        self, amount: Decimal, from_currency: str, to_currency: str
    ) -> dict[str, Any]:
        """Convert an amount server-side.

        Expected payload: ``{"conversion": {"convertedAmount", "rate", "timestamp"}}``.
        """
        ...

    @abstractmethod
    async def fetch_currencies(self) -> dict[str, Any]:
        """Fetch supported currencies.

        Expected payload: ``{"currencies": {"USD": {"name", "symbol", "decimals"}, ...}}``.
        """
        ...

    @abstractmethod
    async def force_refresh_rate(
        self, from_currency: str, to_currency: str
    ) -> dict[str, Any]:
        """Ask the API to re-source a rate from its market data provider.

        Same payload shape as ``fetch_rate``.
        """
        ...

    @abstractmethod
    async def force_refresh_historical(
        self,
        from_currency: str,
        to_currency: str,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> dict[str, Any] | list[Any]:
        """Ask the API to re-source daily bars, bypassing its own history cache.

        Same payload shape as ``fetch_historical``.
        """
        ...

    async def __aenter__(self) -> "RateGateway":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
