"""HTTP implementation of the FX rate gateway via httpx.

Talks to the banking API's currency endpoints:

- ``GET  /api/exchange-rates/{from}/{to}?date=``
- ``GET  /api/historical-rates/{from}/{to}?startDate=&endDate=``
- ``POST /api/convert-currency``
- ``GET  /api/currencies``
- ``POST /api/force-refresh-rate/{from}/{to}``
- ``POST /api/force-refresh-historical/{from}/{to}``

Responses may arrive wrapped as ``{"data": ...}``; the wrapper is removed.
JSON floats are decoded straight to Decimal so rates never pass through
binary floating point.
"""

import json
from decimal import Decimal
from typing import Any

import httpx

from fxrates.config import GatewaySettings
from fxrates.exceptions import GatewayError, MalformedResponseError
from fxrates.gateway.client import RateGateway
from fxrates.logging import get_logger

logger = get_logger(__name__)


class HttpRateGateway(RateGateway):
    """Concrete FX gateway over a shared ``httpx.AsyncClient``.

    Args:
        settings: Base URL, credentials, tenant and timeout.
        client: Optional pre-built client (tests pass one backed by
            ``httpx.MockTransport``). When omitted the gateway owns its client.
    """

    def __init__(
        self,
        settings: GatewaySettings,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=settings.base_url,
            timeout=settings.timeout_seconds,
        )

    def _headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "x-tenant-id": self._settings.tenant_id,
        }
        token = self._settings.api_token.get_secret_value()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if self._settings.company_id:
            headers["x-company-id"] = self._settings.company_id
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, str] | None = None,
        body: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request and return the decoded, unwrapped payload."""
        try:
            response = await self._client.request(
                method,
                path,
                params={k: v for k, v in (params or {}).items() if v is not None},
                content=json.dumps(body) if body is not None else None,
                headers=self._headers(),
            )
        except httpx.TimeoutException as e:
            raise GatewayError(f"Timeout calling {method} {path}: {e}") from e
        except httpx.HTTPError as e:
            raise GatewayError(f"Network error calling {method} {path}: {e}") from e

        if response.is_error:
            logger.warning(
                "fx_api_error_status",
                method=method,
                path=path,
                status=response.status_code,
            )
            raise GatewayError(
                f"{method} {path} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        if not response.content:
            return {}

        try:
            payload = json.loads(response.content, parse_float=Decimal)
        except ValueError as e:
            raise MalformedResponseError(
                f"{method} {path} returned a non-JSON body",
                status_code=response.status_code,
            ) from e

        if isinstance(payload, dict) and payload.get("data") is not None:
            return payload["data"]
        return payload

    async def close(self) -> None:
        """Close the underlying httpx client if this gateway created it."""
        if self._owns_client:
            await self._client.aclose()
            logger.debug("fx_gateway_closed")

    async def fetch_rate(
        self, from_currency: str, to_currency: str, date: str | None = None
    ) -> dict[str, Any]:
        return await self._request(
            "GET",
            f"/api/exchange-rates/{from_currency}/{to_currency}",
            params={"date": date},
        )

    async def fetch_historical(
        self,
        from_currency: str,
        to_currency: str,
        start_date: str,
        end_date: str,
    ) -> dict[str, Any] | list[Any]:
        return await self._request(
            "GET",
            f"/api/historical-rates/{from_currency}/{to_currency}",
            params={"startDate": start_date, "endDate": end_date},
        )

    async def fetch_conversion(
        self, amount: Decimal, from_currency: str, to_currency: str
    ) -> dict[str, Any]:
        # The API expects a JSON number for the amount.
        return await self._request(
            "POST",
            "/api/convert-currency",
            body={
                "amount": float(amount),
                "fromCurrency": from_currency,
                "toCurrency": to_currency,
            },
        )

    async def fetch_currencies(self) -> dict[str, Any]:
        return await self._request("GET", "/api/currencies")

    async def force_refresh_rate(
        self, from_currency: str, to_currency: str
    ) -> dict[str, Any]:
        logger.info("forcing_rate_refresh", pair=f"{from_currency}/{to_currency}")
        return await self._request(
            "POST", f"/api/force-refresh-rate/{from_currency}/{to_currency}"
        )

    async def force_refresh_historical(
        self,
        from_currency: str,
        to_currency: str,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> dict[str, Any] | list[Any]:
        logger.info(
            "forcing_historical_refresh",
            pair=f"{from_currency}/{to_currency}",
            start=start_date,
            end=end_date,
        )
        body = {"startDate": start_date, "endDate": end_date}
        return await self._request(
            "POST",
            f"/api/force-refresh-historical/{from_currency}/{to_currency}",
            body={k: v for k, v in body.items() if v is not None},
        )
