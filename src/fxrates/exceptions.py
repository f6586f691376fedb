"""Custom exceptions for the fxrates engine.

Gateway and response-validation errors live here to avoid circular
imports between the gateway adapter and the service layer.
"""


class FxRatesError(Exception):
    """Base exception for all fxrates errors."""


class GatewayError(FxRatesError):
    """Raised when the FX API cannot be reached or returns an error status.

    Args:
        message: Human-readable description.
        status_code: HTTP status when the API answered, None for transport
            failures (connection refused, timeout).
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        """True for network failures and 5xx responses, False for 4xx."""
        return self.status_code is None or self.status_code >= 500


class MalformedResponseError(GatewayError):
    """Raised when an FX API payload is missing an expected field or is not JSON."""

    @property
    def retryable(self) -> bool:
        return False
