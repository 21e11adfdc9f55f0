"""
Exception Classes

All errors raised by the library derive from CoinRestError so callers can
catch library failures in one place while still distinguishing the cases:

    - SigningError: an authenticated request could not be signed. The request
      must not be sent.
    - ExchangeAPIError: the exchange answered with a non-2xx status or an
      error payload.
    - AuthenticationRequiredError: an authenticated endpoint was called on a
      handler that has no credentials (or has authenticated support disabled).

Unknown fee categories and currencies are NOT errors; the fee engine returns
a zero fee for them.
"""

from typing import Any, Dict, Optional


class CoinRestError(Exception):
    """
    Base exception for all library errors.

    Args:
        message: Human-readable error message
        error_code: Machine-readable error code (optional)
        details: Additional context (optional)
    """

    def __init__(self, message: str, error_code: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def __str__(self) -> str:
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a JSON-friendly dictionary."""
        return {
            "exception_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }


class SigningError(CoinRestError):
    """Raised when a request cannot be signed (missing secret, unserializable body)."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="SIGNING_ERROR", details=details)


class ExchangeAPIError(CoinRestError):
    """
    Raised when an exchange rejects a request.

    Attributes:
        exchange: Exchange name (e.g., "liqui")
        status: HTTP status code, if the failure came from the transport
    """

    def __init__(self, exchange: str, message: str, status: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(f"{exchange}: {message}", error_code="EXCHANGE_API_ERROR", details=details)
        self.exchange = exchange
        self.status = status


class AuthenticationRequiredError(ExchangeAPIError):
    """Raised when an authenticated endpoint is used without usable credentials."""

    def __init__(self, exchange: str):
        super().__init__(exchange, "authenticated API support is disabled or credentials are not set")
        self.error_code = "AUTHENTICATION_REQUIRED"
