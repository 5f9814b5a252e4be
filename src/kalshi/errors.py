"""Exception classes for Kalshi SDK."""

from __future__ import annotations

from typing import Any
from typing import Dict
from typing import Optional


class KalshiError(Exception):
    """Base exception for all Kalshi SDK errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize Kalshi error.

        Args:
            message: Error message
            error_code: Optional error code
            details: Optional error details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def __str__(self) -> str:
        """String representation of the error."""
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message

    def __repr__(self) -> str:
        """Detailed representation of the error."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class KalshiConfigurationError(KalshiError):
    """Configuration error. Never retried."""

    def __init__(
        self,
        message: str,
        error_code: str = "CONFIGURATION_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, error_code, details)


class KalshiInvalidParamsError(KalshiConfigurationError):
    """Invalid request or subscription parameters."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(f"invalid parameters: {message}", "INVALID_PARAMS", details)


class KalshiAuthRequiredError(KalshiConfigurationError):
    """A private channel or endpoint was used without credentials."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(f"authentication required: {message}", "AUTH_REQUIRED", details)


class KalshiCryptoError(KalshiConfigurationError):
    """Key material could not be loaded or used."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, "CRYPTO_ERROR", details)


class KalshiHTTPError(KalshiError):
    """HTTP-related error from the Kalshi API."""

    def __init__(
        self,
        message: str,
        status_code: int,
        raw_body: Optional[str] = None,
        api_error: Optional[Dict[str, Any]] = None,
        request_id: Optional[str] = None,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize HTTP error.

        Args:
            message: Error message
            status_code: HTTP status code
            raw_body: Raw response body
            api_error: Parsed API error object (code, message, details, service)
            request_id: Value of the request id response header, if any
            error_code: Optional error code
            details: Optional error details
        """
        super().__init__(message, error_code, details)
        self.status_code = status_code
        self.raw_body = raw_body
        self.api_error = api_error
        self.request_id = request_id

    def __str__(self) -> str:
        """String representation of the HTTP error."""
        base = super().__str__()
        if self.request_id:
            return f"HTTP {self.status_code}: {base} (request id: {self.request_id})"
        return f"HTTP {self.status_code}: {base}"


class KalshiAuthenticationError(KalshiHTTPError):
    """Credentials were rejected by the server.

    Raised for REST responses with status 401/403 and for a streaming
    handshake that the server refuses. Callers should not retry blindly.
    """

    def __init__(
        self,
        message: str = "Authentication failed",
        status_code: int = 401,
        raw_body: Optional[str] = None,
        api_error: Optional[Dict[str, Any]] = None,
        request_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message,
            status_code,
            raw_body=raw_body,
            api_error=api_error,
            request_id=request_id,
            error_code="AUTHENTICATION_FAILED",
            details=details,
        )


class KalshiRateLimitError(KalshiHTTPError):
    """Rate limit exceeded error."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        retry_after: Optional[int] = None,
        raw_body: Optional[str] = None,
        api_error: Optional[Dict[str, Any]] = None,
        request_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message,
            429,
            raw_body=raw_body,
            api_error=api_error,
            request_id=request_id,
            error_code="RATE_LIMIT_EXCEEDED",
            details=details,
        )
        self.retry_after = retry_after

    def __str__(self) -> str:
        """String representation of the rate limit error."""
        base = super().__str__()
        if self.retry_after:
            return f"{base} (retry after {self.retry_after}s)"
        return base


class KalshiTimeoutError(KalshiError):
    """Request or handshake timeout error."""

    def __init__(
        self,
        message: str = "Request timed out",
        timeout: Optional[float] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, "TIMEOUT", details)
        self.timeout = timeout

    def __str__(self) -> str:
        """String representation of the timeout error."""
        base = super().__str__()
        if self.timeout:
            return f"{base} (timeout: {self.timeout}s)"
        return base


class KalshiConnectionError(KalshiError):
    """Transient network or streaming transport failure."""

    def __init__(
        self,
        message: str = "Connection failed",
        code: Optional[int] = None,
        reason: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize connection error.

        Args:
            message: Error message
            code: WebSocket close code, if the peer sent one
            reason: Close reason
            details: Optional error details
        """
        super().__init__(message, "CONNECTION_ERROR", details)
        self.code = code
        self.reason = reason

    def __str__(self) -> str:
        """String representation of the connection error."""
        base = super().__str__()
        if self.code and self.reason:
            return f"{base} (code: {self.code}, reason: {self.reason})"
        elif self.code:
            return f"{base} (code: {self.code})"
        return base


class KalshiConnectionClosedError(KalshiConnectionError):
    """Operation attempted on a closed streaming connection."""

    def __init__(
        self,
        message: str = "Connection is closed",
        code: Optional[int] = None,
        reason: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=code, reason=reason, details=details)


class KalshiDecodeError(KalshiError):
    """A frame of a recognized type could not be decoded."""

    def __init__(
        self,
        message: str,
        msg_type: Optional[str] = None,
        data: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize decode error.

        Args:
            message: Error message
            msg_type: Message type tag, when it could be read
            data: Raw frame that failed to decode
            details: Optional error details
        """
        super().__init__(message, "DECODE_ERROR", details)
        self.msg_type = msg_type
        self.data = data


class KalshiServerError(KalshiError):
    """Error reported by the server in a streaming ``error`` frame."""

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        command_id: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, "SERVER_ERROR", details)
        self.code = code
        self.command_id = command_id

    def __str__(self) -> str:
        base = super().__str__()
        if self.code is not None:
            return f"{base} (code: {self.code})"
        return base


class KalshiConcurrentReadError(KalshiError):
    """A second task tried to read a stream that already has a reader."""

    def __init__(
        self,
        message: str = "Another task is already reading this stream",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, "CONCURRENT_READ", details)
