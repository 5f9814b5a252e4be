"""Utility functions and classes for Kalshi SDK."""

from __future__ import annotations

import asyncio
import logging
import random
import time
from typing import Any
from typing import Callable
from typing import Dict
from typing import Optional
from typing import TypeVar

import backoff
import httpx

from kalshi.models import RateLimitConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Transport failures worth retrying; HTTP status errors are never retried here.
RETRYABLE_EXCEPTIONS = (
    httpx.TimeoutException,
    httpx.ConnectError,
    httpx.RemoteProtocolError,
)


class RateLimiter:
    """Fixed-interval pacer.

    Each call is scheduled no earlier than ``1 / rps`` seconds after the
    previously scheduled call. Zero requests per second disables pacing.
    """

    def __init__(self, rps: int) -> None:
        """Initialize rate limiter.

        Args:
            rps: Requests per second
        """
        self.rps = rps
        self.interval = 1.0 / rps if rps > 0 else 0.0
        self._next_slot: Optional[float] = None
        self._lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return self.interval > 0

    async def acquire(self) -> float:
        """Wait for the next slot.

        Returns:
            Seconds spent waiting
        """
        if not self.enabled:
            return 0.0

        async with self._lock:
            now = time.monotonic()
            if self._next_slot is None:
                scheduled = now
            else:
                scheduled = max(self._next_slot, now)
            self._next_slot = scheduled + self.interval

        wait = scheduled - now
        if wait > 0:
            await asyncio.sleep(wait)
        return wait


class RequestPacer:
    """Separate limiters for read (GET) and write (everything else) calls."""

    def __init__(self, config: Optional[RateLimitConfig] = None) -> None:
        config = config or RateLimitConfig()
        self.read = RateLimiter(config.read_rps)
        self.write = RateLimiter(config.write_rps)

    def limiter_for(self, method: str) -> RateLimiter:
        return self.read if method.upper() == "GET" else self.write

    async def acquire(self, method: str) -> float:
        return await self.limiter_for(method).acquire()


def exponential_backoff_with_jitter(
    base_delay: float = 0.3,
    max_delay: float = 10.0,
    max_retries: int = 3,
    jitter: bool = True,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Exponential backoff decorator with full jitter for transport errors.

    Args:
        base_delay: Base delay in seconds
        max_delay: Maximum delay in seconds
        max_retries: Maximum number of retries
        jitter: Whether to add jitter

    Returns:
        Backoff decorator
    """
    def jitter_func(value: float) -> float:
        """Add full jitter to backoff value."""
        if not jitter:
            return value
        return random.uniform(0, value)

    return backoff.on_exception(
        backoff.expo,
        RETRYABLE_EXCEPTIONS,
        factor=base_delay,
        max_value=max_delay,
        max_tries=max_retries + 1,  # backoff counts initial attempt
        jitter=jitter_func,
        logger=logger,
    )


def parse_retry_after(retry_after_header: Optional[str]) -> Optional[int]:
    """Parse Retry-After header value.

    Args:
        retry_after_header: Retry-After header value

    Returns:
        Retry after seconds or None
    """
    if not retry_after_header:
        return None

    try:
        return int(retry_after_header)
    except ValueError:
        return None


def request_id_from(headers: httpx.Headers) -> Optional[str]:
    """Request id echoed by the server, if any."""
    return headers.get("x-request-id") or headers.get("request-id")


def parse_api_error(body: Any) -> Optional[Dict[str, Any]]:
    """Extract ``{code, message, details, service}`` from an error body.

    Accepts both ``{"error": {...}}`` and a flat object.
    """
    if not isinstance(body, dict):
        return None

    error = body.get("error", body)
    if not isinstance(error, dict):
        return {"code": None, "message": str(error), "details": None, "service": None}

    fields = ("code", "message", "details", "service")
    if not any(key in error for key in fields):
        return None
    return {key: error.get(key) for key in fields}


def drop_none(params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Drop query parameters that were left unset."""
    if not params:
        return {}
    return {key: value for key, value in params.items() if value is not None}


def configure_logging(level: str = "INFO") -> None:
    """Set the SDK log level, adding a stderr handler when none is configured.

    Args:
        level: Log level name
    """
    package_logger = logging.getLogger("kalshi")
    package_logger.setLevel(level.upper())
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=level.upper(),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
