"""Pydantic models for Kalshi SDK configuration and shared values."""

from __future__ import annotations

import random
from enum import Enum
from typing import Optional

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


class KalshiBaseModel(BaseModel):
    """Base model with common configuration."""

    model_config = ConfigDict(
        # Use enum values instead of enum objects
        use_enum_values=True,
        # Validate field assignment
        validate_assignment=True,
        # Allow population by field name and alias
        populate_by_name=True,
        # Forbid extra fields unless explicitly allowed
        extra="forbid",
    )


class ReaderMode(str, Enum):
    """How the subscription manager hands frames to the caller."""
    OWNED = "owned"
    RAW = "raw"


class SignedHeaders(KalshiBaseModel):
    """Authentication headers derived for a single request."""
    key_id: str = Field(..., description="API key id")
    timestamp_ms: int = Field(..., description="Millisecond timestamp that was signed")
    signature: str = Field(..., description="Base64 RSA-PSS signature", repr=False)


class RateLimitConfig(KalshiBaseModel):
    """Fixed-interval pacing for REST calls. Zero disables pacing."""
    read_rps: int = Field(20, ge=0, description="Read requests per second")
    write_rps: int = Field(10, ge=0, description="Write requests per second")


class HTTPConfig(KalshiBaseModel):
    """HTTP client configuration."""
    base_url: str = Field(..., description="Base API URL including the API prefix")
    timeout: float = Field(30.0, description="Request timeout in seconds")
    max_retries: int = Field(3, ge=0, description="Retries for transient transport errors")
    retry_backoff_factor: float = Field(0.3, description="Base retry delay in seconds")
    retry_max_delay: float = Field(10.0, description="Maximum retry delay in seconds")
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    user_agent: str = Field("kalshi-python-sdk/0.1.0", description="User agent string")


class WebSocketConfig(KalshiBaseModel):
    """WebSocket connection configuration."""
    url: str = Field(..., description="WebSocket URL")
    open_timeout: Optional[float] = Field(10.0, description="Handshake timeout in seconds")
    close_timeout: Optional[float] = Field(5.0, description="Close handshake timeout in seconds")
    max_message_size: Optional[int] = Field(
        16 * 1024 * 1024, description="Maximum message size in bytes"
    )
    ping_interval: Optional[float] = Field(20.0, description="Ping interval in seconds")
    ping_timeout: Optional[float] = Field(20.0, description="Ping timeout in seconds")


class ReconnectConfig(KalshiBaseModel):
    """Reconnect policy for the subscription manager."""
    initial_delay: float = Field(1.0, gt=0, description="Delay before the first retry in seconds")
    max_delay: float = Field(30.0, gt=0, description="Maximum delay in seconds")
    max_attempts: Optional[int] = Field(
        None, ge=1, description="Connection attempts per cycle (None for unlimited)"
    )
    jitter: float = Field(0.0, ge=0.0, le=1.0, description="Relative jitter applied to delays")
    resubscribe: bool = Field(True, description="Re-issue desired subscriptions after reconnect")

    def delay_for(self, attempt: int) -> float:
        """Delay after the Nth consecutive failure.

        Args:
            attempt: Failure count (1-based)

        Returns:
            ``min(initial_delay * 2 ** (attempt - 1), max_delay)``, scaled by
            a random factor in ``[1 - jitter, 1 + jitter]`` when jitter is set
        """
        exponent = max(attempt - 1, 0)
        # Cap the exponent so huge attempt counts cannot overflow a float.
        delay = min(self.initial_delay * (2 ** min(exponent, 62)), self.max_delay)

        if self.jitter:
            delay *= random.uniform(1.0 - self.jitter, 1.0 + self.jitter)

        return delay
