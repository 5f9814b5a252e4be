"""
Configuration for the Kalshi SDK.

Settings live in plain dataclasses so they can be built in code or loaded
from the environment (see :mod:`kalshi.env_config`). The pydantic models in
:mod:`kalshi.models` are derived from them per client.
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from typing import Any
from typing import Dict
from typing import Optional

from kalshi.auth import Signer
from kalshi.env import KalshiEnvironment
from kalshi.env import rest_base_url
from kalshi.env import ws_url
from kalshi.errors import KalshiConfigurationError
from kalshi.models import HTTPConfig
from kalshi.models import RateLimitConfig
from kalshi.models import ReconnectConfig
from kalshi.models import WebSocketConfig

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class SDKConfig:
    """Main SDK configuration."""
    # Core settings
    environment: KalshiEnvironment = KalshiEnvironment.DEMO
    timeout: float = 30.0  # seconds
    user_agent: str = 'kalshi-python-sdk/0.1.0'

    # Credentials: a key id plus either a PEM file or PEM text
    key_id: Optional[str] = None
    private_key_path: Optional[str] = None
    private_key_pem: Optional[str] = field(default=None, repr=False)

    # REST pacing
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)

    # Streaming
    ws_ping_interval: Optional[float] = 20.0
    ws_open_timeout: float = 10.0
    reconnect: ReconnectConfig = field(default_factory=ReconnectConfig)

    # Logging
    log_level: str = 'INFO'

    @property
    def has_credentials(self) -> bool:
        return bool(self.key_id and (self.private_key_path or self.private_key_pem))

    def validate(self) -> None:
        """Validate the complete configuration.

        Raises:
            KalshiConfigurationError: Invalid setting
        """
        if self.timeout <= 0:
            raise KalshiConfigurationError("timeout must be positive")

        if self.ws_open_timeout <= 0:
            raise KalshiConfigurationError("ws_open_timeout must be positive")

        if self.private_key_path and self.private_key_pem:
            raise KalshiConfigurationError(
                "Set either private_key_path or private_key_pem, not both"
            )

        if (self.private_key_path or self.private_key_pem) and not self.key_id:
            raise KalshiConfigurationError("A private key was given without a key id")

        if self.key_id and not (self.private_key_path or self.private_key_pem):
            raise KalshiConfigurationError("A key id was given without a private key")

        if self.log_level.upper() not in _LOG_LEVELS:
            raise KalshiConfigurationError(f"Unknown log level: {self.log_level}")

    def build_signer(self) -> Optional[Signer]:
        """Load the signer, or None when no credentials are configured.

        Raises:
            KalshiCryptoError: Key material could not be loaded
        """
        if not self.has_credentials:
            return None
        if self.private_key_path:
            return Signer.from_pem_file(self.key_id, self.private_key_path)
        return Signer.from_pem_str(self.key_id, self.private_key_pem)

    def http_config(self) -> HTTPConfig:
        return HTTPConfig(
            base_url=rest_base_url(self.environment),
            timeout=self.timeout,
            rate_limit=self.rate_limit,
            user_agent=self.user_agent,
        )

    def websocket_config(self) -> WebSocketConfig:
        return WebSocketConfig(
            url=ws_url(self.environment),
            open_timeout=self.ws_open_timeout,
            ping_interval=self.ws_ping_interval,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            'environment': self.environment.value,
            'timeout': self.timeout,
            'user_agent': self.user_agent,
            'key_id': self.key_id,
            'private_key_path': self.private_key_path,
            # Don't include key material
            'rate_limit': self.rate_limit.model_dump(),
            'ws_ping_interval': self.ws_ping_interval,
            'ws_open_timeout': self.ws_open_timeout,
            'reconnect': self.reconnect.model_dump(),
            'log_level': self.log_level,
        }
