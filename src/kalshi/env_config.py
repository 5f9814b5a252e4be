"""
Environment variable configuration loader for the Kalshi SDK.

Values are read from the process environment after ``.env`` files are
loaded with python-dotenv, so credentials can stay out of code.
"""

import logging
import os
from typing import Callable
from typing import Optional
from typing import TypeVar

from dotenv import load_dotenv

from .config import SDKConfig
from .env import KalshiEnvironment
from .errors import KalshiConfigurationError
from .models import RateLimitConfig
from .models import ReconnectConfig

logger = logging.getLogger(__name__)

N = TypeVar("N", int, float)


def load_config_from_env(dotenv: bool = True) -> SDKConfig:
    """
    Load SDK configuration from environment variables.

    Environment variables:
        Core Configuration:
            KALSHI_ENVIRONMENT: demo or prod (production/live accepted)
            KALSHI_TIMEOUT: Request timeout in seconds
            KALSHI_USER_AGENT: User agent string

        Credentials:
            KALSHI_API_KEY_ID: API key id
            KALSHI_PRIVATE_KEY_PATH: Path to the RSA private key (PEM)
            KALSHI_PRIVATE_KEY: RSA private key PEM text

        Rate Limiting:
            KALSHI_READ_RPS: Read requests per second (0 disables pacing)
            KALSHI_WRITE_RPS: Write requests per second (0 disables pacing)

        WebSocket:
            KALSHI_WS_PING_INTERVAL: Keep-alive ping interval in seconds
            KALSHI_WS_OPEN_TIMEOUT: Handshake timeout in seconds
            KALSHI_RECONNECT_INITIAL_DELAY: First reconnect backoff in seconds
            KALSHI_RECONNECT_MAX_DELAY: Reconnect backoff cap in seconds
            KALSHI_RECONNECT_MAX_ATTEMPTS: Attempts per reconnect cycle

        Logging:
            KALSHI_LOG_LEVEL: Log level (DEBUG/INFO/WARNING/ERROR)

    Args:
        dotenv: Load a ``.env`` file first

    Returns:
        SDKConfig: Configuration object loaded from environment

    Raises:
        KalshiConfigurationError: Unknown environment name
    """
    if dotenv:
        load_dotenv()

    config = SDKConfig()

    # Core configuration
    if env_val := os.getenv('KALSHI_ENVIRONMENT'):
        config.environment = KalshiEnvironment.from_value(env_val)

    config.timeout = _parse_number('KALSHI_TIMEOUT', float, config.timeout)

    if user_agent := os.getenv('KALSHI_USER_AGENT'):
        config.user_agent = user_agent

    # Credentials
    config.key_id = os.getenv('KALSHI_API_KEY_ID') or None
    config.private_key_path = os.getenv('KALSHI_PRIVATE_KEY_PATH') or None
    if private_key := os.getenv('KALSHI_PRIVATE_KEY'):
        # Single-line .env values often carry escaped newlines
        config.private_key_pem = private_key.replace('\\n', '\n')

    # Rate limiting
    config.rate_limit = RateLimitConfig(
        read_rps=_parse_number('KALSHI_READ_RPS', int, config.rate_limit.read_rps, minimum=0),
        write_rps=_parse_number('KALSHI_WRITE_RPS', int, config.rate_limit.write_rps, minimum=0),
    )

    # WebSocket
    config.ws_ping_interval = _parse_number(
        'KALSHI_WS_PING_INTERVAL', float, config.ws_ping_interval
    )
    config.ws_open_timeout = _parse_number(
        'KALSHI_WS_OPEN_TIMEOUT', float, config.ws_open_timeout
    )
    config.reconnect = _load_reconnect_from_env(config.reconnect)

    # Logging
    if log_level := os.getenv('KALSHI_LOG_LEVEL'):
        config.log_level = log_level.upper()

    return config


def _load_reconnect_from_env(defaults: ReconnectConfig) -> ReconnectConfig:
    """Load reconnect policy from environment."""
    max_attempts = defaults.max_attempts
    if raw := os.getenv('KALSHI_RECONNECT_MAX_ATTEMPTS'):
        try:
            max_attempts = int(raw) or None
        except ValueError:
            logger.warning(f"Invalid reconnect max attempts: {raw}, using default: {max_attempts}")

    try:
        return ReconnectConfig(
            initial_delay=_parse_number(
                'KALSHI_RECONNECT_INITIAL_DELAY', float, defaults.initial_delay
            ),
            max_delay=_parse_number('KALSHI_RECONNECT_MAX_DELAY', float, defaults.max_delay),
            max_attempts=max_attempts,
        )
    except ValueError as e:
        raise KalshiConfigurationError(f"Invalid reconnect settings: {e}") from e


def _parse_number(
    name: str,
    cast: Callable[[str], N],
    default: Optional[N],
    minimum: Optional[N] = None,
) -> Optional[N]:
    """Read a numeric variable, keeping the default when it is invalid."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning(f"Invalid {name} value: {raw}, using default: {default}")
        return default
    if minimum is not None and value < minimum:
        logger.warning(f"Invalid {name} value: {raw}, using default: {default}")
        return default
    return value
