"""Kalshi Python SDK - Signed REST calls and resilient streaming subscriptions."""

import logging

__version__ = "0.1.0"

from .auth import Signer
from .client import KalshiClient
from .config import SDKConfig
from .env import KalshiEnvironment
from .env_config import load_config_from_env
from .errors import KalshiAuthenticationError
from .errors import KalshiAuthRequiredError
from .errors import KalshiConcurrentReadError
from .errors import KalshiConfigurationError
from .errors import KalshiConnectionError
from .errors import KalshiDecodeError
from .errors import KalshiError
from .errors import KalshiHTTPError
from .errors import KalshiInvalidParamsError
from .errors import KalshiRateLimitError
from .models import ReaderMode
from .models import ReconnectConfig
from .websocket.manager import SubscriptionManager

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "KalshiAuthRequiredError",
    "KalshiAuthenticationError",
    "KalshiClient",
    "KalshiConcurrentReadError",
    "KalshiConfigurationError",
    "KalshiConnectionError",
    "KalshiDecodeError",
    "KalshiEnvironment",
    "KalshiError",
    "KalshiHTTPError",
    "KalshiInvalidParamsError",
    "KalshiRateLimitError",
    "ReaderMode",
    "ReconnectConfig",
    "SDKConfig",
    "Signer",
    "SubscriptionManager",
    "__version__",
    "load_config_from_env",
]
