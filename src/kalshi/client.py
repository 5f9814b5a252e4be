"""Kalshi Python SDK - Main client implementation.

Async SDK for the Kalshi REST and WebSocket APIs with:
- RSA-PSS request signing shared by REST and streaming
- Paced, retried REST calls over httpx
- A subscription manager that survives reconnects
"""

import logging
from typing import Any
from typing import Optional

from .config import SDKConfig
from .env_config import load_config_from_env
from .errors import KalshiAuthRequiredError
from .http import KalshiHTTPClient
from .models import ReaderMode
from .models import ReconnectConfig
from .rest.account import AccountAPI
from .rest.exchange import ExchangeAPI
from .rest.markets import MarketsAPI
from .rest.portfolio import PortfolioAPI
from .utils import configure_logging
from .websocket.manager import SubscriptionManager

logger = logging.getLogger(__name__)


class KalshiClient:
    """Main Kalshi SDK client.

    Provides access to REST endpoint groups and streaming subscriptions.

    Example:
        ```python
        from kalshi import KalshiClient
        from kalshi.types import Channel, SubscriptionParams

        async with KalshiClient.from_env() as client:
            markets = await client.markets.get_markets(limit=5, status="open")

            async with client.stream() as stream:
                await stream.subscribe(SubscriptionParams(channels=[Channel.TICKER]))
                async for event in stream.events():
                    print(event)
        ```
    """

    def __init__(self, config: Optional[SDKConfig] = None, **kwargs: Any) -> None:
        """Initialize Kalshi client.

        Args:
            config: SDK configuration, defaults to the demo environment
                without credentials
            **kwargs: Extra arguments for :class:`KalshiHTTPClient`, e.g.
                ``transport``

        Raises:
            KalshiConfigurationError: Invalid configuration
            KalshiCryptoError: Private key could not be loaded
        """
        self.config = config or SDKConfig()
        self.config.validate()

        self.signer = self.config.build_signer()
        self.http_client = KalshiHTTPClient(
            self.config.http_config(),
            signer=self.signer,
            **kwargs,
        )

        self.markets = MarketsAPI(self.http_client)
        self.exchange = ExchangeAPI(self.http_client)
        self.portfolio = PortfolioAPI(self.http_client)
        self.account = AccountAPI(self.http_client)

        logger.info(
            f"Kalshi client ready for {self.config.environment.value} "
            f"(authenticated={self.authenticated})"
        )

    @classmethod
    def from_env(cls, **kwargs: Any) -> "KalshiClient":
        """Create a client from ``KALSHI_*`` environment variables and ``.env``."""
        config = load_config_from_env()
        configure_logging(config.log_level)
        return cls(config, **kwargs)

    @property
    def authenticated(self) -> bool:
        return self.signer is not None

    def stream(
        self,
        reconnect: Optional[ReconnectConfig] = None,
        reader_mode: ReaderMode = ReaderMode.OWNED,
    ) -> SubscriptionManager:
        """Create a subscription manager sharing this client's signer.

        Args:
            reconnect: Reconnect policy, defaults to the configured one
            reader_mode: Owned messages or raw borrowed frames

        Returns:
            A manager that connects lazily on first subscribe or poll
        """
        return SubscriptionManager(
            self.config.websocket_config(),
            signer=self.signer,
            reconnect=reconnect or self.config.reconnect,
            reader_mode=reader_mode,
        )

    def require_auth(self) -> None:
        """Raise unless credentials are configured."""
        if not self.authenticated:
            raise KalshiAuthRequiredError("set KALSHI_API_KEY_ID and a private key")

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.http_client.close()

    async def __aenter__(self) -> "KalshiClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()
