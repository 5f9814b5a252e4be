"""A single authenticated WebSocket connection to the Kalshi streaming API."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any
from typing import Dict
from typing import Optional

import websockets
from websockets.exceptions import ConcurrencyError
from websockets.exceptions import ConnectionClosed
from websockets.exceptions import InvalidStatus
from websockets.exceptions import InvalidURI
from websockets.exceptions import WebSocketException

from kalshi.auth import Signer
from kalshi.auth import headers_to_dict
from kalshi.env import WS_PATH
from kalshi.errors import KalshiAuthenticationError
from kalshi.errors import KalshiConcurrentReadError
from kalshi.errors import KalshiConfigurationError
from kalshi.errors import KalshiConnectionClosedError
from kalshi.errors import KalshiConnectionError
from kalshi.models import WebSocketConfig
from kalshi.websocket.codec import BorrowedMessage
from kalshi.websocket.codec import Message
from kalshi.websocket.codec import decode_borrowed
from kalshi.websocket.codec import decode_message

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    """Lifecycle of one physical connection. CLOSED is terminal."""
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class Connection:
    """One physical duplex stream.

    Writes are serialized behind a lock. Reads are expected from a single
    task. Protocol-level pings from the server are answered by the
    ``websockets`` keep-alive machinery and never reach the caller.
    """

    def __init__(
        self,
        url: str,
        config: Optional[WebSocketConfig] = None,
        signer: Optional[Signer] = None,
    ) -> None:
        """Initialize connection. Use :meth:`open` to connect.

        Args:
            url: WebSocket URL
            config: WebSocket configuration
            signer: Signer for the authenticated handshake
        """
        self.url = url
        self.config = config or WebSocketConfig(url=url)
        self._signer = signer
        self._websocket: Optional[Any] = None
        self._state = ConnectionState.CONNECTING
        self._write_lock = asyncio.Lock()

    @classmethod
    async def open(
        cls,
        url: str,
        signer: Optional[Signer] = None,
        config: Optional[WebSocketConfig] = None,
    ) -> Connection:
        """Open a connection and complete the handshake.

        Raises:
            KalshiAuthenticationError: Server rejected the signed handshake
            KalshiConnectionError: Transport or handshake failure
            KalshiConfigurationError: Invalid URL
        """
        connection = cls(url, config=config, signer=signer)
        await connection._connect()
        return connection

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is ConnectionState.OPEN

    @property
    def authenticated(self) -> bool:
        return self._signer is not None

    def _handshake_headers(self) -> Dict[str, str]:
        if self._signer is None:
            return {}
        # Signed once per connection, against the fixed streaming path.
        signed = self._signer.build_headers("GET", WS_PATH)
        return headers_to_dict(signed)

    async def _connect(self) -> None:
        if self._state is not ConnectionState.CONNECTING:
            raise KalshiConnectionClosedError("Connection instances cannot be reopened")

        connect_kwargs = {
            "additional_headers": self._handshake_headers(),
            "open_timeout": self.config.open_timeout,
            "close_timeout": self.config.close_timeout,
            "ping_interval": self.config.ping_interval,
            "ping_timeout": self.config.ping_timeout,
            "max_size": self.config.max_message_size,
        }

        logger.info(f"Connecting to WebSocket: {self.url} (authenticated={self.authenticated})")
        try:
            self._websocket = await websockets.connect(self.url, **connect_kwargs)
        except InvalidStatus as e:
            self._state = ConnectionState.CLOSED
            status = e.response.status_code
            if status in (401, 403):
                raise KalshiAuthenticationError(
                    f"WebSocket handshake rejected with HTTP {status}",
                    status_code=status,
                ) from e
            raise KalshiConnectionError(f"WebSocket handshake failed with HTTP {status}") from e
        except InvalidURI as e:
            self._state = ConnectionState.CLOSED
            raise KalshiConfigurationError(f"Invalid WebSocket URL: {self.url}") from e
        except asyncio.TimeoutError as e:
            self._state = ConnectionState.CLOSED
            raise KalshiConnectionError("WebSocket handshake timed out") from e
        except (WebSocketException, OSError) as e:
            self._state = ConnectionState.CLOSED
            raise KalshiConnectionError(f"Connection failed: {e}") from e

        self._state = ConnectionState.OPEN
        logger.info("WebSocket connected")

    def _closed_error(self, exc: Optional[ConnectionClosed] = None) -> KalshiConnectionClosedError:
        if exc is not None and exc.rcvd is not None:
            return KalshiConnectionClosedError(
                "WebSocket closed by peer",
                code=exc.rcvd.code,
                reason=exc.rcvd.reason,
            )
        return KalshiConnectionClosedError()

    async def send(self, text: str) -> None:
        """Write one text frame.

        Raises:
            KalshiConnectionClosedError: Connection is not open
        """
        if not self.is_open or self._websocket is None:
            raise KalshiConnectionClosedError("Cannot send on a connection that is not open")

        async with self._write_lock:
            try:
                await self._websocket.send(text)
            except ConnectionClosed as e:
                self._state = ConnectionState.CLOSED
                raise self._closed_error(e) from e
            except (WebSocketException, OSError) as e:
                self._state = ConnectionState.CLOSED
                raise KalshiConnectionClosedError(f"Send failed: {e}") from e
        logger.debug(f"Sent frame: {text}")

    async def receive_raw(self) -> bytes:
        """Wait for the next frame and return its undecoded bytes.

        Raises:
            KalshiConnectionClosedError: Connection is, or becomes, closed
            KalshiConcurrentReadError: Another task is already receiving
        """
        if not self.is_open or self._websocket is None:
            raise KalshiConnectionClosedError("Cannot receive on a connection that is not open")

        try:
            frame = await self._websocket.recv(decode=False)
        except ConnectionClosed as e:
            self._state = ConnectionState.CLOSED
            logger.info(f"WebSocket connection closed: {e}")
            raise self._closed_error(e) from e
        except ConcurrencyError as e:
            # The other reader still owns the socket, which stays open.
            raise KalshiConcurrentReadError(f"Receive failed: {e}") from e
        except (WebSocketException, OSError) as e:
            self._state = ConnectionState.CLOSED
            raise KalshiConnectionClosedError(f"Receive failed: {e}") from e

        if isinstance(frame, str):
            frame = frame.encode("utf-8")
        return frame

    async def receive(self) -> Message:
        """Wait for the next frame and decode it.

        Raises:
            KalshiDecodeError: This frame could not be decoded. The connection
                stays open.
            KalshiConnectionClosedError: Connection is, or becomes, closed
        """
        return decode_message(await self.receive_raw())

    async def receive_borrowed(self) -> BorrowedMessage:
        """Wait for the next frame and decode only its envelope."""
        return decode_borrowed(await self.receive_raw())

    async def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        if self._state is ConnectionState.CLOSED and self._websocket is None:
            return

        self._state = ConnectionState.CLOSED
        websocket, self._websocket = self._websocket, None
        if websocket is None:
            return

        try:
            await websocket.close()
        except (WebSocketException, OSError) as e:
            logger.warning(f"Error closing WebSocket: {e}")
        logger.info("WebSocket disconnected")
