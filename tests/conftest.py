"""Test configuration and fixtures."""

import asyncio
import json
from collections import deque
from typing import Any
from typing import Dict
from typing import List
from typing import Optional
from typing import Union

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from kalshi.auth import Signer
from kalshi.errors import KalshiConnectionClosedError
from kalshi.models import HTTPConfig
from kalshi.models import RateLimitConfig
from kalshi.models import WebSocketConfig
from kalshi.websocket.codec import decode_borrowed
from kalshi.websocket.codec import decode_message

WS_URL = "wss://demo-api.kalshi.co/trade-api/ws/v2"
REST_URL = "https://demo-api.kalshi.co/trade-api/v2"

_DROP = object()


@pytest.fixture(scope="session")
def rsa_private_key():
    """RSA private key fixture."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def pkcs8_pem(rsa_private_key):
    """PKCS#8 PEM text fixture."""
    return rsa_private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


@pytest.fixture(scope="session")
def pkcs1_pem(rsa_private_key):
    """PKCS#1 (traditional OpenSSL) PEM text fixture."""
    return rsa_private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


@pytest.fixture
def signer(rsa_private_key):
    """Signer fixture."""
    return Signer("test-key-id", rsa_private_key)


@pytest.fixture
def http_config():
    """HTTP configuration fixture with pacing and retry delays disabled."""
    return HTTPConfig(
        base_url=REST_URL,
        timeout=5.0,
        max_retries=2,
        retry_backoff_factor=0.0,
        retry_max_delay=0.0,
        rate_limit=RateLimitConfig(read_rps=0, write_rps=0),
        user_agent="test-agent/1.0.0",
    )


@pytest.fixture
def ws_config():
    """WebSocket configuration fixture."""
    return WebSocketConfig(url=WS_URL)


def json_response(body: Any, status_code: int = 200, headers: Optional[Dict[str, str]] = None) -> httpx.Response:
    """Build a JSON httpx response."""
    return httpx.Response(status_code, json=body, headers=headers)


# WebSocket test helpers

class FakeConnection:
    """In-memory stand-in for :class:`kalshi.websocket.connection.Connection`.

    Tests push inbound frames with :meth:`push` and end the stream with
    :meth:`drop`. Sent commands are recorded as parsed JSON.
    """

    def __init__(self, send_error: Optional[Exception] = None) -> None:
        self.authenticated = False
        self.is_open = True
        self.sent: List[Dict[str, Any]] = []
        self.send_error = send_error
        self.closed_calls = 0
        self._frames: asyncio.Queue = asyncio.Queue()

    def push(self, frame: Union[Dict[str, Any], str, bytes]) -> None:
        if isinstance(frame, dict):
            frame = json.dumps(frame)
        if isinstance(frame, str):
            frame = frame.encode()
        self._frames.put_nowait(frame)

    def drop(self) -> None:
        """Simulate the peer going away."""
        self._frames.put_nowait(_DROP)

    def commands(self, cmd: str) -> List[Dict[str, Any]]:
        return [frame for frame in self.sent if frame["cmd"] == cmd]

    async def send(self, text: str) -> None:
        if not self.is_open:
            raise KalshiConnectionClosedError("Cannot send on a connection that is not open")
        if self.send_error is not None:
            self.is_open = False
            raise self.send_error
        self.sent.append(json.loads(text))

    async def receive_raw(self) -> bytes:
        if not self.is_open:
            raise KalshiConnectionClosedError("Cannot receive on a connection that is not open")
        frame = await self._frames.get()
        if frame is _DROP:
            self.is_open = False
            raise KalshiConnectionClosedError("WebSocket closed by peer", code=1006)
        return frame

    async def receive(self):
        return decode_message(await self.receive_raw())

    async def receive_borrowed(self):
        return decode_borrowed(await self.receive_raw())

    async def close(self) -> None:
        self.closed_calls += 1
        if self.is_open:
            self.is_open = False
            self._frames.put_nowait(_DROP)


class FakeConnector:
    """Connector returning scripted connections or raising scripted errors."""

    def __init__(self, outcomes: Optional[List[Union[FakeConnection, Exception]]] = None) -> None:
        self.outcomes = deque(outcomes or [])
        self.signers: List[Any] = []
        self.connections: List[FakeConnection] = []

    @property
    def calls(self) -> int:
        return len(self.signers)

    @property
    def current(self) -> FakeConnection:
        return self.connections[-1]

    async def __call__(self, url: str, signer: Any = None, config: Any = None) -> FakeConnection:
        self.signers.append(signer)
        outcome = self.outcomes.popleft() if self.outcomes else FakeConnection()
        if isinstance(outcome, Exception):
            raise outcome
        outcome.authenticated = signer is not None
        self.connections.append(outcome)
        return outcome


@pytest.fixture
def fake_connector():
    """Factory fixture for scripted connectors."""
    def _make(*outcomes: Union[FakeConnection, Exception]) -> FakeConnector:
        return FakeConnector(list(outcomes))
    return _make


def subscribed(command_id: int, sid: int, channel: str = "trade") -> Dict[str, Any]:
    """Server acknowledgement of a subscribe command."""
    return {"id": command_id, "type": "subscribed", "msg": {"channel": channel, "sid": sid}}


def trade_frame(sid: int, seq: int, ticker: str = "KXBTC-25DEC31") -> Dict[str, Any]:
    """Public trade data frame."""
    return {
        "type": "trade",
        "sid": sid,
        "seq": seq,
        "msg": {
            "trade_id": f"t-{seq}",
            "ticker": ticker,
            "yes_price": 55,
            "no_price": 45,
            "count": 3,
            "taker_side": "yes",
        },
    }
