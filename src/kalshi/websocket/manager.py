"""Subscription lifecycle manager with reconnect and full resubscription."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from typing import Any
from typing import AsyncIterator
from typing import Awaitable
from typing import Callable
from typing import Deque
from typing import Dict
from typing import List
from typing import Optional
from typing import Union

from kalshi.auth import Signer
from kalshi.errors import KalshiAuthenticationError
from kalshi.errors import KalshiAuthRequiredError
from kalshi.errors import KalshiConcurrentReadError
from kalshi.errors import KalshiConnectionClosedError
from kalshi.errors import KalshiConnectionError
from kalshi.errors import KalshiDecodeError
from kalshi.errors import KalshiError
from kalshi.errors import KalshiInvalidParamsError
from kalshi.models import ReaderMode
from kalshi.models import ReconnectConfig
from kalshi.models import WebSocketConfig
from kalshi.types.websocket import SubscriptionParams
from kalshi.types.websocket import UpdateSubscriptionParams
from kalshi.types.websocket import validate_subscription
from kalshi.websocket.codec import BorrowedMessage
from kalshi.websocket.codec import CommandEncoder
from kalshi.websocket.codec import Message
from kalshi.websocket.connection import Connection

logger = logging.getLogger(__name__)

Connector = Callable[..., Awaitable[Connection]]


# ============================================================================
# Events
# ============================================================================

@dataclass(frozen=True)
class MessageEvent:
    """A decoded frame, control or data."""
    message: Message


@dataclass(frozen=True)
class RawEvent:
    """A frame in raw reader mode; the payload is decoded on demand."""
    message: BorrowedMessage


@dataclass(frozen=True)
class DecodeErrorEvent:
    """One frame failed to decode. The stream continues."""
    error: KalshiDecodeError


@dataclass(frozen=True)
class ReconnectedEvent:
    """A new connection is open and desired subscriptions were re-issued.

    Subscription ids and sequence numbers start over after this event.
    """
    attempt: int


@dataclass(frozen=True)
class DisconnectedEvent:
    """Terminal for the current connect cycle.

    Polling again starts a fresh cycle unless the manager was closed.
    """
    error: KalshiError


StreamEvent = Union[MessageEvent, RawEvent, DecodeErrorEvent, ReconnectedEvent, DisconnectedEvent]


class SubscriptionManager:
    """Keeps the caller's desired subscriptions alive across reconnects.

    State is three collections:

    * desired: every request the caller asked to maintain, keyed by its
      normalized form. Only :meth:`unsubscribe` removes entries.
    * pending: subscribe command id -> request, until the server assigns a sid.
    * active: sid -> request, until an unsubscribe is acknowledged or the
      connection drops.

    On every reconnect pending and active are discarded and everything in
    desired is subscribed again.
    """

    def __init__(
        self,
        config: WebSocketConfig,
        signer: Optional[Signer] = None,
        reconnect: Optional[ReconnectConfig] = None,
        reader_mode: ReaderMode = ReaderMode.OWNED,
        connector: Optional[Connector] = None,
    ) -> None:
        """Initialize subscription manager.

        Args:
            config: WebSocket configuration
            signer: Signer used when a desired subscription needs authentication
            reconnect: Reconnect policy
            reader_mode: Deliver owned messages or raw borrowed frames
            connector: Coroutine opening a :class:`Connection`
        """
        self.config = config
        self.reconnect = reconnect or ReconnectConfig()
        self.reader_mode = ReaderMode(reader_mode)
        self._signer = signer
        self._connector: Connector = connector or Connection.open

        self._desired: Dict[str, SubscriptionParams] = {}
        self._pending: Dict[int, SubscriptionParams] = {}
        self._active: Dict[int, SubscriptionParams] = {}
        self._pending_unsubscribes: Dict[int, int] = {}
        self._pending_updates: Dict[int, UpdateSubscriptionParams] = {}
        self._sid_commands: Dict[int, int] = {}

        self._encoder = CommandEncoder()
        self._connection: Optional[Connection] = None
        self._lock = asyncio.Lock()
        self._backlog: Deque[StreamEvent] = deque()
        self._has_connected = False
        self._closed = False
        self._closed_event = asyncio.Event()
        self._reading = False

    async def __aenter__(self) -> SubscriptionManager:
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    # ------------------------------------------------------------------
    # State views
    # ------------------------------------------------------------------

    @property
    def connected(self) -> bool:
        return self._connection is not None and self._connection.is_open

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def desired(self) -> List[SubscriptionParams]:
        return list(self._desired.values())

    @property
    def pending(self) -> Dict[int, SubscriptionParams]:
        return dict(self._pending)

    @property
    def subscriptions(self) -> Dict[int, SubscriptionParams]:
        """Active subscriptions keyed by server-assigned sid."""
        return dict(self._active)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def subscribe(self, params: SubscriptionParams) -> int:
        """Add a subscription to the desired set and send it.

        Does not wait for the acknowledgement. Subscribing to a request equal
        to one already pending or active sends nothing and returns the
        existing command id.

        Args:
            params: Subscription parameters

        Returns:
            Correlation id of the subscribe command

        Raises:
            KalshiInvalidParamsError: Parameters fail validation
            KalshiAuthRequiredError: Private channel without a signer
            KalshiConnectionError: No connection could be established
            KalshiAuthenticationError: Handshake credentials rejected
        """
        validate_subscription(params)
        if params.requires_auth() and self._signer is None:
            channels = ", ".join(sorted(c.value for c in params.channel_set() if c.is_private))
            raise KalshiAuthRequiredError(f"channels [{channels}] need API credentials")

        request = params.normalized()
        key = request.key()

        async with self._lock:
            self._check_open()
            self._desired[key] = request

            if (
                request.requires_auth()
                and self._connection is not None
                and not self._connection.authenticated
            ):
                logger.info("Reconnecting with credentials for a private channel")
                await self._drop_connection()

            while True:
                if not self.connected:
                    # Resubscription covers the new request as well.
                    await self._ensure_connected()
                    command_id = self._in_flight_id(key)
                    if command_id is not None:
                        return command_id

                command_id = self._in_flight_id(key)
                if command_id is not None:
                    logger.debug(f"Subscription already in flight: {key}")
                    return command_id

                command_id, frame = self._encoder.subscribe(request)
                try:
                    await self._connection.send(frame)
                except KalshiConnectionError as e:
                    logger.warning(f"Subscribe send failed, reconnecting: {e}")
                    await self._drop_connection()
                    continue

                self._pending[command_id] = request
                return command_id

    async def unsubscribe(self, sid: int) -> Optional[int]:
        """Stop maintaining an active subscription.

        The request leaves the desired set immediately. The active entry is
        removed once the server acknowledges.

        Args:
            sid: Server-assigned subscription id

        Returns:
            Correlation id of the unsubscribe command, or None when ``sid`` is
            not active
        """
        async with self._lock:
            self._check_open()
            request = self._active.get(sid)
            if request is None:
                logger.warning(f"Unsubscribe ignored, sid {sid} is not active")
                return None

            self._desired.pop(request.key(), None)

            command_id, frame = self._encoder.unsubscribe(sid)
            try:
                await self._send(frame)
            except KalshiConnectionError as e:
                # The request is already out of the desired set, so the
                # reconnect will not bring it back.
                logger.warning(f"Unsubscribe send failed: {e}")
                await self._drop_connection()
                return command_id

            self._pending_unsubscribes[command_id] = sid
            return command_id

    async def update_subscription(self, params: UpdateSubscriptionParams) -> int:
        """Change the filters of an active subscription.

        The new parameters replace the old ones in the active and desired
        sets when the server acknowledges the command.

        Raises:
            KalshiInvalidParamsError: ``params.sid`` is not active
        """
        async with self._lock:
            self._check_open()
            if params.sid not in self._active:
                raise KalshiInvalidParamsError(
                    f"update_subscription: sid {params.sid} is not active"
                )

            command_id, frame = self._encoder.update_subscription(params)
            await self._send(frame)
            self._pending_updates[command_id] = params
            return command_id

    async def list_subscriptions(self) -> int:
        """Ask the server for its view of this connection's subscriptions."""
        async with self._lock:
            self._check_open()
            if not self.connected:
                await self._ensure_connected()
            command_id, frame = self._encoder.list_subscriptions()
            await self._send(frame)
            return command_id

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    async def poll_next_event(self) -> StreamEvent:
        """Return the next event, reconnecting transparently as needed.

        Only one task may poll at a time.

        Returns:
            The next stream event. A :class:`DisconnectedEvent` is returned
            when reconnect attempts are exhausted, the credentials are
            rejected, or the manager is closed.

        Raises:
            KalshiConcurrentReadError: Another task is already polling
        """
        if self._reading:
            raise KalshiConcurrentReadError("poll_next_event is already running in another task")
        self._reading = True
        try:
            return await self._next_event()
        finally:
            self._reading = False

    async def _next_event(self) -> StreamEvent:
        while True:
            if self._backlog:
                return self._backlog.popleft()

            if self._closed:
                return DisconnectedEvent(KalshiConnectionClosedError("Subscription manager is closed"))

            connection = self._connection
            if connection is None or not connection.is_open:
                async with self._lock:
                    if not self.connected:
                        try:
                            await self._ensure_connected()
                        except (KalshiConnectionError, KalshiAuthenticationError) as e:
                            logger.error(f"WebSocket disconnected: {e}")
                            return DisconnectedEvent(e)
                continue

            try:
                if self.reader_mode is ReaderMode.RAW:
                    borrowed = await connection.receive_borrowed()
                    if borrowed.is_control:
                        control = borrowed.to_owned()
                        self._track(control.msg_type, control.id, getattr(control, "sid", None))
                    return RawEvent(borrowed)

                message = await connection.receive()
            except KalshiDecodeError as e:
                logger.warning(f"Dropping undecodable frame: {e}")
                return DecodeErrorEvent(e)
            except KalshiConnectionError as e:
                if self._closed:
                    return DisconnectedEvent(KalshiConnectionClosedError("Subscription manager is closed"))
                logger.warning(f"WebSocket read failed: {e}")
                async with self._lock:
                    if self._connection is connection:
                        await self._drop_connection()
                continue

            self._track(
                message.msg_type,
                getattr(message, "id", None),
                getattr(message, "sid", None),
            )
            return MessageEvent(message)

    async def events(self) -> AsyncIterator[StreamEvent]:
        """Iterate events until a :class:`DisconnectedEvent` is delivered."""
        while True:
            event = await self.poll_next_event()
            yield event
            if isinstance(event, DisconnectedEvent):
                return

    async def close(self) -> None:
        """Close the manager and its connection.

        A concurrent :meth:`poll_next_event` returns a
        :class:`DisconnectedEvent` promptly, including one sleeping in backoff.
        """
        if self._closed:
            return
        self._closed = True
        self._closed_event.set()

        connection, self._connection = self._connection, None
        self._reset_connection_state()
        if connection is not None:
            await connection.close()
        logger.info("Subscription manager closed")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check_open(self) -> None:
        if self._closed:
            raise KalshiConnectionClosedError("Subscription manager is closed")

    def _in_flight_id(self, key: str) -> Optional[int]:
        """Command id that already covers ``key`` on the current connection.

        Active subscriptions with an unsubscribe in flight do not count.
        """
        for command_id, request in self._pending.items():
            if request.key() == key:
                return command_id
        leaving = set(self._pending_unsubscribes.values())
        for sid, request in self._active.items():
            if sid not in leaving and request.key() == key:
                return self._sid_commands[sid]
        return None

    def _needs_auth(self) -> bool:
        return any(request.requires_auth() for request in self._desired.values())

    async def _send(self, frame: str) -> None:
        if not self.connected:
            raise KalshiConnectionClosedError("WebSocket is not connected")
        await self._connection.send(frame)

    async def _ensure_connected(self) -> None:
        """Open a connection with backoff and re-issue the desired set.

        Called with ``self._lock`` held.

        Raises:
            KalshiConnectionError: Attempts exhausted or manager closed
            KalshiAuthenticationError: Credentials rejected during handshake
        """
        attempt = 0
        while True:
            self._check_open()
            attempt += 1
            signer = self._signer if self._needs_auth() else None

            try:
                self._connection = await self._open_connection(signer)
                self._reset_connection_state()
                if self.reconnect.resubscribe:
                    await self._resubscribe()
                self._check_open()
            except KalshiAuthenticationError:
                await self._drop_connection()
                raise
            except KalshiConnectionError as e:
                await self._drop_connection()
                self._check_open()
                max_attempts = self.reconnect.max_attempts
                if max_attempts is not None and attempt >= max_attempts:
                    raise KalshiConnectionError(
                        f"Gave up after {attempt} connection attempts: {e}"
                    ) from e

                delay = self.reconnect.delay_for(attempt)
                logger.warning(
                    f"Connection attempt {attempt} failed: {e}. Retrying in {delay:.2f}s"
                )
                await self._sleep(delay)
                continue

            if self._has_connected or attempt > 1:
                logger.info(f"Reconnected after {attempt} attempt(s)")
                self._backlog.append(ReconnectedEvent(attempt))
            self._has_connected = True
            return

    async def _open_connection(self, signer: Optional[Signer]) -> Connection:
        """Run the connector, abandoning the handshake if the manager closes.

        Raises:
            KalshiConnectionClosedError: Manager closed before or during the
                handshake
        """
        handshake = asyncio.ensure_future(
            self._connector(self.config.url, signer=signer, config=self.config)
        )
        closing = asyncio.ensure_future(self._closed_event.wait())
        try:
            await asyncio.wait({handshake, closing}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            closing.cancel()
            if not handshake.done():
                handshake.cancel()
                await asyncio.wait({handshake})

        if handshake.cancelled():
            raise KalshiConnectionClosedError("Subscription manager closed during handshake")

        connection = handshake.result()
        if self._closed:
            await connection.close()
            raise KalshiConnectionClosedError("Subscription manager closed during handshake")
        return connection

    async def _resubscribe(self) -> None:
        connection = self._connection
        for request in list(self._desired.values()):
            command_id, frame = self._encoder.subscribe(request)
            await connection.send(frame)
            self._pending[command_id] = request
        if self._desired:
            logger.info(f"Re-issued {len(self._desired)} subscription(s)")

    async def _sleep(self, delay: float) -> None:
        """Backoff sleep that wakes early on close and honours cancellation."""
        try:
            await asyncio.wait_for(self._closed_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return

    async def _drop_connection(self) -> None:
        connection, self._connection = self._connection, None
        self._reset_connection_state()
        if connection is not None:
            await connection.close()

    def _reset_connection_state(self) -> None:
        self._pending.clear()
        self._active.clear()
        self._pending_unsubscribes.clear()
        self._pending_updates.clear()
        self._sid_commands.clear()

    def _track(self, msg_type: str, command_id: Optional[int], sid: Optional[int]) -> None:
        """Apply control-message bookkeeping before the message is returned."""
        if msg_type == "subscribed":
            if command_id is None or sid is None:
                return
            request = self._pending.pop(command_id, None)
            if request is not None:
                self._active[sid] = request
                self._sid_commands[sid] = command_id
                logger.debug(f"Subscription {command_id} active as sid {sid}")

        elif msg_type == "unsubscribed":
            if sid is None and command_id is not None:
                sid = self._pending_unsubscribes.get(command_id)
            if command_id is not None:
                self._pending_unsubscribes.pop(command_id, None)
            if sid is not None and self._active.pop(sid, None) is not None:
                self._sid_commands.pop(sid, None)
                logger.debug(f"Subscription sid {sid} removed")

        elif msg_type == "ok":
            update = self._pending_updates.pop(command_id, None) if command_id is not None else None
            if update is not None:
                self._apply_update(update)

        elif msg_type == "error":
            if command_id is None:
                return
            # The request stays desired; the next reconnect or an explicit
            # subscribe sends it again.
            if self._pending.pop(command_id, None) is not None:
                logger.warning(f"Subscribe command {command_id} rejected by server")
            self._pending_unsubscribes.pop(command_id, None)
            self._pending_updates.pop(command_id, None)

    def _apply_update(self, update: UpdateSubscriptionParams) -> None:
        current = self._active.get(update.sid)
        if current is None:
            return
        merged = update.apply_to(current)
        self._active[update.sid] = merged

        old_key = current.key()
        if old_key in self._desired:
            del self._desired[old_key]
            self._desired[merged.key()] = merged
