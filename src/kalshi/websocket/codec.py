"""Wire codec for the Kalshi streaming protocol.

Inbound frames are decoded in two phases. The envelope is scanned first with
msgspec, leaving ``msg`` as an undecoded :class:`msgspec.Raw` view into the
frame buffer; the payload is then validated against the pydantic model that
matches the ``type`` tag.

Two entry points share that logic:

* :func:`decode_message` returns fully owned message objects.
* :func:`decode_borrowed` returns a :class:`BorrowedMessage` whose payload is
  still a view over the caller's buffer and is only parsed on demand. It is
  valid for as long as the caller keeps the frame alive.
"""

from __future__ import annotations

import json
from typing import Any
from typing import Dict
from typing import List
from typing import Optional
from typing import Tuple
from typing import Type
from typing import Union

import msgspec
from pydantic import Field
from pydantic import TypeAdapter
from pydantic import ValidationError

from kalshi.errors import KalshiDecodeError
from kalshi.errors import KalshiServerError
from kalshi.types.common import KalshiWireModel
from kalshi.types.websocket import SubscriptionInfo
from kalshi.types.websocket import SubscriptionParams
from kalshi.types.websocket import UpdateSubscriptionParams
from kalshi.types.websocket import WsError
from kalshi.types.websocket import WsFill
from kalshi.types.websocket import WsMarketLifecycleV2
from kalshi.types.websocket import WsMarketPositions
from kalshi.types.websocket import WsMultivariate
from kalshi.types.websocket import WsOrderbookDelta
from kalshi.types.websocket import WsOrderbookSnapshot
from kalshi.types.websocket import WsOrderGroupUpdate
from kalshi.types.websocket import WsQuoteAccepted
from kalshi.types.websocket import WsQuoteCreated
from kalshi.types.websocket import WsQuoteExecuted
from kalshi.types.websocket import WsRfqCreated
from kalshi.types.websocket import WsRfqDeleted
from kalshi.types.websocket import WsTicker
from kalshi.types.websocket import WsTickerV2
from kalshi.types.websocket import WsTrade

Frame = Union[bytes, bytearray, memoryview, str]

WsCommunications = Union[
    WsRfqCreated,
    WsRfqDeleted,
    WsQuoteCreated,
    WsQuoteAccepted,
    WsQuoteExecuted,
]


# ============================================================================
# Decoded messages
# ============================================================================

class WsMessage(KalshiWireModel):
    """Base class of every decoded frame."""
    msg_type: str


class Subscribed(WsMessage):
    msg_type: str = "subscribed"
    id: Optional[int] = None
    sid: Optional[int] = None
    channel: Optional[str] = None


class Unsubscribed(WsMessage):
    msg_type: str = "unsubscribed"
    id: Optional[int] = None
    sid: Optional[int] = None


class Ok(WsMessage):
    msg_type: str = "ok"
    id: Optional[int] = None
    sid: Optional[int] = None


class ListSubscriptions(WsMessage):
    msg_type: str = "list_subscriptions"
    id: Optional[int] = None
    subscriptions: List[SubscriptionInfo] = Field(default_factory=list)


class ErrorMessage(WsMessage):
    """Server-reported error. Delivered as data, the connection stays open."""
    msg_type: str = "error"
    id: Optional[int] = None
    error: WsError = Field(default_factory=WsError)

    def to_exception(self) -> KalshiServerError:
        return KalshiServerError(
            self.error.message or "Server error",
            code=self.error.code,
            command_id=self.id,
        )


class DataMessage(WsMessage):
    """Channel data frame."""
    sid: Optional[int] = None
    seq: Optional[int] = None


class TickerMessage(DataMessage):
    msg_type: str = "ticker"
    msg: WsTicker


class TickerV2Message(DataMessage):
    msg_type: str = "ticker_v2"
    msg: WsTickerV2


class TradeMessage(DataMessage):
    msg_type: str = "trade"
    msg: WsTrade


class OrderbookSnapshotMessage(DataMessage):
    msg_type: str = "orderbook_snapshot"
    msg: WsOrderbookSnapshot


class OrderbookDeltaMessage(DataMessage):
    msg_type: str = "orderbook_delta"
    msg: WsOrderbookDelta


class FillMessage(DataMessage):
    msg_type: str = "fill"
    msg: WsFill


class MarketPositionsMessage(DataMessage):
    msg_type: str = "market_positions"
    msg: WsMarketPositions


class MarketLifecycleMessage(DataMessage):
    msg_type: str = "market_lifecycle_v2"
    msg: WsMarketLifecycleV2


class MultivariateMessage(DataMessage):
    msg_type: str = "multivariate"
    msg: WsMultivariate


class CommunicationsMessage(DataMessage):
    """RFQ and quote events; ``msg_type`` names the concrete event."""
    msg: WsCommunications


class OrderGroupUpdatesMessage(DataMessage):
    msg_type: str = "order_group_updates"
    msg: WsOrderGroupUpdate


class UnknownMessage(WsMessage):
    """Frame with a type tag this client does not model.

    Never an error: the raw payload text is kept for the caller.
    """
    id: Optional[int] = None
    sid: Optional[int] = None
    seq: Optional[int] = None
    raw: Optional[str] = None


Message = Union[
    Subscribed,
    Unsubscribed,
    Ok,
    ListSubscriptions,
    ErrorMessage,
    TickerMessage,
    TickerV2Message,
    TradeMessage,
    OrderbookSnapshotMessage,
    OrderbookDeltaMessage,
    FillMessage,
    MarketPositionsMessage,
    MarketLifecycleMessage,
    MultivariateMessage,
    CommunicationsMessage,
    OrderGroupUpdatesMessage,
    UnknownMessage,
]

CONTROL_TYPES = frozenset({"subscribed", "unsubscribed", "ok", "list_subscriptions", "error"})

# type tag -> (message class, payload model)
DATA_TYPES: Dict[str, Tuple[Type[DataMessage], Type[KalshiWireModel]]] = {
    "ticker": (TickerMessage, WsTicker),
    "ticker_v2": (TickerV2Message, WsTickerV2),
    "trade": (TradeMessage, WsTrade),
    "orderbook_snapshot": (OrderbookSnapshotMessage, WsOrderbookSnapshot),
    "orderbook_delta": (OrderbookDeltaMessage, WsOrderbookDelta),
    "fill": (FillMessage, WsFill),
    "market_positions": (MarketPositionsMessage, WsMarketPositions),
    "market_lifecycle_v2": (MarketLifecycleMessage, WsMarketLifecycleV2),
    "multivariate": (MultivariateMessage, WsMultivariate),
    "multivariate_lookup": (MultivariateMessage, WsMultivariate),
    "rfq_created": (CommunicationsMessage, WsRfqCreated),
    "rfq_deleted": (CommunicationsMessage, WsRfqDeleted),
    "quote_created": (CommunicationsMessage, WsQuoteCreated),
    "quote_accepted": (CommunicationsMessage, WsQuoteAccepted),
    "quote_executed": (CommunicationsMessage, WsQuoteExecuted),
    "order_group_updates": (OrderGroupUpdatesMessage, WsOrderGroupUpdate),
}

_subscription_list = TypeAdapter(List[SubscriptionInfo])


class _ControlBody(KalshiWireModel):
    sid: Optional[int] = None
    channel: Optional[str] = None


class _ListSubscriptionsBody(KalshiWireModel):
    subscriptions: List[SubscriptionInfo] = Field(default_factory=list)


# ============================================================================
# Envelope (phase one)
# ============================================================================

class Envelope(msgspec.Struct, frozen=True):
    """Outer structure shared by all inbound frames.

    ``msg`` and ``subscriptions`` stay undecoded; an empty ``Raw`` means the
    field was absent.
    """
    type: str
    id: Optional[int] = None
    sid: Optional[int] = None
    seq: Optional[int] = None
    msg: msgspec.Raw = msgspec.field(default_factory=msgspec.Raw)
    subscriptions: msgspec.Raw = msgspec.field(default_factory=msgspec.Raw)

    def has_msg(self) -> bool:
        return not _is_absent(self.msg)

    def msg_text(self) -> Optional[str]:
        if _is_absent(self.msg):
            return None
        # msgspec skips string contents inside Raw without validating them.
        return bytes(self.msg).decode("utf-8", errors="replace")

    def into_message(self) -> Message:
        """Decode the payload for this envelope's type tag.

        Raises:
            KalshiDecodeError: Known type whose payload does not match its shape
        """
        try:
            return self._decode_payload()
        except KalshiDecodeError:
            raise
        except (ValueError, TypeError) as e:
            raise KalshiDecodeError(
                f"Failed to decode {self.type} frame: {e}",
                msg_type=self.type,
                data=bytes(self.msg),
            ) from e

    def _decode_payload(self) -> Message:
        msg_type = self.type

        if msg_type in ("subscribed", "unsubscribed", "ok"):
            # The sid may sit at the top level or inside msg.
            body = _ControlBody()
            if self.has_msg():
                body = _parse_payload(msg_type, self.msg, _ControlBody)
            sid = self.sid if self.sid is not None else body.sid
            if msg_type == "subscribed":
                return Subscribed(id=self.id, sid=sid, channel=body.channel)
            if msg_type == "unsubscribed":
                return Unsubscribed(id=self.id, sid=sid)
            return Ok(id=self.id, sid=sid)
        if msg_type == "list_subscriptions":
            if self.has_msg():
                body = _parse_payload(msg_type, self.msg, _ListSubscriptionsBody)
                subscriptions = body.subscriptions
            elif not _is_absent(self.subscriptions):
                subscriptions = _parse_subscription_list(self.subscriptions)
            else:
                subscriptions = []
            return ListSubscriptions(id=self.id, subscriptions=subscriptions)
        if msg_type == "error":
            error = _parse_payload(msg_type, self.msg, WsError) if self.has_msg() else WsError()
            return ErrorMessage(id=self.id, error=error)

        entry = DATA_TYPES.get(msg_type)
        if entry is None:
            # Includes the bare "communications" tag, which carries no
            # discriminator for the RFQ/quote payload it wraps.
            return UnknownMessage(
                msg_type=msg_type,
                id=self.id,
                sid=self.sid,
                seq=self.seq,
                raw=self.msg_text(),
            )

        message_cls, payload_cls = entry
        if not self.has_msg():
            raise KalshiDecodeError(f"{msg_type}: missing msg", msg_type=msg_type)
        payload = _parse_payload(msg_type, self.msg, payload_cls)
        return message_cls(msg_type=msg_type, sid=self.sid, seq=self.seq, msg=payload)


def _is_absent(raw: msgspec.Raw) -> bool:
    view = memoryview(raw)
    return view.nbytes == 0 or view == b"null"


def _parse_payload(msg_type: str, raw: msgspec.Raw, model: Type[Any]) -> Any:
    try:
        return model.model_validate_json(bytes(raw))
    except ValidationError as e:
        raise KalshiDecodeError(
            f"Failed to parse {msg_type} payload: {e}",
            msg_type=msg_type,
            data=bytes(raw),
        ) from e


def _parse_subscription_list(raw: msgspec.Raw) -> List[SubscriptionInfo]:
    try:
        return _subscription_list.validate_json(bytes(raw))
    except ValidationError as e:
        raise KalshiDecodeError(
            f"Failed to parse list_subscriptions payload: {e}",
            msg_type="list_subscriptions",
            data=bytes(raw),
        ) from e


_envelope_decoder = msgspec.json.Decoder(Envelope)


def decode_envelope(frame: Frame) -> Envelope:
    """Scan a frame's envelope without decoding its payload.

    Raises:
        KalshiDecodeError: Frame is not a JSON object with a string ``type``
    """
    if isinstance(frame, str):
        frame = frame.encode("utf-8")
    try:
        return _envelope_decoder.decode(frame)
    except msgspec.DecodeError as e:
        data = frame if isinstance(frame, bytes) else bytes(frame)
        raise KalshiDecodeError(f"Invalid envelope: {e}", data=data) from e


def decode_message(frame: Frame) -> Message:
    """Decode a frame into an owned message.

    Args:
        frame: Text or binary frame contents

    Returns:
        Decoded message; unrecognized type tags yield :class:`UnknownMessage`

    Raises:
        KalshiDecodeError: Malformed envelope or payload
    """
    return decode_envelope(frame).into_message()


class BorrowedMessage:
    """Envelope fields plus a payload view over the original frame buffer.

    Nothing beyond the envelope is decoded until :meth:`payload` or
    :meth:`to_owned` is called.
    """

    __slots__ = ("_frame", "_envelope")

    def __init__(self, frame: Frame, envelope: Envelope) -> None:
        self._frame = frame
        self._envelope = envelope

    @property
    def frame(self) -> Frame:
        return self._frame

    @property
    def envelope(self) -> Envelope:
        return self._envelope

    @property
    def msg_type(self) -> str:
        return self._envelope.type

    @property
    def id(self) -> Optional[int]:
        return self._envelope.id

    @property
    def sid(self) -> Optional[int]:
        return self._envelope.sid

    @property
    def seq(self) -> Optional[int]:
        return self._envelope.seq

    @property
    def msg_raw(self) -> Optional[memoryview]:
        """Undecoded payload bytes, or None when the frame has no ``msg``."""
        if not self._envelope.has_msg():
            return None
        return memoryview(self._envelope.msg)

    @property
    def is_control(self) -> bool:
        return self.msg_type in CONTROL_TYPES

    @property
    def is_known(self) -> bool:
        return self.is_control or self.msg_type in DATA_TYPES

    def payload(self) -> Optional[KalshiWireModel]:
        """Typed payload of a data frame, None for control and unknown frames.

        Raises:
            KalshiDecodeError: Payload does not match the type's shape
        """
        message = self.to_owned()
        if isinstance(message, DataMessage):
            return message.msg
        return None

    def to_owned(self) -> Message:
        """Decode into the same message :func:`decode_message` would return."""
        return self._envelope.into_message()

    def __repr__(self) -> str:
        return (
            f"BorrowedMessage(msg_type={self.msg_type!r}, id={self.id!r}, "
            f"sid={self.sid!r}, seq={self.seq!r})"
        )


def decode_borrowed(frame: Frame) -> BorrowedMessage:
    """Decode only the envelope, keeping the payload as a view into ``frame``.

    Raises:
        KalshiDecodeError: Malformed envelope
    """
    return BorrowedMessage(frame, decode_envelope(frame))


# ============================================================================
# Outbound commands
# ============================================================================

def encode_command(command_id: int, cmd: str, params: Optional[Dict[str, Any]] = None) -> str:
    """Serialize one command frame."""
    payload: Dict[str, Any] = {"id": command_id, "cmd": cmd}
    if params is not None:
        payload["params"] = params
    return json.dumps(payload, separators=(",", ":"))


class CommandEncoder:
    """Builds command frames with monotonically increasing correlation ids."""

    def __init__(self, start_id: int = 1) -> None:
        self._next_id = start_id

    def next_id(self) -> int:
        command_id = self._next_id
        self._next_id += 1
        return command_id

    def subscribe(self, params: SubscriptionParams) -> Tuple[int, str]:
        command_id = self.next_id()
        return command_id, encode_command(command_id, "subscribe", params.to_wire())

    def unsubscribe(self, sid: int) -> Tuple[int, str]:
        command_id = self.next_id()
        return command_id, encode_command(command_id, "unsubscribe", {"sid": sid})

    def update_subscription(self, params: UpdateSubscriptionParams) -> Tuple[int, str]:
        command_id = self.next_id()
        return command_id, encode_command(command_id, "update_subscription", params.to_wire())

    def list_subscriptions(self) -> Tuple[int, str]:
        command_id = self.next_id()
        return command_id, encode_command(command_id, "list_subscriptions")
