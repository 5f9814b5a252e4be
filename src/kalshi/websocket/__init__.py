"""WebSocket components for Kalshi SDK."""

from .codec import BorrowedMessage
from .codec import CommandEncoder
from .codec import Message
from .codec import UnknownMessage
from .codec import decode_borrowed
from .codec import decode_message
from .connection import Connection
from .connection import ConnectionState
from .manager import DecodeErrorEvent
from .manager import DisconnectedEvent
from .manager import MessageEvent
from .manager import RawEvent
from .manager import ReconnectedEvent
from .manager import StreamEvent
from .manager import SubscriptionManager

__all__ = [
    "BorrowedMessage",
    "CommandEncoder",
    "Connection",
    "ConnectionState",
    "DecodeErrorEvent",
    "DisconnectedEvent",
    "Message",
    "MessageEvent",
    "RawEvent",
    "ReconnectedEvent",
    "StreamEvent",
    "SubscriptionManager",
    "UnknownMessage",
    "decode_borrowed",
    "decode_message",
]
