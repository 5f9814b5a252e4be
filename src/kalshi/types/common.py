"""Common enums and base model for Kalshi wire types."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel
from pydantic import ConfigDict

# Fixed-point dollar string, e.g. "0.5600"
FixedPointDollars = str
# Fixed-point contract count string, e.g. "10.00"
FixedPointCount = str


class KalshiWireModel(BaseModel):
    """Base for payloads received from the venue.

    Unknown fields are ignored so new server-side fields never break decoding.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class Channel(str, Enum):
    """Streaming channel names."""
    # Public
    TICKER = "ticker"
    TICKER_V2 = "ticker_v2"
    TRADE = "trade"
    MARKET_LIFECYCLE_V2 = "market_lifecycle_v2"
    MULTIVARIATE = "multivariate"

    # Private (authentication required)
    ORDERBOOK_DELTA = "orderbook_delta"
    FILL = "fill"
    MARKET_POSITIONS = "market_positions"
    COMMUNICATIONS = "communications"
    ORDER_GROUP_UPDATES = "order_group_updates"

    @property
    def is_private(self) -> bool:
        return self in _PRIVATE_CHANNELS


_PRIVATE_CHANNELS = frozenset(
    {
        Channel.ORDERBOOK_DELTA,
        Channel.FILL,
        Channel.MARKET_POSITIONS,
        Channel.COMMUNICATIONS,
        Channel.ORDER_GROUP_UPDATES,
    }
)


class YesNo(str, Enum):
    """Contract side."""
    YES = "yes"
    NO = "no"


class BuySell(str, Enum):
    """Order action."""
    BUY = "buy"
    SELL = "sell"


class TradeTakerSide(str, Enum):
    """Side of the taker in a public trade."""
    YES = "yes"
    NO = "no"


class MarketStatus(str, Enum):
    """Market status enumeration."""
    UNOPENED = "unopened"
    OPEN = "open"
    PAUSED = "paused"
    CLOSED = "closed"
    SETTLED = "settled"


class OrderGroupEventType(str, Enum):
    """Order group lifecycle event. Unrecognized values map to UNKNOWN."""
    CREATED = "created"
    TRIGGERED = "triggered"
    RESET = "reset"
    DELETED = "deleted"
    LIMIT_UPDATED = "limit_updated"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value: object) -> OrderGroupEventType:
        return cls.UNKNOWN


class EventStatus(str, Enum):
    """Event status filter."""
    OPEN = "open"
    CLOSED = "closed"
    SETTLED = "settled"


class MveFilter(str, Enum):
    """Multivariate event filter for market listings."""
    ONLY = "only"
    EXCLUDE = "exclude"


class OrderStatus(str, Enum):
    """Order status enumeration."""
    RESTING = "resting"
    CANCELED = "canceled"
    EXECUTED = "executed"


class OrderType(str, Enum):
    """Order type enumeration."""
    LIMIT = "limit"
    MARKET = "market"


class TimeInForce(str, Enum):
    """Time in force enumeration."""
    FILL_OR_KILL = "fill_or_kill"
    GOOD_TILL_CANCELED = "good_till_canceled"
    IMMEDIATE_OR_CANCEL = "immediate_or_cancel"


class SelfTradePreventionType(str, Enum):
    """Self-trade prevention mode."""
    TAKER_AT_CROSS = "taker_at_cross"
    MAKER = "maker"


class PositionCountFilter(str, Enum):
    """Restrict positions to those with a non-zero value in this field."""
    POSITION = "position"
    TOTAL_TRADED = "total_traded"
