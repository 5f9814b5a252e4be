"""Wire types for the Kalshi REST and streaming APIs."""

from kalshi.types.common import BuySell
from kalshi.types.common import Channel
from kalshi.types.common import EventStatus
from kalshi.types.common import MarketStatus
from kalshi.types.common import MveFilter
from kalshi.types.common import OrderGroupEventType
from kalshi.types.common import OrderStatus
from kalshi.types.common import OrderType
from kalshi.types.common import PositionCountFilter
from kalshi.types.common import SelfTradePreventionType
from kalshi.types.common import TimeInForce
from kalshi.types.common import TradeTakerSide
from kalshi.types.common import YesNo
from kalshi.types.portfolio import CreateOrderRequest
from kalshi.types.websocket import EventPosition
from kalshi.types.websocket import MarketPosition
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
from kalshi.types.websocket import validate_subscription

__all__ = [
    "BuySell",
    "Channel",
    "CreateOrderRequest",
    "EventPosition",
    "EventStatus",
    "MarketPosition",
    "MarketStatus",
    "MveFilter",
    "OrderGroupEventType",
    "OrderStatus",
    "OrderType",
    "PositionCountFilter",
    "SelfTradePreventionType",
    "SubscriptionInfo",
    "SubscriptionParams",
    "TimeInForce",
    "TradeTakerSide",
    "UpdateSubscriptionParams",
    "WsError",
    "WsFill",
    "WsMarketLifecycleV2",
    "WsMarketPositions",
    "WsMultivariate",
    "WsOrderbookDelta",
    "WsOrderbookSnapshot",
    "WsOrderGroupUpdate",
    "WsQuoteAccepted",
    "WsQuoteCreated",
    "WsQuoteExecuted",
    "WsRfqCreated",
    "WsRfqDeleted",
    "WsTicker",
    "WsTickerV2",
    "WsTrade",
    "YesNo",
    "validate_subscription",
]
