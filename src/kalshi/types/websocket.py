"""Streaming payload types and subscription parameters."""

from __future__ import annotations

import json
from typing import Any
from typing import Dict
from typing import FrozenSet
from typing import List
from typing import Optional
from typing import Tuple

from pydantic import AliasChoices
from pydantic import Field
from pydantic import field_validator

from kalshi.errors import KalshiInvalidParamsError
from kalshi.models import KalshiBaseModel
from kalshi.types.common import BuySell
from kalshi.types.common import Channel
from kalshi.types.common import FixedPointCount
from kalshi.types.common import FixedPointDollars
from kalshi.types.common import KalshiWireModel
from kalshi.types.common import MarketStatus
from kalshi.types.common import OrderGroupEventType
from kalshi.types.common import TradeTakerSide
from kalshi.types.common import YesNo


# ============================================================================
# Subscriptions
# ============================================================================

class SubscriptionParams(KalshiBaseModel):
    """Parameters of a ``subscribe`` command."""
    channels: List[Channel] = Field(..., description="Channels to subscribe to")
    market_tickers: Optional[List[str]] = Field(None, description="Market ticker filter")
    market_ids: Optional[List[str]] = Field(None, description="Market id filter")
    event_tickers: Optional[List[str]] = Field(None, description="Event ticker filter")
    send_initial_snapshot: Optional[bool] = Field(
        None, description="Send an orderbook snapshot before deltas"
    )
    shard_factor: Optional[int] = Field(None, ge=1, description="Communications shard factor")
    shard_key: Optional[str] = Field(None, description="Communications shard key")

    def channel_set(self) -> FrozenSet[Channel]:
        return frozenset(Channel(c) for c in self.channels)

    def requires_auth(self) -> bool:
        return any(channel.is_private for channel in self.channel_set())

    def normalized(self) -> SubscriptionParams:
        """Canonical form: channels and filter lists sorted and de-duplicated."""
        def _sorted(values: Optional[List[str]]) -> Optional[List[str]]:
            if values is None:
                return None
            return sorted(set(values))

        return SubscriptionParams(
            channels=sorted(self.channel_set(), key=lambda c: c.value),
            market_tickers=_sorted(self.market_tickers),
            market_ids=_sorted(self.market_ids),
            event_tickers=_sorted(self.event_tickers),
            send_initial_snapshot=self.send_initial_snapshot,
            shard_factor=self.shard_factor,
            shard_key=self.shard_key,
        )

    def key(self) -> str:
        """Equality key; semantically identical requests share a key."""
        return json.dumps(self.normalized().to_wire(), sort_keys=True, separators=(",", ":"))

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class UpdateSubscriptionParams(KalshiBaseModel):
    """Parameters of an ``update_subscription`` command."""
    sid: int = Field(..., description="Server-assigned subscription id")
    market_tickers: Optional[List[str]] = None
    market_ids: Optional[List[str]] = None
    event_tickers: Optional[List[str]] = None
    send_initial_snapshot: Optional[bool] = None
    shard_factor: Optional[int] = Field(None, ge=1)
    shard_key: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)

    def apply_to(self, params: SubscriptionParams) -> SubscriptionParams:
        """Merge the fields set here into existing subscription parameters."""
        changes = self.model_dump(exclude_none=True, exclude={"sid"})
        return params.model_copy(update=changes).normalized()


class SubscriptionInfo(KalshiWireModel):
    """One entry of a ``list_subscriptions`` response."""
    sid: int
    channels: List[str] = Field(default_factory=list)
    market_tickers: Optional[List[str]] = None
    market_ids: Optional[List[str]] = None
    event_tickers: Optional[List[str]] = None
    send_initial_snapshot: Optional[bool] = None
    shard_factor: Optional[int] = None
    shard_key: Optional[str] = None


def validate_subscription(params: SubscriptionParams) -> None:
    """Check a subscription before it is sent.

    Raises:
        KalshiInvalidParamsError: Parameters the server would reject
    """
    if not params.channels:
        raise KalshiInvalidParamsError("subscribe: at least one channel is required")

    channels = params.channel_set()
    has_orderbook_delta = Channel.ORDERBOOK_DELTA in channels
    has_market_positions = Channel.MARKET_POSITIONS in channels
    has_communications = Channel.COMMUNICATIONS in channels

    if has_orderbook_delta and not (params.market_tickers or params.market_ids):
        raise KalshiInvalidParamsError(
            "subscribe: orderbook_delta requires market_tickers or market_ids"
        )

    if params.send_initial_snapshot is not None and not has_orderbook_delta:
        raise KalshiInvalidParamsError(
            "subscribe: send_initial_snapshot is only valid with orderbook_delta"
        )

    if has_market_positions and params.market_ids:
        raise KalshiInvalidParamsError(
            "subscribe: market_positions does not accept market_ids"
        )

    if (params.shard_factor is not None or params.shard_key is not None) and not has_communications:
        raise KalshiInvalidParamsError(
            "subscribe: shard_factor/shard_key are only valid with communications"
        )


# ============================================================================
# Market data payloads
# ============================================================================

class WsTicker(KalshiWireModel):
    """Payload of ``ticker`` frames."""
    market_ticker: str
    market_id: str
    price: int
    yes_bid: int
    yes_ask: int
    price_dollars: FixedPointDollars
    yes_bid_dollars: FixedPointDollars
    yes_ask_dollars: FixedPointDollars
    volume: int
    volume_fp: FixedPointCount
    open_interest: int
    open_interest_fp: FixedPointCount
    dollar_volume: int
    dollar_open_interest: int
    ts: int


class WsTickerV2(KalshiWireModel):
    """Payload of ``ticker_v2`` frames; only changed fields are present."""
    market_ticker: str
    market_id: Optional[str] = None
    price: Optional[int] = None
    price_dollars: Optional[FixedPointDollars] = None
    yes_bid: Optional[int] = None
    yes_ask: Optional[int] = None
    no_bid: Optional[int] = None
    no_ask: Optional[int] = None
    volume: Optional[int] = None
    volume_fp: Optional[FixedPointCount] = None
    open_interest: Optional[int] = None
    open_interest_fp: Optional[FixedPointCount] = None
    ts: Optional[int] = None


class WsTrade(KalshiWireModel):
    """Payload of ``trade`` frames."""
    trade_id: str
    ticker: str
    price: Optional[int] = None
    count: Optional[int] = None
    count_fp: Optional[FixedPointCount] = None
    yes_price: Optional[int] = None
    no_price: Optional[int] = None
    yes_price_dollars: Optional[FixedPointDollars] = None
    no_price_dollars: Optional[FixedPointDollars] = None
    taker_side: Optional[TradeTakerSide] = None
    created_time: Optional[str] = None


class WsOrderbookSnapshot(KalshiWireModel):
    """Payload of ``orderbook_snapshot`` frames.

    ``yes``/``no`` levels are ``(price_cents, quantity)``; the ``_dollars``
    variants are ``(price_dollars, quantity)`` and the ``_dollars_fp`` variants
    are fully fixed-point ``(price_dollars, quantity_fp)``.
    """
    market_ticker: str
    market_id: str
    yes: List[Tuple[int, int]] = Field(default_factory=list)
    no: List[Tuple[int, int]] = Field(default_factory=list)
    yes_dollars: List[Tuple[FixedPointDollars, int]] = Field(default_factory=list)
    no_dollars: List[Tuple[FixedPointDollars, int]] = Field(default_factory=list)
    yes_dollars_fp: List[Tuple[FixedPointDollars, FixedPointCount]] = Field(default_factory=list)
    no_dollars_fp: List[Tuple[FixedPointDollars, FixedPointCount]] = Field(default_factory=list)


class WsOrderbookDelta(KalshiWireModel):
    """Payload of ``orderbook_delta`` frames."""
    market_ticker: str
    market_id: str
    price: int
    price_dollars: FixedPointDollars
    delta: int
    delta_fp: FixedPointCount
    side: YesNo
    client_order_id: Optional[str] = None
    subaccount: Optional[int] = None
    ts: Optional[str] = None


class WsMarketLifecycleV2(KalshiWireModel):
    """Payload of ``market_lifecycle_v2`` frames."""
    market_ticker: str
    status: Optional[MarketStatus] = None
    can_trade: Optional[bool] = None
    can_settle: Optional[bool] = None
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    settled_time: Optional[str] = None


class WsMultivariateSelectedMarket(KalshiWireModel):
    event_ticker: str
    market_ticker: str
    side: YesNo


class WsMultivariate(KalshiWireModel):
    """Payload of ``multivariate`` / ``multivariate_lookup`` frames."""
    collection_ticker: str
    event_ticker: str
    market_ticker: str
    selected_markets: List[WsMultivariateSelectedMarket]


# ============================================================================
# Account payloads
# ============================================================================

class WsFill(KalshiWireModel):
    """Payload of ``fill`` frames."""
    fill_id: str
    trade_id: str
    order_id: str
    client_order_id: Optional[str] = None
    ticker: str
    market_ticker: str
    side: YesNo
    action: BuySell
    count: int
    count_fp: FixedPointCount
    yes_price: int
    no_price: int
    yes_price_fixed: FixedPointDollars = Field(
        ..., validation_alias=AliasChoices("yes_price_fixed", "yes_price_dollars")
    )
    no_price_fixed: FixedPointDollars = Field(
        ..., validation_alias=AliasChoices("no_price_fixed", "no_price_dollars")
    )
    is_taker: bool
    fee_cost: FixedPointDollars
    created_time: Optional[str] = None
    subaccount_number: Optional[int] = None
    ts: Optional[int] = None


class MarketPosition(KalshiWireModel):
    ticker: str
    position: Optional[int] = None
    position_fp: Optional[FixedPointCount] = None
    fees_paid: Optional[int] = None
    fees_paid_fp: Optional[FixedPointDollars] = None
    resting_orders: Optional[int] = None
    resting_orders_fp: Optional[FixedPointCount] = None
    total_traded: Optional[int] = None
    total_traded_fp: Optional[FixedPointCount] = None
    subaccount: Optional[int] = None


class EventPosition(KalshiWireModel):
    event_ticker: str
    position: Optional[int] = None
    position_fp: Optional[FixedPointCount] = None
    fees_paid: Optional[int] = None
    fees_paid_fp: Optional[FixedPointDollars] = None
    resting_orders: Optional[int] = None
    resting_orders_fp: Optional[FixedPointCount] = None
    total_traded: Optional[int] = None
    total_traded_fp: Optional[FixedPointCount] = None
    subaccount: Optional[int] = None


class WsMarketPositions(KalshiWireModel):
    """Payload of ``market_positions`` frames."""
    market_positions: List[MarketPosition] = Field(default_factory=list)
    event_positions: List[EventPosition] = Field(default_factory=list)


class WsOrderGroupUpdate(KalshiWireModel):
    """Payload of ``order_group_updates`` frames."""
    event_type: OrderGroupEventType
    order_group_id: str
    contracts_limit_fp: Optional[FixedPointCount] = None

    @field_validator("event_type", mode="before")
    @classmethod
    def _unknown_event_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            return OrderGroupEventType(value)
        return value


# ============================================================================
# Communications (RFQs and quotes)
# ============================================================================

class WsMveSelectedLeg(KalshiWireModel):
    event_ticker: Optional[str] = None
    market_ticker: Optional[str] = None
    side: Optional[YesNo] = None
    yes_settlement_value_dollars: Optional[FixedPointDollars] = None


class WsRfqCreated(KalshiWireModel):
    id: str
    creator_id: str
    market_ticker: str
    event_ticker: Optional[str] = None
    contracts: Optional[int] = None
    contracts_fp: Optional[FixedPointCount] = None
    target_cost: Optional[int] = None
    target_cost_dollars: Optional[FixedPointDollars] = None
    created_ts: str
    mve_collection_ticker: Optional[str] = None
    mve_selected_legs: Optional[List[WsMveSelectedLeg]] = None


class WsRfqDeleted(KalshiWireModel):
    id: str
    creator_id: str
    market_ticker: str
    event_ticker: Optional[str] = None
    contracts: Optional[int] = None
    contracts_fp: Optional[FixedPointCount] = None
    target_cost: Optional[int] = None
    target_cost_dollars: Optional[FixedPointDollars] = None
    deleted_ts: str


class WsQuoteCreated(KalshiWireModel):
    quote_id: str
    rfq_id: str
    quote_creator_id: str
    market_ticker: str
    event_ticker: Optional[str] = None
    yes_bid: int
    no_bid: int
    yes_bid_dollars: FixedPointDollars
    no_bid_dollars: FixedPointDollars
    yes_contracts_offered: Optional[int] = None
    no_contracts_offered: Optional[int] = None
    yes_contracts_offered_fp: Optional[FixedPointCount] = None
    no_contracts_offered_fp: Optional[FixedPointCount] = None
    rfq_target_cost: Optional[int] = None
    rfq_target_cost_dollars: Optional[FixedPointDollars] = None
    created_ts: str


class WsQuoteAccepted(KalshiWireModel):
    quote_id: str
    rfq_id: str
    quote_creator_id: str
    market_ticker: str
    event_ticker: Optional[str] = None
    yes_bid: int
    no_bid: int
    yes_bid_dollars: FixedPointDollars
    no_bid_dollars: FixedPointDollars
    accepted_side: Optional[YesNo] = None
    contracts_accepted: Optional[int] = None
    yes_contracts_offered: Optional[int] = None
    no_contracts_offered: Optional[int] = None
    contracts_accepted_fp: Optional[FixedPointCount] = None
    yes_contracts_offered_fp: Optional[FixedPointCount] = None
    no_contracts_offered_fp: Optional[FixedPointCount] = None
    rfq_target_cost: Optional[int] = None
    rfq_target_cost_dollars: Optional[FixedPointDollars] = None


class WsQuoteExecuted(KalshiWireModel):
    quote_id: str
    rfq_id: str
    quote_creator_id: str
    rfq_creator_id: str
    order_id: str
    client_order_id: str
    market_ticker: str
    executed_ts: str


class WsError(KalshiWireModel):
    """Body of a server ``error`` frame."""
    code: Optional[int] = None
    message: Optional[str] = Field(None, validation_alias=AliasChoices("msg", "message"))
