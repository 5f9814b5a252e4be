"""Request bodies for portfolio endpoints."""

from __future__ import annotations

from typing import Any
from typing import Dict
from typing import Optional

from pydantic import Field

from kalshi.errors import KalshiInvalidParamsError
from kalshi.models import KalshiBaseModel
from kalshi.types.common import BuySell
from kalshi.types.common import FixedPointCount
from kalshi.types.common import FixedPointDollars
from kalshi.types.common import OrderType
from kalshi.types.common import SelfTradePreventionType
from kalshi.types.common import TimeInForce
from kalshi.types.common import YesNo


class CreateOrderRequest(KalshiBaseModel):
    """Body of ``POST /portfolio/orders``."""
    ticker: str = Field(..., description="Market ticker")
    side: YesNo = Field(..., description="Contract side")
    action: BuySell = Field(..., description="Buy or sell")
    client_order_id: Optional[str] = Field(None, description="Caller supplied order id")
    count: Optional[int] = Field(None, description="Whole contract count")
    count_fp: Optional[FixedPointCount] = Field(None, description="Fixed-point contract count")
    type: Optional[OrderType] = Field(None, description="Order type")
    yes_price: Optional[int] = Field(None, description="Yes price in cents")
    no_price: Optional[int] = Field(None, description="No price in cents")
    yes_price_dollars: Optional[FixedPointDollars] = Field(None, description="Yes price in dollars")
    no_price_dollars: Optional[FixedPointDollars] = Field(None, description="No price in dollars")
    expiration_ts: Optional[int] = Field(None, description="Expiration, seconds since epoch")
    time_in_force: Optional[TimeInForce] = None
    buy_max_cost: Optional[int] = Field(None, description="Maximum cost in cents")
    post_only: Optional[bool] = None
    reduce_only: Optional[bool] = None
    self_trade_prevention_type: Optional[SelfTradePreventionType] = None
    order_group_id: Optional[str] = None
    cancel_order_on_pause: Optional[bool] = None
    subaccount: Optional[int] = None

    def check(self) -> None:
        """Reject field combinations the venue refuses.

        Raises:
            KalshiInvalidParamsError: Invalid combination
        """
        if not self.ticker:
            raise KalshiInvalidParamsError("create_order: ticker is required")

        if self.count is None and self.count_fp is None:
            raise KalshiInvalidParamsError("create_order: must provide count or count_fp")
        if self.count is not None and self.count < 1:
            raise KalshiInvalidParamsError("create_order: count must be positive")
        if self.count is not None and self.count_fp is not None:
            try:
                fp_value = float(self.count_fp)
            except ValueError:
                raise KalshiInvalidParamsError(
                    f"create_order: count_fp {self.count_fp!r} is not a number"
                ) from None
            if abs(fp_value - self.count) > 1e-9:
                raise KalshiInvalidParamsError("create_order: count and count_fp must match")

        has_yes_cents = self.yes_price is not None
        has_no_cents = self.no_price is not None
        has_yes_dollars = self.yes_price_dollars is not None
        has_no_dollars = self.no_price_dollars is not None
        has_price = has_yes_cents or has_no_cents or has_yes_dollars or has_no_dollars

        if has_yes_cents and has_yes_dollars:
            raise KalshiInvalidParamsError(
                "create_order: cannot set both yes_price and yes_price_dollars"
            )
        if has_no_cents and has_no_dollars:
            raise KalshiInvalidParamsError(
                "create_order: cannot set both no_price and no_price_dollars"
            )
        if (has_yes_cents or has_yes_dollars) and (has_no_cents or has_no_dollars):
            raise KalshiInvalidParamsError("create_order: cannot set both yes and no prices")

        for name in ("yes_price", "no_price"):
            cents = getattr(self, name)
            if cents is not None and not 1 <= cents <= 99:
                raise KalshiInvalidParamsError(f"create_order: {name} must be 1..99 cents")

        if self.type == OrderType.MARKET.value and has_price:
            raise KalshiInvalidParamsError("create_order: market orders cannot include price fields")
        if self.type == OrderType.LIMIT.value and not has_price:
            raise KalshiInvalidParamsError("create_order: limit orders require a price")

        if self.subaccount is not None and not 0 <= self.subaccount <= 32:
            raise KalshiInvalidParamsError("subaccount must be 0..32")

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)
