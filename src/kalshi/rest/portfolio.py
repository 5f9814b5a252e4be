"""Authenticated portfolio endpoints: balance, positions, orders, fills."""

from __future__ import annotations

import logging
from typing import Any
from typing import Dict
from typing import List
from typing import Optional
from typing import Union

from kalshi.errors import KalshiInvalidParamsError
from kalshi.pagination import CursorPager
from kalshi.rest.base import BaseAPI
from kalshi.rest.base import check_limit
from kalshi.rest.base import check_subaccount
from kalshi.rest.base import csv_param
from kalshi.rest.base import enum_param
from kalshi.types.common import OrderStatus
from kalshi.types.common import PositionCountFilter
from kalshi.types.portfolio import CreateOrderRequest

logger = logging.getLogger(__name__)

POSITIONS_MAX_LIMIT = 1000
ORDERS_MAX_LIMIT = 200
FILLS_MAX_LIMIT = 1000
SETTLEMENTS_MAX_LIMIT = 1000


class PortfolioAPI(BaseAPI):
    """Account state and order entry. Every call is signed."""

    async def get_balance(self) -> Dict[str, Any]:
        """Get balance and portfolio value, in cents."""
        return await self._get("/portfolio/balance", auth=True)

    def _position_params(
        self,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
        count_filter: Optional[List[Union[PositionCountFilter, str]]] = None,
        ticker: Optional[str] = None,
        event_ticker: Optional[Union[str, List[str]]] = None,
        subaccount: Optional[int] = None,
    ) -> Dict[str, Any]:
        endpoint = "GET /portfolio/positions"
        check_limit(endpoint, limit, POSITIONS_MAX_LIMIT)
        check_subaccount(subaccount)
        filters = None
        if count_filter:
            filters = ",".join(
                enum_param(endpoint, "count_filter", PositionCountFilter, item).value
                for item in count_filter
            )
        return {
            "limit": limit,
            "cursor": cursor,
            "count_filter": filters,
            "ticker": ticker,
            "event_ticker": csv_param(endpoint, "event_ticker", event_ticker),
            "subaccount": subaccount,
        }

    async def get_positions(self, **filters: Any) -> Dict[str, Any]:
        """List market and event positions.

        Returns:
            ``{"market_positions": [...], "event_positions": [...], "cursor": ...}``
        """
        return await self._get(
            "/portfolio/positions",
            params=self._position_params(**filters),
            auth=True,
        )

    def positions_pager(self, **filters: Any) -> CursorPager[Dict[str, Any]]:
        """Pager over market positions."""
        return self._pager(
            "/portfolio/positions",
            "market_positions",
            self._position_params(**filters),
            auth=True,
        )

    def _order_params(
        self,
        ticker: Optional[str] = None,
        event_ticker: Optional[Union[str, List[str]]] = None,
        min_ts: Optional[int] = None,
        max_ts: Optional[int] = None,
        status: Optional[Union[OrderStatus, str]] = None,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
        subaccount: Optional[int] = None,
    ) -> Dict[str, Any]:
        endpoint = "GET /portfolio/orders"
        check_limit(endpoint, limit, ORDERS_MAX_LIMIT)
        check_subaccount(subaccount)
        status = enum_param(endpoint, "status", OrderStatus, status)
        return {
            "ticker": ticker,
            "event_ticker": csv_param(endpoint, "event_ticker", event_ticker),
            "min_ts": min_ts,
            "max_ts": max_ts,
            "status": status.value if status else None,
            "limit": limit,
            "cursor": cursor,
            "subaccount": subaccount,
        }

    async def get_orders(self, **filters: Any) -> Dict[str, Any]:
        """List orders."""
        return await self._get("/portfolio/orders", params=self._order_params(**filters), auth=True)

    def orders_pager(self, **filters: Any) -> CursorPager[Dict[str, Any]]:
        """Pager over ``GET /portfolio/orders``."""
        return self._pager("/portfolio/orders", "orders", self._order_params(**filters), auth=True)

    async def get_order(self, order_id: str) -> Dict[str, Any]:
        """Get a single order."""
        return await self._get(f"/portfolio/orders/{order_id}", auth=True)

    async def create_order(
        self,
        order: Optional[CreateOrderRequest] = None,
        **fields: Any,
    ) -> Dict[str, Any]:
        """Submit an order.

        Accepts either a :class:`CreateOrderRequest` or its fields as keyword
        arguments.

        Args:
            order: Order request
            **fields: Order fields when ``order`` is not given

        Returns:
            ``{"order": {...}}``

        Raises:
            KalshiInvalidParamsError: Missing or conflicting order fields
        """
        if order is None:
            missing = [name for name in ("ticker", "side", "action") if not fields.get(name)]
            if missing:
                raise KalshiInvalidParamsError(f"create_order: missing {', '.join(missing)}")
            try:
                order = CreateOrderRequest(**fields)
            except ValueError as e:
                raise KalshiInvalidParamsError(f"create_order: {e}") from e
        elif fields:
            raise KalshiInvalidParamsError("create_order: pass an order or fields, not both")

        order.check()
        logger.info(f"Creating order: {order.action} {order.side} {order.ticker}")
        return await self._post("/portfolio/orders", json=order.to_wire())

    async def cancel_order(self, order_id: str, subaccount: Optional[int] = None) -> Dict[str, Any]:
        """Cancel a resting order.

        Returns:
            ``{"order": {...}, "reduced_by": ..., "reduced_by_fp": ...}``
        """
        if not order_id:
            raise KalshiInvalidParamsError("cancel_order: order_id is required")
        check_subaccount(subaccount)
        logger.info(f"Canceling order: {order_id}")
        return await self._delete(f"/portfolio/orders/{order_id}", params={"subaccount": subaccount})

    def _fill_params(
        self,
        ticker: Optional[str] = None,
        order_id: Optional[str] = None,
        event_ticker: Optional[str] = None,
        min_ts: Optional[int] = None,
        max_ts: Optional[int] = None,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
        subaccount: Optional[int] = None,
    ) -> Dict[str, Any]:
        check_limit("GET /portfolio/fills", limit, FILLS_MAX_LIMIT)
        check_subaccount(subaccount)
        return {
            "ticker": ticker,
            "order_id": order_id,
            "event_ticker": event_ticker,
            "min_ts": min_ts,
            "max_ts": max_ts,
            "limit": limit,
            "cursor": cursor,
            "subaccount": subaccount,
        }

    async def get_fills(self, **filters: Any) -> Dict[str, Any]:
        """List fills."""
        return await self._get("/portfolio/fills", params=self._fill_params(**filters), auth=True)

    def fills_pager(self, **filters: Any) -> CursorPager[Dict[str, Any]]:
        """Pager over ``GET /portfolio/fills``."""
        return self._pager("/portfolio/fills", "fills", self._fill_params(**filters), auth=True)

    def _settlement_params(
        self,
        ticker: Optional[str] = None,
        event_ticker: Optional[str] = None,
        min_ts: Optional[int] = None,
        max_ts: Optional[int] = None,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
        subaccount: Optional[int] = None,
    ) -> Dict[str, Any]:
        check_limit("GET /portfolio/settlements", limit, SETTLEMENTS_MAX_LIMIT)
        check_subaccount(subaccount)
        return {
            "ticker": ticker,
            "event_ticker": event_ticker,
            "min_ts": min_ts,
            "max_ts": max_ts,
            "limit": limit,
            "cursor": cursor,
            "subaccount": subaccount,
        }

    async def get_settlements(self, **filters: Any) -> Dict[str, Any]:
        """List settlements."""
        return await self._get(
            "/portfolio/settlements",
            params=self._settlement_params(**filters),
            auth=True,
        )

    def settlements_pager(self, **filters: Any) -> CursorPager[Dict[str, Any]]:
        """Pager over ``GET /portfolio/settlements``."""
        return self._pager(
            "/portfolio/settlements",
            "settlements",
            self._settlement_params(**filters),
            auth=True,
        )
