"""Public market data endpoints: markets, events, series and trades."""

from __future__ import annotations

from typing import Any
from typing import Dict
from typing import List
from typing import Optional
from typing import Union

from kalshi.errors import KalshiInvalidParamsError
from kalshi.pagination import CursorPager
from kalshi.rest.base import BaseAPI
from kalshi.rest.base import check_limit
from kalshi.rest.base import csv_param
from kalshi.rest.base import enum_param
from kalshi.types.common import EventStatus
from kalshi.types.common import MarketStatus
from kalshi.types.common import MveFilter

MARKETS_MAX_LIMIT = 1000
EVENTS_MAX_LIMIT = 200
TRADES_MAX_LIMIT = 1000


class MarketsAPI(BaseAPI):
    """Markets, events, series and public trades."""

    def _market_params(
        self,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
        event_ticker: Optional[Union[str, List[str]]] = None,
        series_ticker: Optional[str] = None,
        status: Optional[Union[MarketStatus, str]] = None,
        tickers: Optional[Union[str, List[str]]] = None,
        min_created_ts: Optional[int] = None,
        max_created_ts: Optional[int] = None,
        min_close_ts: Optional[int] = None,
        max_close_ts: Optional[int] = None,
        min_settled_ts: Optional[int] = None,
        max_settled_ts: Optional[int] = None,
        min_updated_ts: Optional[int] = None,
        mve_filter: Optional[Union[MveFilter, str]] = None,
    ) -> Dict[str, Any]:
        """Validate and build ``GET /markets`` query parameters.

        Timestamp filter groups (created, close, settled, updated) are
        mutually exclusive, each only combines with compatible statuses, and
        ``min_updated_ts`` cannot be combined with any other filter except
        ``mve_filter=exclude``.
        """
        endpoint = "GET /markets"
        check_limit(endpoint, limit, MARKETS_MAX_LIMIT)
        status = enum_param(endpoint, "status", MarketStatus, status)
        mve_filter = enum_param(endpoint, "mve_filter", MveFilter, mve_filter)

        created = min_created_ts is not None or max_created_ts is not None
        close = min_close_ts is not None or max_close_ts is not None
        settled = min_settled_ts is not None or max_settled_ts is not None
        updated = min_updated_ts is not None

        if sum((created, close, settled, updated)) > 1:
            raise KalshiInvalidParamsError(
                f"{endpoint}: timestamp filters are mutually exclusive "
                "(created vs close vs settled vs updated)"
            )

        if updated:
            if status or series_ticker or event_ticker or tickers:
                raise KalshiInvalidParamsError(
                    f"{endpoint}: min_updated_ts cannot be combined with other filters "
                    "(except mve_filter=exclude)"
                )
            if mve_filter is MveFilter.ONLY:
                raise KalshiInvalidParamsError(
                    f"{endpoint}: with min_updated_ts, only mve_filter=exclude is allowed"
                )

        if created and status in (MarketStatus.CLOSED, MarketStatus.SETTLED, MarketStatus.PAUSED):
            raise KalshiInvalidParamsError(
                f"{endpoint}: created_ts filters are only compatible with status unopened/open"
            )
        if close and status is not None and status is not MarketStatus.CLOSED:
            raise KalshiInvalidParamsError(
                f"{endpoint}: close_ts filters are only compatible with status closed"
            )
        if settled and status is not None and status is not MarketStatus.SETTLED:
            raise KalshiInvalidParamsError(
                f"{endpoint}: settled_ts filters are only compatible with status settled"
            )

        return {
            "limit": limit,
            "cursor": cursor,
            "event_ticker": csv_param(endpoint, "event_ticker", event_ticker),
            "series_ticker": series_ticker,
            "status": status.value if status else None,
            "tickers": ",".join([tickers] if isinstance(tickers, str) else tickers) if tickers else None,
            "min_created_ts": min_created_ts,
            "max_created_ts": max_created_ts,
            "min_close_ts": min_close_ts,
            "max_close_ts": max_close_ts,
            "min_settled_ts": min_settled_ts,
            "max_settled_ts": max_settled_ts,
            "min_updated_ts": min_updated_ts,
            "mve_filter": mve_filter.value if mve_filter else None,
        }

    async def get_markets(self, **filters: Any) -> Dict[str, Any]:
        """List markets.

        Args:
            **filters: ``limit``, ``cursor``, ``event_ticker``, ``series_ticker``,
                ``status``, ``tickers``, timestamp filters and ``mve_filter``

        Returns:
            ``{"markets": [...], "cursor": ...}``

        Raises:
            KalshiInvalidParamsError: Invalid filter combination
        """
        return await self._get("/markets", params=self._market_params(**filters))

    def markets_pager(self, **filters: Any) -> CursorPager[Dict[str, Any]]:
        """Pager over ``GET /markets``."""
        return self._pager("/markets", "markets", self._market_params(**filters))

    async def get_market(self, ticker: str) -> Dict[str, Any]:
        """Get a single market by ticker."""
        return await self._get(f"/markets/{ticker}")

    async def get_market_orderbook(self, ticker: str, depth: Optional[int] = None) -> Dict[str, Any]:
        """Get the order book of a market.

        Args:
            ticker: Market ticker
            depth: Price levels per side, all levels when omitted
        """
        if depth is not None and depth < 0:
            raise KalshiInvalidParamsError("GET /markets/{ticker}/orderbook: depth must be >= 0")
        return await self._get(f"/markets/{ticker}/orderbook", params={"depth": depth})

    def _trade_params(
        self,
        ticker: Optional[str] = None,
        event_ticker: Optional[str] = None,
        series_ticker: Optional[str] = None,
        min_ts: Optional[int] = None,
        max_ts: Optional[int] = None,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> Dict[str, Any]:
        check_limit("GET /markets/trades", limit, TRADES_MAX_LIMIT)
        return {
            "ticker": ticker,
            "event_ticker": event_ticker,
            "series_ticker": series_ticker,
            "min_ts": min_ts,
            "max_ts": max_ts,
            "limit": limit,
            "cursor": cursor,
        }

    async def get_trades(self, **filters: Any) -> Dict[str, Any]:
        """List public trades, newest first."""
        return await self._get("/markets/trades", params=self._trade_params(**filters))

    def trades_pager(self, **filters: Any) -> CursorPager[Dict[str, Any]]:
        """Pager over ``GET /markets/trades``."""
        return self._pager("/markets/trades", "trades", self._trade_params(**filters))

    def _event_params(
        self,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
        with_nested_markets: Optional[bool] = None,
        with_milestones: Optional[bool] = None,
        status: Optional[Union[EventStatus, str]] = None,
        series_ticker: Optional[str] = None,
        min_close_ts: Optional[int] = None,
    ) -> Dict[str, Any]:
        check_limit("GET /events", limit, EVENTS_MAX_LIMIT)
        status = enum_param("GET /events", "status", EventStatus, status)
        return {
            "limit": limit,
            "cursor": cursor,
            "with_nested_markets": with_nested_markets,
            "with_milestones": with_milestones,
            "status": status.value if status else None,
            "series_ticker": series_ticker,
            "min_close_ts": min_close_ts,
        }

    async def get_events(self, **filters: Any) -> Dict[str, Any]:
        """List events."""
        return await self._get("/events", params=self._event_params(**filters))

    def events_pager(self, **filters: Any) -> CursorPager[Dict[str, Any]]:
        """Pager over ``GET /events``."""
        return self._pager("/events", "events", self._event_params(**filters))

    async def get_event(
        self,
        event_ticker: str,
        with_nested_markets: Optional[bool] = None,
    ) -> Dict[str, Any]:
        """Get a single event, optionally with its markets nested."""
        return await self._get(
            f"/events/{event_ticker}",
            params={"with_nested_markets": with_nested_markets},
        )

    async def get_series_list(
        self,
        category: Optional[str] = None,
        tags: Optional[str] = None,
        include_product_metadata: Optional[bool] = None,
        include_volume: Optional[bool] = None,
    ) -> Dict[str, Any]:
        """List series."""
        return await self._get(
            "/series",
            params={
                "category": category,
                "tags": tags,
                "include_product_metadata": include_product_metadata,
                "include_volume": include_volume,
            },
        )

    async def get_series(self, series_ticker: str) -> Dict[str, Any]:
        """Get a single series."""
        return await self._get(f"/series/{series_ticker}")

    async def get_series_fee_changes(
        self,
        series_ticker: Optional[str] = None,
        show_historical: Optional[bool] = None,
    ) -> Dict[str, Any]:
        """List scheduled fee changes, optionally for one series.

        Returns:
            ``{"series_fee_change_arr": [...]}``
        """
        return await self._get(
            "/series/fee_changes",
            params={"series_ticker": series_ticker, "show_historical": show_historical},
        )
