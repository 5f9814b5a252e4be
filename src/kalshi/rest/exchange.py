"""Exchange status and schedule endpoints."""

from __future__ import annotations

from typing import Any
from typing import Dict

from kalshi.rest.base import BaseAPI


class ExchangeAPI(BaseAPI):
    """Exchange-wide information. No authentication required."""

    async def get_exchange_status(self) -> Dict[str, Any]:
        """Whether the exchange and trading are currently active."""
        return await self._get("/exchange/status")

    async def get_exchange_schedule(self) -> Dict[str, Any]:
        return await self._get("/exchange/schedule")

    async def get_exchange_announcements(self) -> Dict[str, Any]:
        return await self._get("/exchange/announcements")

    async def get_user_data_timestamp(self) -> Dict[str, Any]:
        """Time of the last update to portfolio data."""
        return await self._get("/exchange/user_data_timestamp")
