"""Authenticated account endpoints: API limits and subaccounts."""

from __future__ import annotations

import logging
from typing import Any
from typing import Dict
from typing import Optional

from kalshi.errors import KalshiInvalidParamsError
from kalshi.pagination import CursorPager
from kalshi.rest.base import BaseAPI
from kalshi.rest.base import check_limit
from kalshi.rest.base import check_subaccount

logger = logging.getLogger(__name__)

TRANSFERS_MAX_LIMIT = 1000


class AccountAPI(BaseAPI):
    """Account limits and subaccount management. Every call is signed."""

    async def get_account_api_limits(self) -> Dict[str, Any]:
        """Get the read and write rate limits of this API key's tier."""
        return await self._get("/account/limits", auth=True)

    async def create_subaccount(self) -> Dict[str, Any]:
        """Create the next numbered subaccount.

        Returns:
            ``{"subaccount_number": ...}``
        """
        logger.info("Creating subaccount")
        return await self._post("/portfolio/subaccounts", json={})

    async def get_subaccount_balances(self) -> Dict[str, Any]:
        """Get the balance of every subaccount."""
        return await self._get("/portfolio/subaccounts/balances", auth=True)

    async def transfer_subaccount(
        self,
        client_transfer_id: str,
        from_subaccount: int,
        to_subaccount: int,
        amount_cents: int,
    ) -> Dict[str, Any]:
        """Move cash between two subaccounts.

        Subaccount 0 is the primary account.

        Args:
            client_transfer_id: Caller-chosen idempotency key
            from_subaccount: Source subaccount number
            to_subaccount: Destination subaccount number
            amount_cents: Amount to move, in cents

        Raises:
            KalshiInvalidParamsError: Missing id, bad subaccount numbers or a
                non-positive amount
        """
        endpoint = "POST /portfolio/subaccounts/transfer"
        if not client_transfer_id:
            raise KalshiInvalidParamsError(f"{endpoint}: client_transfer_id is required")
        check_subaccount(from_subaccount)
        check_subaccount(to_subaccount)
        if from_subaccount == to_subaccount:
            raise KalshiInvalidParamsError(f"{endpoint}: from and to subaccounts must differ")
        if amount_cents <= 0:
            raise KalshiInvalidParamsError(f"{endpoint}: amount_cents must be positive")

        logger.info(f"Transferring {amount_cents} cents from subaccount {from_subaccount} to {to_subaccount}")
        return await self._post(
            "/portfolio/subaccounts/transfer",
            json={
                "client_transfer_id": client_transfer_id,
                "from_subaccount": from_subaccount,
                "to_subaccount": to_subaccount,
                "amount_cents": amount_cents,
            },
        )

    def _transfer_params(
        self,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> Dict[str, Any]:
        check_limit("GET /portfolio/subaccounts/transfers", limit, TRANSFERS_MAX_LIMIT)
        return {"limit": limit, "cursor": cursor}

    async def get_subaccount_transfers(self, **filters: Any) -> Dict[str, Any]:
        """List transfers between subaccounts.

        Returns:
            ``{"subaccount_transfers": [...], "cursor": ...}``
        """
        return await self._get(
            "/portfolio/subaccounts/transfers",
            params=self._transfer_params(**filters),
            auth=True,
        )

    def subaccount_transfers_pager(self, **filters: Any) -> CursorPager[Dict[str, Any]]:
        """Pager over ``GET /portfolio/subaccounts/transfers``."""
        return self._pager(
            "/portfolio/subaccounts/transfers",
            "subaccount_transfers",
            self._transfer_params(**filters),
            auth=True,
        )
