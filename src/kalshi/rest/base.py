"""Base class for REST API endpoints."""

from __future__ import annotations

from enum import Enum
from typing import Any
from typing import Dict
from typing import List
from typing import Optional
from typing import Sequence
from typing import Tuple
from typing import Type
from typing import TypeVar

from kalshi.errors import KalshiDecodeError
from kalshi.errors import KalshiInvalidParamsError
from kalshi.http import KalshiHTTPClient
from kalshi.pagination import CursorPager

MAX_CSV_TICKERS = 10
MAX_SUBACCOUNT = 32

E = TypeVar("E", bound=Enum)


class BaseAPI:
    """Base class for REST API endpoints."""

    def __init__(self, http_client: KalshiHTTPClient) -> None:
        """Initialize base API.

        Args:
            http_client: HTTP client instance
        """
        self.http_client = http_client

    async def _get(
        self,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        auth: bool = False,
    ) -> Dict[str, Any]:
        return await self.http_client.request("GET", path, params=params, auth=auth)

    async def _post(self, path: str, *, json: Dict[str, Any]) -> Dict[str, Any]:
        return await self.http_client.request("POST", path, json=json, auth=True)

    async def _delete(
        self,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        return await self.http_client.request("DELETE", path, params=params, auth=True)

    def _pager(
        self,
        path: str,
        items_key: str,
        params: Dict[str, Any],
        *,
        auth: bool = False,
    ) -> CursorPager[Dict[str, Any]]:
        """Build a pager over a list endpoint.

        Args:
            path: Endpoint path
            items_key: Response field holding the page items
            params: Query parameters; ``cursor`` is the starting cursor
            auth: Sign each page request

        Returns:
            Cursor pager yielding raw item dicts
        """
        base_params = dict(params)
        start_cursor = base_params.pop("cursor", None)

        async def fetch(cursor: Optional[str]) -> Tuple[List[Dict[str, Any]], Optional[str]]:
            page_params = dict(base_params)
            page_params["cursor"] = cursor
            body = await self._get(path, params=page_params, auth=auth)
            return extract_page(body, items_key, path)

        return CursorPager(fetch, cursor=start_cursor)


def extract_page(
    body: Any,
    items_key: str,
    path: str,
) -> Tuple[List[Dict[str, Any]], Optional[str]]:
    """Split a list response into its items and next cursor.

    Raises:
        KalshiDecodeError: Response does not carry a list under ``items_key``
    """
    if not isinstance(body, dict):
        raise KalshiDecodeError(f"GET {path}: expected an object response", data=body)
    items = body.get(items_key)
    if items is None:
        items = []
    if not isinstance(items, list):
        raise KalshiDecodeError(f"GET {path}: {items_key!r} is not a list", data=body)
    return items, body.get("cursor") or None


def check_limit(endpoint: str, limit: Optional[int], maximum: int) -> None:
    if limit is not None and not 1 <= limit <= maximum:
        raise KalshiInvalidParamsError(f"{endpoint}: limit must be 1..{maximum}")


def check_subaccount(subaccount: Optional[int]) -> None:
    if subaccount is not None and not 0 <= subaccount <= MAX_SUBACCOUNT:
        raise KalshiInvalidParamsError(f"subaccount must be 0..{MAX_SUBACCOUNT}")


def csv_param(endpoint: str, name: str, values: Optional[Sequence[str]]) -> Optional[str]:
    """Join a ticker list into the comma separated form the API expects."""
    if values is None:
        return None
    if isinstance(values, str):
        values = [values]
    if len(values) > MAX_CSV_TICKERS:
        raise KalshiInvalidParamsError(
            f"{endpoint}: {name} supports up to {MAX_CSV_TICKERS} tickers"
        )
    return ",".join(values)


def enum_param(endpoint: str, name: str, enum_cls: Type[E], value: Any) -> Optional[E]:
    """Coerce a string or enum member, rejecting unknown values."""
    if value is None:
        return None
    try:
        return enum_cls(value.value if isinstance(value, Enum) else value)
    except ValueError:
        raise KalshiInvalidParamsError(f"{endpoint}: unknown {name} {value!r}") from None
