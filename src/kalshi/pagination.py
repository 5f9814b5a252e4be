"""Cursor-based pagination over list endpoints."""

from __future__ import annotations

import logging
from typing import AsyncIterator
from typing import Awaitable
from typing import Callable
from typing import Generic
from typing import List
from typing import Optional
from typing import Tuple
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

PageFetcher = Callable[[Optional[str]], Awaitable[Tuple[List[T], Optional[str]]]]


class CursorPager(Generic[T]):
    """Walks a cursor-paginated endpoint one page at a time.

    ``fetch(cursor)`` returns ``(items, next_cursor)``. An empty or missing
    next cursor ends the walk.
    """

    def __init__(self, fetch: PageFetcher, cursor: Optional[str] = None) -> None:
        """Initialize pager.

        Args:
            fetch: Coroutine returning one page and the cursor for the next
            cursor: Cursor to start from
        """
        self._fetch = fetch
        self._cursor = cursor or None
        self._done = False
        self._pages = 0

    @property
    def current_cursor(self) -> Optional[str]:
        """Cursor the next page will be requested with."""
        return self._cursor

    @property
    def is_done(self) -> bool:
        return self._done

    @property
    def pages_fetched(self) -> int:
        return self._pages

    async def next_page(self) -> Optional[List[T]]:
        """Fetch the next page.

        Returns:
            Items of the page, or None once the last page was returned
        """
        if self._done:
            return None

        items, next_cursor = await self._fetch(self._cursor)
        self._pages += 1

        if next_cursor:
            self._cursor = next_cursor
        else:
            self._cursor = None
            self._done = True

        logger.debug(f"Fetched page {self._pages} with {len(items)} item(s), done={self._done}")
        return items

    async def items(self, max_items: Optional[int] = None) -> AsyncIterator[T]:
        """Iterate items across pages.

        Args:
            max_items: Stop after this many items
        """
        yielded = 0
        while max_items is None or yielded < max_items:
            page = await self.next_page()
            if page is None:
                return
            for item in page:
                if max_items is not None and yielded >= max_items:
                    return
                yield item
                yielded += 1

    async def collect(self, max_items: Optional[int] = None) -> List[T]:
        """Gather items across pages into a list."""
        return [item async for item in self.items(max_items)]
