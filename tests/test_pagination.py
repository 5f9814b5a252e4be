"""Tests for cursor pagination."""

import pytest

from kalshi.pagination import CursorPager


class PageSource:
    """Serves fixed pages keyed by cursor."""

    def __init__(self, pages):
        self.pages = pages
        self.cursors = []

    async def __call__(self, cursor):
        self.cursors.append(cursor)
        return self.pages[cursor]


@pytest.fixture
def three_pages():
    """Three pages of two, two and one items."""
    return PageSource({
        None: ([1, 2], "c1"),
        "c1": ([3, 4], "c2"),
        "c2": ([5], ""),
    })


class TestCursorPager:
    """Test cursor pager."""

    @pytest.mark.asyncio
    async def test_walks_all_pages(self, three_pages):
        """Test the walk follows cursors until an empty one."""
        pager = CursorPager(three_pages)

        assert await pager.collect() == [1, 2, 3, 4, 5]
        assert three_pages.cursors == [None, "c1", "c2"]
        assert pager.is_done
        assert pager.pages_fetched == 3

    @pytest.mark.asyncio
    async def test_next_page_after_done(self, three_pages):
        """Test no request is made once the last page was returned."""
        pager = CursorPager(three_pages)
        while await pager.next_page() is not None:
            pass

        assert await pager.next_page() is None
        assert len(three_pages.cursors) == 3

    @pytest.mark.asyncio
    async def test_start_cursor(self, three_pages):
        """Test resuming from a cursor."""
        pager = CursorPager(three_pages, cursor="c1")

        assert pager.current_cursor == "c1"
        assert await pager.collect() == [3, 4, 5]

    @pytest.mark.asyncio
    async def test_max_items_stops_early(self, three_pages):
        """Test max_items does not fetch pages it does not need."""
        pager = CursorPager(three_pages)

        assert await pager.collect(max_items=2) == [1, 2]
        assert three_pages.cursors == [None]
        assert pager.current_cursor == "c1"

    @pytest.mark.asyncio
    async def test_missing_cursor_ends_walk(self):
        """Test a None next cursor is the last page."""
        pager = CursorPager(PageSource({None: (["only"], None)}))

        assert await pager.collect() == ["only"]
        assert pager.is_done
        assert pager.current_cursor is None

    @pytest.mark.asyncio
    async def test_empty_page_with_cursor_continues(self):
        """Test an empty page with a cursor is not the end."""
        pager = CursorPager(PageSource({None: ([], "next"), "next": (["a"], "")}))

        assert await pager.collect() == ["a"]
        assert pager.pages_fetched == 2
