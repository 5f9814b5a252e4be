"""Market data examples for Kalshi Python SDK."""

import asyncio
import logging

from kalshi import KalshiClient
from kalshi import KalshiInvalidParamsError
from kalshi.types import MarketStatus

logging.basicConfig(level=logging.INFO)


async def exchange_overview():
    """Show exchange status and a page of open markets."""

    async with KalshiClient() as client:
        status = await client.exchange.get_exchange_status()
        print(f"Exchange active: {status.get('exchange_active')}, "
              f"trading active: {status.get('trading_active')}")

        page = await client.markets.get_markets(limit=5, status=MarketStatus.OPEN)
        for market in page.get("markets", []):
            print(f"{market['ticker']}: yes {market.get('yes_bid')}/{market.get('yes_ask')}")


async def walk_all_events():
    """Walk every open event with the cursor pager."""

    async with KalshiClient() as client:
        pager = client.markets.events_pager(limit=100, status="open")

        count = 0
        async for event in pager.items(max_items=250):
            count += 1
            if count <= 3:
                print(f"Event {event['event_ticker']}: {event.get('title')}")

        print(f"Read {count} events over {pager.pages_fetched} page(s)")


async def orderbook_and_trades(ticker: str):
    """Show the top of book and recent trades for one market."""

    async with KalshiClient() as client:
        book = await client.markets.get_market_orderbook(ticker, depth=3)
        print(f"Order book for {ticker}: {book.get('orderbook')}")

        trades = await client.markets.trades_pager(ticker=ticker, limit=50).collect(max_items=10)
        for trade in trades:
            print(f"{trade['created_time']}: {trade['count']} @ {trade['yes_price']}")


async def invalid_filters():
    """Invalid filter combinations fail before any request is sent."""

    async with KalshiClient() as client:
        try:
            await client.markets.get_markets(min_close_ts=1700000000, status="open")
        except KalshiInvalidParamsError as e:
            print(f"Rejected locally: {e}")


if __name__ == "__main__":
    asyncio.run(exchange_overview())
    asyncio.run(walk_all_events())
    asyncio.run(invalid_filters())
