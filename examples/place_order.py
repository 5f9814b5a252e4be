#!/usr/bin/env python3
"""
Example: Place and cancel an order on the Kalshi demo exchange.

Requires KALSHI_API_KEY_ID plus KALSHI_PRIVATE_KEY_PATH (or KALSHI_PRIVATE_KEY),
set in the environment or a .env file.
"""

import asyncio
import logging
import uuid

from kalshi import KalshiClient
from kalshi import KalshiHTTPError
from kalshi.types import Channel
from kalshi.types import CreateOrderRequest
from kalshi.types import SubscriptionParams
from kalshi.websocket import MessageEvent
from kalshi.websocket.codec import FillMessage

logging.basicConfig(level=logging.INFO)


async def main(ticker: str = "KXBTC-25DEC31-T100000"):
    async with KalshiClient.from_env() as client:
        client.require_auth()

        balance = await client.portfolio.get_balance()
        print(f"Balance: {balance.get('balance')} cents")

        order = CreateOrderRequest(
            ticker=ticker,
            side="yes",
            action="buy",
            count=1,
            type="limit",
            yes_price=1,
            client_order_id=str(uuid.uuid4()),
        )

        try:
            created = await client.portfolio.create_order(order)
        except KalshiHTTPError as e:
            print(f"Order rejected: {e}")
            return

        order_id = created["order"]["order_id"]
        print(f"Resting order {order_id}")

        resting = await client.portfolio.orders_pager(ticker=ticker, status="resting").collect()
        print(f"{len(resting)} resting order(s) on {ticker}")

        canceled = await client.portfolio.cancel_order(order_id)
        print(f"Canceled, reduced by {canceled.get('reduced_by')}")


async def watch_fills(seconds: float = 30.0):
    """Print fills for a while over an authenticated stream."""
    async with KalshiClient.from_env() as client:
        async with client.stream() as stream:
            await stream.subscribe(SubscriptionParams(channels=[Channel.FILL]))

            async def read():
                async for event in stream.events():
                    if isinstance(event, MessageEvent) and isinstance(event.message, FillMessage):
                        fill = event.message.msg
                        print(f"Fill {fill.market_ticker}: {fill.count} {fill.side} @ {fill.yes_price}")

            try:
                await asyncio.wait_for(read(), timeout=seconds)
            except asyncio.TimeoutError:
                pass


if __name__ == "__main__":
    asyncio.run(main())
