#!/usr/bin/env python3
"""
Example: Stream real-time market data from Kalshi.

This example shows how to:
1. Load credentials from the environment (or run unauthenticated)
2. Subscribe to ticker and trade channels
3. Keep subscriptions alive across reconnects
4. Handle acknowledgements, errors and data frames
"""

import asyncio
import logging
import os

from kalshi import KalshiClient
from kalshi import ReconnectConfig
from kalshi.types import Channel
from kalshi.types import SubscriptionParams
from kalshi.websocket import DecodeErrorEvent
from kalshi.websocket import DisconnectedEvent
from kalshi.websocket import MessageEvent
from kalshi.websocket import ReconnectedEvent
from kalshi.websocket.codec import ErrorMessage
from kalshi.websocket.codec import Subscribed
from kalshi.websocket.codec import TickerMessage
from kalshi.websocket.codec import TradeMessage

logging.basicConfig(level=logging.INFO)


async def main():
    tickers = os.getenv("KALSHI_TICKERS", "KXBTC-25DEC31-T100000").split(",")

    async with KalshiClient.from_env() as client:
        reconnect = ReconnectConfig(initial_delay=1.0, max_delay=30.0, jitter=0.2)

        async with client.stream(reconnect=reconnect) as stream:
            await stream.subscribe(
                SubscriptionParams(channels=[Channel.TICKER, Channel.TRADE], market_tickers=tickers)
            )

            async for event in stream.events():
                if isinstance(event, MessageEvent):
                    message = event.message
                    if isinstance(message, Subscribed):
                        print(f"Subscribed: {message.channel} (sid {message.sid})")
                    elif isinstance(message, TickerMessage):
                        print(f"{message.msg.market_ticker}: "
                              f"{message.msg.yes_bid_dollars}/{message.msg.yes_ask_dollars}")
                    elif isinstance(message, TradeMessage):
                        print(f"Trade {message.msg.ticker}: {message.msg.count} @ {message.msg.yes_price}")
                    elif isinstance(message, ErrorMessage):
                        print(f"Server error: {message.to_exception()}")
                elif isinstance(event, ReconnectedEvent):
                    print(f"Reconnected after {event.attempt} attempt(s); sids were reassigned")
                elif isinstance(event, DecodeErrorEvent):
                    print(f"Skipped a frame: {event.error}")
                elif isinstance(event, DisconnectedEvent):
                    print(f"Disconnected: {event.error}")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nStopped by user")
