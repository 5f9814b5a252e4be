"""REST API endpoints for Kalshi."""

from kalshi.rest.account import AccountAPI
from kalshi.rest.exchange import ExchangeAPI
from kalshi.rest.markets import MarketsAPI
from kalshi.rest.portfolio import PortfolioAPI

__all__ = [
    "AccountAPI",
    "ExchangeAPI",
    "MarketsAPI",
    "PortfolioAPI",
]
