"""Tests for configuration models and subscription types."""

import pytest
from pydantic import ValidationError

from kalshi.errors import KalshiInvalidParamsError
from kalshi.models import HTTPConfig
from kalshi.models import RateLimitConfig
from kalshi.models import ReconnectConfig
from kalshi.types import Channel
from kalshi.types import OrderGroupEventType
from kalshi.types import SubscriptionParams
from kalshi.types import UpdateSubscriptionParams
from kalshi.types import WsOrderGroupUpdate
from kalshi.types import validate_subscription


class TestReconnectConfig:
    """Test reconnect policy."""

    def test_delay_doubles_until_cap(self):
        """Test min(initial * 2^(n-1), max)."""
        config = ReconnectConfig(initial_delay=1.0, max_delay=30.0)

        delays = [config.delay_for(attempt) for attempt in range(1, 8)]

        assert delays == [1.0, 2.0, 4.0, 8.0, 16.0, 30.0, 30.0]

    def test_huge_attempt_is_capped(self):
        """Test very large attempt counts stay at the cap."""
        config = ReconnectConfig(initial_delay=0.5, max_delay=10.0)

        assert config.delay_for(10_000) == 10.0

    def test_jitter_bounds(self):
        """Test jitter stays within the relative band."""
        config = ReconnectConfig(initial_delay=4.0, max_delay=30.0, jitter=0.25)

        for _ in range(50):
            assert 3.0 <= config.delay_for(1) <= 5.0

    @pytest.mark.parametrize("kwargs", [
        {"initial_delay": 0},
        {"max_delay": -1},
        {"max_attempts": 0},
        {"jitter": 1.5},
    ])
    def test_invalid(self, kwargs):
        """Test invalid reconnect settings."""
        with pytest.raises(ValidationError):
            ReconnectConfig(**kwargs)


class TestHTTPConfig:
    """Test HTTP configuration."""

    def test_defaults(self):
        """Test default retry and pacing settings."""
        config = HTTPConfig(base_url="https://demo-api.kalshi.co/trade-api/v2")

        assert config.max_retries == 3
        assert config.rate_limit == RateLimitConfig(read_rps=20, write_rps=10)

    def test_extra_fields_forbidden(self):
        """Test unknown settings are rejected."""
        with pytest.raises(ValidationError):
            HTTPConfig(base_url="https://x", retries=3)


class TestSubscriptionParams:
    """Test subscription parameters."""

    def test_normalized_key(self):
        """Test equivalent requests share a key."""
        first = SubscriptionParams(channels=["ticker", "trade"], market_tickers=["B", "A"])
        second = SubscriptionParams(channels=["trade", "ticker", "trade"], market_tickers=["A", "B", "A"])

        assert first.key() == second.key()
        assert second.normalized().market_tickers == ["A", "B"]
        assert second.normalized().channels == ["ticker", "trade"]

    def test_different_filters_differ(self):
        """Test different filters give different keys."""
        first = SubscriptionParams(channels=["ticker"], market_tickers=["A"])
        second = SubscriptionParams(channels=["ticker"], market_tickers=["B"])

        assert first.key() != second.key()

    def test_requires_auth(self):
        """Test private channels are detected."""
        assert not SubscriptionParams(channels=[Channel.TICKER]).requires_auth()
        assert SubscriptionParams(channels=[Channel.TICKER, Channel.FILL]).requires_auth()
        assert Channel.COMMUNICATIONS.is_private

    def test_to_wire_omits_unset(self):
        """Test unset fields are not sent."""
        params = SubscriptionParams(channels=["orderbook_delta"], market_tickers=["A"], send_initial_snapshot=True)

        assert params.to_wire() == {
            "channels": ["orderbook_delta"],
            "market_tickers": ["A"],
            "send_initial_snapshot": True,
        }

    def test_unknown_channel(self):
        """Test unknown channel names fail validation."""
        with pytest.raises(ValidationError):
            SubscriptionParams(channels=["weather"])

    def test_update_apply_to(self):
        """Test update fields are merged over the current request."""
        current = SubscriptionParams(channels=["ticker"], market_tickers=["A"])
        update = UpdateSubscriptionParams(sid=3, market_tickers=["C", "B"])

        merged = update.apply_to(current)

        assert merged.channels == ["ticker"]
        assert merged.market_tickers == ["B", "C"]
        assert update.to_wire() == {"sid": 3, "market_tickers": ["C", "B"]}


class TestValidateSubscription:
    """Test local subscription validation."""

    @pytest.mark.parametrize("kwargs", [
        {"channels": []},
        {"channels": ["orderbook_delta"]},
        {"channels": ["ticker"], "send_initial_snapshot": True},
        {"channels": ["market_positions"], "market_ids": ["m1"]},
        {"channels": ["ticker"], "shard_factor": 2},
        {"channels": ["fill"], "shard_key": "k"},
    ])
    def test_rejected(self, kwargs):
        """Test combinations the server would reject."""
        with pytest.raises(KalshiInvalidParamsError):
            validate_subscription(SubscriptionParams(**kwargs))

    @pytest.mark.parametrize("kwargs", [
        {"channels": ["ticker"]},
        {"channels": ["orderbook_delta"], "market_ids": ["m1"], "send_initial_snapshot": False},
        {"channels": ["communications"], "shard_factor": 4, "shard_key": "k"},
        {"channels": ["market_positions"], "market_tickers": ["A"]},
    ])
    def test_accepted(self, kwargs):
        """Test valid combinations."""
        validate_subscription(SubscriptionParams(**kwargs))


class TestWireEnums:
    """Test forward-compatible enums."""

    def test_unknown_order_group_event(self):
        """Test new event types decode to UNKNOWN."""
        update = WsOrderGroupUpdate(event_type="paused_by_risk", order_group_id="g1")

        assert update.event_type is OrderGroupEventType.UNKNOWN
