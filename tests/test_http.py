"""Tests for HTTP client."""

import time

import httpx
import pytest

from conftest import json_response
from kalshi.auth import HEADER_KEY
from kalshi.auth import HEADER_SIGNATURE
from kalshi.auth import HEADER_TIMESTAMP
from kalshi.errors import KalshiAuthenticationError
from kalshi.errors import KalshiAuthRequiredError
from kalshi.errors import KalshiConnectionError
from kalshi.errors import KalshiDecodeError
from kalshi.errors import KalshiHTTPError
from kalshi.errors import KalshiRateLimitError
from kalshi.errors import KalshiTimeoutError
from kalshi.http import KalshiHTTPClient
from kalshi.models import RateLimitConfig
from kalshi.utils import RateLimiter
from kalshi.utils import RequestPacer
from kalshi.utils import parse_api_error


class Recorder:
    """httpx mock handler recording requests and replaying scripted responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        outcome = self.responses.pop(0) if self.responses else json_response({})
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def make_client(http_config, recorder, signer=None):
    return KalshiHTTPClient(http_config, signer=signer, transport=httpx.MockTransport(recorder))


class TestKalshiHTTPClient:
    """Test HTTP client functionality."""

    def test_init(self, http_config, signer):
        """Test HTTP client initialization."""
        client = KalshiHTTPClient(http_config, signer=signer)

        assert client.config == http_config
        assert client.has_auth
        assert client._pacer.read.enabled is False

    @pytest.mark.asyncio
    async def test_public_get(self, http_config):
        """Test an unsigned GET with None parameters dropped."""
        recorder = Recorder(json_response({"markets": [], "cursor": ""}))

        async with make_client(http_config, recorder) as client:
            body = await client.get("/markets", params={"limit": 5, "cursor": None})

        request = recorder.requests[0]
        assert body == {"markets": [], "cursor": ""}
        assert request.url.path == "/trade-api/v2/markets"
        assert dict(request.url.params) == {"limit": "5"}
        assert HEADER_SIGNATURE not in request.headers
        assert request.headers["User-Agent"] == "test-agent/1.0.0"

    @pytest.mark.asyncio
    async def test_signed_request(self, http_config, signer):
        """Test authenticated requests carry signed headers over the full path."""
        recorder = Recorder(json_response({"balance": 1000}))

        async with make_client(http_config, recorder, signer) as client:
            await client.get("/portfolio/balance", auth=True)

        request = recorder.requests[0]
        assert request.headers[HEADER_KEY] == "test-key-id"
        timestamp = int(request.headers[HEADER_TIMESTAMP])
        assert abs(timestamp - time.time() * 1000) < 60_000

    @pytest.mark.asyncio
    async def test_auth_required(self, http_config):
        """Test signed endpoints without credentials fail before sending."""
        recorder = Recorder()

        async with make_client(http_config, recorder) as client:
            with pytest.raises(KalshiAuthRequiredError):
                await client.post("/portfolio/orders", json={"ticker": "A"})

        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_empty_body(self, http_config, signer):
        """Test an empty success body decodes to an empty dict."""
        recorder = Recorder(httpx.Response(204))

        async with make_client(http_config, recorder, signer) as client:
            assert await client.delete("/portfolio/orders/abc") == {}

    @pytest.mark.asyncio
    async def test_non_json_body(self, http_config):
        """Test a non-JSON success body."""
        recorder = Recorder(httpx.Response(200, text="<html>"))

        async with make_client(http_config, recorder) as client:
            with pytest.raises(KalshiDecodeError):
                await client.get("/exchange/status")


class TestErrorMapping:
    """Test HTTP status to exception mapping."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403])
    async def test_authentication_error(self, http_config, signer, status):
        """Test rejected credentials."""
        recorder = Recorder(json_response(
            {"error": {"code": "authentication_error", "message": "bad signature"}},
            status_code=status,
            headers={"x-request-id": "req-1"},
        ))

        async with make_client(http_config, recorder, signer) as client:
            with pytest.raises(KalshiAuthenticationError) as exc_info:
                await client.get("/portfolio/balance", auth=True)

        error = exc_info.value
        assert error.status_code == status
        assert error.request_id == "req-1"
        assert error.api_error["code"] == "authentication_error"
        assert "bad signature" in str(error)

    @pytest.mark.asyncio
    async def test_rate_limit_error(self, http_config):
        """Test 429 carries Retry-After."""
        recorder = Recorder(json_response(
            {"error": {"code": "too_many_requests", "message": "slow down"}},
            status_code=429,
            headers={"Retry-After": "2"},
        ))

        async with make_client(http_config, recorder) as client:
            with pytest.raises(KalshiRateLimitError) as exc_info:
                await client.get("/markets")

        assert exc_info.value.retry_after == 2
        assert len(recorder.requests) == 1

    @pytest.mark.asyncio
    async def test_http_error_not_retried(self, http_config):
        """Test error statuses are raised without retrying."""
        recorder = Recorder(httpx.Response(500, text="upstream exploded"))

        async with make_client(http_config, recorder) as client:
            with pytest.raises(KalshiHTTPError) as exc_info:
                await client.get("/markets")

        assert exc_info.value.status_code == 500
        assert exc_info.value.raw_body == "upstream exploded"
        assert exc_info.value.error_code == "HTTP_ERROR"
        assert len(recorder.requests) == 1

    @pytest.mark.asyncio
    async def test_not_found_code(self, http_config):
        """Test the API error code becomes the error code."""
        recorder = Recorder(json_response(
            {"error": {"code": "not_found", "message": "market not found", "service": "exchange"}},
            status_code=404,
        ))

        async with make_client(http_config, recorder) as client:
            with pytest.raises(KalshiHTTPError) as exc_info:
                await client.get("/markets/NOPE")

        assert exc_info.value.error_code == "not_found"
        assert exc_info.value.api_error["service"] == "exchange"


class TestRetries:
    """Test transport retries."""

    @pytest.mark.asyncio
    async def test_retry_then_success(self, http_config, signer):
        """Test transport errors are retried and re-signed."""
        recorder = Recorder(
            httpx.ConnectError("refused"),
            json_response({"balance": 10}),
        )

        async with make_client(http_config, recorder, signer) as client:
            body = await client.get("/portfolio/balance", auth=True)

        assert body == {"balance": 10}
        assert len(recorder.requests) == 2
        assert all(HEADER_SIGNATURE in r.headers for r in recorder.requests)

    @pytest.mark.asyncio
    async def test_connection_error_after_retries(self, http_config):
        """Test exhausted retries raise a connection error."""
        recorder = Recorder(*[httpx.ConnectError("refused")] * 3)

        async with make_client(http_config, recorder) as client:
            with pytest.raises(KalshiConnectionError):
                await client.get("/markets")

        assert len(recorder.requests) == http_config.max_retries + 1

    @pytest.mark.asyncio
    async def test_timeout_after_retries(self, http_config):
        """Test exhausted timeouts raise a timeout error."""
        recorder = Recorder(*[httpx.ReadTimeout("slow")] * 3)

        async with make_client(http_config, recorder) as client:
            with pytest.raises(KalshiTimeoutError):
                await client.get("/markets")


class TestPacing:
    """Test request pacing."""

    @pytest.mark.asyncio
    async def test_disabled(self):
        """Test zero requests per second never waits."""
        limiter = RateLimiter(0)

        assert not limiter.enabled
        assert await limiter.acquire() == 0.0

    @pytest.mark.asyncio
    async def test_fixed_interval(self):
        """Test consecutive calls are spaced by the interval."""
        limiter = RateLimiter(50)

        first = await limiter.acquire()
        second = await limiter.acquire()

        assert first == 0.0
        assert 0.0 < second <= 0.02

    def test_read_and_write_limiters(self):
        """Test GET uses the read limiter and everything else the write limiter."""
        pacer = RequestPacer(RateLimitConfig(read_rps=20, write_rps=10))

        assert pacer.limiter_for("get") is pacer.read
        assert pacer.limiter_for("POST") is pacer.write
        assert pacer.limiter_for("DELETE").interval == pytest.approx(0.1)


class TestParseApiError:
    """Test error body parsing."""

    def test_nested_and_flat(self):
        """Test both error layouts."""
        nested = parse_api_error({"error": {"code": "c", "message": "m"}})
        flat = parse_api_error({"code": "c", "message": "m", "details": "d"})

        assert nested == {"code": "c", "message": "m", "details": None, "service": None}
        assert flat["details"] == "d"

    def test_unrecognized(self):
        """Test bodies without error fields."""
        assert parse_api_error({"markets": []}) is None
        assert parse_api_error("text") is None
