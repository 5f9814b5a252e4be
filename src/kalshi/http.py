"""Async HTTP client with signing, pacing and retry/backoff."""

from __future__ import annotations

import logging
import time
from typing import Any
from typing import Dict
from typing import Optional

import httpx

from kalshi.auth import AuthHandler
from kalshi.auth import KalshiSignatureHandler
from kalshi.auth import Signer
from kalshi.errors import KalshiAuthenticationError
from kalshi.errors import KalshiAuthRequiredError
from kalshi.errors import KalshiConnectionError
from kalshi.errors import KalshiDecodeError
from kalshi.errors import KalshiHTTPError
from kalshi.errors import KalshiRateLimitError
from kalshi.errors import KalshiTimeoutError
from kalshi.models import HTTPConfig
from kalshi.utils import RequestPacer
from kalshi.utils import drop_none
from kalshi.utils import exponential_backoff_with_jitter
from kalshi.utils import parse_api_error
from kalshi.utils import parse_retry_after
from kalshi.utils import request_id_from

logger = logging.getLogger(__name__)


class KalshiHTTPClient:
    """Async HTTP client with rate limiting, retries and request signing."""

    def __init__(
        self,
        config: HTTPConfig,
        signer: Optional[Signer] = None,
        auth_handler: Optional[AuthHandler] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize HTTP client.

        Args:
            config: HTTP configuration
            signer: Signer for authenticated endpoints
            auth_handler: Authentication handler, defaults to signing with ``signer``
            transport: Custom httpx transport
        """
        self.config = config
        self.signer = signer
        if auth_handler is None and signer is not None:
            auth_handler = KalshiSignatureHandler(signer)
        self.auth_handler = auth_handler

        self._pacer = RequestPacer(config.rate_limit)

        timeout = httpx.Timeout(config.timeout)
        limits = httpx.Limits(
            max_keepalive_connections=20,
            max_connections=100,
            keepalive_expiry=30.0,
        )

        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=timeout,
            limits=limits,
            headers={
                "User-Agent": config.user_agent,
                "Accept": "application/json",
            },
            transport=transport,
        )

    async def __aenter__(self) -> KalshiHTTPClient:
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    @property
    def has_auth(self) -> bool:
        return self.auth_handler is not None

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        auth: bool = False,
        timeout: Optional[float] = None,
    ) -> Any:
        """Make a paced, optionally signed request and decode the JSON body.

        Args:
            method: HTTP method
            path: Path below the API prefix, e.g. ``/markets``
            params: Query parameters; ``None`` values are dropped
            json: JSON body
            auth: Sign the request
            timeout: Request timeout override

        Returns:
            Decoded JSON body, or an empty dict for an empty body

        Raises:
            KalshiAuthRequiredError: ``auth`` requested without a signer
            KalshiAuthenticationError: HTTP 401/403
            KalshiRateLimitError: HTTP 429
            KalshiHTTPError: Any other HTTP error status
            KalshiTimeoutError: Request timed out after all retries
            KalshiConnectionError: Transport failure after all retries
        """
        method = method.upper()
        if auth and self.auth_handler is None:
            raise KalshiAuthRequiredError(f"{method} {path} needs API credentials")

        query = drop_none(params)
        request_timeout = timeout or self.config.timeout

        send = exponential_backoff_with_jitter(
            base_delay=self.config.retry_backoff_factor,
            max_delay=self.config.retry_max_delay,
            max_retries=self.config.max_retries,
        )(self._send_once)

        try:
            response = await send(method, path, query, json, auth, request_timeout)
        except httpx.TimeoutException as e:
            raise KalshiTimeoutError(
                f"{method} {path} timed out after {self.config.max_retries + 1} attempts",
                timeout=request_timeout,
            ) from e
        except httpx.HTTPError as e:
            raise KalshiConnectionError(f"{method} {path} failed: {e}") from e

        if response.status_code >= 400:
            self._raise_for_status(response)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise KalshiDecodeError(
                f"{method} {path} returned a non-JSON body",
                data=response.text,
            ) from e

    async def _send_once(
        self,
        method: str,
        path: str,
        params: Dict[str, Any],
        json: Optional[Dict[str, Any]],
        auth: bool,
        timeout: float,
    ) -> httpx.Response:
        """One attempt: pace, build, sign and send."""
        waited = await self._pacer.acquire(method)
        if waited > 0:
            logger.debug(f"Paced {method} {path} by {waited:.3f}s")

        request = self._client.build_request(
            method=method,
            url=path,
            params=params or None,
            json=json,
            timeout=timeout,
        )
        # Signed per attempt so each retry carries a fresh timestamp.
        if auth and self.auth_handler is not None:
            request = await self.auth_handler.authenticate(request, self._client)

        started = time.monotonic()
        response = await self._client.send(request)
        elapsed = time.monotonic() - started
        logger.debug(f"{method} {request.url.path} -> {response.status_code} ({elapsed:.3f}s)")
        return response

    def _raise_for_status(self, response: httpx.Response) -> None:
        """Map an error response to the matching exception.

        Args:
            response: HTTP error response

        Raises:
            KalshiAuthenticationError: 401/403
            KalshiRateLimitError: 429
            KalshiHTTPError: Any other error status
        """
        raw_body = response.text
        try:
            body = response.json()
        except ValueError:
            body = None

        api_error = parse_api_error(body)
        request_id = request_id_from(response.headers)
        message = (api_error or {}).get("message") or raw_body or f"HTTP {response.status_code}"
        error_code = (api_error or {}).get("code")
        status = response.status_code

        logger.warning(f"HTTP {status} from {response.request.method} {response.request.url.path}: {message}")

        if status in (401, 403):
            raise KalshiAuthenticationError(
                message,
                status_code=status,
                raw_body=raw_body,
                api_error=api_error,
                request_id=request_id,
            )

        if status == 429:
            raise KalshiRateLimitError(
                message,
                retry_after=parse_retry_after(response.headers.get("Retry-After")),
                raw_body=raw_body,
                api_error=api_error,
                request_id=request_id,
            )

        raise KalshiHTTPError(
            message,
            status_code=status,
            raw_body=raw_body,
            api_error=api_error,
            request_id=request_id,
            error_code=str(error_code) if error_code is not None else "HTTP_ERROR",
        )

    # Convenience methods
    async def get(
        self,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        auth: bool = False,
    ) -> Any:
        """Make GET request."""
        return await self.request("GET", path, params=params, auth=auth)

    async def post(
        self,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        auth: bool = True,
    ) -> Any:
        """Make POST request."""
        return await self.request("POST", path, json=json, auth=auth)

    async def delete(
        self,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        auth: bool = True,
    ) -> Any:
        """Make DELETE request."""
        return await self.request("DELETE", path, params=params, auth=auth)
