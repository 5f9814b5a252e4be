"""Request signing and authentication handlers for Kalshi API."""

from __future__ import annotations

import time
from abc import ABC
from abc import abstractmethod
from base64 import b64encode
from pathlib import Path
from typing import Dict
from typing import Optional
from typing import Union

import httpx
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.asymmetric import rsa

from kalshi.errors import KalshiCryptoError
from kalshi.models import SignedHeaders

HEADER_KEY = "KALSHI-ACCESS-KEY"
HEADER_TIMESTAMP = "KALSHI-ACCESS-TIMESTAMP"
HEADER_SIGNATURE = "KALSHI-ACCESS-SIGNATURE"


def now_timestamp_ms() -> int:
    """Current wall-clock time in milliseconds."""
    return int(time.time() * 1000)


def signing_message(timestamp_ms: int, method: str, path: str) -> bytes:
    """Build the exact byte string that gets signed.

    The query string is never part of the signed message.

    Args:
        timestamp_ms: Millisecond timestamp
        method: HTTP method
        path: Request path, optionally with a query string

    Returns:
        Message bytes
    """
    path_without_query = path.split("?", 1)[0]
    return f"{timestamp_ms}{method.upper()}{path_without_query}".encode("utf-8")


class Signer:
    """RSA-PSS signer holding an API key id and its private key.

    The key is loaded and checked once; signing never reloads it.
    """

    def __init__(self, key_id: str, private_key: rsa.RSAPrivateKey) -> None:
        if not key_id:
            raise KalshiCryptoError("API key id must not be empty")
        if not isinstance(private_key, rsa.RSAPrivateKey):
            raise KalshiCryptoError("Private key must be an RSA key")
        self._key_id = key_id
        self._private_key = private_key

    @classmethod
    def from_pem_str(cls, key_id: str, pem: Union[str, bytes]) -> Signer:
        """Load a signer from PEM text (PKCS#8 or PKCS#1).

        Args:
            key_id: API key id
            pem: PEM encoded RSA private key

        Returns:
            Signer

        Raises:
            KalshiCryptoError: Key material is malformed or not RSA
        """
        data = pem.encode("utf-8") if isinstance(pem, str) else pem
        try:
            private_key = serialization.load_pem_private_key(data, password=None)
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise KalshiCryptoError(f"Failed to load private key: {e}") from e

        if not isinstance(private_key, rsa.RSAPrivateKey):
            raise KalshiCryptoError(
                f"Unsupported private key type: {type(private_key).__name__}"
            )
        return cls(key_id, private_key)

    @classmethod
    def from_pem_file(cls, key_id: str, path: Union[str, Path]) -> Signer:
        """Load a signer from a PEM file.

        Args:
            key_id: API key id
            path: Path to the PEM file

        Returns:
            Signer

        Raises:
            KalshiCryptoError: File is unreadable or the key is malformed
        """
        try:
            pem = Path(path).read_bytes()
        except OSError as e:
            raise KalshiCryptoError(f"Failed to read private key file {path}: {e}") from e
        return cls.from_pem_str(key_id, pem)

    @property
    def key_id(self) -> str:
        return self._key_id

    def public_key(self) -> rsa.RSAPublicKey:
        return self._private_key.public_key()

    def sign(self, timestamp_ms: int, method: str, path: str) -> str:
        """Sign ``timestamp + METHOD + path`` and return base64 text.

        PSS padding is randomized, so repeated calls give different signatures
        that all verify against the same public key.
        """
        message = signing_message(timestamp_ms, method, path)
        signature = self._private_key.sign(
            message,
            padding.PSS(
                mgf=padding.MGF1(hashes.SHA256()),
                salt_length=padding.PSS.DIGEST_LENGTH,
            ),
            hashes.SHA256(),
        )
        return b64encode(signature).decode("utf-8")

    def build_headers(
        self,
        method: str,
        path: str,
        timestamp_ms: Optional[int] = None,
    ) -> SignedHeaders:
        """Produce fresh signed headers for one request.

        Args:
            method: HTTP method
            path: Full request path (query is ignored)
            timestamp_ms: Override timestamp, defaults to now

        Returns:
            Signed headers
        """
        ts = timestamp_ms if timestamp_ms is not None else now_timestamp_ms()
        return SignedHeaders(
            key_id=self._key_id,
            timestamp_ms=ts,
            signature=self.sign(ts, method, path),
        )

    def __repr__(self) -> str:
        return f"Signer(key_id={self._key_id!r})"


def headers_to_dict(headers: SignedHeaders) -> Dict[str, str]:
    """Render signed headers under their wire names."""
    return {
        HEADER_KEY: headers.key_id,
        HEADER_TIMESTAMP: str(headers.timestamp_ms),
        HEADER_SIGNATURE: headers.signature,
    }


class AuthHandler(ABC):
    """Base class for authentication handlers."""

    @abstractmethod
    async def authenticate(
        self,
        request: httpx.Request,
        client: httpx.AsyncClient,
    ) -> httpx.Request:
        """Authenticate a request.

        Args:
            request: HTTP request to authenticate
            client: HTTP client the request will be sent with

        Returns:
            Authenticated request
        """


class KalshiSignatureHandler(AuthHandler):
    """Signs each request with the API key's RSA-PSS signature."""

    def __init__(self, signer: Signer) -> None:
        self.signer = signer

    async def authenticate(
        self,
        request: httpx.Request,
        client: httpx.AsyncClient,
    ) -> httpx.Request:
        """Authenticate request with Kalshi access headers.

        The signature covers the full URL path (including the API prefix)
        and excludes the query string.

        Args:
            request: HTTP request to authenticate
            client: HTTP client (unused)

        Returns:
            Authenticated request
        """
        signed = self.signer.build_headers(request.method, request.url.path)
        request.headers.update(headers_to_dict(signed))
        return request
