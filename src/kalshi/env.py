"""Kalshi environments and endpoint paths."""

from __future__ import annotations

from enum import Enum

from kalshi.errors import KalshiConfigurationError

REST_PREFIX = "/trade-api/v2"
WS_PATH = "/trade-api/ws/v2"

DEMO_HOST = "demo-api.kalshi.co"
PROD_HOST = "api.elections.kalshi.com"


class KalshiEnvironment(str, Enum):
    """Trading environment enumeration."""
    DEMO = "demo"
    PROD = "prod"

    @property
    def host(self) -> str:
        if self is KalshiEnvironment.DEMO:
            return DEMO_HOST
        return PROD_HOST

    @classmethod
    def from_value(cls, value: str) -> KalshiEnvironment:
        """Parse an environment name.

        Args:
            value: Environment name (demo, prod, production or live)

        Returns:
            Matching environment

        Raises:
            KalshiConfigurationError: Unknown environment name
        """
        normalized = value.strip().lower()
        if normalized == "demo":
            return cls.DEMO
        if normalized in ("prod", "production", "live"):
            return cls.PROD
        raise KalshiConfigurationError(f"Unknown environment: {value!r}")


def rest_base_url(env: KalshiEnvironment) -> str:
    """Base URL for REST calls, including the API prefix."""
    return f"https://{env.host}{REST_PREFIX}"


def ws_url(env: KalshiEnvironment) -> str:
    """Streaming endpoint URL."""
    return f"wss://{env.host}{WS_PATH}"
