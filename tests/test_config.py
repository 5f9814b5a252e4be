"""Tests for SDK configuration and environment loading."""

import logging

import pytest

from kalshi.client import KalshiClient
from kalshi.config import SDKConfig
from kalshi.env import KalshiEnvironment
from kalshi.env import rest_base_url
from kalshi.env import ws_url
from kalshi.env_config import load_config_from_env
from kalshi.errors import KalshiAuthRequiredError
from kalshi.errors import KalshiConfigurationError
from kalshi.errors import KalshiCryptoError
from kalshi.models import ReaderMode

KALSHI_VARS = (
    "KALSHI_ENVIRONMENT",
    "KALSHI_TIMEOUT",
    "KALSHI_USER_AGENT",
    "KALSHI_API_KEY_ID",
    "KALSHI_PRIVATE_KEY_PATH",
    "KALSHI_PRIVATE_KEY",
    "KALSHI_READ_RPS",
    "KALSHI_WRITE_RPS",
    "KALSHI_WS_PING_INTERVAL",
    "KALSHI_WS_OPEN_TIMEOUT",
    "KALSHI_RECONNECT_INITIAL_DELAY",
    "KALSHI_RECONNECT_MAX_DELAY",
    "KALSHI_RECONNECT_MAX_ATTEMPTS",
    "KALSHI_LOG_LEVEL",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every KALSHI_* variable."""
    for name in KALSHI_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestEnvironment:
    """Test environment endpoints."""

    def test_urls(self):
        """Test REST and streaming URLs per environment."""
        assert rest_base_url(KalshiEnvironment.DEMO) == "https://demo-api.kalshi.co/trade-api/v2"
        assert ws_url(KalshiEnvironment.PROD) == "wss://api.elections.kalshi.com/trade-api/ws/v2"

    @pytest.mark.parametrize("value,expected", [
        ("demo", KalshiEnvironment.DEMO),
        (" PROD ", KalshiEnvironment.PROD),
        ("production", KalshiEnvironment.PROD),
        ("live", KalshiEnvironment.PROD),
    ])
    def test_from_value(self, value, expected):
        """Test environment name parsing."""
        assert KalshiEnvironment.from_value(value) is expected

    def test_unknown(self):
        """Test unknown environment names."""
        with pytest.raises(KalshiConfigurationError):
            KalshiEnvironment.from_value("staging")


class TestLoadConfigFromEnv:
    """Test environment variable loading."""

    def test_defaults(self, clean_env):
        """Test defaults without any variables."""
        config = load_config_from_env(dotenv=False)

        assert config.environment is KalshiEnvironment.DEMO
        assert config.key_id is None
        assert not config.has_credentials
        assert config.rate_limit.read_rps == 20
        assert config.reconnect.max_attempts is None

    def test_full(self, clean_env, pkcs8_pem):
        """Test every variable is applied."""
        clean_env.setenv("KALSHI_ENVIRONMENT", "prod")
        clean_env.setenv("KALSHI_TIMEOUT", "12.5")
        clean_env.setenv("KALSHI_API_KEY_ID", "abc")
        clean_env.setenv("KALSHI_PRIVATE_KEY", pkcs8_pem.replace("\n", "\\n"))
        clean_env.setenv("KALSHI_READ_RPS", "0")
        clean_env.setenv("KALSHI_WRITE_RPS", "5")
        clean_env.setenv("KALSHI_RECONNECT_INITIAL_DELAY", "0.25")
        clean_env.setenv("KALSHI_RECONNECT_MAX_ATTEMPTS", "4")
        clean_env.setenv("KALSHI_LOG_LEVEL", "debug")

        config = load_config_from_env(dotenv=False)

        assert config.environment is KalshiEnvironment.PROD
        assert config.timeout == 12.5
        assert config.private_key_pem == pkcs8_pem
        assert config.rate_limit.read_rps == 0
        assert config.rate_limit.write_rps == 5
        assert config.reconnect.initial_delay == 0.25
        assert config.reconnect.max_attempts == 4
        assert config.log_level == "DEBUG"
        assert config.build_signer().key_id == "abc"

    def test_invalid_numbers_keep_defaults(self, clean_env, caplog):
        """Test malformed numbers are logged and ignored."""
        clean_env.setenv("KALSHI_TIMEOUT", "soon")
        clean_env.setenv("KALSHI_READ_RPS", "-3")
        clean_env.setenv("KALSHI_RECONNECT_MAX_ATTEMPTS", "many")

        with caplog.at_level(logging.WARNING, logger="kalshi.env_config"):
            config = load_config_from_env(dotenv=False)

        assert config.timeout == 30.0
        assert config.rate_limit.read_rps == 20
        assert config.reconnect.max_attempts is None
        assert "KALSHI_TIMEOUT" in caplog.text

    def test_zero_attempts_means_unlimited(self, clean_env):
        """Test zero max attempts disables the limit."""
        clean_env.setenv("KALSHI_RECONNECT_MAX_ATTEMPTS", "0")

        assert load_config_from_env(dotenv=False).reconnect.max_attempts is None

    def test_invalid_reconnect_delay(self, clean_env):
        """Test a non-positive reconnect delay is a configuration error."""
        clean_env.setenv("KALSHI_RECONNECT_INITIAL_DELAY", "0")

        with pytest.raises(KalshiConfigurationError):
            load_config_from_env(dotenv=False)


class TestSDKConfig:
    """Test configuration validation."""

    @pytest.mark.parametrize("kwargs", [
        {"timeout": 0},
        {"ws_open_timeout": -1},
        {"key_id": "abc"},
        {"private_key_pem": "pem"},
        {"key_id": "abc", "private_key_pem": "pem", "private_key_path": "key.pem"},
        {"log_level": "LOUD"},
    ])
    def test_validate(self, kwargs):
        """Test invalid settings."""
        with pytest.raises(KalshiConfigurationError):
            SDKConfig(**kwargs).validate()

    def test_derived_configs(self):
        """Test HTTP and WebSocket settings follow the environment."""
        config = SDKConfig(environment=KalshiEnvironment.PROD, timeout=7.0, ws_ping_interval=None)

        assert config.http_config().base_url == "https://api.elections.kalshi.com/trade-api/v2"
        assert config.http_config().timeout == 7.0
        assert config.websocket_config().ping_interval is None

    def test_to_dict_hides_key(self, pkcs8_pem):
        """Test key material is never serialized."""
        config = SDKConfig(key_id="abc", private_key_pem=pkcs8_pem)

        assert "private_key_pem" not in config.to_dict()
        assert pkcs8_pem not in repr(config)


class TestKalshiClient:
    """Test client construction."""

    @pytest.mark.asyncio
    async def test_unauthenticated(self):
        """Test a client without credentials."""
        async with KalshiClient() as client:
            assert not client.authenticated
            with pytest.raises(KalshiAuthRequiredError):
                client.require_auth()

            stream = client.stream(reader_mode=ReaderMode.RAW)
            assert stream.reader_mode is ReaderMode.RAW
            assert stream.config.url == "wss://demo-api.kalshi.co/trade-api/ws/v2"

    @pytest.mark.asyncio
    async def test_authenticated(self, pkcs1_pem):
        """Test credentials build a shared signer."""
        async with KalshiClient(SDKConfig(key_id="abc", private_key_pem=pkcs1_pem)) as client:
            assert client.authenticated
            assert client.http_client.signer is client.signer
            assert client.stream()._signer is client.signer

    def test_bad_key(self):
        """Test malformed key material fails at construction."""
        with pytest.raises(KalshiCryptoError):
            KalshiClient(SDKConfig(key_id="abc", private_key_pem="not a key"))

    def test_from_env(self, clean_env, pkcs8_pem, tmp_path):
        """Test building a client from a key file named in the environment."""
        key_file = tmp_path / "key.pem"
        key_file.write_text(pkcs8_pem)
        clean_env.setenv("KALSHI_API_KEY_ID", "abc")
        clean_env.setenv("KALSHI_PRIVATE_KEY_PATH", str(key_file))
        clean_env.setattr("kalshi.env_config.load_dotenv", lambda: False)

        client = KalshiClient.from_env()

        assert client.signer.key_id == "abc"
