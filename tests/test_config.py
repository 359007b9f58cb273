from __future__ import annotations

import pytest

from platehandler.config import ALL_DEVICES, HubConfig
from platehandler.exceptions import ConfigError

_ENV_KEYS = (
    "HOST",
    "ACCESS_TOKEN",
    "NOTIFY_DEVICE",
    "PLATES_URL",
    "PLATES_DIR",
    "DB_PATH",
    "WEBHOOK_PORT",
    "RECONNECT_DELAY",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults() -> None:
    config = HubConfig.from_env()

    assert config.host == "localhost:8123"
    assert config.notify_device == ALL_DEVICES
    assert config.access_token is None
    assert config.reconnect_delay == 10.0
    assert config.queue_size == 8
    assert config.websocket_url == "ws://localhost:8123/api/websocket"
    assert config.rest_url("/api/events/x") == "http://localhost:8123/api/events/x"


def test_from_env_reads_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOST", "hass.local:8123")
    monkeypatch.setenv("ACCESS_TOKEN", "secret-token")
    monkeypatch.setenv("NOTIFY_DEVICE", "mobile_app_pixel")
    monkeypatch.setenv("WEBHOOK_PORT", "9000")
    monkeypatch.setenv("RECONNECT_DELAY", "2.5")

    config = HubConfig.from_env()

    assert config.host == "hass.local:8123"
    assert config.require_access_token() == "secret-token"
    assert config.notify_device == "mobile_app_pixel"
    assert config.webhook_port == 9000
    assert config.reconnect_delay == 2.5


def test_overrides_take_precedence(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOST", "hass.local:8123")
    monkeypatch.setenv("WEBHOOK_PORT", "9000")

    config = HubConfig.from_env(host="other:8123", webhook_port=1234)

    assert config.host == "other:8123"
    assert config.webhook_port == 1234


def test_empty_token_counts_as_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ACCESS_TOKEN", "")

    with pytest.raises(ConfigError):
        HubConfig.from_env().require_access_token()


def test_invalid_numbers_raise_config_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WEBHOOK_PORT", "eighty")

    with pytest.raises(ConfigError):
        HubConfig.from_env()
