"""Process configuration for platehandler."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from platehandler.exceptions import ConfigError

#: Notification target used when ``NOTIFY_DEVICE`` is unset.
ALL_DEVICES = "ALL_DEVICES"


@dataclasses.dataclass(frozen=True)
class HubConfig:
    """Hub connection and local service configuration.

    Parameters
    ----------
    host : str
        ``host:port`` of the Home Assistant hub, without scheme.
    access_token : str or None
        Long-lived bearer token. Only required once the hub asks for
        authentication, so a missing token is reported at handshake time
        rather than at startup.
    notify_device : str
        ``notify`` service to call for plate notifications.
    plates_url : str or None
        Public URL prefix under which stored plate images are served.
        Images are not stored at all when unset.
    plates_dir : str
        Directory where uploaded plate images are written.
    db_path : str
        SQLite database file.
    webhook_port : int
        Port of the ingestion webhook.
    reconnect_delay : float
        Seconds to wait between websocket sessions.
    queue_size : int
        Capacity of the spotted-plate queue.
    """

    host: str = "localhost:8123"
    access_token: str | None = None
    notify_device: str = ALL_DEVICES
    plates_url: str | None = None
    plates_dir: str = "/plates"
    db_path: str = "/data/plates.db"
    webhook_port: int = 8402
    reconnect_delay: float = 10.0
    queue_size: int = 8

    @property
    def websocket_url(self) -> str:
        return f"ws://{self.host}/api/websocket"

    def rest_url(self, path: str) -> str:
        """Absolute URL of a hub REST endpoint (``path`` starts with ``/``)."""
        return f"http://{self.host}{path}"

    def require_access_token(self) -> str:
        """Return the access token or raise :class:`ConfigError`."""
        if not self.access_token:
            raise ConfigError("ACCESS_TOKEN environment variable unset")
        return self.access_token

    @classmethod
    def from_env(cls, **overrides: Any) -> HubConfig:
        """Create configuration from environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "HOST": "host",
            "ACCESS_TOKEN": "access_token",
            "NOTIFY_DEVICE": "notify_device",
            "PLATES_URL": "plates_url",
            "PLATES_DIR": "plates_dir",
            "DB_PATH": "db_path",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val:
                config_kwargs[field_name] = val

        # numeric settings, handle separately
        try:
            port_env = env.get("WEBHOOK_PORT")
            if port_env is not None and "webhook_port" not in overrides:
                config_kwargs["webhook_port"] = int(port_env)

            delay_env = env.get("RECONNECT_DELAY")
            if delay_env is not None and "reconnect_delay" not in overrides:
                config_kwargs["reconnect_delay"] = float(delay_env)
        except ValueError as exc:
            raise ConfigError(f"Invalid numeric setting: {exc}") from exc

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
