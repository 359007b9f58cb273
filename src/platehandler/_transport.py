"""aiohttp transport to the hub: websocket sessions and REST calls."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from platehandler._redact import redact_for_log
from platehandler.config import HubConfig
from platehandler.connection import WebSocket
from platehandler.exceptions import TransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the supervisor and notifier.

    Keeping this a protocol lets tests pass in-memory doubles while the
    production implementation (:class:`HubTransport`) stays concrete.
    """

    async def open_websocket(self) -> WebSocket:
        ...

    async def post_json(self, path: str, payload: Mapping[str, Any]) -> None:
        ...


class HubTransport:
    """Opens websocket sessions and posts REST calls over one aiohttp session."""

    def __init__(self, config: HubConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session

    async def open_websocket(self) -> WebSocket:
        """Connect and upgrade to the hub websocket API."""
        url = self._config.websocket_url
        _logger.debug("Connecting to %s", url)
        try:
            return await self._http.ws_connect(url)
        except (aiohttp.ClientError, OSError) as exc:
            raise TransportError(f"Unable to connect to {url}: {exc}", endpoint=url) from exc

    async def post_json(self, path: str, payload: Mapping[str, Any]) -> None:
        """POST *payload* as JSON to a hub REST endpoint with the bearer token."""
        headers = {
            "Authorization": f"Bearer {self._config.require_access_token()}",
            "content-type": "application/json",
        }
        url = self._config.rest_url(path)
        _logger.debug("POST %s %s", url, redact_for_log(payload))

        try:
            async with self._http.post(url, data=json.dumps(payload), headers=headers) as resp:
                if resp.status >= 300:
                    text = await resp.text()
                    raise TransportError(
                        f"HTTP {resp.status} from {path}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=path,
                    )
        except TransportError:
            raise
        except (aiohttp.ClientError, OSError) as exc:
            raise TransportError(f"Request to {path} failed: {exc}", endpoint=path) from exc
