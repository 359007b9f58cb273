"""Websocket RPC connection to the hub.

One :class:`RpcConnection` wraps one live socket. It numbers outbound calls,
remembers which calls expect a ``result`` frame, and routes every inbound
frame either to the waiting call or to the push-event handler.

Call ids and pending calls belong to the socket: a new connection starts
again at id 1 with nothing pending, and calls still pending when a socket
drops are simply forgotten.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol

import aiohttp
from pydantic import ValidationError

from platehandler._redact import redact_for_log
from platehandler.config import HubConfig
from platehandler.exceptions import PlateHandlerError, ProtocolError, TransportError
from platehandler.models.messages import NOTIFICATION_ACTION_EVENT, InboundMessage, ResultMessage

_logger = logging.getLogger(__name__)

Completion = Callable[[bool, Any], None]
EventHandler = Callable[[dict[str, Any]], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class PendingCall:
    """A numbered call waiting for its ``result`` frame.

    Without an explicit ``on_complete`` the outcome is only logged, which is
    all the hub calls made by this client need.
    """

    description: str
    on_complete: Completion | None = None

    def complete(self, success: bool, result: Any) -> None:
        if self.on_complete is not None:
            self.on_complete(success, result)
            return
        if success:
            _logger.info("Successfully completed: %s", self.description)
        else:
            _logger.error("Failed: %s: %s", self.description, result)


FrameBuilder = Callable[[int], tuple[dict[str, Any], PendingCall | None]]


class WebSocket(Protocol):
    """The part of :class:`aiohttp.ClientWebSocketResponse` used here."""

    async def send_str(self, data: str) -> None:
        ...

    async def receive(self) -> aiohttp.WSMessage:
        ...

    async def close(self) -> bool:
        ...


class RpcConnection:
    """Numbered request/response calls and push-event dispatch over one socket."""

    def __init__(
        self,
        ws: WebSocket,
        *,
        config: HubConfig,
        on_event: EventHandler,
    ) -> None:
        self._ws = ws
        self._config = config
        self._on_event = on_event
        self._lock = asyncio.Lock()
        self._next_call_id = 1
        self._pending: dict[int, PendingCall] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        """Whether the socket is known to be unusable."""
        return self._closed

    @property
    def pending_ids(self) -> list[int]:
        return sorted(self._pending)

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    async def send(self, build_frame: FrameBuilder) -> int:
        """Allocate a call id, build the frame for it and write it.

        ``build_frame`` receives the id and returns the frame plus an
        optional :class:`PendingCall` to complete when the result arrives.
        A pending call registered for a frame whose write fails never fires.
        """
        async with self._lock:
            call_id = self._next_call_id
            self._next_call_id += 1
            frame, pending = build_frame(call_id)
            if pending is not None:
                self._pending[call_id] = pending
            await self._write(frame)
        return call_id

    async def send_unnumbered(self, frame: dict[str, Any]) -> None:
        """Write a frame that carries no call id (the ``auth`` frame)."""
        async with self._lock:
            await self._write(frame)

    async def _write(self, frame: dict[str, Any]) -> None:
        if self._closed:
            raise TransportError("Websocket connection already closed", endpoint=self._config.websocket_url)
        _logger.debug("Sending websocket frame %s", redact_for_log(frame))
        text = json.dumps(frame, separators=(",", ":"))
        try:
            await self._ws.send_str(text)
        except (aiohttp.ClientError, ConnectionError, RuntimeError) as exc:
            self._closed = True
            raise TransportError(
                f"Error writing websocket frame: {exc}",
                endpoint=self._config.websocket_url,
            ) from exc

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    async def run_inbound(self) -> None:
        """Read and dispatch frames until the socket closes.

        A bad frame is logged and skipped; only the socket going away ends
        the loop.
        """
        while not self._closed:
            message = await self._ws.receive()
            if message.type == aiohttp.WSMsgType.TEXT:
                try:
                    await self.dispatch_inbound(message.data)
                except PlateHandlerError as exc:
                    _logger.error("Error handling websocket message: %s", exc)
            elif message.type == aiohttp.WSMsgType.CLOSE:
                _logger.warning("Websocket close message: code=%s reason=%s", message.data, message.extra)
                break
            elif message.type in (aiohttp.WSMsgType.CLOSING, aiohttp.WSMsgType.CLOSED):
                _logger.info("Websocket closed")
                break
            elif message.type == aiohttp.WSMsgType.ERROR:
                _logger.error("Websocket error: %s", message.data)
                break
            else:
                _logger.debug("Ignoring websocket message of type %s", message.type)
        self._closed = True

    async def dispatch_inbound(self, raw: str) -> None:
        """Handle one text frame from the hub.

        Raises
        ------
        ProtocolError
            The frame is not a JSON object with a string ``type``, has an
            unknown type, or a ``result``/``event`` frame lacks required
            fields.
        ConfigError
            The hub asked for authentication and no token is configured.
        TransportError
            A reply frame could not be written.
        """
        try:
            value = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ProtocolError(f"Failed to parse websocket message: {raw[:200]!r}", frame=raw) from exc
        if not isinstance(value, dict):
            raise ProtocolError(f"Unexpected message JSON type: {raw[:200]}", frame=raw)
        try:
            message_type = InboundMessage.model_validate(value).type
        except ValidationError as exc:
            raise ProtocolError(f"Unrecognized type for message {raw[:200]}", frame=raw) from exc

        _logger.info("Handling websocket message of type: %s", message_type)
        if message_type == "auth_required":
            await self._authenticate()
        elif message_type == "auth_ok":
            await self._subscribe()
        elif message_type == "result":
            await self._handle_result(value, raw)
        elif message_type == "event":
            event = value.get("event")
            if not isinstance(event, dict):
                raise ProtocolError(f"Missing event object in message {raw[:200]}", frame=raw)
            await self._on_event(event)
        else:
            raise ProtocolError(f"Unrecognized message type {message_type}", frame=raw)

    async def _authenticate(self) -> None:
        access_token = self._config.require_access_token()
        await self.send_unnumbered({"type": "auth", "access_token": access_token})

    async def _subscribe(self) -> None:
        await self.send(
            lambda call_id: (
                {
                    "id": call_id,
                    "type": "subscribe_events",
                    "event_type": NOTIFICATION_ACTION_EVENT,
                },
                PendingCall("subscribe to notification actions"),
            )
        )

    async def _handle_result(self, value: dict[str, Any], raw: str) -> None:
        try:
            result = ResultMessage.model_validate(value)
        except ValidationError as exc:
            raise ProtocolError(f"Missing or invalid id/success field in result {raw[:200]}", frame=raw) from exc

        async with self._lock:
            pending = self._pending.pop(result.id, None)
        if pending is None:
            _logger.debug("Ignoring result for unknown call id %s", result.id)
            return
        try:
            pending.complete(result.success, result.result)
        except Exception:
            _logger.error("Completion for call %s (%s) failed", result.id, pending.description, exc_info=True)
