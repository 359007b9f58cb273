"""Reconnect loop for the hub websocket.

The supervisor cycles ``DISCONNECTED -> CONNECTING -> CONNECTED ->
DISCONNECTED`` forever. Each connected session runs two consumers against
one fresh :class:`~platehandler.connection.RpcConnection`: the inbound frame
reader and the spotted-plate drain. Whichever finishes first ends the
session; the other is cancelled.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from enum import StrEnum

import aiohttp

from platehandler._transport import Transport
from platehandler.config import HubConfig
from platehandler.connection import RpcConnection, WebSocket
from platehandler.exceptions import PlateHandlerError, TransportError
from platehandler.notifier import PlateNotifier
from platehandler.plate_queue import PlateQueue
from platehandler.router import EventRouter
from platehandler.storage import SharedPlateStore

_logger = logging.getLogger(__name__)


class ConnectionState(StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class ConnectionSupervisor:
    """Keeps one hub session alive, reconnecting after a fixed delay."""

    def __init__(
        self,
        config: HubConfig,
        transport: Transport,
        queue: PlateQueue,
        store: SharedPlateStore,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._config = config
        self._transport = transport
        self._queue = queue
        self._store = store
        self._sleep = sleep
        self._state = ConnectionState.DISCONNECTED
        self._connection: RpcConnection | None = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def connection(self) -> RpcConnection | None:
        """Connection of the current session, if connected."""
        return self._connection

    def _set_state(self, state: ConnectionState) -> None:
        if state != self._state:
            _logger.debug("Websocket state %s -> %s", self._state, state)
        self._state = state

    async def run_forever(self) -> None:
        """Connect, run the session, wait, repeat. Never returns."""
        while True:
            await self.run_once()
            _logger.info("Waiting %s seconds and reconnecting to websocket...", self._config.reconnect_delay)
            await self._sleep(self._config.reconnect_delay)
            _logger.info("Reconnecting to websocket...")

    async def run_once(self) -> None:
        """One connect attempt and, if it succeeds, one full session."""
        self._set_state(ConnectionState.CONNECTING)
        try:
            ws = await self._transport.open_websocket()
        except TransportError as exc:
            _logger.error("Error connecting to websocket: %s", exc)
            self._set_state(ConnectionState.DISCONNECTED)
            return

        self._set_state(ConnectionState.CONNECTED)
        try:
            await self._run_session(ws)
        finally:
            self._connection = None
            with contextlib.suppress(aiohttp.ClientError, ConnectionError):
                await ws.close()
            self._set_state(ConnectionState.DISCONNECTED)

    async def _run_session(self, ws: WebSocket) -> None:
        _logger.info("Handling websocket connection")
        router = EventRouter(self._store)
        connection = RpcConnection(ws, config=self._config, on_event=router.handle_push_event)
        notifier = PlateNotifier(self._config, connection, self._store, self._transport)
        self._connection = connection

        inbound = asyncio.create_task(connection.run_inbound(), name="platehandler-inbound")
        plates = asyncio.create_task(self._drain_plates(connection, notifier), name="platehandler-plates")
        try:
            done, _ = await asyncio.wait({inbound, plates}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (inbound, plates):
                task.cancel()
            await asyncio.gather(inbound, plates, return_exceptions=True)

        if inbound in done:
            _logger.info("Websocket connection dropped")
        else:
            _logger.error("Plate stream ended")
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                _logger.error("Session task %s failed", task.get_name(), exc_info=task.exception())

    async def _drain_plates(self, connection: RpcConnection, notifier: PlateNotifier) -> None:
        while not connection.closed:
            plate = await self._queue.get()
            if plate is None:
                return
            try:
                await notifier.handle_spotted_plate(plate)
            except PlateHandlerError as exc:
                _logger.error("Error handling spotted plate %s: %s", plate.plate, exc)
