"""Bounded FIFO queue between the webhook and the active hub session."""

from __future__ import annotations

import asyncio
import contextlib

from platehandler.exceptions import PlateHandlerError
from platehandler.models.plate import SpottedPlate

DEFAULT_QUEUE_SIZE = 8


class PlateQueue:
    """Spotted plates waiting for the notifier.

    ``submit`` suspends while the queue is full, including while no session
    is draining it. Nothing is ever dropped. After :meth:`close` the queue
    drains what it holds and then reports end-of-stream.
    """

    def __init__(self, maxsize: int = DEFAULT_QUEUE_SIZE) -> None:
        self._queue: asyncio.Queue[SpottedPlate | None] = asyncio.Queue(maxsize)
        self._closing = False
        self._exhausted = False

    def qsize(self) -> int:
        return self._queue.qsize()

    async def submit(self, plate: SpottedPlate) -> None:
        if self._closing:
            raise PlateHandlerError("Plate queue is closed")
        await self._queue.put(plate)

    def close(self) -> None:
        """Stop accepting plates; consumers see end-of-stream once drained.

        Never waits, even when the queue is full.
        """
        if self._closing:
            return
        self._closing = True
        # Wakes a consumer blocked on an empty queue. A full queue needs no
        # sentinel: get() reports end-of-stream once it runs empty.
        with contextlib.suppress(asyncio.QueueFull):
            self._queue.put_nowait(None)

    async def get(self) -> SpottedPlate | None:
        """Next plate in submission order, or ``None`` once closed and drained."""
        if self._exhausted:
            return None
        if self._closing and self._queue.empty():
            self._exhausted = True
            return None
        plate = await self._queue.get()
        if plate is None:
            self._exhausted = True
        return plate
