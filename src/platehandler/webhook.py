"""HTTP ingestion endpoint for ALPR detections.

The recognizer POSTs a multipart form to ``/webhook`` with a ``json`` part
(the recognition result) and an optional ``upload`` part (a JPEG snapshot).
Every recognized plate is submitted to the :class:`PlateQueue`, in order.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from pathlib import Path

from aiohttp import BodyPartReader, web
from pydantic import ValidationError

from platehandler.config import HubConfig
from platehandler.exceptions import ImageError
from platehandler.models.recognition import RecognitionPayload
from platehandler.plate_queue import PlateQueue
from platehandler.snapshots import save_snapshot

_logger = logging.getLogger(__name__)

WEBHOOK_PATH = "/webhook"


class PlateWebhook:
    """aiohttp handler that feeds recognition results into the queue."""

    def __init__(self, config: HubConfig, queue: PlateQueue) -> None:
        self._config = config
        self._queue = queue

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_post(WEBHOOK_PATH, self.handle)
        return app

    async def handle(self, request: web.Request) -> web.Response:
        if not request.content_type.startswith("multipart/"):
            return web.Response(status=400, text="expected multipart/form-data")

        payload_raw: bytes | None = None
        image: bytes | None = None
        reader = await request.multipart()
        async for part in reader:
            if not isinstance(part, BodyPartReader):
                _logger.warning("Ignoring nested multipart part")
                continue
            _logger.debug("Got part %s", part.name)
            if part.name == "json":
                payload_raw = bytes(await part.read())
            elif part.name == "upload":
                image = bytes(await part.read())
            else:
                _logger.warning("Ignoring part %s", part.name)

        if payload_raw is None:
            _logger.error("Error handling plate: missing JSON data")
            return web.Response(status=400, text="missing json part")
        try:
            payload = RecognitionPayload.model_validate_json(payload_raw)
            # Build every plate before queueing any, so a bad result rejects the whole request.
            plates = [result.to_spotted() for result in payload.data.results]
        except ValidationError as exc:
            _logger.error("Error handling plate: invalid recognition payload: %s", exc)
            return web.Response(status=400, text="invalid json part")

        image_url = await self._store_image(image) if image else None
        for plate in plates:
            spotted = plate.model_copy(update={"image_url": image_url})
            _logger.info("Sending plate %s to queue", spotted.plate)
            await self._queue.submit(spotted)
        return web.Response(text="")

    async def _store_image(self, image: bytes) -> str | None:
        """Store a resized copy of the snapshot and return its public URL.

        Snapshots that are not decodable JPEGs are dropped; the notification
        is then sent without an attachment.
        """
        if not self._config.plates_url:
            return None
        name = f"{uuid.uuid4().hex}.jpeg"
        path = Path(self._config.plates_dir) / name
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, save_snapshot, image, path)
        except ImageError as exc:
            _logger.warning("Ignoring uploaded snapshot: %s", exc)
            return None
        except OSError as exc:
            _logger.warning("Error saving image to %s: %s", path, exc)
            return None
        return self._config.plates_url + name


async def run_webhook(config: HubConfig, queue: PlateQueue, *, host: str = "0.0.0.0") -> None:
    """Serve the webhook until cancelled."""
    runner = web.AppRunner(PlateWebhook(config, queue).build_app())
    await runner.setup()
    try:
        site = web.TCPSite(runner, host, config.webhook_port)
        await site.start()
        _logger.info("Webhook listening on %s:%s%s", host, config.webhook_port, WEBHOOK_PATH)
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()
