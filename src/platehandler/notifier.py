"""Turns spotted plates into hub notifications, logbook entries and events."""

from __future__ import annotations

import logging
from typing import Any

from platehandler._transport import Transport
from platehandler.config import HubConfig
from platehandler.connection import PendingCall, RpcConnection
from platehandler.models.plate import SpottedPlate
from platehandler.storage import SharedPlateStore

_logger = logging.getLogger(__name__)

#: REST event fired for every spotted plate; the websocket API cannot fire events.
PLATE_SPOTTED_EVENT_PATH = "/api/events/license_plate_spotted"

#: Text-input action attached to notifications for plates without a name.
REPLY_ACTION: dict[str, str] = {
    "action": "REPLY",
    "title": "Save Name...",
    "textInputButtonTitle": "Save",
    "textInputPlaceholder": "e.g. 'John' or 'Trash Pickup'",
}


def build_notification(plate: SpottedPlate, known_name: str | None) -> dict[str, Any]:
    """Build the ``service_data`` of a ``notify`` call for *plate*."""
    if known_name is not None:
        message = f"Spotted plate for {known_name}"
    else:
        message = f"Spotted plate {plate.plate}"

    data: dict[str, Any] = {}
    if known_name is None:
        # Actionable notification so the user can name the plate.
        data["actions"] = [dict(REPLY_ACTION)]
        data["action_data"] = {"plate": plate.plate}
    if plate.image_url:
        data["attachment"] = {"url": plate.image_url}
    return {"message": message, "data": data}


class PlateNotifier:
    """Reports spotted plates to the hub over one session's connection.

    Each plate produces three independent, best-effort effects: a mobile
    notification, a logbook entry and a ``license_plate_spotted`` event.
    A failure stops the remaining effects for that plate only; effects
    already sent are not rolled back.
    """

    def __init__(
        self,
        config: HubConfig,
        connection: RpcConnection,
        store: SharedPlateStore,
        transport: Transport,
    ) -> None:
        self._config = config
        self._connection = connection
        self._store = store
        self._transport = transport

    async def handle_spotted_plate(self, plate: SpottedPlate) -> None:
        """Record *plate* and notify the hub.

        Raises
        ------
        TransportError
            A websocket frame or the REST event could not be sent.
        ConfigError
            No access token is configured for the REST call.
        """
        _logger.info("Spotted plate %s score=%.3f vehicle=%s", plate.plate, plate.score, plate.vehicle_type)
        known_name = await self._store.record_sighting(plate.plate)
        service_data = build_notification(plate, known_name)

        await self._connection.send(
            lambda call_id: (
                {
                    "id": call_id,
                    "type": "call_service",
                    "domain": "notify",
                    "service": self._config.notify_device,
                    "service_data": service_data,
                },
                PendingCall(f"send plate notification for {plate.plate}"),
            )
        )
        await self._connection.send(
            lambda call_id: (
                {
                    "id": call_id,
                    "type": "call_service",
                    "domain": "logbook",
                    "service": "log",
                    "service_data": {
                        "name": f"License plate {plate.plate}",
                        "message": "was spotted",
                        "domain": "camera",
                    },
                },
                PendingCall(f"write logbook entry for {plate.plate}"),
            )
        )
        await self._transport.post_json(PLATE_SPOTTED_EVENT_PATH, {"plate": plate.plate})
