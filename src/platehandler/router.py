"""Push-event handling: user replies to plate notifications."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from platehandler.exceptions import ProtocolError, UnexpectedEventError
from platehandler.models.messages import NOTIFICATION_ACTION_EVENT, NotificationAction, PushEvent
from platehandler.storage import SharedPlateStore

_logger = logging.getLogger(__name__)


class EventRouter:
    """Turns notification reply actions into plate names."""

    def __init__(self, store: SharedPlateStore) -> None:
        self._store = store

    async def handle_push_event(self, event: Mapping[str, Any]) -> None:
        """Store the name a user typed into an unknown-plate notification.

        Raises
        ------
        UnexpectedEventError
            For any event type other than ``mobile_app_notification_action``.
        ProtocolError
            When the plate or the reply text is missing.
        """
        try:
            push = PushEvent.model_validate(event)
        except ValidationError as exc:
            raise ProtocolError(f"Malformed push event {dict(event)!r}") from exc
        if push.event_type != NOTIFICATION_ACTION_EVENT:
            raise UnexpectedEventError(f"Unexpected event type {push.event_type!r}", event_type=push.event_type)

        try:
            action = NotificationAction.model_validate(push.data)
        except ValidationError as exc:
            raise ProtocolError(f"Missing plate or reply text in data {push.data!r}") from exc

        _logger.info("Received event requesting name %s for plate %s", action.reply_text, action.plate)
        await self._store.set_name(action.plate, action.reply_text)
