"""Inbound websocket frame models.

Only the fields the client acts on are modelled; everything else in a
frame is ignored.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr

#: Push event type carrying replies to actionable notifications.
NOTIFICATION_ACTION_EVENT = "mobile_app_notification_action"


class InboundMessage(BaseModel):
    """Envelope shared by every hub frame."""

    model_config = ConfigDict(frozen=True, extra="allow")

    type: StrictStr


class ResultMessage(BaseModel):
    """Response to a numbered call."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: StrictInt = Field(..., ge=0)
    success: StrictBool
    result: Any = None


class PushEvent(BaseModel):
    """The ``event`` object of an ``{"type": "event"}`` frame."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    event_type: StrictStr | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class _ActionData(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    plate: StrictStr


class NotificationAction(BaseModel):
    """``data`` of a ``mobile_app_notification_action`` event.

    The plate travels as opaque ``action_data`` attached when the
    notification was sent; ``reply_text`` is what the user typed.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    action_data: _ActionData
    reply_text: StrictStr

    @property
    def plate(self) -> str:
        return self.action_data.plate
