"""Typed models for plates and hub frames."""

from platehandler.models.messages import (
    NOTIFICATION_ACTION_EVENT,
    InboundMessage,
    NotificationAction,
    PushEvent,
    ResultMessage,
)
from platehandler.models.plate import PlateRecord, SpottedPlate, Spotting
from platehandler.models.recognition import RecognitionPayload, RecognitionResult

__all__ = [
    "NOTIFICATION_ACTION_EVENT",
    "InboundMessage",
    "NotificationAction",
    "PlateRecord",
    "PushEvent",
    "RecognitionPayload",
    "RecognitionResult",
    "ResultMessage",
    "SpottedPlate",
    "Spotting",
]
