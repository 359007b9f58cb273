"""Custom exception hierarchy for platehandler."""

from __future__ import annotations


class PlateHandlerError(Exception):
    """Base exception for all platehandler errors."""


class ConfigError(PlateHandlerError):
    """Invalid or missing configuration."""


class TransportError(PlateHandlerError):
    """Socket or HTTP level failure (connect, write, non-2xx)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class ProtocolError(PlateHandlerError):
    """Inbound frame is malformed or has an unexpected shape."""

    def __init__(self, message: str, *, frame: str = "") -> None:
        self.frame = frame
        super().__init__(message)


class UnexpectedEventError(ProtocolError):
    """Well-formed push event of a kind this client does not handle.

    The hub only delivers the event types we subscribed to, so seeing one
    of these usually means another subscription shares the connection.
    """

    def __init__(self, message: str, *, event_type: str | None = None) -> None:
        self.event_type = event_type
        super().__init__(message)


class StorageError(PlateHandlerError):
    """SQLite read or write failure."""


class ImageError(PlateHandlerError):
    """Uploaded snapshot is not a decodable JPEG."""
