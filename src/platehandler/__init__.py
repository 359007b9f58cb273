"""platehandler - ALPR plate notifications for Home Assistant over its websocket API."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("platehandler")
except PackageNotFoundError:
    __version__ = "0+local"
from platehandler.config import HubConfig
from platehandler.connection import PendingCall, RpcConnection
from platehandler.exceptions import (
    ConfigError,
    ImageError,
    PlateHandlerError,
    ProtocolError,
    StorageError,
    TransportError,
    UnexpectedEventError,
)
from platehandler.models import PlateRecord, SpottedPlate, Spotting
from platehandler.notifier import PlateNotifier
from platehandler.plate_queue import PlateQueue
from platehandler.router import EventRouter
from platehandler.storage import SharedPlateStore, SqlitePlateStore, StorageGateway
from platehandler.supervisor import ConnectionState, ConnectionSupervisor

__all__ = [
    "__version__",
    "ConfigError",
    "ConnectionState",
    "ConnectionSupervisor",
    "EventRouter",
    "HubConfig",
    "ImageError",
    "PendingCall",
    "PlateHandlerError",
    "PlateNotifier",
    "PlateQueue",
    "PlateRecord",
    "ProtocolError",
    "RpcConnection",
    "SharedPlateStore",
    "SpottedPlate",
    "Spotting",
    "SqlitePlateStore",
    "StorageError",
    "StorageGateway",
    "TransportError",
    "UnexpectedEventError",
]
