"""Shared record store: transports, typed records and the live client view."""

from .transport import MemoryTransport, StoreWriteError, Transport, join_path, split_path
from .sqlite import SqliteTransport
from .records import (
    ACTIVITY_PATH,
    CONFIG_PATH,
    CURRENT_OFFER_PATH,
    PLAYERS_PATH,
    RecordStore,
)
from .view import LiveView

__all__ = [
    "ACTIVITY_PATH",
    "CONFIG_PATH",
    "CURRENT_OFFER_PATH",
    "LiveView",
    "MemoryTransport",
    "PLAYERS_PATH",
    "RecordStore",
    "SqliteTransport",
    "StoreWriteError",
    "Transport",
    "join_path",
    "split_path",
]
