"""Persistence layer - Record store backends and cursors."""

from .database import SQLiteRecordStore
from .store import (
    KV,
    CursorItem,
    InMemoryRecordStore,
    RecordStore,
    StateCursor,
    StoreBackend,
    create_record_store,
    encode_composite_key,
)

__all__ = [
    "KV",
    "CursorItem",
    "InMemoryRecordStore",
    "RecordStore",
    "SQLiteRecordStore",
    "StateCursor",
    "StoreBackend",
    "create_record_store",
    "encode_composite_key",
]
