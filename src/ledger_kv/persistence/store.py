"""Record Store - ordered key-value state with composite-key range scans.

The record store is the ledger state the contract reads and writes. It
offers point reads/writes/deletes and prefix scans over composite keys,
handing back a single-pass cursor that must be closed by the consumer.

Composite keys use the ledger-native layout::

    U+0000 + object_type + U+0000 + attr_1 + U+0000 + ... + attr_n + U+0000

so every key sharing an object type and leading attributes sorts into one
contiguous range.
"""

from __future__ import annotations

import bisect
import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from ..contract.errors import StoreError

logger = logging.getLogger(__name__)

MIN_UNICODE_RUNE = "\u0000"
MAX_UNICODE_RUNE = "\U0010ffff"
COMPOSITE_KEY_NAMESPACE = MIN_UNICODE_RUNE


class StoreBackend(str, Enum):
    """Supported record store backends."""

    MEMORY = "memory"
    SQLITE = "sqlite"


@dataclass(frozen=True, slots=True)
class KV:
    """A single key/value pair yielded by a range scan."""

    key: str
    value: bytes


@dataclass(frozen=True, slots=True)
class CursorItem:
    """Result of advancing a cursor by one element."""

    value: KV | None = None
    done: bool = False


def _stringify_attribute(attr: Any) -> str:
    if isinstance(attr, str):
        return attr
    return json.dumps(attr, separators=(",", ":"), ensure_ascii=False)


def _validate_component(component: str) -> None:
    if MIN_UNICODE_RUNE in component or MAX_UNICODE_RUNE in component:
        raise StoreError(
            f"composite key component {component!r} contains a reserved code point"
        )


def encode_composite_key(object_type: str, attributes: Sequence[Any]) -> str:
    """Render an object type and attribute list as a composite key.

    Non-string attributes are stringified as compact JSON (``30``, ``true``,
    ``null``). Components may not contain U+0000 or U+10FFFF.

    Raises:
        StoreError: If a component contains a reserved code point
    """
    object_type = _stringify_attribute(object_type)
    _validate_component(object_type)
    key = COMPOSITE_KEY_NAMESPACE + object_type + MIN_UNICODE_RUNE
    for attr in attributes:
        text = _stringify_attribute(attr)
        _validate_component(text)
        key += text + MIN_UNICODE_RUNE
    return key


class StateCursor(ABC):
    """Single-pass cursor over the results of a range scan."""

    @abstractmethod
    async def next(self) -> CursorItem:
        """Advance the cursor by one element."""

    @abstractmethod
    async def close(self) -> None:
        """Release the cursor."""


class RecordStore(ABC):
    """Abstract ordered key-value store backing the contract."""

    @abstractmethod
    async def get(self, key: str) -> bytes:
        """Read a value. Absent keys yield ``b""``."""

    @abstractmethod
    async def put(self, key: str, value: bytes) -> None:
        """Write a value, overwriting any existing one."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove a key. Absent keys are a no-op."""

    @abstractmethod
    async def scan_range(self, start_key: str, end_key: str) -> StateCursor:
        """Open a cursor over keys in ``[start_key, end_key)``, ascending."""

    def encode_composite_key(self, object_type: str, attributes: Sequence[Any]) -> str:
        return encode_composite_key(object_type, attributes)

    async def scan_by_partial_composite_key(
        self,
        object_type: str,
        attributes: Sequence[Any],
    ) -> StateCursor:
        """Open a cursor over every key prefixed by the partial composite key."""
        prefix = self.encode_composite_key(object_type, attributes)
        return await self.scan_range(prefix, prefix + MAX_UNICODE_RUNE)

    async def ping(self) -> None:
        """Verify the store is reachable."""

    def close(self) -> None:
        """Release backend resources."""


# ---------------------------------------------------------------------------
# In-memory backend
# ---------------------------------------------------------------------------


class SnapshotCursor(StateCursor):
    """Cursor over a list of key/value pairs captured when the scan opened."""

    def __init__(self, items: list[KV]):
        self._items = items
        self._position = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def next(self) -> CursorItem:
        if self._closed:
            raise StoreError("cursor is closed")
        if self._position >= len(self._items):
            return CursorItem(done=True)
        item = self._items[self._position]
        self._position += 1
        return CursorItem(value=item, done=False)

    async def close(self) -> None:
        self._closed = True


class InMemoryRecordStore(RecordStore):
    """Record store kept in a process-local dict.

    Suitable for tests and single-process development. Keys are kept in a
    sorted list alongside the dict, so a scan bisects its bounds and
    iterates over a snapshot of that slice.

    Example:
        store = InMemoryRecordStore()
        await store.put("alice", b'{"alice": 1}')
        value = await store.get("alice")
    """

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}
        self._keys: list[str] = []

    def __len__(self) -> int:
        return len(self._data)

    async def get(self, key: str) -> bytes:
        return self._data.get(key, b"")

    async def put(self, key: str, value: bytes) -> None:
        if key not in self._data:
            bisect.insort(self._keys, key)
        self._data[key] = bytes(value)

    async def delete(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            del self._keys[bisect.bisect_left(self._keys, key)]

    async def scan_range(self, start_key: str, end_key: str) -> StateCursor:
        lo = bisect.bisect_left(self._keys, start_key)
        hi = bisect.bisect_left(self._keys, end_key, lo)
        items = [KV(key=key, value=self._data[key]) for key in self._keys[lo:hi]]
        return SnapshotCursor(items)


def create_record_store(
    backend: StoreBackend | str = StoreBackend.MEMORY,
    *,
    db_path: str | Path | None = None,
    scan_page_size: int = 100,
) -> RecordStore:
    """Factory function to create a record store.

    Args:
        backend: Backend type (memory or sqlite)
        db_path: SQLite database path (sqlite backend only)
        scan_page_size: Rows fetched per page while scanning (sqlite backend only)

    Returns:
        RecordStore instance
    """
    backend = StoreBackend(backend)

    if backend == StoreBackend.SQLITE:
        from .database import SQLiteRecordStore

        logger.info(f"Using SQLite record store at {db_path or 'data/ledger_kv.db'}")
        return SQLiteRecordStore(db_path, scan_page_size=scan_page_size)

    logger.info("Using in-memory record store")
    return InMemoryRecordStore()


__all__ = [
    "StoreBackend",
    "KV",
    "CursorItem",
    "StateCursor",
    "RecordStore",
    "SnapshotCursor",
    "InMemoryRecordStore",
    "encode_composite_key",
    "create_record_store",
    "MIN_UNICODE_RUNE",
    "MAX_UNICODE_RUNE",
]
