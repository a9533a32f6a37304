"""SQLite Record Store - durable ordered state for the contract.

Persists records in a single table keyed by the storage key, so state
survives service restarts. SQLite compares TEXT keys bytewise over UTF-8,
which matches code-point order and keeps composite-key ranges contiguous.
"""

from __future__ import annotations

import sqlite3
import threading
from pathlib import Path
from typing import Any

from ..contract.errors import StoreError
from .store import KV, CursorItem, RecordStore, StateCursor


# SQL schema for ledger records
SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS records (
    key TEXT PRIMARY KEY,
    value BLOB NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);
"""


class SQLiteStateCursor(StateCursor):
    """Cursor that pages through a key range with keyset pagination.

    Each page is fetched on demand, resuming strictly after the last key
    seen, so no SQLite cursor is held open between calls.
    """

    def __init__(
        self,
        store: SQLiteRecordStore,
        start_key: str,
        end_key: str,
        page_size: int,
    ) -> None:
        self._store = store
        self._start_key = start_key
        self._end_key = end_key
        self._page_size = page_size
        self._buffer: list[KV] = []
        self._last_key: str | None = None
        self._exhausted = False
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def next(self) -> CursorItem:
        if self._closed:
            raise StoreError("cursor is closed")
        if not self._buffer and not self._exhausted:
            await self._fetch_page()
        if not self._buffer:
            return CursorItem(done=True)
        return CursorItem(value=self._buffer.pop(0), done=False)

    async def _fetch_page(self) -> None:
        from ledger_kv.service.executor import run_in_executor

        rows = await run_in_executor(
            self._store._range_sync,
            self._start_key,
            self._end_key,
            self._last_key,
            self._page_size,
        )
        if len(rows) < self._page_size:
            self._exhausted = True
        if rows:
            self._last_key = rows[-1].key
        self._buffer.extend(rows)

    async def close(self) -> None:
        self._closed = True
        self._buffer.clear()


class SQLiteRecordStore(RecordStore):
    """Record store persisted in SQLite.

    Blocking calls run on the shared thread pool executor; a lock guards the
    single connection.

    Example:
        store = SQLiteRecordStore("data/ledger_kv.db")
        await store.put("alice", b'{"alice": 1}')
        cursor = await store.scan_by_partial_composite_key("alice", [])
    """

    def __init__(
        self,
        db_path: str | Path | None = None,
        *,
        scan_page_size: int = 100,
    ) -> None:
        """Initialize store with database connection.

        Args:
            db_path: Path to SQLite database file. Defaults to data/ledger_kv.db
            scan_page_size: Rows fetched per page while scanning
        """
        if scan_page_size < 1:
            raise ValueError("scan_page_size must be at least 1")

        if db_path is None:
            db_path = Path.cwd() / "data" / "ledger_kv.db"
        else:
            db_path = Path(db_path)

        db_path.parent.mkdir(parents=True, exist_ok=True)

        self.db_path = str(db_path)
        self.scan_page_size = scan_page_size
        self._lock = threading.Lock()
        self._conn: sqlite3.Connection | None = None
        self._ensure_connection()
        self._ensure_schema()

    def _ensure_connection(self) -> None:
        """Ensure database connection is established."""
        if self._conn is None:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode = WAL")
            self._conn.execute("PRAGMA synchronous = NORMAL")
            self._conn.execute("PRAGMA busy_timeout = 5000")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        conn.executescript(SCHEMA_SQL)
        conn.commit()

    def _get_conn(self) -> sqlite3.Connection:
        self._ensure_connection()
        assert self._conn is not None
        return self._conn

    def _execute(self, sql: str, params: tuple[Any, ...], *, commit: bool = False) -> list[sqlite3.Row]:
        try:
            with self._lock:
                conn = self._get_conn()
                cursor = conn.execute(sql, params)
                rows = cursor.fetchall()
                if commit:
                    conn.commit()
                return rows
        except sqlite3.Error as e:
            raise StoreError(f"sqlite error: {e}") from e

    # -----------------------------------------------------------------------
    # Synchronous primitives (run on the executor)
    # -----------------------------------------------------------------------

    def _get_sync(self, key: str) -> bytes:
        rows = self._execute("SELECT value FROM records WHERE key = ?", (key,))
        if not rows:
            return b""
        return bytes(rows[0]["value"])

    def _put_sync(self, key: str, value: bytes) -> None:
        self._execute(
            """
            INSERT INTO records (key, value)
            VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = datetime('now')
            """,
            (key, sqlite3.Binary(value)),
            commit=True,
        )

    def _delete_sync(self, key: str) -> None:
        self._execute("DELETE FROM records WHERE key = ?", (key,), commit=True)

    def _range_sync(
        self,
        start_key: str,
        end_key: str,
        after_key: str | None,
        limit: int,
    ) -> list[KV]:
        if after_key is None:
            rows = self._execute(
                """
                SELECT key, value FROM records
                WHERE key >= ? AND key < ?
                ORDER BY key
                LIMIT ?
                """,
                (start_key, end_key, limit),
            )
        else:
            rows = self._execute(
                """
                SELECT key, value FROM records
                WHERE key > ? AND key < ?
                ORDER BY key
                LIMIT ?
                """,
                (after_key, end_key, limit),
            )
        return [KV(key=row["key"], value=bytes(row["value"])) for row in rows]

    def count_all(self) -> int:
        """Count total records in database."""
        rows = self._execute("SELECT COUNT(*) AS count FROM records", ())
        return rows[0]["count"] if rows else 0

    # -----------------------------------------------------------------------
    # RecordStore interface
    # -----------------------------------------------------------------------

    async def get(self, key: str) -> bytes:
        from ledger_kv.service.executor import run_in_executor

        return await run_in_executor(self._get_sync, key)

    async def put(self, key: str, value: bytes) -> None:
        from ledger_kv.service.executor import run_in_executor

        await run_in_executor(self._put_sync, key, value)

    async def delete(self, key: str) -> None:
        from ledger_kv.service.executor import run_in_executor

        await run_in_executor(self._delete_sync, key)

    async def scan_range(self, start_key: str, end_key: str) -> StateCursor:
        return SQLiteStateCursor(self, start_key, end_key, self.scan_page_size)

    async def ping(self) -> None:
        from ledger_kv.service.executor import run_in_executor

        await run_in_executor(self._execute, "SELECT 1", ())

    def close(self) -> None:
        """Close database connection."""
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None

    def __enter__(self) -> SQLiteRecordStore:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
