"""Cursor draining into ordered query results."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..persistence.store import StateCursor

logger = logging.getLogger(__name__)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not a valid JSON value")


def loads_strict(text: str) -> Any:
    """Parse JSON text, rejecting the NaN and Infinity extensions."""
    return json.loads(text, parse_constant=_reject_constant)


def decode_value(raw: bytes) -> Any:
    """Decode a stored value as JSON, falling back to the raw text.

    Values written by older clients may be plain strings rather than JSON,
    so a value that does not parse, or would not re-encode as UTF-8 JSON,
    is returned as-is.
    """
    text = raw.decode("utf-8", errors="replace")
    try:
        value = loads_strict(text)
        dump_json(value).encode("utf-8")
    except (ValueError, RecursionError):
        return text
    return value


def dump_json(value: Any) -> str:
    """Serialize to compact JSON, matching the on-ledger encoding."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


async def collect_results(cursor: StateCursor) -> list[dict[str, Any]]:
    """Drain a cursor into ``{"key", "value"}`` entries in cursor order.

    Entries with an empty value are skipped. The cursor is closed exactly
    once, whether draining completes or fails part way.
    """
    results: list[dict[str, Any]] = []
    try:
        while True:
            item = await cursor.next()
            if item.value is not None and item.value.value:
                results.append(
                    {"key": item.value.key, "value": decode_value(item.value.value)}
                )
            if item.done:
                break
    finally:
        await cursor.close()

    logger.debug(f"Drained {len(results)} entries from cursor")
    return results


async def to_query_result(cursor: StateCursor) -> bytes:
    """Drain a cursor and serialize the entries as a JSON array."""
    return dump_json(await collect_results(cursor)).encode("utf-8")


__all__ = [
    "collect_results",
    "decode_value",
    "dump_json",
    "loads_strict",
    "to_query_result",
]
