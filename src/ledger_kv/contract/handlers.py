"""CRUD handlers bound to the invoke dispatch table.

Each handler is a plain coroutine taking the invocation context and the
parsed JSON object. A handler may return ``None``, ``str`` or ``bytes``;
the dispatcher turns that into the success payload.
"""

from __future__ import annotations

import logging
from typing import Any

from .context import InvocationContext
from .keys import derive_composite_key, derive_storage_key
from .results import dump_json, to_query_result

logger = logging.getLogger(__name__)


async def get(ctx: InvocationContext, attrs: dict[str, Any]) -> str:
    """Return the raw stored value, or ``""`` when the key is absent."""
    key = derive_storage_key(attrs, ctx.store)
    value = await ctx.store.get(key)
    text = value.decode("utf-8", errors="replace")
    logger.debug(f"get {key!r} -> {text!r}")
    return text


async def put(ctx: InvocationContext, attrs: dict[str, Any]) -> None:
    """Write the attribute map itself under its derived key."""
    key = derive_storage_key(attrs, ctx.store)
    body = dump_json(attrs)
    await ctx.store.put(key, body.encode("utf-8"))
    logger.debug(f"put {key!r} = {body}")


async def delete(ctx: InvocationContext, attrs: dict[str, Any]) -> None:
    """Remove the record under the derived key. Absent keys are a no-op."""
    key = derive_storage_key(attrs, ctx.store)
    await ctx.store.delete(key)
    logger.debug(f"deleted {key!r}")


async def list_records(ctx: InvocationContext, attrs: dict[str, Any]) -> bytes:
    """Prefix-scan by the composite key derived from ``attrs``.

    Unlike the other handlers this always scans, even for maps with zero
    or one field.
    """
    composite = derive_composite_key(attrs)
    cursor = await ctx.store.scan_by_partial_composite_key(
        composite.object_type, composite.attributes
    )
    return await to_query_result(cursor)


__all__ = ["get", "put", "delete", "list_records"]
