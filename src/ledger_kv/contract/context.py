"""Invocation request and per-invocation context."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..persistence.store import RecordStore


@dataclass(frozen=True, slots=True)
class InvocationRequest:
    """A function name plus its positional string arguments."""

    fcn: str = ""
    params: list[str] = field(default_factory=list)


@dataclass(slots=True)
class InvocationContext:
    """State handed explicitly to every handler."""

    store: RecordStore
    fcn: str
    params: list[str]
    tx_id: str = field(default_factory=lambda: uuid.uuid4().hex)


__all__ = ["InvocationRequest", "InvocationContext"]
