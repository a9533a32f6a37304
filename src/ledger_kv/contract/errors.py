"""Error taxonomy for the key-value contract.

Every error raised while serving an invocation is converted into an error
envelope at the dispatch boundary. The class name travels with the envelope
so callers can distinguish failure kinds without parsing messages.
"""

from __future__ import annotations


class LedgerKVError(Exception):
    """Base class for contract failures."""


class DecodeError(LedgerKVError):
    """Raised when an argument is not a valid JSON object."""


class NotFoundError(LedgerKVError):
    """Raised when no handler is bound to the requested operation name."""

    def __init__(self, name: str):
        super().__init__(f"function {name!r} not found")
        self.name = name


class StoreError(LedgerKVError):
    """Raised when the underlying record store call fails."""


__all__ = ["LedgerKVError", "DecodeError", "NotFoundError", "StoreError"]
