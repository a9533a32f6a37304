"""Ledger KV Client SDK.

Provides async and sync interfaces for the Ledger KV service.

Example:
    >>> from ledger_kv_client import LedgerKVClient
    >>> async with LedgerKVClient("http://localhost:7051") as client:
    ...     await client.put({"username": "alice", "age": 30})
    ...     entries = await client.list({"username": "alice"})
"""

from .client import (
    InvocationResult,
    LedgerKVClient,
    LedgerKVClientConfig,
    LedgerKVClientError,
    LedgerKVClientSync,
    LedgerKVConnectionError,
    LedgerKVInvocationError,
    QueryEntry,
)

__all__ = [
    "InvocationResult",
    "LedgerKVClient",
    "LedgerKVClientConfig",
    "LedgerKVClientError",
    "LedgerKVClientSync",
    "LedgerKVConnectionError",
    "LedgerKVInvocationError",
    "QueryEntry",
]
__version__ = "0.1.0"
