"""Ledger KV service layer - FastAPI application and HTTP interfaces."""

from .app import create_ledger_app
from .config import LedgerKVConfig
from .core import LedgerKVService

__all__ = ["create_ledger_app", "LedgerKVConfig", "LedgerKVService"]
