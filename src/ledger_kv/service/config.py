"""Configuration primitives for the Ledger KV service."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from ..persistence.store import StoreBackend

_DEFAULT_CORS_ORIGINS = (
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
)


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(slots=True)
class LedgerKVConfig:
    """Runtime configuration for the Ledger KV service.

    Configuration Sources (priority order):
    1. Direct constructor arguments
    2. Environment variables (LEDGERKV_*)
    3. Default values

    Attributes:
        port: Service port (default: 7051)
        store_backend: Record store backend (default: sqlite)
        db_path: SQLite database path (default: data/ledger_kv.db)
        scan_page_size: Rows fetched per page during range scans (default: 100)
        serialize_invocations: Run one invocation at a time (default: True)
        cors_origins: Origins allowed by the CORS middleware
    """

    port: int = 7051
    store_backend: StoreBackend = StoreBackend.SQLITE
    db_path: str = "data/ledger_kv.db"
    scan_page_size: int = 100
    serialize_invocations: bool = True
    cors_origins: list[str] = field(
        default_factory=lambda: list(_DEFAULT_CORS_ORIGINS)
    )

    def __post_init__(self) -> None:
        self.store_backend = StoreBackend(self.store_backend)
        if self.scan_page_size < 1:
            raise ValueError("scan_page_size must be at least 1")

    @classmethod
    def from_env(cls) -> LedgerKVConfig:
        """Create configuration from environment variables.

        Optional:
            LEDGERKV_PORT: Service port (default: 7051)
            LEDGERKV_STORE_BACKEND: 'memory' or 'sqlite'
            LEDGERKV_DB_PATH: SQLite database path
            LEDGERKV_SCAN_PAGE_SIZE: Rows per scan page
            LEDGERKV_SERIALIZE: '0' to allow interleaved invocations
            LEDGERKV_CORS_ORIGINS: Comma-separated list of allowed origins
        """
        backend = os.environ.get("LEDGERKV_STORE_BACKEND", "sqlite").lower()
        try:
            store_backend = StoreBackend(backend)
        except ValueError:
            raise ValueError(
                f"LEDGERKV_STORE_BACKEND must be one of "
                f"{[b.value for b in StoreBackend]}, got {backend!r}"
            ) from None

        config = cls(
            port=int(os.environ.get("LEDGERKV_PORT", "7051")),
            store_backend=store_backend,
            db_path=os.environ.get("LEDGERKV_DB_PATH", "data/ledger_kv.db"),
            scan_page_size=int(os.environ.get("LEDGERKV_SCAN_PAGE_SIZE", "100")),
            serialize_invocations=_env_flag("LEDGERKV_SERIALIZE", True),
        )

        origins = os.environ.get("LEDGERKV_CORS_ORIGINS", "")
        if origins:
            config.cors_origins = [o.strip() for o in origins.split(",") if o.strip()]

        return config
