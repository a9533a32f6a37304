"""FastAPI application factory for the Ledger KV service."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from .config import LedgerKVConfig
from .core import LedgerKVService
from .executor import get_executor, shutdown_executor
from .middleware import CorrelationIdMiddleware
from .router import build_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan context manager for startup/shutdown."""
    logger.info("Starting Ledger KV service...")
    get_executor()

    yield

    logger.info("Shutting down Ledger KV service...")
    service: LedgerKVService | None = getattr(app.state, "ledger_service", None)
    if service:
        service.close()
    shutdown_executor(wait=True)
    logger.info("Ledger KV service shutdown complete")


def create_ledger_app(
    config: LedgerKVConfig,
    **service_kwargs,
) -> FastAPI:
    """Create and configure the Ledger KV FastAPI application.

    Args:
        config: LedgerKVConfig instance
        **service_kwargs: Additional kwargs passed to LedgerKVService

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Ledger KV",
        description="Key-value access layer over an ordered ledger state store",
        version=__version__,
        lifespan=_lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    ledger_service = LedgerKVService(config, **service_kwargs)
    app.include_router(build_router(ledger_service))

    app.state.ledger_service = ledger_service
    app.state.config = config

    @app.get("/healthz")
    async def healthz() -> dict:
        """Health check endpoint with record store verification."""
        store_check = await ledger_service.check_store()
        return {
            "status": "ok" if store_check["status"] == "healthy" else "degraded",
            "service": "ledger-kv",
            "version": __version__,
            "checks": {"record_store": store_check},
        }

    @app.get("/ready")
    async def ready() -> dict:
        """Readiness probe - true once the record store answers."""
        store_check = await ledger_service.check_store()
        return {
            "ready": store_check["status"] == "healthy",
            "service": "ledger-kv",
        }

    return app


def create_app_from_env() -> FastAPI:
    """Create app using environment variable configuration."""
    config = LedgerKVConfig.from_env()
    return create_ledger_app(config)


__all__ = ["create_ledger_app", "create_app_from_env"]
