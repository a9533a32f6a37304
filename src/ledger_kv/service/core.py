"""Core Ledger KV service - owns the record store and the dispatcher."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Mapping
from typing import Any

from ..contract.context import InvocationRequest
from ..contract.dispatcher import Dispatcher, Handler
from ..contract.responses import Response
from ..persistence.store import RecordStore, create_record_store
from .config import LedgerKVConfig
from .logging import bind_context, unbind_context

logger = logging.getLogger(__name__)


class LedgerKVService:
    """Serves Init/Invoke requests against a record store.

    When ``config.serialize_invocations`` is set, invocations run one at a
    time: each completes before the next begins.
    """

    def __init__(
        self,
        config: LedgerKVConfig,
        *,
        store: RecordStore | None = None,
        extra_handlers: Mapping[str, Handler] | None = None,
    ) -> None:
        self.config = config
        if store is None:
            store = create_record_store(
                config.store_backend,
                db_path=config.db_path,
                scan_page_size=config.scan_page_size,
            )
        self._store = store
        self._dispatcher = Dispatcher(self._store, extra_handlers=extra_handlers)
        self._lock = asyncio.Lock() if config.serialize_invocations else None

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    def _serialized(self) -> Any:
        if self._lock is None:
            return contextlib.nullcontext()
        return self._lock

    async def init(self, args: list[str]) -> Response:
        async with self._serialized():
            return await self._dispatcher.init(InvocationRequest(fcn="init", params=args))

    async def invoke(
        self,
        fcn: str,
        args: list[str],
        *,
        tx_id: str | None = None,
    ) -> Response:
        bind_context(fcn=fcn)
        try:
            async with self._serialized():
                response = await self._dispatcher.invoke(
                    InvocationRequest(fcn=fcn, params=args),
                    tx_id=tx_id,
                )
            logger.info(f"Invoke {fcn!r} -> {response.status}")
        finally:
            unbind_context("fcn")
        return response

    def operations(self) -> list[str]:
        return self._dispatcher.operations()

    async def check_store(self) -> dict[str, Any]:
        """Probe the record store for health reporting."""
        try:
            await self._store.ping()
        except Exception as e:
            return {"status": "unhealthy", "error": str(e)}
        return {"status": "healthy", "backend": type(self._store).__name__}

    def close(self) -> None:
        self._store.close()
