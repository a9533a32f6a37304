"""Ledger KV client implementation with async/sync interfaces."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class LedgerKVClientError(Exception):
    """Base exception for Ledger KV client errors."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class LedgerKVConnectionError(LedgerKVClientError):
    """Connection to the Ledger KV service failed."""


class LedgerKVInvocationError(LedgerKVClientError):
    """The service answered with an error envelope."""

    def __init__(self, message: str, error: str | None = None):
        super().__init__(message, 500)
        self.error = error


# ---------------------------------------------------------------------------
# Configuration & Models
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class LedgerKVClientConfig:
    """Configuration for LedgerKVClient."""

    base_url: str = "http://localhost:7051"
    timeout: float = 30.0
    max_retries: int = 3
    retry_backoff: float = 1.0
    connection_pool_size: int = 10

    @classmethod
    def from_env(cls) -> LedgerKVClientConfig:
        """Load configuration from environment variables."""
        return cls(
            base_url=os.environ.get("LEDGERKV_URL", "http://localhost:7051"),
            timeout=float(os.environ.get("LEDGERKV_TIMEOUT", "30.0")),
            max_retries=int(os.environ.get("LEDGERKV_MAX_RETRIES", "3")),
        )


@dataclass(slots=True)
class InvocationResult:
    """Envelope returned by /init and /invoke."""

    status: int
    message: str = ""
    payload: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == 200

    def raise_for_error(self) -> InvocationResult:
        if not self.ok:
            raise LedgerKVInvocationError(self.message, error=self.error)
        return self


@dataclass(slots=True)
class QueryEntry:
    """One entry of a list query."""

    key: str
    value: Any


def _encode_args(attrs: dict[str, Any]) -> list[str]:
    return [json.dumps(attrs, separators=(",", ":"), ensure_ascii=False)]


# ---------------------------------------------------------------------------
# Async Client
# ---------------------------------------------------------------------------


class LedgerKVClient:
    """Async client for the Ledger KV service.

    Example:
        >>> async with LedgerKVClient("http://localhost:7051") as client:
        ...     await client.put({"username": "alice", "age": 30})
        ...     entries = await client.list({"username": "alice"})
    """

    def __init__(
        self,
        base_url: str = "http://localhost:7051",
        *,
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_backoff: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._config = LedgerKVClientConfig(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            max_retries=max_retries,
            retry_backoff=retry_backoff,
        )
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def config(self) -> LedgerKVClientConfig:
        return self._config

    async def __aenter__(self) -> LedgerKVClient:
        await self._ensure_client()
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                timeout=self._config.timeout,
                transport=self._transport,
                limits=httpx.Limits(
                    max_connections=self._config.connection_pool_size,
                    max_keepalive_connections=5,
                ),
            )
        return self._client

    async def close(self) -> None:
        """Close the client connection."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        correlation_id: str | None = None,
    ) -> dict[str, Any]:
        """Make request, retrying connection failures with backoff."""
        client = await self._ensure_client()
        headers = {"X-Correlation-ID": correlation_id} if correlation_id else {}

        last_error: Exception | None = None
        for attempt in range(self._config.max_retries):
            try:
                response = await client.request(method, path, json=json, headers=headers)
                response.raise_for_status()
                return response.json()
            except httpx.ConnectError as e:
                last_error = LedgerKVConnectionError(f"Connection failed: {e}")
            except httpx.TimeoutException as e:
                last_error = LedgerKVConnectionError(f"Request timed out: {e}")
            except httpx.HTTPStatusError as e:
                raise LedgerKVClientError(
                    f"HTTP {e.response.status_code}: {e.response.text}",
                    e.response.status_code,
                ) from e

            if attempt < self._config.max_retries - 1:
                delay = self._config.retry_backoff * (2 ** attempt)
                logger.debug(f"Retry {attempt + 1}/{self._config.max_retries} after {delay}s")
                await asyncio.sleep(delay)

        if last_error:
            raise last_error
        raise LedgerKVConnectionError("Request failed after retries")

    # -----------------------------------------------------------------------
    # Invocation API
    # -----------------------------------------------------------------------

    async def init(
        self,
        attrs: dict[str, Any],
        *,
        correlation_id: str | None = None,
    ) -> InvocationResult:
        """Seed the store with ``attrs``."""
        data = await self._request(
            "POST",
            "/init",
            json={"args": _encode_args(attrs)},
            correlation_id=correlation_id,
        )
        return InvocationResult(**data)

    async def invoke(
        self,
        fcn: str,
        args: list[str],
        *,
        correlation_id: str | None = None,
    ) -> InvocationResult:
        """Invoke ``fcn`` with raw string arguments.

        Returns the envelope as-is; error envelopes are not raised.
        """
        data = await self._request(
            "POST",
            "/invoke",
            json={"fcn": fcn, "args": args},
            correlation_id=correlation_id,
        )
        return InvocationResult(**data)

    async def get(self, attrs: dict[str, Any], **kwargs: Any) -> str:
        """Return the stored value, or ``""`` when absent."""
        result = (await self.invoke("get", _encode_args(attrs), **kwargs)).raise_for_error()
        return result.payload or ""

    async def put(self, attrs: dict[str, Any], **kwargs: Any) -> None:
        (await self.invoke("put", _encode_args(attrs), **kwargs)).raise_for_error()

    async def delete(self, attrs: dict[str, Any], **kwargs: Any) -> None:
        (await self.invoke("delete", _encode_args(attrs), **kwargs)).raise_for_error()

    async def list(self, attrs: dict[str, Any], **kwargs: Any) -> list[QueryEntry]:
        """Prefix query by the composite key derived from ``attrs``."""
        result = (await self.invoke("list", _encode_args(attrs), **kwargs)).raise_for_error()
        entries = json.loads(result.payload or "[]")
        return [QueryEntry(key=e["key"], value=e["value"]) for e in entries]

    async def operations(self) -> list[str]:
        data = await self._request("GET", "/operations")
        return data.get("operations", [])

    async def health(self) -> dict[str, Any]:
        """Get service health status."""
        return await self._request("GET", "/healthz")

    async def ready(self) -> bool:
        """Check if service is ready."""
        try:
            data = await self._request("GET", "/ready")
            return data.get("ready", False)
        except LedgerKVClientError:
            return False


# ---------------------------------------------------------------------------
# Sync Client Wrapper
# ---------------------------------------------------------------------------


class LedgerKVClientSync:
    """Synchronous wrapper for LedgerKVClient.

    Each call runs on a fresh event loop, so the wrapper must not be used
    from inside a running loop.

    Example:
        >>> client = LedgerKVClientSync("http://localhost:7051")
        >>> client.put({"username": "alice", "age": 30})
    """

    def __init__(
        self,
        base_url: str = "http://localhost:7051",
        *,
        timeout: float = 30.0,
        max_retries: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._async_client = LedgerKVClient(
            base_url,
            timeout=timeout,
            max_retries=max_retries,
            transport=transport,
        )

    def _run(self, coro):
        async def _call():
            try:
                return await coro
            finally:
                # The pooled connection is bound to this call's loop
                await self._async_client.close()

        return asyncio.run(_call())

    def init(self, attrs: dict[str, Any]) -> InvocationResult:
        return self._run(self._async_client.init(attrs))

    def invoke(self, fcn: str, args: list[str]) -> InvocationResult:
        return self._run(self._async_client.invoke(fcn, args))

    def get(self, attrs: dict[str, Any]) -> str:
        return self._run(self._async_client.get(attrs))

    def put(self, attrs: dict[str, Any]) -> None:
        self._run(self._async_client.put(attrs))

    def delete(self, attrs: dict[str, Any]) -> None:
        self._run(self._async_client.delete(attrs))

    def list(self, attrs: dict[str, Any]) -> list[QueryEntry]:
        return self._run(self._async_client.list(attrs))

    def health(self) -> dict[str, Any]:
        return self._run(self._async_client.health())
