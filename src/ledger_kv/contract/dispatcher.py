"""Operation dispatch for Init and Invoke requests.

The dispatcher owns the invocation boundary:
- parses argument 0 as a JSON object
- resolves the function name through an explicit dispatch table
- runs the handler with an explicit InvocationContext
- turns every outcome, including handler failures, into a Response

Nothing raised below this boundary escapes to the transport.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import TYPE_CHECKING, Any

from . import handlers
from .context import InvocationContext, InvocationRequest
from .errors import DecodeError, LedgerKVError, NotFoundError, StoreError
from .keys import derive_storage_key
from .responses import Response, error, success
from .results import dump_json, loads_strict

if TYPE_CHECKING:
    from ..persistence.store import RecordStore

logger = logging.getLogger(__name__)

Handler = Callable[[InvocationContext, dict[str, Any]], Awaitable[Any]]

DEFAULT_HANDLERS: Mapping[str, Handler] = {
    "get": handlers.get,
    "put": handlers.put,
    "delete": handlers.delete,
    "list": handlers.list_records,
}


def parse_args(params: list[str]) -> dict[str, Any]:
    """Parse argument 0 as a JSON object.

    The parsed object must re-encode as UTF-8 JSON, so lone surrogate
    escapes are rejected here rather than when the record is written.

    Raises:
        DecodeError: If the argument is missing, not JSON, or not an object
    """
    if not params:
        raise DecodeError("expected a JSON object as argument 0, got no arguments")
    try:
        parsed = loads_strict(params[0])
    except (ValueError, TypeError) as e:
        raise DecodeError(f"argument 0 is not valid JSON: {e}") from e
    except RecursionError as e:
        raise DecodeError("argument 0 is nested too deeply") from e
    if not isinstance(parsed, dict):
        raise DecodeError(
            f"argument 0 must be a JSON object, got {type(parsed).__name__}"
        )
    try:
        dump_json(parsed).encode("utf-8")
    except UnicodeEncodeError as e:
        raise DecodeError(f"argument 0 is not valid UTF-8 text: {e.reason}") from e
    except RecursionError as e:
        raise DecodeError("argument 0 is nested too deeply") from e
    return parsed


def to_payload(result: Any) -> bytes:
    """Coerce a handler return value into a byte payload."""
    if not result:
        return b""
    if isinstance(result, (bytes, bytearray)):
        return bytes(result)
    if isinstance(result, str):
        return result.encode("utf-8")
    return dump_json(result).encode("utf-8")


class Dispatcher:
    """Routes Init/Invoke requests to handlers over a record store.

    Example:
        dispatcher = Dispatcher(InMemoryRecordStore())
        await dispatcher.init(InvocationRequest(params=['{"username": "alice"}']))
        response = await dispatcher.invoke(
            InvocationRequest(fcn="list", params=['{"username": "alice"}'])
        )
    """

    def __init__(
        self,
        store: RecordStore,
        *,
        extra_handlers: Mapping[str, Handler] | None = None,
    ) -> None:
        self.store = store
        self._handlers: dict[str, Handler] = dict(DEFAULT_HANDLERS)
        for name, handler in (extra_handlers or {}).items():
            self.register(name, handler)

    def register(self, name: str, handler: Handler) -> None:
        """Bind an additional named handler."""
        if not name:
            raise ValueError("handler name must be a non-empty string")
        if name in self._handlers:
            raise ValueError(f"handler {name!r} is already registered")
        self._handlers[name] = handler

    def operations(self) -> list[str]:
        return sorted(self._handlers)

    def resolve(self, name: str) -> Handler:
        try:
            return self._handlers[name]
        except KeyError:
            raise NotFoundError(name) from None

    def _context(self, request: InvocationRequest, tx_id: str | None) -> InvocationContext:
        ctx = InvocationContext(
            store=self.store,
            fcn=request.fcn,
            params=list(request.params),
        )
        if tx_id:
            ctx.tx_id = tx_id
        return ctx

    async def init(self, request: InvocationRequest) -> Response:
        """Seed the store with the record given as argument 0."""
        logger.debug("Init invoked")
        try:
            attrs = parse_args(request.params)
            key = derive_storage_key(attrs, self.store)
            body = dump_json(attrs)
            await self.store.put(key, body.encode("utf-8"))
        except LedgerKVError as e:
            logger.info(f"Init failed: {type(e).__name__}: {e}")
            return error(e)
        except Exception as e:
            logger.exception("Init failed writing to the record store")
            return error(StoreError(str(e)))

        logger.debug(f"Init wrote {key!r} = {body}")
        return success()

    async def invoke(
        self,
        request: InvocationRequest,
        *,
        tx_id: str | None = None,
    ) -> Response:
        """Run the handler bound to ``request.fcn``."""
        logger.debug(f"Invoke {request.fcn!r}")
        try:
            handler = self.resolve(request.fcn)
            attrs = parse_args(request.params)
        except LedgerKVError as e:
            logger.info(f"Invoke {request.fcn!r} rejected: {e}")
            return error(e)

        ctx = self._context(request, tx_id)
        try:
            result = await handler(ctx, attrs)
        except LedgerKVError as e:
            logger.info(f"Invoke {request.fcn!r} failed: {type(e).__name__}: {e}")
            return error(e)
        except Exception as e:
            logger.exception(f"Handler {request.fcn!r} raised")
            return error(e)

        return success(to_payload(result))


__all__ = [
    "DEFAULT_HANDLERS",
    "Dispatcher",
    "Handler",
    "parse_args",
    "to_payload",
]
