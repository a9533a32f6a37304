"""FastAPI router for the Ledger KV service.

Implements the invocation endpoints:
- Init (/init)
- Invoke (/invoke)
- Dispatch table introspection (/operations)

Both invocation endpoints answer HTTP 200 with a ResponseEnvelope; success
or failure of the operation is carried inside the envelope.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Request

from .middleware import get_correlation_id
from .models import InitRequest, InvokeRequest, OperationsResponse, ResponseEnvelope

if TYPE_CHECKING:
    from .core import LedgerKVService


def build_router(service: LedgerKVService) -> APIRouter:
    """Build the Ledger KV API router.

    Args:
        service: The LedgerKVService instance

    Returns:
        Configured APIRouter
    """
    router = APIRouter()

    @router.post("/init", response_model=ResponseEnvelope)
    async def init(request: InitRequest) -> ResponseEnvelope:
        """Seed the store with the record in args[0]."""
        response = await service.init(request.args)
        return ResponseEnvelope.from_response(response)

    @router.post("/invoke", response_model=ResponseEnvelope)
    async def invoke(request: InvokeRequest, http_request: Request) -> ResponseEnvelope:
        """Run the operation named by fcn with args[0]."""
        response = await service.invoke(
            request.fcn,
            request.args,
            tx_id=get_correlation_id(http_request),
        )
        return ResponseEnvelope.from_response(response)

    @router.get("/operations", response_model=OperationsResponse)
    def operations() -> OperationsResponse:
        """List the operation names Invoke accepts."""
        return OperationsResponse(operations=service.operations())

    return router
