"""Pydantic models backing the Ledger KV API."""

from __future__ import annotations

from pydantic import BaseModel, Field

from ..contract.responses import Response


# ---------------------------------------------------------------------------
# Invocation Models
# ---------------------------------------------------------------------------


class InitRequest(BaseModel):
    """Request to seed the store with a record.

    ``args[0]`` is the JSON-encoded record.
    """

    args: list[str] = Field(default_factory=list)


class InvokeRequest(BaseModel):
    """Request to run a named operation.

    ``args[0]`` is the JSON-encoded attribute map handed to the handler.
    """

    fcn: str = Field(description="Operation name, e.g. get, put, delete, list")
    args: list[str] = Field(default_factory=list)


class ResponseEnvelope(BaseModel):
    """Uniform outcome of an Init or Invoke request.

    ``status`` is 200 for success and 500 for error. ``payload`` carries the
    UTF-8 text of the handler's byte payload; ``error`` names the error kind.
    """

    status: int
    message: str = ""
    payload: str | None = None
    error: str | None = None

    @classmethod
    def from_response(cls, response: Response) -> ResponseEnvelope:
        payload = None
        if response.payload:
            payload = response.payload.decode("utf-8", errors="replace")
        return cls(
            status=response.status,
            message=response.message,
            payload=payload,
            error=response.error,
        )


class OperationsResponse(BaseModel):
    """Names bound in the invoke dispatch table."""

    operations: list[str]
