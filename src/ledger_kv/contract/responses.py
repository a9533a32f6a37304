"""Uniform success/error envelopes returned for every invocation."""

from __future__ import annotations

from dataclasses import dataclass

OK = 200
ERROR = 500


@dataclass(frozen=True, slots=True)
class Response:
    """Outcome of an invocation.

    ``payload`` is only meaningful for success envelopes; ``message`` and
    ``error`` (the failing error class name) only for error envelopes.
    """

    status: int
    payload: bytes = b""
    message: str = ""
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == OK


def success(payload: bytes | None = None) -> Response:
    return Response(status=OK, payload=payload or b"")


def error(err: BaseException | str) -> Response:
    if isinstance(err, BaseException):
        return Response(status=ERROR, message=str(err), error=type(err).__name__)
    return Response(status=ERROR, message=err)


__all__ = ["OK", "ERROR", "Response", "success", "error"]
