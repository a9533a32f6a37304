"""Unit tests for the service layer used without HTTP."""

import pytest
import structlog

from ledger_kv.persistence.store import InMemoryRecordStore
from ledger_kv.service.config import LedgerKVConfig
from ledger_kv.service.core import LedgerKVService
from ledger_kv.service.logging import bind_context, clear_context

pytestmark = pytest.mark.unit


@pytest.fixture
def service():
    return LedgerKVService(LedgerKVConfig(store_backend="memory"), store=InMemoryRecordStore())


@pytest.fixture(autouse=True)
def clean_log_context():
    clear_context()
    yield
    clear_context()


class TestLedgerKVService:
    """Tests for LedgerKVService."""

    @pytest.mark.asyncio
    async def test_put_then_get(self, service):
        await service.invoke("put", ['{"username": "alice", "age": 30}'])
        response = await service.invoke("get", ['{"username": "alice", "age": 30}'])
        assert response.ok
        assert response.payload == b'{"username":"alice","age":30}'

    @pytest.mark.asyncio
    async def test_fcn_is_not_left_in_log_context(self, service):
        """The function name is bound only while the invocation runs."""
        bind_context(correlation_id="abc123")
        await service.invoke("get", ['{"a": 1}'])
        assert structlog.contextvars.get_contextvars() == {"correlation_id": "abc123"}

    @pytest.mark.asyncio
    async def test_fcn_unbound_after_error_envelope(self, service):
        response = await service.invoke("missing", ["{}"])
        assert response.error == "NotFoundError"
        assert "fcn" not in structlog.contextvars.get_contextvars()
