"""API contract conformance tests for the Ledger KV endpoints."""

import json

import pytest
from fastapi.testclient import TestClient

from ledger_kv.persistence.store import InMemoryRecordStore
from ledger_kv.service.app import create_ledger_app
from ledger_kv.service.config import LedgerKVConfig

pytestmark = pytest.mark.conformance


@pytest.fixture
def config():
    """Create test configuration."""
    return LedgerKVConfig(store_backend="memory")


@pytest.fixture
def app(config):
    """Create test application."""
    return create_ledger_app(config, store=InMemoryRecordStore())


@pytest.fixture
def client(app):
    """Create test client."""
    return TestClient(app)


def invoke(client, fcn, attrs, **kwargs):
    return client.post("/invoke", json={"fcn": fcn, "args": [json.dumps(attrs)]}, **kwargs)


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_healthz_returns_ok(self, client):
        response = client.get("/healthz")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == "ledger-kv"
        assert data["checks"]["record_store"]["status"] == "healthy"

    def test_ready_returns_ready(self, client):
        response = client.get("/ready")

        assert response.status_code == 200
        assert response.json()["ready"] is True


class TestInitEndpoint:
    """Tests for POST /init."""

    def test_init_success(self, client):
        response = client.post("/init", json={"args": ['{"username": "alice", "age": 30}']})

        assert response.status_code == 200
        assert response.json() == {"status": 200, "message": "", "payload": None, "error": None}

    def test_init_malformed_json(self, client):
        response = client.post("/init", json={"args": ["{broken"]})

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == 500
        assert data["error"] == "DecodeError"


class TestInvokeEndpoint:
    """Tests for POST /invoke."""

    def test_put_get_round_trip(self, client):
        attrs = {"username": "alice", "age": 30}
        assert invoke(client, "put", attrs).json()["status"] == 200

        data = invoke(client, "get", attrs).json()
        assert data["status"] == 200
        assert json.loads(data["payload"]) == attrs

    def test_get_absent_returns_empty_payload(self, client):
        data = invoke(client, "get", {"username": "ghost", "age": 1}).json()
        assert data["status"] == 200
        assert data["payload"] is None

    def test_list_after_put(self, client):
        attrs = {"username": "alice", "age": 30}
        invoke(client, "put", attrs)
        invoke(client, "put", {"username": "bob", "age": 30})

        data = invoke(client, "list", {"username": "alice"}).json()
        assert data["status"] == 200
        assert [e["value"] for e in json.loads(data["payload"])] == [attrs]

    def test_delete(self, client):
        attrs = {"username": "alice", "age": 30}
        invoke(client, "put", attrs)
        assert invoke(client, "delete", attrs).json()["status"] == 200
        assert invoke(client, "get", attrs).json()["payload"] is None

    def test_unknown_function_envelope(self, client):
        response = invoke(client, "transfer", {"a": 1})

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == 500
        assert data["error"] == "NotFoundError"
        assert "transfer" in data["message"]

    def test_malformed_argument_envelope(self, client):
        response = client.post("/invoke", json={"fcn": "put", "args": ["not-json"]})

        assert response.status_code == 200
        assert response.json()["error"] == "DecodeError"

    def test_missing_fcn_is_validation_error(self, client):
        response = client.post("/invoke", json={"args": ["{}"]})
        assert response.status_code == 422

    def test_correlation_id_echoed(self, client):
        response = invoke(
            client, "get", {"k": 1}, headers={"X-Correlation-ID": "corr-123"}
        )
        assert response.headers["X-Correlation-ID"] == "corr-123"
        assert "X-Request-ID" in response.headers


class TestOperationsEndpoint:
    """Tests for GET /operations."""

    def test_lists_builtin_operations(self, client):
        response = client.get("/operations")
        assert response.json() == {"operations": ["delete", "get", "list", "put"]}

    def test_lists_registered_operations(self, config):
        async def count(ctx, attrs):
            return str(len(attrs))

        app = create_ledger_app(
            config, store=InMemoryRecordStore(), extra_handlers={"count": count}
        )
        client = TestClient(app)

        assert "count" in client.get("/operations").json()["operations"]
        assert invoke(client, "count", {"a": 1, "b": 2}).json()["payload"] == "2"
