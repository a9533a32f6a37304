"""Test configuration for pytest."""

from __future__ import annotations

import pytest

from ledger_kv.contract.dispatcher import Dispatcher
from ledger_kv.persistence.store import InMemoryRecordStore


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "conformance: API contract conformance tests")


@pytest.fixture
def store():
    """Fresh in-memory record store."""
    return InMemoryRecordStore()


@pytest.fixture
def dispatcher(store):
    """Dispatcher over the in-memory store."""
    return Dispatcher(store)
