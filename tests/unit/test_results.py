"""Unit tests for cursor draining."""

import json

import pytest

from ledger_kv.contract.errors import StoreError
from ledger_kv.contract.results import (
    collect_results,
    decode_value,
    dump_json,
    to_query_result,
)
from ledger_kv.persistence.store import KV, CursorItem, StateCursor

pytestmark = pytest.mark.unit


class FakeCursor(StateCursor):
    """Cursor replaying scripted items and counting close calls."""

    def __init__(self, items, fail_after=None):
        self._items = list(items)
        self._fail_after = fail_after
        self._calls = 0
        self.close_calls = 0

    async def next(self):
        if self._fail_after is not None and self._calls >= self._fail_after:
            raise StoreError("scan interrupted")
        self._calls += 1
        if self._items:
            return self._items.pop(0)
        return CursorItem(done=True)

    async def close(self):
        self.close_calls += 1


class TestDecodeValue:
    """Tests for JSON-or-string value decoding."""

    def test_json_object(self):
        assert decode_value(b'{"a":1}') == {"a": 1}

    def test_json_scalar(self):
        assert decode_value(b"42") == 42

    def test_plain_string_falls_back(self):
        """Values that are not JSON come back as text."""
        assert decode_value(b"hello world") == "hello world"

    def test_invalid_utf8_is_replaced(self):
        assert decode_value(b"caf\xe9") == "caf\ufffd"

    @pytest.mark.parametrize("raw", [b"NaN", b"Infinity", b"-Infinity"])
    def test_non_finite_constants_fall_back(self, raw):
        assert decode_value(raw) == raw.decode()

    def test_lone_surrogate_escape_falls_back(self):
        assert decode_value(b'"\\ud800"') == '"\\ud800"'

    def test_deeply_nested_falls_back(self):
        raw = b"[" * 100000 + b"]" * 100000
        assert decode_value(raw) == raw.decode()


class TestDumpJson:
    """Tests for compact JSON serialization."""

    def test_compact(self):
        assert dump_json({"a": [1, "é"]}) == '{"a":[1,"é"]}'

    def test_non_finite_floats_rejected(self):
        with pytest.raises(ValueError):
            dump_json({"x": float("nan")})


class TestCollectResults:
    """Tests for draining cursors into result entries."""

    @pytest.mark.asyncio
    async def test_empty_scan(self):
        """Empty scan yields an empty list and closes the cursor once."""
        cursor = FakeCursor([])
        assert await collect_results(cursor) == []
        assert cursor.close_calls == 1

    @pytest.mark.asyncio
    async def test_entries_in_cursor_order(self):
        """Entries keep cursor order and decode JSON values."""
        cursor = FakeCursor(
            [
                CursorItem(value=KV("k1", b'{"n":1}')),
                CursorItem(value=KV("k2", b"legacy text")),
            ]
        )
        results = await collect_results(cursor)
        assert results == [
            {"key": "k1", "value": {"n": 1}},
            {"key": "k2", "value": "legacy text"},
        ]
        assert cursor.close_calls == 1

    @pytest.mark.asyncio
    async def test_empty_values_are_skipped(self):
        """Entries with an empty value are left out."""
        cursor = FakeCursor(
            [
                CursorItem(value=KV("k1", b"")),
                CursorItem(value=KV("k2", b'"x"')),
            ]
        )
        assert await collect_results(cursor) == [{"key": "k2", "value": "x"}]

    @pytest.mark.asyncio
    async def test_value_on_final_item_is_kept(self):
        """An item flagged done still contributes its value."""
        cursor = FakeCursor([CursorItem(value=KV("last", b"1"), done=True)])
        assert await collect_results(cursor) == [{"key": "last", "value": 1}]
        assert cursor.close_calls == 1

    @pytest.mark.asyncio
    async def test_cursor_closed_on_failure(self):
        """A failing cursor is still closed exactly once."""
        cursor = FakeCursor(
            [CursorItem(value=KV("k1", b"1")), CursorItem(value=KV("k2", b"2"))],
            fail_after=1,
        )
        with pytest.raises(StoreError):
            await collect_results(cursor)
        assert cursor.close_calls == 1


class TestToQueryResult:
    """Tests for the serialized query result."""

    @pytest.mark.asyncio
    async def test_empty_scan_serializes_to_empty_array(self):
        assert await to_query_result(FakeCursor([])) == b"[]"

    @pytest.mark.asyncio
    async def test_serialized_entries(self):
        cursor = FakeCursor([CursorItem(value=KV("k", '{"名":"值"}'.encode()))])
        payload = await to_query_result(cursor)
        assert payload == '[{"key":"k","value":{"名":"值"}}]'.encode()
        assert json.loads(payload) == [{"key": "k", "value": {"名": "值"}}]
