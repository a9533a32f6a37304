"""Unit tests for storage key derivation."""

import pytest

from ledger_kv.contract.keys import (
    UNDEFINED_KEY,
    CompositeKey,
    derive_composite_key,
    derive_storage_key,
)
from ledger_kv.persistence.store import InMemoryRecordStore

pytestmark = pytest.mark.unit


class TestDeriveCompositeKey:
    """Tests for composite key descriptors."""

    def test_username_becomes_object_type(self):
        """The username value is the object type."""
        composite = derive_composite_key({"username": "alice", "age": 30})
        assert composite == CompositeKey(object_type="alice", attributes=[30])

    def test_attributes_follow_sorted_field_names(self):
        """Remaining values are ordered by field name, not insertion order."""
        composite = derive_composite_key(
            {"zip": "10001", "username": "bob", "city": "NYC", "age": 41}
        )
        assert composite.object_type == "bob"
        assert composite.attributes == [41, "NYC", "10001"]

    def test_missing_username_defaults_to_empty(self):
        """Without username the object type is the empty string."""
        composite = derive_composite_key({"b": 2, "a": 1})
        assert composite.object_type == ""
        assert composite.attributes == [1, 2]

    def test_empty_map(self):
        """Empty map yields an empty descriptor."""
        composite = derive_composite_key({})
        assert composite.object_type == ""
        assert composite.attributes == []

    def test_insertion_order_is_irrelevant(self):
        """Same pairs in a different order give the same descriptor."""
        first = {"username": "alice", "age": 30, "city": "Paris"}
        second = {"city": "Paris", "age": 30, "username": "alice"}
        assert derive_composite_key(first) == derive_composite_key(second)

    def test_values_pass_through_untouched(self):
        """Non-string values are not converted here."""
        composite = derive_composite_key({"username": "alice", "flags": [1, 2]})
        assert composite.attributes == [[1, 2]]


class TestDeriveStorageKey:
    """Tests for storage key selection."""

    @pytest.fixture
    def store(self):
        return InMemoryRecordStore()

    def test_empty_map_is_undefined(self, store):
        """Empty map maps to the sentinel key."""
        assert derive_storage_key({}, store) == UNDEFINED_KEY == "undefined"

    @pytest.mark.parametrize("value", ["x", 0, None, {"nested": True}, [1, 2]])
    def test_single_field_uses_field_name(self, store, value):
        """A single-field map is keyed by the field name, whatever the value."""
        assert derive_storage_key({"k": value}, store) == "k"

    def test_single_username_field_uses_field_name(self, store):
        """Even a lone username field keys on the name."""
        assert derive_storage_key({"username": "alice"}, store) == "username"

    def test_multiple_fields_use_composite_encoding(self, store):
        """Two or more fields produce the store's composite key."""
        key = derive_storage_key({"username": "alice", "age": 30}, store)
        assert key == "\x00alice\x0030\x00"

    def test_composite_without_username(self, store):
        """Composite keys without username have an empty object type."""
        key = derive_storage_key({"b": "two", "a": "one"}, store)
        assert key == "\x00\x00one\x00two\x00"

    def test_storage_key_is_order_independent(self, store):
        """Insertion order does not change the storage key."""
        first = {"username": "carol", "role": "admin", "team": "core"}
        second = {"team": "core", "username": "carol", "role": "admin"}
        assert derive_storage_key(first, store) == derive_storage_key(second, store)
