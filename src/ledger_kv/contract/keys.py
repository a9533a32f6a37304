"""Storage key derivation for attribute maps.

Records are addressed by keys derived from the JSON object supplied with
each request:

- an empty object maps to the sentinel key ``"undefined"``;
- an object with exactly one field maps to that field's *name*, not its
  value, so ``{"alice": 1}`` and ``{"alice": 2}`` address the same record;
- an object with two or more fields maps to a composite key whose object
  type is the ``username`` value and whose attributes are the remaining
  values in sorted field-name order.

The single-field rule is kept for compatibility with existing ledgers.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..persistence.store import RecordStore

OBJECT_TYPE_FIELD = "username"
UNDEFINED_KEY = "undefined"


@dataclass(frozen=True, slots=True)
class CompositeKey:
    """Object type plus ordered attribute values of a composite key."""

    object_type: Any = ""
    attributes: list[Any] = field(default_factory=list)


def derive_composite_key(attrs: Mapping[str, Any]) -> CompositeKey:
    """Split an attribute map into a composite key descriptor.

    Field names are visited in sorted order, which makes the result
    independent of the map's insertion order.
    """
    object_type: Any = ""
    attributes: list[Any] = []
    for name in sorted(attrs):
        if name == OBJECT_TYPE_FIELD:
            object_type = attrs[name]
        else:
            attributes.append(attrs[name])
    return CompositeKey(object_type=object_type, attributes=attributes)


def derive_storage_key(attrs: Mapping[str, Any], store: RecordStore) -> str:
    """Derive the storage key addressing a record.

    Args:
        attrs: Parsed JSON object from the request
        store: Record store providing the native composite-key encoding

    Returns:
        ``"undefined"`` for an empty map, the field name for a single-field
        map, otherwise the encoded composite key
    """
    if not attrs:
        return UNDEFINED_KEY
    if len(attrs) == 1:
        return next(iter(attrs))
    composite = derive_composite_key(attrs)
    return store.encode_composite_key(composite.object_type, composite.attributes)


__all__ = [
    "CompositeKey",
    "OBJECT_TYPE_FIELD",
    "UNDEFINED_KEY",
    "derive_composite_key",
    "derive_storage_key",
]
