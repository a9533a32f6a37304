"""Key-value contract - key derivation, dispatch, and result envelopes."""

from .context import InvocationContext, InvocationRequest
from .dispatcher import Dispatcher
from .errors import DecodeError, LedgerKVError, NotFoundError, StoreError
from .keys import CompositeKey, derive_composite_key, derive_storage_key
from .responses import Response

__all__ = [
    "CompositeKey",
    "DecodeError",
    "Dispatcher",
    "InvocationContext",
    "InvocationRequest",
    "LedgerKVError",
    "NotFoundError",
    "Response",
    "StoreError",
    "derive_composite_key",
    "derive_storage_key",
]
