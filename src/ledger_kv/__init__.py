"""
Ledger KV - Generic key-value access layer over an ordered ledger state store.

Stores JSON records under keys derived from their fields, supports composite
keys built from several fields, and answers prefix queries over them.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
