"""Repository protocol definitions (interfaces)."""

from paperledger.repositories.protocols.kv_store import KeyValueStore

__all__ = [
    "KeyValueStore",
]
