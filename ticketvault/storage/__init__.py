"""Key-value persistence backends."""

from .kv import InMemoryKeyValueStore, KeyValueStore, PostgresKeyValueStore

__all__ = ["InMemoryKeyValueStore", "KeyValueStore", "PostgresKeyValueStore"]
