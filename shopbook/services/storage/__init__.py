"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Currently keeps the books as JSON documents in a key-value store (a data
directory on disk, or memory for tests), but designed to be swappable.
"""

from shopbook.services.storage.interface import (
    AuditStorageInterface,
    BookStorageInterface,
    Collection,
    KeyValueStore,
    StorageError,
    StorageQuotaExceededError,
    StorageUnavailableError,
)
from shopbook.services.storage.kv_store import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    create_key_value_store,
)
from shopbook.services.storage.local_storage import (
    KeyValueAuditStorage,
    KeyValueBookStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "BookStorageInterface",
    "Collection",
    "KeyValueStore",
    # Exceptions
    "StorageError",
    "StorageQuotaExceededError",
    "StorageUnavailableError",
    # Key-value stores
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "create_key_value_store",
    # Collection storage
    "KeyValueAuditStorage",
    "KeyValueBookStorage",
]
