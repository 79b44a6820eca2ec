"""Services package."""

from shopbook.services.storage import (
    AuditStorageInterface,
    BookStorageInterface,
    Collection,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueAuditStorage,
    KeyValueBookStorage,
    KeyValueStore,
    StorageError,
    StorageQuotaExceededError,
    StorageUnavailableError,
    create_key_value_store,
)

__all__ = [
    "AuditStorageInterface",
    "BookStorageInterface",
    "Collection",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueAuditStorage",
    "KeyValueBookStorage",
    "KeyValueStore",
    "StorageError",
    "StorageQuotaExceededError",
    "StorageUnavailableError",
    "create_key_value_store",
]
