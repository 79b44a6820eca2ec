"""
Collection Storage on a Key-Value Store

Implements BookStorageInterface and AuditStorageInterface on top of any
KeyValueStore. Each collection is one key ('<prefix>-sales',
'<prefix>-creditors', ...) holding a JSON array of camelCase records.

TRADEOFFS:
- Whole-collection read-modify-write; fine for one shop's volume
- Last writer wins if two processes share a data directory
- A collection that fails to parse loads as empty (and is logged),
  so one corrupt document never blocks the rest of the books
"""


import structlog
from pydantic import TypeAdapter, ValidationError

from shopbook.models.audit import AuditEvent
from shopbook.models.records import (
    Creditor,
    Expense,
    Payment,
    Sale,
)
from shopbook.services.storage.interface import (
    AuditStorageInterface,
    BookStorageInterface,
    Collection,
    KeyValueStore,
    StorageUnavailableError,
)


_ADAPTERS: dict[Collection, TypeAdapter] = {
    Collection.SALES: TypeAdapter(list[Sale]),
    Collection.EXPENSES: TypeAdapter(list[Expense]),
    Collection.CREDITORS: TypeAdapter(list[Creditor]),
    Collection.PAYMENTS: TypeAdapter(list[Payment]),
}

_AUDIT_ADAPTER = TypeAdapter(list[AuditEvent])

DEFAULT_KEY_PREFIX = "cloudify"


class KeyValueBookStorage(BookStorageInterface):
    """
    The four collections stored as JSON documents in a KeyValueStore.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key_prefix: str = DEFAULT_KEY_PREFIX,
    ):
        self._store = store
        self._key_prefix = key_prefix
        self._logger = structlog.get_logger()

    @property
    def store(self) -> KeyValueStore:
        return self._store

    def key_for(self, collection: Collection) -> str:
        """Storage key of a collection, e.g. 'cloudify-sales'."""
        return f"{self._key_prefix}-{collection.value}"

    def _load(self, collection: Collection) -> list:
        key = self.key_for(collection)

        try:
            raw = self._store.get_item(key)
        except StorageUnavailableError as e:
            self._logger.error("storage_read_failed", key=key, error=str(e))
            return []

        if raw is None:
            return []

        try:
            return _ADAPTERS[collection].validate_json(raw)
        except ValidationError as e:
            self._logger.warning(
                "storage_parse_failed",
                key=key,
                error_count=e.error_count(),
                first_error=e.errors()[0]["msg"] if e.errors() else None,
            )
            return []

    def _save(self, collection: Collection, items: list) -> bool:
        key = self.key_for(collection)
        raw = _ADAPTERS[collection].dump_json(
            items,
            by_alias=True,
            exclude_none=True,
        ).decode("utf-8")

        try:
            self._store.set_item(key, raw)
            return True
        except StorageUnavailableError as e:
            # In-memory state is still correct; it just isn't durable.
            self._logger.error(
                "storage_write_failed",
                key=key,
                error=str(e),
                error_type=type(e).__name__,
                item_count=len(items),
            )
            return False

    def load_sales(self) -> list[Sale]:
        return self._load(Collection.SALES)

    def save_sales(self, sales: list[Sale]) -> bool:
        return self._save(Collection.SALES, sales)

    def load_expenses(self) -> list[Expense]:
        return self._load(Collection.EXPENSES)

    def save_expenses(self, expenses: list[Expense]) -> bool:
        return self._save(Collection.EXPENSES, expenses)

    def load_creditors(self) -> list[Creditor]:
        return self._load(Collection.CREDITORS)

    def save_creditors(self, creditors: list[Creditor]) -> bool:
        return self._save(Collection.CREDITORS, creditors)

    def load_payments(self) -> list[Payment]:
        return self._load(Collection.PAYMENTS)

    def save_payments(self, payments: list[Payment]) -> bool:
        return self._save(Collection.PAYMENTS, payments)

    def remove_collection(self, collection: Collection) -> bool:
        key = self.key_for(collection)
        try:
            self._store.remove_item(key)
            return True
        except StorageUnavailableError as e:
            self._logger.error("storage_remove_failed", key=key, error=str(e))
            return False


class KeyValueAuditStorage(AuditStorageInterface):
    """
    Audit events kept as a capped JSON array under '<prefix>-audit'.

    Oldest events are dropped once max_events is reached. A max_events
    of zero disables persistence (events are still logged locally).
    """

    def __init__(
        self,
        store: KeyValueStore,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        max_events: int = 2000,
    ):
        self._store = store
        self._key = f"{key_prefix}-audit"
        self._max_events = max_events
        self._logger = structlog.get_logger()

    def _read(self) -> list[AuditEvent]:
        raw = self._store.get_item(self._key)
        if raw is None:
            return []
        try:
            return _AUDIT_ADAPTER.validate_json(raw)
        except ValidationError:
            self._logger.warning("audit_log_unreadable", key=self._key)
            return []

    def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        if self._max_events == 0:
            return True

        try:
            events = self._read()
            events.append(event)
            events = events[-self._max_events:]
            self._store.set_item(
                self._key,
                _AUDIT_ADAPTER.dump_json(events).decode("utf-8"),
            )
            return True
        except StorageUnavailableError as e:
            # Don't raise - audit logging should not break the main flow
            self._logger.error("audit_write_failed", key=self._key, error=str(e))
            return False

    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events (newest first)."""
        try:
            events = self._read()
        except StorageUnavailableError as e:
            self._logger.error("audit_read_failed", key=self._key, error=str(e))
            return []
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]

    def get_events_by_entity(
        self,
        entity_type: str,
        entity_key: str,
    ) -> list[AuditEvent]:
        """Get events by entity, oldest first."""
        try:
            events = self._read()
        except StorageUnavailableError as e:
            self._logger.error("audit_read_failed", key=self._key, error=str(e))
            return []
        matching = [
            e for e in events
            if e.entity_type == entity_type and e.entity_key == entity_key
        ]
        matching.sort(key=lambda e: e.timestamp)
        return matching

