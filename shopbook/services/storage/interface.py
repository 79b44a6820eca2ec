"""
Abstract Storage Interface

DESIGN DECISION: We define abstract interfaces for storage operations.
This allows us to:
1. Keep the shop's data in a directory of JSON documents today
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation

There are two layers:
- KeyValueStore: string keys to string documents, nothing more
  (the shape of a browser's local storage).
- BookStorageInterface: the four typed collections of the books.
  Pure serialization, no business rules.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

from shopbook.models.audit import AuditEvent
from shopbook.models.records import (
    BookState,
    Creditor,
    Expense,
    Payment,
    Sale,
)


class Collection(str, Enum):
    """The named collections the books are made of."""
    SALES = "sales"
    EXPENSES = "expenses"
    CREDITORS = "creditors"
    PAYMENTS = "payments"


class KeyValueStore(ABC):
    """
    Abstract persistent key-value store.

    Values are opaque strings. Implementations raise
    StorageUnavailableError when the underlying medium cannot be used
    and StorageQuotaExceededError when a value is too large.
    """

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent."""
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove a key. Removing an absent key is not an error."""
        pass

    @abstractmethod
    def keys(self) -> list[str]:
        """All keys currently stored."""
        pass


class BookStorageInterface(ABC):
    """
    Abstract interface for the four collections.

    Loading never fails: an absent or unreadable collection loads as an
    empty list. Saving is a whole-collection overwrite that returns False
    (and logs) instead of raising when the store is unavailable.
    """

    @abstractmethod
    def load_sales(self) -> list[Sale]:
        """Every sale, including soft-deleted ones."""
        pass

    @abstractmethod
    def save_sales(self, sales: list[Sale]) -> bool:
        pass

    @abstractmethod
    def load_expenses(self) -> list[Expense]:
        pass

    @abstractmethod
    def save_expenses(self, expenses: list[Expense]) -> bool:
        pass

    @abstractmethod
    def load_creditors(self) -> list[Creditor]:
        pass

    @abstractmethod
    def save_creditors(self, creditors: list[Creditor]) -> bool:
        pass

    @abstractmethod
    def load_payments(self) -> list[Payment]:
        pass

    @abstractmethod
    def save_payments(self, payments: list[Payment]) -> bool:
        pass

    @abstractmethod
    def remove_collection(self, collection: Collection) -> bool:
        """Remove one collection entirely."""
        pass

    def load_all(self) -> BookState:
        """All four collections as one snapshot."""
        return BookState(
            sales=self.load_sales(),
            expenses=self.load_expenses(),
            creditors=self.load_creditors(),
            payments=self.load_payments(),
        )

    def save_all(self, state: BookState) -> bool:
        """Persist all four collections. True only if every write succeeded."""
        results = [
            self.save_sales(state.sales),
            self.save_expenses(state.expenses),
            self.save_creditors(state.creditors),
            self.save_payments(state.payments),
        ]
        return all(results)

    def clear_all(self) -> bool:
        """Remove all four collections."""
        return all([self.remove_collection(c) for c in Collection])

    def clear_all_except_creditors(self) -> bool:
        """Remove sales, expenses and payments; creditors are kept."""
        return all([
            self.remove_collection(c)
            for c in Collection
            if c is not Collection.CREDITORS
        ])


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass

    @abstractmethod
    def get_events_by_entity(
        self,
        entity_type: str,
        entity_key: str,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity (e.g. one creditor's phone).

        Returns:
            List of events in chronological order
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageUnavailableError(StorageError):
    """The persistence layer cannot be read or written."""
    pass


class StorageQuotaExceededError(StorageUnavailableError):
    """A document is larger than the store accepts."""
    pass
