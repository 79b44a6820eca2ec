"""
Shared plumbing for the bookkeeping components.

Every component holds the same BookState, writes through the same
BookStorageInterface and reports to the same AuditLogger. Persistence
failures are degraded, not fatal: the in-memory change stands, a
storage error event is logged, and the operation carries on.
"""

from datetime import datetime
from typing import Callable, Optional

from shopbook.audit import AuditLogger
from shopbook.models.audit import AuditEvent
from shopbook.models.records import BookState, utc_now
from shopbook.services.storage import BookStorageInterface, Collection


Clock = Callable[[], datetime]

# Amounts owed differing by less than this are the same amount.
AMOUNT_EPSILON = 0.01


def to_cents(value: float) -> float:
    """Round a running balance to cents so repeated deltas land on exact zero."""
    return round(value, 2)


class BookComponent:
    """Base for components that mutate the books."""

    def __init__(
        self,
        state: BookState,
        storage: BookStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        clock: Clock = utc_now,
    ):
        self._state = state
        self._storage = storage
        self._audit = audit_logger or AuditLogger()
        self._clock = clock

    @property
    def state(self) -> BookState:
        return self._state

    def _log(self, event: AuditEvent) -> None:
        self._audit.log(event)

    def _persist(self, *collections: Collection) -> bool:
        """Write the given collections. True only if every write succeeded."""
        savers = {
            Collection.SALES: lambda: self._storage.save_sales(self._state.sales),
            Collection.EXPENSES: lambda: self._storage.save_expenses(self._state.expenses),
            Collection.CREDITORS: lambda: self._storage.save_creditors(self._state.creditors),
            Collection.PAYMENTS: lambda: self._storage.save_payments(self._state.payments),
        }
        ok = True
        for collection in collections:
            if not savers[collection]():
                ok = False
                self._audit.log_storage_error(
                    key=collection.value,
                    operation="save",
                    error_message="Change kept in memory but not written to storage",
                )
        return ok
