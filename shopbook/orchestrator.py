"""
Main Orchestrator for Shopbook

This module ties together all the components around one shared
BookState:

    UI event -> SaleRecordManager / PaymentRecorder / ExpenseBook
             -> CreditorLedger (mutates creditors)
             -> BookStorageInterface (persists)
    Reports read the same BookState.

DESIGN DECISION: There are no module-level globals. The state object is
created here, loaded once from storage, and handed to every component;
the storage layer is the only thing that touches durable data.
"""

from typing import Optional

from shopbook.access import AdminGate
from shopbook.audit import AuditLogger, create_correlation_id
from shopbook.config import Settings, get_settings
from shopbook.ledger import (
    CreditorLedger,
    ExpenseBook,
    PaymentRecorder,
    SaleRecordManager,
)
from shopbook.ledger.base import Clock
from shopbook.models.audit import AuditEventBuilder
from shopbook.models.records import BookState, utc_now
from shopbook.models.report import FinancialSummary
from shopbook.reports import build_summary
from shopbook.services.storage import (
    AuditStorageInterface,
    BookStorageInterface,
    Collection,
    KeyValueAuditStorage,
    KeyValueBookStorage,
    KeyValueStore,
    create_key_value_store,
)
from shopbook.validation import ExpenseValidator, SaleValidator


class ShopBook:
    """
    The whole application behind the UI.

    Holds the shared state and one instance of each component.
    """

    def __init__(
        self,
        storage: BookStorageInterface,
        settings: Optional[Settings] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Clock = utc_now,
    ):
        self._settings = settings or get_settings()
        self._storage = storage
        self._audit = audit_logger or AuditLogger()

        app_settings = self._settings.app
        self._pricing = self._settings.pricing

        self.state = storage.load_all()

        self.ledger = CreditorLedger(
            self.state,
            storage,
            audit_logger=self._audit,
            clock=clock,
        )
        self.sales = SaleRecordManager(
            self.state,
            storage,
            self.ledger,
            validator=SaleValidator(app_settings),
            pricing=self._pricing,
            audit_logger=self._audit,
            clock=clock,
        )
        self.payments = PaymentRecorder(self.ledger, audit_logger=self._audit)
        self.expenses = ExpenseBook(
            self.state,
            storage,
            validator=ExpenseValidator(),
            audit_logger=self._audit,
            clock=clock,
        )
        self.gate = AdminGate(app_settings, audit_logger=self._audit)

    @property
    def storage(self) -> BookStorageInterface:
        return self._storage

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit

    def reload(self) -> BookState:
        """Re-read every collection from storage into the shared state."""
        self.state.replace_with(self._storage.load_all())
        return self.state

    def summary(self) -> FinancialSummary:
        return build_summary(self.state, self._pricing)

    def clear_all(self) -> bool:
        """Remove all four collections from storage and memory."""
        ok = self._storage.clear_all()
        self.state.replace_with(BookState())
        self._audit.log(AuditEventBuilder.data_cleared(
            collections=[c.value for c in Collection],
            correlation_id=create_correlation_id(),
        ))
        return ok

    def clear_all_except_creditors(self) -> bool:
        """Remove sales, expenses and payments; creditors stay as they are."""
        ok = self._storage.clear_all_except_creditors()
        self.state.replace_with(BookState(creditors=self.state.creditors))
        self._audit.log(AuditEventBuilder.data_cleared(
            collections=[
                c.value for c in Collection if c is not Collection.CREDITORS
            ],
            correlation_id=create_correlation_id(),
        ))
        return ok


def create_app_components(
    store: Optional[KeyValueStore] = None,
    settings: Optional[Settings] = None,
    clock: Clock = utc_now,
) -> ShopBook:
    """
    Factory function to create all application components.

    Args:
        store: Key-value store to keep the books in. Defaults to the
               one selected by StorageSettings (a data directory).
        settings: Settings to use instead of get_settings().

    Returns:
        A ShopBook loaded from the store
    """
    settings = settings or get_settings()
    storage_settings = settings.storage
    store = store or create_key_value_store(storage_settings)

    book_storage = KeyValueBookStorage(store, key_prefix=storage_settings.key_prefix)
    audit_storage: AuditStorageInterface = KeyValueAuditStorage(
        store,
        key_prefix=storage_settings.key_prefix,
        max_events=storage_settings.audit_max_events,
    )

    return ShopBook(
        storage=book_storage,
        settings=settings,
        audit_logger=AuditLogger(
            audit_storage,
            max_events=storage_settings.audit_max_events,
        ),
        clock=clock,
    )
