"""
Shared fixtures.

Every test gets a fresh in-memory key-value store and a clock that only
moves when told to, so timestamps in assertions are exact.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from shopbook.audit import AuditLogger
from shopbook.models import Sale, SaleDraft, SaleType
from shopbook.orchestrator import ShopBook, create_app_components
from shopbook.services.storage import (
    InMemoryKeyValueStore,
    KeyValueBookStorage,
    StorageUnavailableError,
)


START = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class FixedClock:
    """A clock for tests: returns the same instant until advanced."""

    def __init__(self, start: datetime = START):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class ReadOnlyStore(InMemoryKeyValueStore):
    """A store whose writes fail, like a browser with storage disabled."""

    def set_item(self, key: str, value: str) -> None:
        raise StorageUnavailableError(f"{key} is read-only")


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def storage(kv) -> KeyValueBookStorage:
    return KeyValueBookStorage(kv)


@pytest.fixture
def book(kv, clock) -> ShopBook:
    return create_app_components(store=kv, clock=clock)


@pytest.fixture
def audit_logger(book) -> AuditLogger:
    return book.audit_logger


@pytest.fixture
def ledger(book):
    return book.ledger


@pytest.fixture
def sales(book):
    return book.sales


@pytest.fixture
def payments(book):
    return book.payments


@pytest.fixture
def expenses(book):
    return book.expenses


@pytest.fixture
def make_draft():
    """Build a sale form submission; credit when a phone is given."""

    def _make(
        amount="500",
        quantity="1",
        item_name: str = "VMate",
        sale_type: SaleType = SaleType.COIL,
        name: str = "Ali",
        phone: Optional[str] = None,
        **extra,
    ) -> SaleDraft:
        is_credit = phone is not None
        return SaleDraft(
            sale_type=sale_type,
            item_name=item_name,
            quantity=quantity,
            amount=amount,
            is_credit=is_credit,
            customer_name=name if is_credit else "",
            customer_phone=phone or "",
            **extra,
        )

    return _make


@pytest.fixture
def make_credit_sale(clock):
    """Build a stored credit Sale directly, bypassing the manager."""

    def _make(
        phone: str = "0300",
        amount: float = 500.0,
        item_name: str = "VMate",
        quantity: float = 1,
        name: str = "Ali",
    ) -> Sale:
        return Sale(
            sale_type=SaleType.COIL,
            item_name=item_name,
            quantity=quantity,
            amount=amount,
            timestamp=clock(),
            is_credit=True,
            customer_name=name,
            customer_phone=phone,
        )

    return _make


def snapshot(kv: InMemoryKeyValueStore) -> dict[str, Optional[str]]:
    """Stored collections, ignoring the audit log."""
    return {key: kv.get_item(key) for key in kv.keys() if not key.endswith("-audit")}
