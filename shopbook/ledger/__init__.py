"""Bookkeeping components: creditors, sales, payments and expenses."""

from shopbook.ledger.base import AMOUNT_EPSILON, BookComponent, to_cents
from shopbook.ledger.creditor_ledger import CreditorLedger, sale_key
from shopbook.ledger.expenses import ExpenseBook
from shopbook.ledger.payment_recorder import PaymentRecorder
from shopbook.ledger.sale_manager import SaleRecordManager

__all__ = [
    "AMOUNT_EPSILON",
    "BookComponent",
    "CreditorLedger",
    "ExpenseBook",
    "PaymentRecorder",
    "SaleRecordManager",
    "sale_key",
    "to_cents",
]
