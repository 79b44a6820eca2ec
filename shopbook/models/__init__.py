"""
Data Models Package

This package contains all Pydantic models used in Shopbook.
All data flowing through the system must conform to these schemas.
"""

from shopbook.models.records import (
    COIL_MODELS,
    FLAVOUR_SUGGESTIONS,
    FLAVOURED_SERIES,
    REFILL_SERIES,
    BookState,
    Creditor,
    Expense,
    ExpenseCategory,
    Payment,
    PaymentMethod,
    PaymentReceipt,
    Purchase,
    Sale,
    SaleDraft,
    SaleType,
    StoredRecord,
    ValidationIssue,
    ValidationResult,
    utc_now,
)
from shopbook.models.report import (
    FinancialSummary,
    ItemAggregate,
    PaymentMethodBreakdown,
    ProductRevenue,
)
from shopbook.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Records
    "COIL_MODELS",
    "FLAVOUR_SUGGESTIONS",
    "FLAVOURED_SERIES",
    "REFILL_SERIES",
    "BookState",
    "Creditor",
    "Expense",
    "ExpenseCategory",
    "Payment",
    "PaymentMethod",
    "PaymentReceipt",
    "Purchase",
    "Sale",
    "SaleDraft",
    "SaleType",
    "StoredRecord",
    "ValidationIssue",
    "ValidationResult",
    "utc_now",
    # Reports
    "FinancialSummary",
    "ItemAggregate",
    "PaymentMethodBreakdown",
    "ProductRevenue",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
