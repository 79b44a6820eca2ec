"""
Audit Models for Shopbook

Every change to the books is logged for audit purposes.
This provides:
1. Complete traceability of balance changes
2. Debugging information when totals look wrong
3. Ability to reconstruct how a creditor's balance got where it is

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from shopbook.models.records import utc_now


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every mutating operation has its own event type.
    """
    # Sales
    SALE_CREATED = "sale_created"
    SALE_UPDATED = "sale_updated"
    SALE_DELETED = "sale_deleted"
    SALES_BULK_DELETED = "sales_bulk_deleted"
    SALE_RESTORED = "sale_restored"
    SALE_PURGED = "sale_purged"
    SALE_SETTLED = "sale_settled"

    # Creditor ledger
    CREDITOR_CREATED = "creditor_created"
    CREDITOR_CHARGED = "creditor_charged"
    CREDIT_REVERSED = "credit_reversed"
    CREDITOR_ADJUSTED = "creditor_adjusted"
    CREDITOR_REMOVED = "creditor_removed"
    CREDITOR_DELETED = "creditor_deleted"
    CREDITOR_BALANCE_NEGATIVE = "creditor_balance_negative"

    # Payments
    PAYMENT_RECORDED = "payment_recorded"
    PAYMENT_REJECTED = "payment_rejected"
    PAYMENT_HISTORY_CLEARED = "payment_history_cleared"

    # Expenses
    EXPENSE_ADDED = "expense_added"
    EXPENSE_DELETED = "expense_deleted"

    # Validation
    VALIDATION_FAILED = "validation_failed"

    # Data maintenance
    DATA_CLEARED = "data_cleared"

    # Access
    ADMIN_ACCESS_GRANTED = "admin_access_granted"
    ADMIN_ACCESS_DENIED = "admin_access_denied"

    # System events
    STORAGE_ERROR = "storage_error"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'sale', 'creditor', 'payment')"
    )
    entity_key: Optional[str] = Field(
        default=None,
        description="Natural key of the entity (creditor phone, sale timestamp)"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., a sale and its creditor charge)"
    )

    # Event details
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    # Additional data (event-specific)
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    # User action tracking
    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_key": self.entity_key,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_row(self) -> list:
        """
        Convert to a flat row for tabular display or CSV export.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_key,
         correlation_id, description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_key or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


def _money(value: float) -> str:
    return f"{value:,.2f}"


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.sale_created(sale, correlation_id)
        event = AuditEventBuilder.payment_recorded(phone, name, amount, ...)
    """

    @staticmethod
    def sale_created(
        sale_key: str,
        item_name: str,
        amount: float,
        is_credit: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        kind = "credit" if is_credit else "cash"
        return AuditEvent(
            event_type=AuditEventType.SALE_CREATED,
            entity_type="sale",
            entity_key=sale_key,
            correlation_id=correlation_id,
            description=f"Sale recorded: {item_name} for {_money(amount)} ({kind})",
            details={
                "item_name": item_name,
                "amount": amount,
                "is_credit": is_credit,
            },
            is_user_action=True,
        )

    @staticmethod
    def sale_updated(
        sale_key: str,
        old_amount: float,
        new_amount: float,
        was_credit: bool,
        is_credit: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SALE_UPDATED,
            entity_type="sale",
            entity_key=sale_key,
            correlation_id=correlation_id,
            description=f"Sale edited: {_money(old_amount)} -> {_money(new_amount)}",
            details={
                "old_amount": old_amount,
                "new_amount": new_amount,
                "was_credit": was_credit,
                "is_credit": is_credit,
            },
            is_user_action=True,
        )

    @staticmethod
    def sale_deleted(
        sale_key: str,
        item_name: str,
        is_credit: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SALE_DELETED,
            entity_type="sale",
            entity_key=sale_key,
            correlation_id=correlation_id,
            description=f"Sale moved to trash: {item_name}",
            details={
                "item_name": item_name,
                "is_credit": is_credit,
                "creditor_balance_reversed": False,
            },
            is_user_action=True,
        )

    @staticmethod
    def sales_bulk_deleted(
        count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SALES_BULK_DELETED,
            entity_type="sale",
            correlation_id=correlation_id,
            description=f"{count} sales moved to trash",
            details={"count": count},
            is_user_action=True,
        )

    @staticmethod
    def sale_restored(
        sale_key: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SALE_RESTORED,
            entity_type="sale",
            entity_key=sale_key,
            correlation_id=correlation_id,
            description="Sale restored from trash",
            is_user_action=True,
        )

    @staticmethod
    def sales_purged(
        count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SALE_PURGED,
            severity=AuditSeverity.WARNING,
            entity_type="sale",
            correlation_id=correlation_id,
            description=f"{count} sales permanently deleted",
            details={"count": count},
            is_user_action=True,
        )

    @staticmethod
    def sale_settled(
        sale_key: str,
        phone: str,
        sale_amount: float,
        payment_amount: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SALE_SETTLED,
            entity_type="sale",
            entity_key=sale_key,
            correlation_id=correlation_id,
            description=f"Credit sale of {_money(sale_amount)} marked paid",
            details={
                "phone": phone,
                "sale_amount": sale_amount,
                "payment_amount": payment_amount,
            },
        )

    @staticmethod
    def creditor_charged(
        phone: str,
        name: str,
        amount: float,
        balance: float,
        is_new: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        event_type = (
            AuditEventType.CREDITOR_CREATED
            if is_new
            else AuditEventType.CREDITOR_CHARGED
        )
        return AuditEvent(
            event_type=event_type,
            entity_type="creditor",
            entity_key=phone,
            correlation_id=correlation_id,
            description=f"{name} charged {_money(amount)}, now owes {_money(balance)}",
            details={
                "name": name,
                "amount": amount,
                "balance": balance,
            },
        )

    @staticmethod
    def credit_reversed(
        phone: str,
        amount: float,
        balance: float,
        purchase_removed: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CREDIT_REVERSED,
            entity_type="creditor",
            entity_key=phone,
            correlation_id=correlation_id,
            description=f"Credit of {_money(amount)} reversed, balance {_money(balance)}",
            details={
                "amount": amount,
                "balance": balance,
                "purchase_removed": purchase_removed,
            },
        )

    @staticmethod
    def creditor_adjusted(
        phone: str,
        old_amount: float,
        new_amount: float,
        balance: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CREDITOR_ADJUSTED,
            entity_type="creditor",
            entity_key=phone,
            correlation_id=correlation_id,
            description=(
                f"Credit sale changed {_money(old_amount)} -> {_money(new_amount)}, "
                f"balance {_money(balance)}"
            ),
            details={
                "old_amount": old_amount,
                "new_amount": new_amount,
                "balance": balance,
                "purchases_updated": False,
            },
        )

    @staticmethod
    def creditor_removed(
        phone: str,
        name: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CREDITOR_REMOVED,
            entity_type="creditor",
            entity_key=phone,
            correlation_id=correlation_id,
            description=f"{name} removed from creditors ({reason})",
            details={"name": name, "reason": reason},
        )

    @staticmethod
    def creditors_deleted(
        count: int,
        payments_cleared: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CREDITOR_DELETED,
            severity=AuditSeverity.WARNING,
            entity_type="creditor",
            correlation_id=correlation_id,
            description=f"{count} creditors deleted by the user",
            details={"count": count, "payments_cleared": payments_cleared},
            is_user_action=True,
        )

    @staticmethod
    def creditor_balance_negative(
        phone: str,
        balance: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CREDITOR_BALANCE_NEGATIVE,
            severity=AuditSeverity.WARNING,
            entity_type="creditor",
            entity_key=phone,
            correlation_id=correlation_id,
            description=(
                f"Balance dropped to {_money(balance)} after a credit sale was "
                "edited below what was already paid"
            ),
            details={"balance": balance},
        )

    @staticmethod
    def payment_recorded(
        phone: str,
        name: str,
        amount: float,
        remaining: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYMENT_RECORDED,
            entity_type="payment",
            entity_key=phone,
            correlation_id=correlation_id,
            description=f"Payment of {_money(amount)} from {name}, remaining {_money(remaining)}",
            details={
                "name": name,
                "amount": amount,
                "remaining": remaining,
            },
            is_user_action=True,
        )

    @staticmethod
    def payment_rejected(
        raw_amount: str,
        error_code: str,
        error_message: str,
        phone: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYMENT_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="payment",
            entity_key=phone,
            correlation_id=correlation_id,
            description="Payment rejected",
            details={"raw_amount": raw_amount},
            error_code=error_code,
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def payment_history_cleared(
        count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYMENT_HISTORY_CLEARED,
            severity=AuditSeverity.WARNING,
            entity_type="payment",
            correlation_id=correlation_id,
            description=f"{count} payments removed from history",
            details={"count": count},
            is_user_action=True,
        )

    @staticmethod
    def expense_added(
        description: str,
        amount: float,
        category: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            entity_type="expense",
            correlation_id=correlation_id,
            description=f"Expense added: {description} - {_money(amount)}",
            details={"amount": amount, "category": category},
            is_user_action=True,
        )

    @staticmethod
    def expenses_deleted(
        count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            entity_type="expense",
            correlation_id=correlation_id,
            description=f"{count} expenses deleted",
            details={"count": count},
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        form: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type=form,
            correlation_id=correlation_id,
            description=f"{form.capitalize()} form rejected with {len(issues)} issues",
            details={"issues": issues},
            error_code="validation_error",
            is_user_action=True,
        )

    @staticmethod
    def data_cleared(
        collections: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_CLEARED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"Cleared: {', '.join(collections)}",
            details={"collections": collections},
            is_user_action=True,
        )

    @staticmethod
    def admin_access(
        area: str,
        granted: bool,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.ADMIN_ACCESS_GRANTED
                if granted
                else AuditEventType.ADMIN_ACCESS_DENIED
            ),
            severity=AuditSeverity.INFO if granted else AuditSeverity.WARNING,
            entity_type="access",
            entity_key=area,
            description=f"Access to {area} {'granted' if granted else 'denied'}",
            is_user_action=True,
        )

    @staticmethod
    def storage_error(
        key: str,
        operation: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            entity_type="storage",
            entity_key=key,
            description=f"Storage {operation} failed for {key}",
            error_code="storage_unavailable",
            error_message=error_message,
            details={"operation": operation},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
