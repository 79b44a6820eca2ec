"""
Sale Record Manager

Creates, edits and deletes sales, keeping the Creditor Ledger in step
for credit sales.

DESIGN DECISION: Sales are soft-deleted. A deleted sale stays in the
stored collection with deleted=True so the history is preserved; it
only leaves the active view. Indexes passed to edit/delete refer to
the active view (what the cashier sees), indexes passed to the trash
operations refer to the deleted view.

Soft-deleting a credit sale does NOT reverse the creditor's balance:
a deleted sale still counts as billed until the creditor pays or is
deleted.
"""

from typing import Optional
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from shopbook.audit import AuditLogger, create_correlation_id
from shopbook.config import PricingSettings, get_settings
from shopbook.errors import RecordNotFoundError, ValidationError
from shopbook.ledger.base import BookComponent, Clock
from shopbook.ledger.creditor_ledger import CreditorLedger, sale_key
from shopbook.models.audit import AuditEventBuilder
from shopbook.models.records import (
    BookState,
    Sale,
    SaleDraft,
    SaleType,
    ValidationIssue,
    ValidationResult,
    utc_now,
)
from shopbook.services.storage import BookStorageInterface, Collection
from shopbook.validation import SaleValidator


class SaleRecordManager(BookComponent):
    """The sales collection and its trash."""

    def __init__(
        self,
        state: BookState,
        storage: BookStorageInterface,
        ledger: CreditorLedger,
        validator: Optional[SaleValidator] = None,
        pricing: Optional[PricingSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Clock = utc_now,
    ):
        super().__init__(state, storage, audit_logger, clock)
        self._ledger = ledger
        self._validator = validator or SaleValidator()
        self._pricing = pricing or get_settings().pricing

    @property
    def active_sales(self) -> list[Sale]:
        return self._state.active_sales

    @property
    def deleted_sales(self) -> list[Sale]:
        return self._state.deleted_sales

    # -------------------------------------------------------------------------
    # Pricing helpers
    # -------------------------------------------------------------------------

    def suggest_amount(self, sale_type: SaleType, quantity: float) -> Optional[float]:
        """Suggested price for refills and coils; None for anything else."""
        if sale_type is SaleType.REFILL:
            return quantity * self._pricing.refill_unit_price
        if sale_type is SaleType.COIL:
            return quantity * self._pricing.coil_unit_price
        return None

    def backend_amount(self, sale_type: SaleType, quantity: float) -> float:
        """Backend revenue of a sale; zero for products without a backend rate."""
        if sale_type is SaleType.REFILL:
            return quantity * self._pricing.refill_backend_rate
        if sale_type is SaleType.COIL:
            return quantity * self._pricing.coil_backend_rate
        return 0.0

    def validate(self, draft: SaleDraft) -> ValidationResult:
        """Check a form without recording anything."""
        return self._validator.validate(draft)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _position(self, index: int, deleted: bool) -> int:
        """Map an index in the active (or deleted) view to the stored list."""
        view = [
            position
            for position, sale in enumerate(self._state.sales)
            if sale.deleted == deleted
        ]
        if not 0 <= index < len(view):
            raise RecordNotFoundError("deleted sale" if deleted else "sale", index)
        return view[index]

    def _clean(self, draft: SaleDraft, correlation_id: UUID) -> SaleDraft:
        try:
            return self._validator.clean(draft)
        except ValidationError as e:
            self._log(AuditEventBuilder.validation_failed(
                form="sale",
                issues=[issue.model_dump() for issue in e.issues],
                correlation_id=correlation_id,
            ))
            raise

    def _build(self, draft: SaleDraft, timestamp, correlation_id: UUID) -> Sale:
        try:
            return Sale(
                sale_type=draft.sale_type,
                item_name=draft.item_name,
                flavor=draft.flavor,
                quantity=draft.quantity,
                amount=draft.amount,
                backend_amount=self.backend_amount(draft.sale_type, draft.quantity),
                payment_method=draft.payment_method,
                timestamp=timestamp,
                is_credit=draft.is_credit,
                customer_name=draft.customer_name,
                customer_phone=draft.customer_phone,
                is_paid=not draft.is_credit,
            )
        except PydanticValidationError as e:
            issues = [
                ValidationIssue(
                    field=str(error["loc"][0]) if error["loc"] else "sale",
                    issue_type=error["type"],
                    message=error["msg"],
                )
                for error in e.errors()
            ]
            self._log(AuditEventBuilder.validation_failed(
                form="sale",
                issues=[issue.model_dump() for issue in issues],
                correlation_id=correlation_id,
            ))
            raise ValidationError(issues[0].message, issues=issues) from e

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def create_sale(self, draft: SaleDraft) -> Sale:
        """
        Record a new sale.

        A credit sale is also charged to the customer's creditor account.

        Raises:
            ValidationError: the form is incomplete (nothing is recorded)
        """
        correlation_id = create_correlation_id()
        cleaned = self._clean(draft, correlation_id)
        sale = self._build(cleaned, self._clock(), correlation_id)

        self._state.sales.append(sale)
        self._persist(Collection.SALES)

        if sale.is_credit:
            self._ledger.record_credit_sale(
                name=sale.customer_name,
                phone=sale.customer_phone,
                item_name=sale.item_name,
                quantity=sale.quantity,
                amount=sale.amount,
                correlation_id=correlation_id,
            )

        self._log(AuditEventBuilder.sale_created(
            sale_key=sale_key(sale),
            item_name=sale.item_name,
            amount=sale.amount,
            is_credit=sale.is_credit,
            correlation_id=correlation_id,
        ))
        return sale

    def edit_sale(self, index: int, draft: SaleDraft) -> Sale:
        """
        Replace the active sale at index with the edited form.

        The original timestamp is kept. The replacement is paid exactly
        when it is a cash sale, like a new sale would be.

        Raises:
            RecordNotFoundError: no active sale at index
            ValidationError: the form is incomplete (nothing is changed)
        """
        correlation_id = create_correlation_id()
        position = self._position(index, deleted=False)
        original = self._state.sales[position]

        cleaned = self._clean(draft, correlation_id)
        updated = self._build(cleaned, original.timestamp, correlation_id)

        self._ledger.transfer_credit_sale(
            original,
            updated,
            item_name=updated.item_name,
            quantity=updated.quantity,
            amount=updated.amount,
            correlation_id=correlation_id,
        )

        self._state.sales[position] = updated
        self._persist(Collection.SALES)

        self._log(AuditEventBuilder.sale_updated(
            sale_key=sale_key(updated),
            old_amount=original.amount,
            new_amount=updated.amount,
            was_credit=original.is_credit,
            is_credit=updated.is_credit,
            correlation_id=correlation_id,
        ))
        return updated

    def soft_delete_sale(self, index: int) -> Sale:
        """
        Move the active sale at index to the trash.

        Raises:
            RecordNotFoundError: no active sale at index
        """
        position = self._position(index, deleted=False)
        sale = self._state.sales[position]
        sale.deleted = True
        sale.deleted_at = self._clock()

        self._persist(Collection.SALES)
        self._log(AuditEventBuilder.sale_deleted(
            sale_key=sale_key(sale),
            item_name=sale.item_name,
            is_credit=sale.is_credit,
        ))
        return sale

    def delete_all_sales(self) -> int:
        """Move every active sale to the trash. Returns how many moved."""
        now = self._clock()
        count = 0
        for sale in self._state.sales:
            if not sale.deleted:
                sale.deleted = True
                sale.deleted_at = now
                count += 1

        self._persist(Collection.SALES)
        self._log(AuditEventBuilder.sales_bulk_deleted(count=count))
        return count

    def restore_sale(self, index: int) -> Sale:
        """
        Bring the sale at index of the trash back to the active view.

        Raises:
            RecordNotFoundError: nothing at that index of the trash
        """
        position = self._position(index, deleted=True)
        sale = self._state.sales[position]
        sale.deleted = False
        sale.deleted_at = None

        self._persist(Collection.SALES)
        self._log(AuditEventBuilder.sale_restored(sale_key=sale_key(sale)))
        return sale

    def permanent_delete_sale(self, index: int) -> Sale:
        """
        Remove the sale at index of the trash for good.

        Raises:
            RecordNotFoundError: nothing at that index of the trash
        """
        position = self._position(index, deleted=True)
        sale = self._state.sales.pop(position)

        self._persist(Collection.SALES)
        self._log(AuditEventBuilder.sales_purged(count=1))
        return sale

    def empty_trash(self) -> int:
        """Remove every deleted sale for good. Returns how many were removed."""
        before = len(self._state.sales)
        self._state.sales[:] = self._state.active_sales
        count = before - len(self._state.sales)

        self._persist(Collection.SALES)
        self._log(AuditEventBuilder.sales_purged(count=count))
        return count

    def permanent_delete_all_sales(self) -> int:
        """Remove every sale, active and deleted, for good."""
        count = len(self._state.sales)
        self._state.sales.clear()

        self._persist(Collection.SALES)
        self._log(AuditEventBuilder.sales_purged(count=count))
        return count
