"""
Payment Recorder

Takes a payment as typed into the creditors page (a creditor index and
a raw amount string) and applies it through the Creditor Ledger as one
operation: balance update, payment log append and sale settling all
happen together, and all three collections are persisted together.

A rejected payment changes nothing and is logged as an audit event.
"""

from typing import Optional, Union

from shopbook.audit import AuditLogger, create_correlation_id
from shopbook.errors import ShopbookError, ValidationError
from shopbook.ledger.creditor_ledger import CreditorLedger
from shopbook.models.audit import AuditEventBuilder
from shopbook.models.records import PaymentReceipt
from shopbook.validation import parse_amount


class PaymentRecorder:
    """Entry point for payments received from creditors."""

    def __init__(
        self,
        ledger: CreditorLedger,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._ledger = ledger
        self._audit = audit_logger or AuditLogger()

    def record_payment(
        self,
        creditor_index: int,
        raw_amount: Union[str, float, None],
    ) -> PaymentReceipt:
        """
        Parse and apply a payment.

        Raises:
            ValidationError: the amount is missing, not a number, or not positive
            RecordNotFoundError: no creditor at creditor_index
            LimitExceededError: the amount is more than the creditor owes
        """
        correlation_id = create_correlation_id()
        creditors = self._ledger.creditors
        phone = (
            creditors[creditor_index].phone
            if 0 <= creditor_index < len(creditors)
            else None
        )

        try:
            amount, issue = parse_amount(raw_amount, "amount", "Payment amount", money=True)
            if issue:
                raise ValidationError(
                    "Please enter a valid payment amount.",
                    issues=[issue],
                )
            return self._ledger.apply_payment(
                creditor_index,
                amount,
                correlation_id=correlation_id,
            )
        except ShopbookError as e:
            self._audit.log(AuditEventBuilder.payment_rejected(
                raw_amount=str(raw_amount),
                error_code=e.error_code,
                error_message=e.message,
                phone=phone,
                correlation_id=correlation_id,
            ))
            raise
