"""
Creditor Ledger

Keeps the mapping from customer (identified by phone) to outstanding
balance and purchase history, and applies the four events that move a
balance: a credit sale, the reversal of one, an edit of one, and a
payment.

DESIGN DECISION: A creditor whose balance reaches zero is removed from
the collection rather than kept at zero. The list of creditors is the
list of people who owe the shop money.

Balances are rounded to cents after every delta so that a sequence such
as 0.1 + 0.2 - 0.3 lands on exactly zero and the creditor is removed.
"""

import math
from typing import Optional
from uuid import UUID

from shopbook.errors import LimitExceededError, RecordNotFoundError, ValidationError
from shopbook.ledger.base import AMOUNT_EPSILON, BookComponent, to_cents
from shopbook.models.audit import AuditEventBuilder
from shopbook.models.records import (
    Creditor,
    Payment,
    PaymentMethod,
    PaymentReceipt,
    Purchase,
    Sale,
)
from shopbook.services.storage import Collection


def sale_key(sale: Sale) -> str:
    """Natural key of a sale for audit events."""
    return f"{sale.customer_phone or 'cash'}@{sale.timestamp.isoformat()}"


class CreditorLedger(BookComponent):
    """Balances and purchase histories of the shop's creditors."""

    @property
    def creditors(self) -> list[Creditor]:
        return self._state.creditors

    def find_index(self, phone: str) -> Optional[int]:
        """Position of the creditor with this phone, or None."""
        for index, creditor in enumerate(self._state.creditors):
            if creditor.phone == phone:
                return index
        return None

    def find(self, phone: str) -> Optional[Creditor]:
        index = self.find_index(phone)
        return None if index is None else self._state.creditors[index]

    def total_owed(self) -> float:
        return to_cents(sum(c.amount_owed for c in self._state.creditors))

    def _remove(self, index: int, reason: str, correlation_id: Optional[UUID]) -> Creditor:
        creditor = self._state.creditors.pop(index)
        self._log(AuditEventBuilder.creditor_removed(
            phone=creditor.phone,
            name=creditor.name,
            reason=reason,
            correlation_id=correlation_id,
        ))
        return creditor

    # -------------------------------------------------------------------------
    # Credit sale events
    # -------------------------------------------------------------------------

    def record_credit_sale(
        self,
        name: str,
        phone: str,
        item_name: str,
        quantity: float,
        amount: float,
        correlation_id: Optional[UUID] = None,
    ) -> Creditor:
        """
        Charge a credit sale to the customer with this phone.

        An existing creditor gets the amount added and a new purchase
        appended (their stored name is kept). Otherwise a new creditor
        is created owing exactly this amount. Always succeeds.
        """
        purchase = Purchase(
            item_name=item_name,
            quantity=quantity,
            amount=amount,
            purchased_at=self._clock(),
        )

        creditor = self.find(phone)
        is_new = creditor is None
        if creditor is None:
            creditor = Creditor(
                name=name,
                phone=phone,
                amount_owed=to_cents(amount),
                purchases=[purchase],
            )
            self._state.creditors.append(creditor)
        else:
            creditor.amount_owed = to_cents(creditor.amount_owed + amount)
            creditor.purchases.append(purchase)

        self._persist(Collection.CREDITORS)
        self._log(AuditEventBuilder.creditor_charged(
            phone=phone,
            name=creditor.name,
            amount=amount,
            balance=creditor.amount_owed,
            is_new=is_new,
            correlation_id=correlation_id,
        ))
        return creditor

    def reverse_credit_sale(
        self,
        original: Sale,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Undo the charge of a credit sale.

        Subtracts the sale amount and removes one purchase with the same
        item, quantity and amount (within a cent). The creditor is
        removed once nothing is owed and no purchases remain.

        Returns False (and changes nothing) for a cash sale or when no
        creditor has the sale's phone.
        """
        if not original.is_credit or not original.customer_phone:
            return False

        index = self.find_index(original.customer_phone)
        if index is None:
            return False

        creditor = self._state.creditors[index]
        creditor.amount_owed = to_cents(creditor.amount_owed - original.amount)

        purchase_removed = False
        for position, purchase in enumerate(creditor.purchases):
            if (
                purchase.item_name == original.item_name
                and purchase.quantity == original.quantity
                and abs(purchase.amount - original.amount) < AMOUNT_EPSILON
            ):
                del creditor.purchases[position]
                purchase_removed = True
                break

        balance = creditor.amount_owed
        self._log(AuditEventBuilder.credit_reversed(
            phone=creditor.phone,
            amount=original.amount,
            balance=balance,
            purchase_removed=purchase_removed,
            correlation_id=correlation_id,
        ))

        if balance <= 0 and not creditor.purchases:
            self._remove(index, "credit sale reversed", correlation_id)

        self._persist(Collection.CREDITORS)
        return True

    def transfer_credit_sale(
        self,
        original: Sale,
        updated: Sale,
        item_name: str,
        quantity: float,
        amount: float,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """
        Reconcile creditors after a sale was edited.

        - credit -> credit, same phone: balance moves by the change in
          amount; the purchase list is left as it was
        - credit -> credit, new phone: reverse on the old customer,
          charge the new one
        - credit -> cash: reverse
        - cash -> credit: charge
        - cash -> cash: nothing to do
        """
        if original.is_credit and updated.is_credit:
            if original.customer_phone != updated.customer_phone:
                self.reverse_credit_sale(original, correlation_id=correlation_id)
                self.record_credit_sale(
                    name=updated.customer_name,
                    phone=updated.customer_phone,
                    item_name=item_name,
                    quantity=quantity,
                    amount=amount,
                    correlation_id=correlation_id,
                )
            else:
                self._adjust(original, amount, correlation_id)
        elif original.is_credit:
            self.reverse_credit_sale(original, correlation_id=correlation_id)
        elif updated.is_credit:
            self.record_credit_sale(
                name=updated.customer_name,
                phone=updated.customer_phone,
                item_name=item_name,
                quantity=quantity,
                amount=amount,
                correlation_id=correlation_id,
            )

    def _adjust(
        self,
        original: Sale,
        new_amount: float,
        correlation_id: Optional[UUID],
    ) -> None:
        index = self.find_index(original.customer_phone)
        if index is None:
            return

        creditor = self._state.creditors[index]
        creditor.amount_owed = to_cents(creditor.amount_owed - original.amount + new_amount)
        balance = creditor.amount_owed

        self._log(AuditEventBuilder.creditor_adjusted(
            phone=creditor.phone,
            old_amount=original.amount,
            new_amount=new_amount,
            balance=balance,
            correlation_id=correlation_id,
        ))

        if balance == 0:
            self._remove(index, "balance adjusted to zero", correlation_id)
        elif balance < 0:
            # Kept so the overpayment stays visible.
            self._log(AuditEventBuilder.creditor_balance_negative(
                phone=creditor.phone,
                balance=balance,
                correlation_id=correlation_id,
            ))

        self._persist(Collection.CREDITORS)

    # -------------------------------------------------------------------------
    # Payments
    # -------------------------------------------------------------------------

    def apply_payment(
        self,
        creditor_index: int,
        amount: float,
        correlation_id: Optional[UUID] = None,
    ) -> PaymentReceipt:
        """
        Apply a payment from the creditor at this index.

        The amount is rounded to cents first. The payment is rejected
        whole (nothing changes) when the amount is not a positive finite
        number or exceeds what is owed. Otherwise:
        the balance drops by the amount, a creditor left owing exactly
        zero is removed, and a Payment is appended to the history.

        Settling sales: every unpaid, non-deleted credit sale for this
        phone whose amount is at most the payment amount is marked paid
        (payment method 'credit-payment', timestamp set to now). Each
        sale is compared against the whole payment on its own, so one
        payment can settle several small sales, and a partial payment
        settles none. This matching is kept as-is for compatibility with
        books recorded by earlier versions; it is not an allocation.

        Raises:
            ValidationError: amount is not a positive finite number
            RecordNotFoundError: no creditor at creditor_index
            LimitExceededError: amount is more than the creditor owes
        """
        if (
            isinstance(amount, bool)
            or not isinstance(amount, (int, float))
            or not math.isfinite(amount)
            or to_cents(amount) <= 0
        ):
            raise ValidationError.for_field(
                "amount",
                "Please enter a valid payment amount.",
            )

        if not 0 <= creditor_index < len(self._state.creditors):
            raise RecordNotFoundError("creditor", creditor_index)

        amount = to_cents(float(amount))
        creditor = self._state.creditors[creditor_index]
        if amount > creditor.amount_owed:
            raise LimitExceededError(amount, creditor.amount_owed)

        now = self._clock()

        creditor.amount_owed = to_cents(creditor.amount_owed - amount)
        remaining = creditor.amount_owed
        removed = remaining == 0
        if removed:
            self._remove(creditor_index, "paid in full", correlation_id)

        payment = Payment(
            creditor_name=creditor.name,
            creditor_phone=creditor.phone,
            amount=amount,
            timestamp=now,
            original_sale_amount=amount,
        )
        self._state.payments.append(payment)

        settled = []
        for sale in self._state.sales:
            if (
                sale.is_credit
                and sale.customer_phone == creditor.phone
                and not sale.deleted
                and not sale.is_paid
                and amount >= sale.amount
            ):
                settled.append(sale_key(sale))
                sale.is_paid = True
                sale.payment_method = PaymentMethod.CREDIT_PAYMENT
                sale.timestamp = now
                self._log(AuditEventBuilder.sale_settled(
                    sale_key=settled[-1],
                    phone=creditor.phone,
                    sale_amount=sale.amount,
                    payment_amount=amount,
                    correlation_id=correlation_id,
                ))

        self._persist(Collection.CREDITORS, Collection.PAYMENTS, Collection.SALES)
        self._log(AuditEventBuilder.payment_recorded(
            phone=creditor.phone,
            name=creditor.name,
            amount=amount,
            remaining=remaining,
            correlation_id=correlation_id,
        ))

        return PaymentReceipt(
            payment=payment,
            creditor_name=creditor.name,
            creditor_phone=creditor.phone,
            remaining_balance=remaining,
            creditor_removed=removed,
            settled_sale_count=len(settled),
        )

    # -------------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------------

    def delete_creditor(
        self,
        creditor_index: int,
        correlation_id: Optional[UUID] = None,
    ) -> Creditor:
        """
        Remove a creditor outright, whatever they owe.

        Raises:
            RecordNotFoundError: no creditor at creditor_index
        """
        if not 0 <= creditor_index < len(self._state.creditors):
            raise RecordNotFoundError("creditor", creditor_index)

        creditor = self._remove(creditor_index, "deleted by user", correlation_id)
        self._persist(Collection.CREDITORS)
        return creditor

    def delete_all_creditors(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> int:
        """Remove every creditor and the payment history with them."""
        count = len(self._state.creditors)
        payments_cleared = len(self._state.payments)
        self._state.creditors.clear()
        self._state.payments.clear()

        self._persist(Collection.CREDITORS, Collection.PAYMENTS)
        self._log(AuditEventBuilder.creditors_deleted(
            count=count,
            payments_cleared=payments_cleared,
            correlation_id=correlation_id,
        ))
        return count

    def delete_payment_history(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> int:
        """Clear the payment log. Balances are not touched."""
        count = len(self._state.payments)
        self._state.payments.clear()

        self._persist(Collection.PAYMENTS)
        self._log(AuditEventBuilder.payment_history_cleared(
            count=count,
            correlation_id=correlation_id,
        ))
        return count
