"""
Expense Book

Expenses are entered once and never edited; a mistaken entry is
deleted and entered again.
"""

from typing import Optional, Union

from shopbook.audit import AuditLogger, create_correlation_id
from shopbook.errors import RecordNotFoundError, ValidationError
from shopbook.ledger.base import BookComponent, Clock, to_cents
from shopbook.models.audit import AuditEventBuilder
from shopbook.models.records import BookState, Expense, ExpenseCategory, utc_now
from shopbook.services.storage import BookStorageInterface, Collection
from shopbook.validation import ExpenseValidator


class ExpenseBook(BookComponent):
    """The expenses collection."""

    def __init__(
        self,
        state: BookState,
        storage: BookStorageInterface,
        validator: Optional[ExpenseValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Clock = utc_now,
    ):
        super().__init__(state, storage, audit_logger, clock)
        self._validator = validator or ExpenseValidator()

    @property
    def expenses(self) -> list[Expense]:
        return self._state.expenses

    def total_expenses(self) -> float:
        return to_cents(sum(e.amount for e in self._state.expenses))

    def add_expense(
        self,
        description: str,
        amount: Union[str, float, None],
        category: Union[ExpenseCategory, str, None] = None,
    ) -> Expense:
        """
        Record an expense.

        Raises:
            ValidationError: description or amount missing or invalid
        """
        correlation_id = create_correlation_id()
        try:
            description, value, category = self._validator.clean(description, amount, category)
        except ValidationError as e:
            self._log(AuditEventBuilder.validation_failed(
                form="expense",
                issues=[issue.model_dump() for issue in e.issues],
                correlation_id=correlation_id,
            ))
            raise

        expense = Expense(
            description=description,
            amount=value,
            category=category,
            timestamp=self._clock(),
        )
        self._state.expenses.append(expense)

        self._persist(Collection.EXPENSES)
        self._log(AuditEventBuilder.expense_added(
            description=expense.description,
            amount=expense.amount,
            category=expense.category.value,
            correlation_id=correlation_id,
        ))
        return expense

    def delete_expense(self, index: int) -> Expense:
        """
        Raises:
            RecordNotFoundError: no expense at index
        """
        if not 0 <= index < len(self._state.expenses):
            raise RecordNotFoundError("expense", index)

        expense = self._state.expenses.pop(index)
        self._persist(Collection.EXPENSES)
        self._log(AuditEventBuilder.expenses_deleted(count=1))
        return expense

    def delete_all_expenses(self) -> int:
        count = len(self._state.expenses)
        self._state.expenses.clear()

        self._persist(Collection.EXPENSES)
        self._log(AuditEventBuilder.expenses_deleted(count=count))
        return count
