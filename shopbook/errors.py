"""
Errors raised by Shopbook operations.

Each error carries a stable error_code so callers other than the UI can
tell failures apart without parsing messages. An operation that raises
one of these has changed nothing.
"""

from typing import Optional

from shopbook.models.records import ValidationIssue


class ShopbookError(Exception):
    """Base exception for bookkeeping operations."""

    error_code = "shopbook_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ShopbookError):
    """A required field is missing or invalid."""

    error_code = "validation_error"

    def __init__(
        self,
        message: str,
        issues: Optional[list[ValidationIssue]] = None,
    ):
        super().__init__(message)
        self.issues = issues or []

    @property
    def fields(self) -> list[str]:
        return [issue.field for issue in self.issues]

    @classmethod
    def for_field(
        cls,
        field: str,
        message: str,
        issue_type: str = "invalid_value",
        suggested_fix: Optional[str] = None,
    ) -> "ValidationError":
        return cls(
            message,
            issues=[
                ValidationIssue(
                    field=field,
                    issue_type=issue_type,
                    message=message,
                    suggested_fix=suggested_fix,
                )
            ],
        )


class LimitExceededError(ShopbookError):
    """A payment is larger than what the creditor owes."""

    error_code = "limit_exceeded"

    def __init__(self, amount: float, amount_owed: float):
        super().__init__(
            f"Payment amount ({amount:,.2f}) cannot exceed owed amount ({amount_owed:,.2f})."
        )
        self.amount = amount
        self.amount_owed = amount_owed


class RecordNotFoundError(ShopbookError):
    """An index or key does not point at an existing record."""

    error_code = "record_not_found"

    def __init__(self, collection: str, position: object):
        super().__init__(f"No {collection} record at {position!r}")
        self.collection = collection
        self.position = position
