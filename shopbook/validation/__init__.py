"""Form validation package."""

from shopbook.validation.validator import (
    ExpenseValidator,
    SaleValidator,
    get_user_friendly_summary,
    parse_amount,
)

__all__ = [
    "ExpenseValidator",
    "SaleValidator",
    "get_user_friendly_summary",
    "parse_amount",
]
