"""
Core Data Models for Shopbook

These models define the schemas of everything the shop keeps:
sales, expenses, creditors (with their purchase history) and payments.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Serialize to the same camelCase documents the shop has always stored

DESIGN DECISION: Persisted models use camelCase aliases (itemName,
amountOwed, ...) so documents written by earlier versions of the shop
still load, while Python code uses snake_case attributes.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class SaleType(str, Enum):
    """What kind of product or service was sold."""
    REFILL = "refill"
    COIL = "coil"
    DEVICE = "device"
    PUFF = "puff"
    REPAIRING = "repairing"
    FLAVOUR_BOTTLE = "flavourbottle"

    @property
    def label(self) -> str:
        return "Flavour Bottle" if self is SaleType.FLAVOUR_BOTTLE else self.value.title()

    @property
    def uses_custom_item(self) -> bool:
        """Devices, puffs and repairs are named freely rather than picked from a list."""
        return self in (SaleType.DEVICE, SaleType.PUFF, SaleType.REPAIRING)

    @property
    def has_flavor(self) -> bool:
        return self in (SaleType.REFILL, SaleType.FLAVOUR_BOTTLE)


class PaymentMethod(str, Enum):
    """
    How a sale was paid.

    CREDIT_PAYMENT is never chosen by the cashier. It is written onto a
    credit sale when a later payment from the customer settles it.
    """
    CASH = "cash"
    JAZZCASH = "jazzcash"
    CARD = "card"
    CREDIT_PAYMENT = "credit-payment"

    @property
    def label(self) -> str:
        return {
            PaymentMethod.CASH: "Cash",
            PaymentMethod.JAZZCASH: "JazzCash",
            PaymentMethod.CARD: "Credit Card",
            PaymentMethod.CREDIT_PAYMENT: "Credit Payment",
        }[self]


class ExpenseCategory(str, Enum):
    """Supported expense categories."""
    SUPPLIES = "supplies"
    RENT = "rent"
    UTILITIES = "utilities"
    MAINTENANCE = "maintenance"
    OTHER = "other"


# Item lists offered by the sale form. Devices, puffs and repairs are typed freely.
REFILL_SERIES = ("Pineapple Series", "UK Salt", "Simple Tokyo")
COIL_MODELS = (
    "VMate", "Argus", "G3", "Xlim", "Xros",
    "Freemax", "Caliburn g", "Sonder", "Oneo", "Nexlim",
)

FLAVOUR_SUGGESTIONS: dict[str, tuple[str, ...]] = {
    "Pineapple Series": (
        "Pine Mango", "Pineapple", "Pine Passion", "Blue Pine",
        "Pine Lychee", "Pine Jam", "Pink Pine Apple", "Pine Bubblegum",
    ),
    "Simple Tokyo": (
        "Strawberry Litchi", "Cranberry Raspberry", "Strawberry Watermelon",
        "Passion Kiwi", "Straw Kiwi", "Dragonfruit", "Dragon Kiwi", "Grapes",
        "Papaya", "Rose Grapes", "Passion", "Honey Peach", "Instant Mango",
        "Peach Watermelon", "Apricot", "Wild Blueberry", "Coke",
        "Green Grapes", "Mull Berries", "Grapes Litchi", "Watermelon Blueberry",
    ),
    "UK Salt": (
        "Pineapple Peach", "Pineapple Mango", "Pineapple Passion",
        "Pineapple Bubblegum", "Pineapple Lychee", "Pineapple Guava",
        "Pineapple Grapes", "Pineapple", "Guava", "Watermelon Bubblegum",
        "Passion Mango", "Grapes", "Iced Blue Razz", "Passion Bubblegum",
    ),
}

# Series that come in several flavours; a refill or flavour bottle
# from one of these needs the flavour recorded.
FLAVOURED_SERIES = frozenset(FLAVOUR_SUGGESTIONS)


# =============================================================================
# PERSISTED RECORDS
# =============================================================================

class StoredRecord(BaseModel):
    """Base for every model written to the key-value store."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        allow_inf_nan=False,
    )


class Sale(StoredRecord):
    """
    A single sale.

    Cash sales carry no customer and are paid on the spot. Credit sales
    name the customer (identified by phone) and stay unpaid until a
    payment settles them. Deleting a sale only flags it.
    """

    sale_type: SaleType = Field(
        ...,
        alias="type",
        description="Kind of product or service"
    )
    item_name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Product or service name"
    )
    flavor: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Flavour, for refills and flavour bottles"
    )
    quantity: float = Field(
        ...,
        gt=0,
        description="Units sold (refills may be fractional)"
    )
    amount: float = Field(
        ...,
        gt=0,
        description="Amount charged to the customer"
    )
    backend_amount: Optional[float] = Field(
        default=None,
        ge=0,
        description="Backend revenue for refills and coils"
    )
    payment_method: PaymentMethod = PaymentMethod.CASH
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the sale was made (or settled)"
    )

    # Credit details
    is_credit: bool = False
    customer_name: str = Field(default="", max_length=200)
    customer_phone: str = Field(default="", max_length=30)
    is_paid: Optional[bool] = None

    # Soft deletion
    deleted: bool = False
    deleted_at: Optional[datetime] = None

    @model_validator(mode='after')
    def validate_credit_fields(self) -> 'Sale':
        """A cash sale has no customer and is always paid."""
        if self.is_paid is None:
            self.is_paid = not self.is_credit

        if not self.is_credit:
            if self.customer_name or self.customer_phone:
                raise ValueError("Cash sales cannot carry customer details")
            if not self.is_paid:
                raise ValueError("Cash sales are always paid")

        return self


class Expense(StoredRecord):
    """A shop expense. Never edited, only deleted."""

    description: str = Field(
        ...,
        min_length=1,
        max_length=500,
    )
    amount: float = Field(..., gt=0)
    category: ExpenseCategory = ExpenseCategory.SUPPLIES
    timestamp: datetime = Field(default_factory=utc_now)


class Purchase(StoredRecord):
    """One credit sale in a creditor's history."""

    item_name: str
    quantity: float
    amount: float
    purchased_at: datetime = Field(
        default_factory=utc_now,
        alias="date",
    )


class Creditor(StoredRecord):
    """
    A customer who owes the shop money.

    The phone number is the identity key. A creditor whose balance
    reaches zero is removed from the collection rather than kept.
    """

    name: str = Field(..., min_length=1, max_length=200)
    phone: str = Field(..., min_length=1, max_length=30)
    amount_owed: float = Field(
        ...,
        description="Outstanding balance; may dip below zero after edits"
    )
    purchases: list[Purchase] = Field(default_factory=list)


class Payment(StoredRecord):
    """A payment received from a creditor. Append-only."""

    creditor_name: str
    creditor_phone: str
    amount: float = Field(..., gt=0)
    timestamp: datetime = Field(default_factory=utc_now)
    original_sale_amount: Optional[float] = None


# =============================================================================
# IN-MEMORY STATE
# =============================================================================

class BookState(BaseModel):
    """
    The four collections as currently held in memory.

    Every manager receives the same BookState and mutates it in place;
    the storage layer is the only thing that reads or writes the durable
    copy.
    """

    sales: list[Sale] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)
    creditors: list[Creditor] = Field(default_factory=list)
    payments: list[Payment] = Field(default_factory=list)

    @property
    def active_sales(self) -> list[Sale]:
        """Sales that have not been deleted."""
        return [sale for sale in self.sales if not sale.deleted]

    @property
    def deleted_sales(self) -> list[Sale]:
        """Sales sitting in the trash."""
        return [sale for sale in self.sales if sale.deleted]

    def replace_with(self, other: 'BookState') -> None:
        """Swap in freshly loaded collections without changing identity."""
        self.sales = other.sales
        self.expenses = other.expenses
        self.creditors = other.creditors
        self.payments = other.payments


# =============================================================================
# USER INPUT
# =============================================================================

class SaleDraft(BaseModel):
    """
    Raw values from the sale form.

    Quantity and amount arrive as typed text or numbers; nothing here is
    trusted until SaleValidator has checked it.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    sale_type: SaleType = SaleType.REFILL
    item_name: str = ""
    flavor: Optional[str] = None
    quantity: Union[str, float, None] = None
    amount: Union[str, float, None] = None
    payment_method: PaymentMethod = PaymentMethod.CASH
    is_credit: bool = False
    customer_name: str = ""
    customer_phone: str = ""


# =============================================================================
# OPERATION RESULTS
# =============================================================================

class PaymentReceipt(BaseModel):
    """What a successful payment did."""

    payment: Payment
    creditor_name: str
    creditor_phone: str
    remaining_balance: float
    creditor_removed: bool = Field(
        ...,
        description="True when the payment cleared the balance"
    )
    settled_sale_count: int = Field(
        default=0,
        ge=0,
        description="Credit sales marked paid by this payment"
    )


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'invalid_format')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """Result of validating one form submission."""

    validated_at: datetime = Field(
        default_factory=utc_now
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def error_fields(self) -> list[str]:
        """Fields with error-level issues, in the order they were found."""
        return [issue.field for issue in self.issues if issue.severity == "error"]
