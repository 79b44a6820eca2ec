"""
Report Models

Read-only views computed from the four collections. Nothing here is
persisted; a report is rebuilt from the current BookState every time.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from shopbook.models.records import utc_now


class ItemAggregate(BaseModel):
    """Running totals for one item name."""

    quantity: float = 0.0
    amount: float = 0.0
    count: int = 0

    def add(self, quantity: float, amount: float) -> None:
        self.quantity += quantity
        self.amount += amount
        self.count += 1


class PaymentMethodBreakdown(BaseModel):
    """Immediate (non-credit) sales split by how they were paid."""

    cash: float = 0.0
    jazzcash: float = 0.0
    card: float = 0.0
    cash_count: int = 0
    jazzcash_count: int = 0
    card_count: int = 0

    @property
    def total(self) -> float:
        return self.cash + self.jazzcash + self.card


class ProductRevenue(BaseModel):
    """Frontend (charged) vs backend revenue for refills or coils."""

    quantity: float = 0.0
    sale_count: int = 0
    frontend_revenue: float = 0.0
    backend_revenue: float = 0.0

    @property
    def margin(self) -> float:
        return self.frontend_revenue - self.backend_revenue


class FinancialSummary(BaseModel):
    """
    Everything the dashboard shows.

    Credit sales only count as income once payments are received, so
    net_amount uses payments rather than credit sale amounts.
    """

    generated_at: datetime = Field(default_factory=utc_now)

    # Sales
    cash_sale_count: int = Field(ge=0)
    total_cash_sales: float
    credit_sale_count: int = Field(ge=0)
    total_credit_sales_amount: float
    by_payment_method: PaymentMethodBreakdown

    # Other collections
    total_expenses: float
    total_owed: float
    total_payments_received: float
    creditor_count: int = Field(ge=0)

    # Derived
    net_amount: float
    potential_revenue: float = Field(
        ...,
        description="Immediate sales plus every credit sale"
    )
    collected_revenue: float = Field(
        ...,
        description="Immediate sales plus payments received"
    )
    collection_rate: float = Field(
        ...,
        description="Payments received as a percentage of credit sales"
    )

    # Product lines
    refill: ProductRevenue
    coil: ProductRevenue
    refill_quantities: dict[str, ItemAggregate] = Field(default_factory=dict)
    coil_quantities: dict[str, ItemAggregate] = Field(default_factory=dict)

    @property
    def total_backend_revenue(self) -> float:
        return self.refill.backend_revenue + self.coil.backend_revenue
