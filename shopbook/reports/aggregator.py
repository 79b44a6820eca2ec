"""
Reporting and Aggregation

DESIGN DECISION: Reports are DETERMINISTIC pure functions over the four
collections. Nothing here mutates the books or keeps state of its own;
the dashboard rebuilds its FinancialSummary from the BookState every
time it is shown.

Reports count active sales only. Sales in the trash are not income.
"""

from typing import Callable, Iterable, Optional, Union

from shopbook.config import PricingSettings, get_settings
from shopbook.models.records import (
    BookState,
    Creditor,
    Expense,
    Payment,
    PaymentMethod,
    Sale,
    SaleType,
)
from shopbook.models.report import (
    FinancialSummary,
    ItemAggregate,
    PaymentMethodBreakdown,
    ProductRevenue,
)


# Reported when no credit sales exist: nothing is outstanding.
FULL_COLLECTION_RATE = 100.0


def cash_sales(sales: Iterable[Sale]) -> list[Sale]:
    """Sales paid on the spot, whatever the payment method."""
    return [sale for sale in sales if not sale.is_credit]


def credit_sales(sales: Iterable[Sale]) -> list[Sale]:
    return [sale for sale in sales if sale.is_credit]


def total_amount(records: Iterable[Union[Sale, Expense, Payment]]) -> float:
    return sum(record.amount for record in records)


def total_owed(creditors: Iterable[Creditor]) -> float:
    return sum(creditor.amount_owed for creditor in creditors)


def net_amount(
    total_cash_sales: float,
    total_payments_received: float,
    total_expenses: float,
) -> float:
    """Money actually in hand: immediate sales plus payments, less expenses."""
    return total_cash_sales + total_payments_received - total_expenses


def collection_rate(
    total_payments: float,
    total_credit_sales_amount: float,
) -> float:
    """Payments received as a percentage of everything sold on credit."""
    if total_credit_sales_amount > 0:
        return total_payments / total_credit_sales_amount * 100
    return FULL_COLLECTION_RATE


def aggregate_by_item(
    sales: Iterable[Sale],
    key: Callable[[Sale], str] = lambda sale: sale.item_name,
) -> dict[str, ItemAggregate]:
    """Group sales by key (item name by default), in first-seen order."""
    aggregates: dict[str, ItemAggregate] = {}
    for sale in sales:
        aggregates.setdefault(key(sale), ItemAggregate()).add(sale.quantity, sale.amount)
    return aggregates


def payment_method_breakdown(sales: Iterable[Sale]) -> PaymentMethodBreakdown:
    """Immediate sales split by payment method."""
    breakdown = PaymentMethodBreakdown()
    for sale in cash_sales(sales):
        if sale.payment_method is PaymentMethod.CASH:
            breakdown.cash += sale.amount
            breakdown.cash_count += 1
        elif sale.payment_method is PaymentMethod.JAZZCASH:
            breakdown.jazzcash += sale.amount
            breakdown.jazzcash_count += 1
        elif sale.payment_method is PaymentMethod.CARD:
            breakdown.card += sale.amount
            breakdown.card_count += 1
    return breakdown


def product_revenue(
    sales: Iterable[Sale],
    sale_type: SaleType,
    backend_rate: float,
) -> ProductRevenue:
    """
    Frontend vs backend revenue of one product line.

    Sales recorded without a backend amount fall back to
    quantity * backend_rate.
    """
    revenue = ProductRevenue()
    for sale in sales:
        if sale.sale_type is not sale_type:
            continue
        revenue.quantity += sale.quantity
        revenue.sale_count += 1
        revenue.frontend_revenue += sale.amount
        revenue.backend_revenue += sale.backend_amount or sale.quantity * backend_rate
    return revenue


def build_summary(
    state: BookState,
    pricing: Optional[PricingSettings] = None,
) -> FinancialSummary:
    """Compute every dashboard figure from the current books."""
    pricing = pricing or get_settings().pricing
    sales = state.active_sales

    immediate = cash_sales(sales)
    on_credit = credit_sales(sales)

    total_cash = total_amount(immediate)
    total_credit = total_amount(on_credit)
    total_expenses = total_amount(state.expenses)
    total_payments = total_amount(state.payments)

    return FinancialSummary(
        cash_sale_count=len(immediate),
        total_cash_sales=total_cash,
        credit_sale_count=len(on_credit),
        total_credit_sales_amount=total_credit,
        by_payment_method=payment_method_breakdown(sales),
        total_expenses=total_expenses,
        total_owed=total_owed(state.creditors),
        total_payments_received=total_payments,
        creditor_count=len(state.creditors),
        net_amount=net_amount(total_cash, total_payments, total_expenses),
        potential_revenue=total_cash + total_credit,
        collected_revenue=total_cash + total_payments,
        collection_rate=collection_rate(total_payments, total_credit),
        refill=product_revenue(sales, SaleType.REFILL, pricing.refill_backend_rate),
        coil=product_revenue(sales, SaleType.COIL, pricing.coil_backend_rate),
        refill_quantities=aggregate_by_item(
            s for s in sales if s.sale_type is SaleType.REFILL
        ),
        coil_quantities=aggregate_by_item(
            s for s in sales if s.sale_type is SaleType.COIL
        ),
    )
