"""Tests for reports over the books."""

import pytest

from shopbook.config import PricingSettings
from shopbook.models import BookState, PaymentMethod, Sale, SaleType
from shopbook.reports import (
    FULL_COLLECTION_RATE,
    aggregate_by_item,
    build_summary,
    collection_rate,
    net_amount,
    payment_method_breakdown,
    product_revenue,
)


def make_sale(amount, sale_type=SaleType.COIL, item_name="VMate", quantity=1, **extra):
    return Sale(
        sale_type=sale_type,
        item_name=item_name,
        quantity=quantity,
        amount=amount,
        **extra,
    )


def credit(amount, phone="0300", **extra):
    return make_sale(amount, is_credit=True, customer_name="Ali", customer_phone=phone, **extra)


@pytest.fixture
def pricing() -> PricingSettings:
    return PricingSettings(refill_backend_rate=60, coil_backend_rate=600)


class TestFormulas:

    def test_net_amount(self):
        assert net_amount(1000, 300, 250) == 1050

    def test_collection_rate(self):
        assert collection_rate(250, 1000) == 25.0

    def test_collection_rate_without_credit_sales(self):
        assert collection_rate(0, 0) == FULL_COLLECTION_RATE


class TestAggregation:

    def test_aggregate_by_item_keeps_order(self):
        sales = [
            make_sale(800, item_name="VMate"),
            make_sale(700, item_name="G3", quantity=2),
            make_sale(800, item_name="VMate"),
        ]

        aggregates = aggregate_by_item(sales)

        assert list(aggregates) == ["VMate", "G3"]
        assert aggregates["VMate"].quantity == 2
        assert aggregates["VMate"].amount == 1600
        assert aggregates["VMate"].count == 2
        assert aggregates["G3"].quantity == 2

    def test_payment_method_breakdown(self):
        sales = [
            make_sale(100),
            make_sale(200, payment_method=PaymentMethod.JAZZCASH),
            make_sale(300, payment_method=PaymentMethod.CARD),
            make_sale(50),
            credit(1000),
        ]

        breakdown = payment_method_breakdown(sales)

        assert breakdown.cash == 150
        assert breakdown.cash_count == 2
        assert breakdown.jazzcash == 200
        assert breakdown.card == 300
        assert breakdown.total == 650

    def test_product_revenue_falls_back_to_rate(self):
        sales = [
            make_sale(800, quantity=1, backend_amount=600),
            make_sale(1600, quantity=2),
            make_sale(100, sale_type=SaleType.REFILL, item_name="UK Salt", flavor="Guava"),
        ]

        revenue = product_revenue(sales, SaleType.COIL, backend_rate=600)

        assert revenue.sale_count == 2
        assert revenue.quantity == 3
        assert revenue.frontend_revenue == 2400
        assert revenue.backend_revenue == 1800
        assert revenue.margin == 600


class TestBuildSummary:

    def test_empty_books(self, pricing):
        summary = build_summary(BookState(), pricing)

        assert summary.net_amount == 0
        assert summary.collection_rate == FULL_COLLECTION_RATE
        assert summary.creditor_count == 0

    def test_full_books(self, book, pricing, make_draft):
        book.sales.create_sale(make_draft(amount="800"))
        book.sales.create_sale(make_draft(amount="200", payment_method=PaymentMethod.CARD))
        book.sales.create_sale(make_draft(amount="1000", phone="0300"))
        book.payments.record_payment(0, "400")
        book.expenses.add_expense("Rent", "300")

        summary = build_summary(book.state, pricing)

        assert summary.cash_sale_count == 2
        assert summary.total_cash_sales == 1000
        assert summary.credit_sale_count == 1
        assert summary.total_credit_sales_amount == 1000
        assert summary.total_payments_received == 400
        assert summary.total_expenses == 300
        assert summary.total_owed == 600
        assert summary.net_amount == 1100
        assert summary.potential_revenue == 2000
        assert summary.collected_revenue == 1400
        assert summary.collection_rate == 40.0
        assert summary.by_payment_method.card == 200
        assert summary.coil.sale_count == 3
        assert summary.coil.backend_revenue == 1800
        assert summary.coil_quantities["VMate"].count == 3

    def test_deleted_sales_excluded(self, book, pricing, make_draft):
        book.sales.create_sale(make_draft(amount="800"))
        book.sales.create_sale(make_draft(amount="500"))
        book.sales.soft_delete_sale(0)

        summary = build_summary(book.state, pricing)

        assert summary.cash_sale_count == 1
        assert summary.total_cash_sales == 500

    def test_refill_quantities(self, pricing):
        state = BookState(sales=[
            make_sale(150, sale_type=SaleType.REFILL, item_name="UK Salt", quantity=1.5, flavor="Guava"),
            make_sale(100, sale_type=SaleType.REFILL, item_name="Simple Tokyo", flavor="Coke"),
        ])

        summary = build_summary(state, pricing)

        assert summary.refill.quantity == 2.5
        assert summary.refill.backend_revenue == 150
        assert set(summary.refill_quantities) == {"UK Salt", "Simple Tokyo"}
