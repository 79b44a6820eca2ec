"""
Tests for Shopbook models

Test strategy:
1. Unit tests for the pydantic models and their invariants
2. Component tests for the ledger, storage and reports (other modules)
3. No real filesystem outside tmp_path
"""

from datetime import datetime, timezone

import pytest

from shopbook.models import (
    FLAVOURED_SERIES,
    BookState,
    Creditor,
    Expense,
    ExpenseCategory,
    ItemAggregate,
    Payment,
    PaymentMethod,
    PaymentMethodBreakdown,
    ProductRevenue,
    Purchase,
    Sale,
    SaleType,
    ValidationIssue,
    ValidationResult,
)
from shopbook.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


WHEN = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class TestSaleModel:
    """Tests for the Sale record."""

    def test_cash_sale_is_paid_by_default(self):
        """Test that a cash sale is marked paid when isPaid is omitted."""
        sale = Sale(sale_type=SaleType.REFILL, item_name="UK Salt", quantity=2, amount=200)
        assert sale.is_paid is True
        assert sale.is_credit is False
        assert sale.deleted is False

    def test_credit_sale_is_unpaid_by_default(self):
        """Test that a credit sale starts unpaid."""
        sale = Sale(
            sale_type=SaleType.COIL,
            item_name="Argus",
            quantity=1,
            amount=800,
            is_credit=True,
            customer_name="Ali",
            customer_phone="0300",
        )
        assert sale.is_paid is False

    def test_cash_sale_rejects_customer_details(self):
        """Test that a cash sale cannot name a customer."""
        with pytest.raises(ValueError, match="customer details"):
            Sale(
                sale_type=SaleType.COIL,
                item_name="Argus",
                quantity=1,
                amount=800,
                customer_phone="0300",
            )

    def test_cash_sale_rejects_unpaid(self):
        """Test that a cash sale cannot be unpaid."""
        with pytest.raises(ValueError, match="always paid"):
            Sale(sale_type=SaleType.COIL, item_name="Argus", quantity=1, amount=800, is_paid=False)

    @pytest.mark.parametrize("amount", [0, -10, float("inf"), float("nan")])
    def test_sale_rejects_bad_amounts(self, amount):
        """Test that amounts must be positive and finite."""
        with pytest.raises(ValueError):
            Sale(sale_type=SaleType.PUFF, item_name="Puff", quantity=1, amount=amount)

    def test_sale_strips_whitespace(self):
        """Test that item names are stripped."""
        sale = Sale(sale_type=SaleType.DEVICE, item_name="  Xros 3  ", quantity=1, amount=5000)
        assert sale.item_name == "Xros 3"

    def test_sale_dumps_camel_case(self):
        """Test that stored field names match the shop's existing documents."""
        sale = Sale(
            sale_type=SaleType.FLAVOUR_BOTTLE,
            item_name="Simple Tokyo",
            flavor="Coke",
            quantity=1,
            amount=900,
            timestamp=WHEN,
        )
        data = sale.model_dump(by_alias=True, mode="json", exclude_none=True)
        assert data["type"] == "flavourbottle"
        assert data["itemName"] == "Simple Tokyo"
        assert data["isCredit"] is False
        assert data["isPaid"] is True
        assert data["paymentMethod"] == "cash"
        assert "deletedAt" not in data

    def test_sale_loads_camel_case(self):
        """Test that a stored document loads into a Sale."""
        sale = Sale.model_validate({
            "type": "refill",
            "itemName": "Pineapple Series",
            "quantity": 1.5,
            "amount": 150,
            "paymentMethod": "jazzcash",
            "timestamp": "2024-06-01T12:00:00.000Z",
            "isCredit": False,
            "customerName": "",
            "customerPhone": "",
            "isPaid": True,
        })
        assert sale.sale_type is SaleType.REFILL
        assert sale.payment_method is PaymentMethod.JAZZCASH
        assert sale.timestamp == WHEN


class TestOtherRecords:
    """Tests for Expense, Purchase, Creditor and Payment."""

    def test_expense_defaults_to_supplies(self):
        expense = Expense(description="Cotton", amount=250)
        assert expense.category is ExpenseCategory.SUPPLIES

    def test_expense_requires_description(self):
        with pytest.raises(ValueError):
            Expense(description="   ", amount=250)

    def test_purchase_date_alias(self):
        """Test that purchase dates are stored under 'date'."""
        purchase = Purchase(item_name="G3", quantity=1, amount=800, purchased_at=WHEN)
        data = purchase.model_dump(by_alias=True)
        assert data["date"] == WHEN
        assert "purchasedAt" not in data

    def test_creditor_owns_purchases(self):
        creditor = Creditor.model_validate({
            "name": "Ali",
            "phone": "0300",
            "amountOwed": 500,
            "purchases": [{"itemName": "G3", "quantity": 1, "amount": 500, "date": "2024-06-01T12:00:00Z"}],
        })
        assert creditor.amount_owed == 500
        assert creditor.purchases[0].item_name == "G3"

    def test_payment_rejects_zero(self):
        with pytest.raises(ValueError):
            Payment(creditor_name="Ali", creditor_phone="0300", amount=0)


class TestEnums:
    """Tests for enum helpers."""

    def test_sale_type_flags(self):
        assert SaleType.DEVICE.uses_custom_item
        assert SaleType.REPAIRING.uses_custom_item
        assert not SaleType.COIL.uses_custom_item
        assert SaleType.REFILL.has_flavor
        assert SaleType.FLAVOUR_BOTTLE.has_flavor
        assert not SaleType.COIL.has_flavor

    def test_labels(self):
        assert SaleType.FLAVOUR_BOTTLE.label == "Flavour Bottle"
        assert PaymentMethod.CARD.label == "Credit Card"
        assert PaymentMethod.CREDIT_PAYMENT.value == "credit-payment"

    def test_flavoured_series(self):
        assert "UK Salt" in FLAVOURED_SERIES
        assert "VMate" not in FLAVOURED_SERIES


class TestBookState:
    """Tests for the in-memory state object."""

    def test_active_and_deleted_views(self):
        kept = Sale(sale_type=SaleType.PUFF, item_name="A", quantity=1, amount=10)
        gone = Sale(sale_type=SaleType.PUFF, item_name="B", quantity=1, amount=10, deleted=True)
        state = BookState(sales=[kept, gone])
        assert state.active_sales == [kept]
        assert state.deleted_sales == [gone]

    def test_replace_with_keeps_identity(self):
        state = BookState()
        other = BookState(expenses=[Expense(description="Rent", amount=1000)])
        same = state
        state.replace_with(other)
        assert same is state
        assert len(state.expenses) == 1


class TestValidationModels:
    """Tests for validation result helpers."""

    def test_warnings_do_not_invalidate(self):
        result = ValidationResult(issues=[
            ValidationIssue(field="x", issue_type="ignored", message="m", severity="warning"),
        ])
        assert result.is_valid
        assert result.error_count == 0

    def test_error_fields(self):
        result = ValidationResult(issues=[
            ValidationIssue(field="amount", issue_type="missing", message="m"),
            ValidationIssue(field="x", issue_type="ignored", message="m", severity="warning"),
            ValidationIssue(field="quantity", issue_type="missing", message="m"),
        ])
        assert not result.is_valid
        assert result.error_fields == ["amount", "quantity"]

    def test_severity_is_constrained(self):
        with pytest.raises(ValueError):
            ValidationIssue(field="x", issue_type="y", message="m", severity="fatal")


class TestReportModels:
    """Tests for report building blocks."""

    def test_item_aggregate_add(self):
        agg = ItemAggregate()
        agg.add(2, 200)
        agg.add(1.5, 150)
        assert agg.quantity == 3.5
        assert agg.amount == 350
        assert agg.count == 2

    def test_breakdown_total(self):
        breakdown = PaymentMethodBreakdown(cash=100, jazzcash=50, card=25)
        assert breakdown.total == 175

    def test_product_margin(self):
        line = ProductRevenue(frontend_revenue=1000, backend_revenue=600)
        assert line.margin == 400


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        event = AuditEvent(
            event_type=AuditEventType.SALE_CREATED,
            description="Sale recorded",
        )
        assert event.severity is AuditSeverity.INFO
        assert event.event_id is not None

    def test_creditor_charged_new_vs_existing(self):
        created = AuditEventBuilder.creditor_charged("0300", "Ali", 500, 500, is_new=True)
        charged = AuditEventBuilder.creditor_charged("0300", "Ali", 200, 700, is_new=False)
        assert created.event_type is AuditEventType.CREDITOR_CREATED
        assert charged.event_type is AuditEventType.CREDITOR_CHARGED
        assert charged.entity_key == "0300"
        assert charged.details["balance"] == 700

    def test_negative_balance_is_warning(self):
        event = AuditEventBuilder.creditor_balance_negative("0300", -200)
        assert event.severity is AuditSeverity.WARNING

    def test_payment_rejected_carries_error(self):
        event = AuditEventBuilder.payment_rejected(
            raw_amount="900",
            error_code="limit_exceeded",
            error_message="too much",
            phone="0300",
        )
        assert event.error_code == "limit_exceeded"
        assert event.details == {"raw_amount": "900"}

    def test_to_row(self):
        event = AuditEventBuilder.admin_access("reports", granted=False)
        row = event.to_row()
        assert len(row) == 11
        assert row[2] == "admin_access_denied"
        assert row[5] == "reports"

    def test_to_log_dict(self):
        event = AuditEventBuilder.sales_bulk_deleted(count=3)
        log = event.to_log_dict()
        assert log["event_type"] == "sales_bulk_deleted"
        assert log["details"] == {"count": 3}
        assert log["correlation_id"] is None
