"""Tests for recording creditor payments."""

import pytest

from shopbook.errors import LimitExceededError, RecordNotFoundError, ValidationError
from shopbook.models import PaymentMethod
from shopbook.models.audit import AuditEventType
from tests.conftest import snapshot


class TestRecordPayment:
    """Tests for payments entered on the creditors page."""

    def test_full_payment_clears_creditor(self, sales, payments, storage, clock, make_draft):
        """Ali pays the 500 owed: creditor gone, payment logged, sale settled."""
        sales.create_sale(make_draft(amount="500", phone="0300", name="Ali"))
        paid_at = clock.advance(days=2)

        receipt = payments.record_payment(0, "500")

        assert receipt.creditor_removed is True
        assert receipt.remaining_balance == 0
        assert storage.load_creditors() == []

        stored_payments = storage.load_payments()
        assert len(stored_payments) == 1
        assert stored_payments[0].creditor_phone == "0300"
        assert stored_payments[0].creditor_name == "Ali"
        assert stored_payments[0].amount == 500
        assert stored_payments[0].timestamp == paid_at

        sale = storage.load_sales()[0]
        assert sale.is_paid is True
        assert sale.payment_method is PaymentMethod.CREDIT_PAYMENT
        assert sale.timestamp == paid_at

    def test_partial_payment_settles_nothing(self, sales, payments, ledger, make_draft):
        """Paying 200 of a 300 sale lowers the balance but leaves the sale unpaid."""
        sales.create_sale(make_draft(amount="300", phone="0311", name="Sara"))

        receipt = payments.record_payment(0, "200")

        assert receipt.creditor_removed is False
        assert receipt.settled_sale_count == 0
        assert ledger.find("0311").amount_owed == 100
        assert sales.state.sales[0].is_paid is False

    def test_one_payment_can_settle_several_sales(self, sales, payments, ledger, make_draft):
        """Each unpaid sale is compared with the whole payment."""
        sales.create_sale(make_draft(amount="100", phone="0300"))
        sales.create_sale(make_draft(amount="150", phone="0300"))
        sales.create_sale(make_draft(amount="400", phone="0300"))

        receipt = payments.record_payment(0, "200")

        assert receipt.settled_sale_count == 2
        assert [s.is_paid for s in sales.state.sales] == [True, True, False]
        assert ledger.find("0300").amount_owed == 450

    def test_other_customers_sales_untouched(self, sales, payments, make_draft):
        sales.create_sale(make_draft(amount="100", phone="0300"))
        sales.create_sale(make_draft(amount="100", phone="0311"))

        payments.record_payment(0, "100")

        assert [s.is_paid for s in sales.state.sales] == [True, False]

    def test_deleted_sales_not_settled(self, sales, payments, make_draft):
        sales.create_sale(make_draft(amount="100", phone="0300"))
        sales.create_sale(make_draft(amount="100", phone="0300"))
        sales.soft_delete_sale(0)

        receipt = payments.record_payment(0, "150")

        assert receipt.settled_sale_count == 1
        assert sales.state.sales[0].is_paid is False
        assert sales.state.sales[1].is_paid is True

    def test_cash_sales_never_touched(self, sales, payments, make_draft):
        sales.create_sale(make_draft(amount="50"))
        sales.create_sale(make_draft(amount="100", phone="0300"))

        payments.record_payment(0, "100")

        assert sales.state.sales[0].payment_method is PaymentMethod.CASH

    def test_thousands_separator(self, sales, payments, ledger, make_draft):
        sales.create_sale(make_draft(amount="2500", phone="0300"))
        payments.record_payment(0, "1,000")
        assert ledger.find("0300").amount_owed == 1500

    def test_payment_recorded_event(self, sales, payments, audit_logger, make_draft):
        sales.create_sale(make_draft(amount="500", phone="0300"))
        payments.record_payment(0, "100")
        assert audit_logger.events[-1].event_type is AuditEventType.PAYMENT_RECORDED


class TestRejectedPayment:
    """A rejected payment changes nothing."""

    @pytest.fixture
    def owing(self, sales, make_draft):
        sales.create_sale(make_draft(amount="500", phone="0300"))

    @pytest.mark.parametrize("raw", ["", None, "abc", "0", "-100", "inf", "nan"])
    def test_invalid_amount(self, owing, payments, ledger, kv, raw):
        before = snapshot(kv)

        with pytest.raises(ValidationError) as exc:
            payments.record_payment(0, raw)

        assert exc.value.message == "Please enter a valid payment amount."
        assert exc.value.fields == ["amount"]
        assert snapshot(kv) == before
        assert ledger.find("0300").amount_owed == 500
        assert ledger.state.payments == []

    def test_more_than_owed(self, owing, payments, ledger, kv):
        before = snapshot(kv)

        with pytest.raises(LimitExceededError) as exc:
            payments.record_payment(0, "600")

        assert exc.value.amount == 600
        assert exc.value.amount_owed == 500
        assert snapshot(kv) == before
        assert ledger.find("0300").amount_owed == 500
        assert ledger.state.sales[0].is_paid is False

    def test_unknown_creditor(self, owing, payments):
        with pytest.raises(RecordNotFoundError):
            payments.record_payment(3, "100")

    def test_rejection_is_audited(self, owing, payments, audit_logger):
        with pytest.raises(LimitExceededError):
            payments.record_payment(0, "600")

        event = audit_logger.events[-1]
        assert event.event_type is AuditEventType.PAYMENT_REJECTED
        assert event.entity_key == "0300"
        assert event.error_code == "limit_exceeded"


class TestCentRounding:
    """Sale amounts, balances and payments agree to the cent."""

    def test_sub_cent_sale_can_be_settled(self, sales, payments, ledger, storage, make_draft):
        sale = sales.create_sale(make_draft(amount="33.333", phone="0300"))
        assert sale.amount == 33.33
        assert ledger.find("0300").purchases[0].amount == 33.33

        receipt = payments.record_payment(0, "33.333")

        assert receipt.creditor_removed is True
        assert receipt.payment.amount == 33.33
        assert sales.state.sales[0].is_paid is True
        assert storage.load_sales()[0].is_paid is True

    def test_payment_rounding_to_balance_clears_it(self, sales, payments, make_draft):
        sales.create_sale(make_draft(amount="100", phone="0300"))

        receipt = payments.record_payment(0, "99.996")

        assert receipt.payment.amount == 100
        assert receipt.creditor_removed is True

    def test_payment_below_a_cent_rejected(self, sales, payments, ledger, make_draft):
        sales.create_sale(make_draft(amount="100", phone="0300"))

        with pytest.raises(ValidationError):
            payments.record_payment(0, "0.004")

        assert ledger.find("0300").amount_owed == 100
        assert ledger.state.payments == []
