"""
Streamlit Frontend for Shopbook

This is the screen the cashier keeps open all day.

DESIGN PRINCIPLES:
1. Simple, clear forms
2. Explicit confirmation before anything is deleted
3. Clear error messages in simple language
4. Visual feedback for every operation
5. No business rules here - every change goes through ShopBook

Totals and reports sit behind a password (a UX gate, not security).
"""

import csv
import io

import streamlit as st

from shopbook.access import AdminArea
from shopbook.config import get_settings, validate_all_settings
from shopbook.errors import ShopbookError
from shopbook.models import (
    AuditEvent,
    COIL_MODELS,
    FLAVOUR_SUGGESTIONS,
    REFILL_SERIES,
    ExpenseCategory,
    PaymentMethod,
    Sale,
    SaleDraft,
    SaleType,
)
from shopbook.orchestrator import ShopBook, create_app_components
from shopbook.services.storage import InMemoryKeyValueStore, KeyValueBookStorage
from shopbook.validation import get_user_friendly_summary


# Page configuration
st.set_page_config(
    page_title="Shopbook",
    page_icon="🧾",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .big-number {
        font-size: 2.2em;
        font-weight: bold;
        color: #2c3e50;
    }
    .negative {
        color: #dc3545;
    }
</style>
""", unsafe_allow_html=True)

IMMEDIATE_METHODS = [PaymentMethod.CASH, PaymentMethod.JAZZCASH, PaymentMethod.CARD]

AUDIT_COLUMNS = [
    "event_id", "timestamp", "event_type", "severity", "entity_type", "entity_key",
    "correlation_id", "description", "details", "error_message", "is_user_action",
]


@st.cache_resource
def get_components() -> ShopBook:
    """Get or create application components (cached)."""
    try:
        return create_app_components()
    except Exception as e:
        st.error(f"Failed to open the books, changes will not be saved: {e}")
        book = ShopBook(KeyValueBookStorage(InMemoryKeyValueStore()))
        book.audit_logger.log_error(type(e).__name__, str(e))
        return book


def money(value: float) -> str:
    return f"{value:,.2f} {get_settings().app.currency}"


def audit_csv(events: list[AuditEvent]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(AUDIT_COLUMNS)
    writer.writerows(event.to_row() for event in events)
    return buffer.getvalue()


def show_error(error: ShopbookError) -> None:
    """Show a rejected operation the way the cashier should read it."""
    issues = getattr(error, "issues", None)
    if issues:
        st.error(error.message)
        with st.expander("Details"):
            for issue in issues:
                st.markdown(f"- **{issue.field}**: {issue.message}")
    else:
        st.error(error.message)


def main():
    """Main application entry point."""
    book = get_components()

    st.sidebar.title("🧾 Shopbook")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["🛒 Sales Tracker", "💸 Expenses", "👥 Creditors", "📊 Dashboard", "📑 Reports"],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **Credit sales:**
        Tick *Credit sale* and enter the customer's name and phone.
        The amount is added to what they owe.

        **Payments:**
        Record them on the Creditors page.
        """
    )

    if page == "🛒 Sales Tracker":
        render_sales_page(book)
    elif page == "💸 Expenses":
        render_expenses_page(book)
    elif page == "👥 Creditors":
        render_creditors_page(book)
    elif page == "📊 Dashboard":
        render_dashboard_page(book)
    elif page == "📑 Reports":
        render_reports_page(book)


# =============================================================================
# SALES
# =============================================================================

def _sale_row(sale: Sale) -> dict:
    return {
        "Time": sale.timestamp.strftime("%Y-%m-%d %H:%M"),
        "Type": sale.sale_type.label,
        "Item": sale.item_name + (f" ({sale.flavor})" if sale.flavor else ""),
        "Qty": sale.quantity,
        "Amount": sale.amount,
        "Method": sale.payment_method.label,
        "Customer": sale.customer_name,
        "Phone": sale.customer_phone,
        "Paid": "✅" if sale.is_paid else "⏳",
    }


def render_sale_form(book: ShopBook):
    """The sale form, used both for new sales and for edits."""
    editing = st.session_state.get("editing_index")
    original = None
    if editing is not None and editing < len(book.sales.active_sales):
        original = book.sales.active_sales[editing]
        st.info(f"Editing sale #{editing + 1}: {original.item_name}")

    sale_type = st.selectbox(
        "Type",
        options=list(SaleType),
        index=list(SaleType).index(original.sale_type) if original else 0,
        format_func=lambda t: t.label,
    )

    flavor = None
    if sale_type.uses_custom_item:
        item_name = st.text_input(
            "Item name",
            value=original.item_name if original else "",
        )
    else:
        options = list(REFILL_SERIES) if sale_type.has_flavor else list(COIL_MODELS)
        default = original.item_name if original and original.item_name in options else options[0]
        item_name = st.selectbox("Item", options=options, index=options.index(default))

        if sale_type.has_flavor and item_name in FLAVOUR_SUGGESTIONS:
            flavours = [""] + list(FLAVOUR_SUGGESTIONS[item_name])
            current = original.flavor if original and original.flavor in flavours else ""
            flavor = st.selectbox(
                "Flavour",
                options=flavours,
                index=flavours.index(current),
            ) or None

    quantity = st.text_input(
        "Quantity",
        value=f"{original.quantity:g}" if original else "1",
    )

    try:
        suggested = book.sales.suggest_amount(sale_type, float(quantity))
    except ValueError:
        suggested = None
    if suggested is not None:
        st.caption(f"Suggested: {money(suggested)}")

    amount = st.text_input(
        "Amount",
        value=f"{original.amount:g}" if original else (f"{suggested:g}" if suggested else ""),
    )

    method_index = 0
    if original and original.payment_method in IMMEDIATE_METHODS:
        method_index = IMMEDIATE_METHODS.index(original.payment_method)
    payment_method = st.selectbox(
        "Payment method",
        options=IMMEDIATE_METHODS,
        index=method_index,
        format_func=lambda m: m.label,
    )

    is_credit = st.checkbox("Credit sale", value=original.is_credit if original else False)
    customer_name = customer_phone = ""
    if is_credit:
        col1, col2 = st.columns(2)
        with col1:
            customer_name = st.text_input(
                "Customer name",
                value=original.customer_name if original else "",
            )
        with col2:
            customer_phone = st.text_input(
                "Customer phone",
                value=original.customer_phone if original else "",
            )

    draft = SaleDraft(
        sale_type=sale_type,
        item_name=item_name,
        flavor=flavor,
        quantity=quantity,
        amount=amount,
        payment_method=payment_method,
        is_credit=is_credit,
        customer_name=customer_name,
        customer_phone=customer_phone,
    )

    col1, col2 = st.columns(2)
    with col1:
        label = "💾 Update Sale" if original else "➕ Add Sale"
        if st.button(label, type="primary"):
            try:
                if original:
                    book.sales.edit_sale(editing, draft)
                    st.session_state.editing_index = None
                    st.success("Sale has been updated successfully.")
                else:
                    book.sales.create_sale(draft)
                    st.success("Sale has been added successfully.")
            except ShopbookError as e:
                show_error(e)
    with col2:
        if original and st.button("Cancel edit"):
            st.session_state.editing_index = None
            st.rerun()

    result = book.sales.validate(draft)
    warnings = [i for i in result.issues if i.severity == "warning"]
    if warnings:
        st.caption(get_user_friendly_summary(result))


def render_sales_page(book: ShopBook):
    """Render the sales tracker page."""
    st.title("🛒 Sales Tracker")

    if "editing_index" not in st.session_state:
        st.session_state.editing_index = None

    render_sale_form(book)

    st.markdown("---")
    active = book.sales.active_sales
    st.markdown(f"### Today's Sales ({len(active)})")

    if not active:
        st.info("No sales recorded yet.")
    else:
        st.dataframe([_sale_row(s) for s in active], use_container_width=True)

        col1, col2, col3 = st.columns(3)
        with col1:
            index = st.number_input(
                "Sale #",
                min_value=1,
                max_value=len(active),
                step=1,
            ) - 1
        with col2:
            if st.button("✏️ Edit"):
                st.session_state.editing_index = int(index)
                st.rerun()
        with col3:
            if st.button("🗑️ Delete"):
                try:
                    book.sales.soft_delete_sale(int(index))
                    st.success("Sale has been deleted successfully.")
                    st.rerun()
                except ShopbookError as e:
                    show_error(e)

        confirm = st.checkbox("I want to delete ALL sales")
        if st.button("🗑️ Delete All Sales", disabled=not confirm):
            count = book.sales.delete_all_sales()
            st.success(f"{count} sales moved to the trash.")
            st.rerun()

    trash = book.sales.deleted_sales
    with st.expander(f"🗑️ Trash ({len(trash)})"):
        if not trash:
            st.markdown("The trash is empty.")
        else:
            st.dataframe([_sale_row(s) for s in trash], use_container_width=True)
            index = st.number_input(
                "Deleted sale #",
                min_value=1,
                max_value=len(trash),
                step=1,
            ) - 1
            col1, col2, col3 = st.columns(3)
            with col1:
                if st.button("♻️ Restore"):
                    book.sales.restore_sale(int(index))
                    st.rerun()
            with col2:
                if st.button("❌ Delete Forever"):
                    book.sales.permanent_delete_sale(int(index))
                    st.rerun()
            with col3:
                if st.button("🧹 Empty Trash"):
                    book.sales.empty_trash()
                    st.rerun()


# =============================================================================
# EXPENSES
# =============================================================================

def render_expenses_page(book: ShopBook):
    """Render the expenses page."""
    st.title("💸 Expenses")

    with st.form("expense_form", clear_on_submit=True):
        description = st.text_input("Description")
        col1, col2 = st.columns(2)
        with col1:
            amount = st.text_input("Amount")
        with col2:
            category = st.selectbox(
                "Category",
                options=list(ExpenseCategory),
                format_func=lambda c: c.value.title(),
            )
        if st.form_submit_button("➕ Add Expense", type="primary"):
            try:
                book.expenses.add_expense(description, amount, category)
                st.success("Expense has been added successfully.")
            except ShopbookError as e:
                show_error(e)

    st.markdown("---")
    expenses = book.expenses.expenses
    st.markdown(f"### Total: {money(book.expenses.total_expenses())}")

    if not expenses:
        st.info("No expenses recorded yet.")
        return

    for index, expense in enumerate(expenses):
        col1, col2 = st.columns([5, 1])
        with col1:
            st.markdown(
                f"**{expense.description}** · {expense.category.value.title()} · "
                f"{money(expense.amount)} · {expense.timestamp:%Y-%m-%d}"
            )
        with col2:
            if st.button("🗑️", key=f"delete_expense_{index}"):
                book.expenses.delete_expense(index)
                st.rerun()

    confirm = st.checkbox("I want to delete ALL expenses")
    if st.button("🗑️ Delete All Expenses", disabled=not confirm):
        book.expenses.delete_all_expenses()
        st.rerun()


# =============================================================================
# CREDITORS
# =============================================================================

def render_creditors_page(book: ShopBook):
    """Render the creditors page."""
    st.title("👥 Creditors")

    creditors = book.ledger.creditors
    st.markdown(f"### Total owed: {money(book.ledger.total_owed())}")

    if not creditors:
        st.info("No creditors found. Everyone has paid!")
    for index, creditor in enumerate(creditors):
        css = "negative" if creditor.amount_owed < 0 else ""
        with st.expander(f"{creditor.name} · {creditor.phone} · {money(creditor.amount_owed)}"):
            st.markdown(
                f'<div class="big-number {css}">{money(creditor.amount_owed)}</div>',
                unsafe_allow_html=True,
            )
            st.dataframe(
                [
                    {
                        "Date": p.purchased_at.strftime("%Y-%m-%d"),
                        "Item": p.item_name,
                        "Qty": p.quantity,
                        "Amount": p.amount,
                    }
                    for p in creditor.purchases
                ],
                use_container_width=True,
            )
            if st.checkbox("Show account history", key=f"history_{index}"):
                for event in book.audit_logger.history("creditor", creditor.phone):
                    st.caption(f"{event.timestamp:%Y-%m-%d %H:%M} · {event.description}")

            raw_amount = st.text_input("Payment amount", key=f"payment_{index}")
            col1, col2 = st.columns(2)
            with col1:
                if st.button("💰 Add Payment", key=f"pay_{index}", disabled=not raw_amount):
                    try:
                        receipt = book.payments.record_payment(index, raw_amount)
                        if receipt.creditor_removed:
                            st.success(f"{receipt.creditor_name} has paid in full.")
                        else:
                            st.success(
                                f"Payment recorded. Remaining: {money(receipt.remaining_balance)}"
                            )
                        st.rerun()
                    except ShopbookError as e:
                        show_error(e)
            with col2:
                if st.button("🗑️ Delete Creditor", key=f"delete_creditor_{index}"):
                    book.ledger.delete_creditor(index)
                    st.rerun()

    if creditors:
        confirm = st.checkbox("I want to delete ALL creditors and their payment history")
        if st.button("🗑️ Delete All Creditors", disabled=not confirm):
            book.ledger.delete_all_creditors()
            st.rerun()

    st.markdown("---")
    st.markdown("### Payment History")
    payments = book.state.payments
    if not payments:
        st.markdown("No payments recorded.")
        return

    st.dataframe(
        [
            {
                "Time": p.timestamp.strftime("%Y-%m-%d %H:%M"),
                "Creditor": p.creditor_name,
                "Phone": p.creditor_phone,
                "Amount": p.amount,
            }
            for p in reversed(payments)
        ],
        use_container_width=True,
    )
    confirm = st.checkbox("I want to delete the payment history")
    if st.button("🗑️ Delete All History", disabled=not confirm):
        book.ledger.delete_payment_history()
        st.rerun()


# =============================================================================
# DASHBOARD AND REPORTS
# =============================================================================

def require_password(book: ShopBook, area: AdminArea) -> bool:
    """Ask once per session for the password of a privileged view."""
    key = f"unlocked_{area.value}"
    if st.session_state.get(key):
        return True

    st.markdown("### Admin Access Required")
    password = st.text_input("Password", type="password", key=f"password_{area.value}")
    if st.button("🔓 Unlock"):
        if book.gate.check(area, password):
            st.session_state[key] = True
            st.rerun()
        st.error("Incorrect password. Please try again.")
    return False


def render_dashboard_page(book: ShopBook):
    """Render the totals dashboard."""
    st.title("📊 Dashboard")
    if not require_password(book, AdminArea.DASHBOARD):
        return

    summary = book.summary()

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Net Amount", money(summary.net_amount))
    col2.metric("Immediate Sales", money(summary.total_cash_sales))
    col3.metric("Payments Received", money(summary.total_payments_received))
    col4.metric("Expenses", money(summary.total_expenses))

    st.markdown("### Payment Methods")
    col1, col2, col3 = st.columns(3)
    methods = summary.by_payment_method
    col1.metric(f"Cash ({methods.cash_count})", money(methods.cash))
    col2.metric(f"JazzCash ({methods.jazzcash_count})", money(methods.jazzcash))
    col3.metric(f"Card ({methods.card_count})", money(methods.card))

    st.markdown("### Credit")
    col1, col2, col3, col4 = st.columns(4)
    col1.metric(f"Credit Sales ({summary.credit_sale_count})", money(summary.total_credit_sales_amount))
    col2.metric(f"Owed by {summary.creditor_count} creditors", money(summary.total_owed))
    col3.metric("Collection Rate", f"{summary.collection_rate:.1f}%")
    col4.metric("Potential Revenue", money(summary.potential_revenue))

    st.markdown("### Refills and Coils")
    col1, col2 = st.columns(2)
    for column, title, line in ((col1, "Refills", summary.refill), (col2, "Coils", summary.coil)):
        with column:
            st.markdown(f"**{title}**: {line.quantity:g} units in {line.sale_count} sales")
            st.markdown(f"Frontend: {money(line.frontend_revenue)}")
            st.markdown(f"Backend: {money(line.backend_revenue)}")

    if summary.refill_quantities:
        st.markdown("### Refills by Series")
        st.dataframe(
            [
                {"Series": name, "Quantity": agg.quantity, "Amount": agg.amount, "Sales": agg.count}
                for name, agg in summary.refill_quantities.items()
            ],
            use_container_width=True,
        )


def render_reports_page(book: ShopBook):
    """Render the complete reports view with data maintenance."""
    st.title("📑 Reports")
    if not require_password(book, AdminArea.REPORTS):
        return

    state = book.reload()

    tabs = st.tabs(["Sales", "Expenses", "Creditors", "Payments", "Audit", "Settings"])
    with tabs[0]:
        st.dataframe([_sale_row(s) for s in state.active_sales], use_container_width=True)
    with tabs[1]:
        st.dataframe([e.model_dump(mode="json") for e in state.expenses], use_container_width=True)
    with tabs[2]:
        st.dataframe(
            [c.model_dump(mode="json", exclude={"purchases"}) for c in state.creditors],
            use_container_width=True,
        )
    with tabs[3]:
        st.dataframe([p.model_dump(mode="json") for p in state.payments], use_container_width=True)
    with tabs[4]:
        events = book.audit_logger.recent_events(limit=200)
        st.dataframe(
            [e.to_log_dict() for e in events],
            use_container_width=True,
        )
        st.download_button(
            "⬇️ Download audit log (CSV)",
            data=audit_csv(events),
            file_name="audit-log.csv",
            mime="text/csv",
        )
    with tabs[5]:
        status = validate_all_settings()
        for name in ("storage", "pricing", "app"):
            if status.get(name, False):
                st.success(f"✅ {name.title()} settings loaded")
            else:
                st.error(f"❌ {name.title()} - {status.get(f'{name}_error', 'Not configured')}")

    st.markdown("---")
    st.markdown("### Danger Zone")
    confirm = st.checkbox("I understand this permanently deletes data")
    col1, col2 = st.columns(2)
    with col1:
        if st.button("Delete All Data (Except Creditors)", disabled=not confirm):
            book.clear_all_except_creditors()
            st.success("All data except creditors has been permanently deleted.")
    with col2:
        if st.button("Delete All Data", disabled=not confirm):
            book.clear_all()
            st.success("All data has been permanently deleted.")


if __name__ == "__main__":
    main()
