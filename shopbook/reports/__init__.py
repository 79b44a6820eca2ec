"""Read-only reporting over the books."""

from shopbook.reports.aggregator import (
    FULL_COLLECTION_RATE,
    aggregate_by_item,
    build_summary,
    cash_sales,
    collection_rate,
    credit_sales,
    net_amount,
    payment_method_breakdown,
    product_revenue,
    total_amount,
    total_owed,
)

__all__ = [
    "FULL_COLLECTION_RATE",
    "aggregate_by_item",
    "build_summary",
    "cash_sales",
    "collection_rate",
    "credit_sales",
    "net_amount",
    "payment_method_breakdown",
    "product_revenue",
    "total_amount",
    "total_owed",
]
