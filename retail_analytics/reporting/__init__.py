"""
Reporting Module

Analytical queries over the retail reporting tables.
"""
from .activity import churned_customers, monthly_sales, repeat_customers
from .clock import Clock, FixedClock, SystemClock, months_before, to_naive_utc
from .joins import customer_transaction_products, customer_transactions
from .products import (
    category_sales,
    category_sales_share,
    customer_product_spend,
    product_popularity_by_region,
    rank_top_products,
    sales_share,
    top_products_per_customer,
)
from .risk import high_frequency_customers, outlier_transactions
from .runner import ReportQuery, ReportResult, ReportRunner, ReportSuite
from .snapshot import RetailSnapshot, SnapshotSchemaError
from .spending import (
    SpendSegment,
    customer_spending_rank,
    frequent_customer_average,
    label_spend_segments,
    running_spend,
    spending_segments,
    total_spend_per_customer,
)

__all__ = [
    "RetailSnapshot",
    "SnapshotSchemaError",
    "Clock",
    "FixedClock",
    "SystemClock",
    "months_before",
    "to_naive_utc",
    "ReportQuery",
    "ReportResult",
    "ReportRunner",
    "ReportSuite",
    "SpendSegment",
    "customer_transactions",
    "customer_transaction_products",
    "total_spend_per_customer",
    "label_spend_segments",
    "spending_segments",
    "running_spend",
    "customer_product_spend",
    "rank_top_products",
    "top_products_per_customer",
    "frequent_customer_average",
    "repeat_customers",
    "category_sales",
    "sales_share",
    "category_sales_share",
    "monthly_sales",
    "churned_customers",
    "customer_spending_rank",
    "product_popularity_by_region",
    "high_frequency_customers",
    "outlier_transactions",
]
