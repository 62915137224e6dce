"""
Customer Activity and Time-Series Reports

Date-driven reports. Transactions without a date never take part in
day, month or recency calculations.
"""

from datetime import datetime

import polars as pl
import structlog

from .clock import months_before, to_naive_utc
from .snapshot import RetailSnapshot, cents_to_currency

logger = structlog.get_logger(__name__)


def repeat_customers(snapshot: RetailSnapshot) -> pl.DataFrame:
    """
    Customers active on more than one distinct calendar day.

    Returns:
        DataFrame[customer_id, name, active_days] ordered by customer_id
    """
    return (
        snapshot.customers.select("customer_id", "name")
        .join(snapshot.dated_transactions, on="customer_id", how="inner")
        .group_by(["customer_id", "name"])
        .agg(
            pl.col("transaction_date").dt.date().n_unique().cast(pl.Int64).alias("active_days")
        )
        .filter(pl.col("active_days") > 1)
        .sort("customer_id")
    )


def monthly_sales(snapshot: RetailSnapshot) -> pl.DataFrame:
    """
    Sales totals per calendar month.

    Returns:
        DataFrame[month, total_sales, transaction_count]; ``month`` is the
        first day of the month, ascending
    """
    return (
        snapshot.dated_transactions
        .with_columns(
            pl.col("transaction_date").dt.truncate("1mo").dt.date().alias("month")
        )
        .group_by("month")
        .agg(
            pl.col("amount_cents").sum().alias("total_cents"),
            pl.len().cast(pl.Int64).alias("transaction_count"),
        )
        .select(
            "month",
            cents_to_currency("total_cents").alias("total_sales"),
            "transaction_count",
        )
        .sort("month")
    )


def churned_customers(
    snapshot: RetailSnapshot,
    as_of: datetime,
    months: int = 6,
) -> pl.DataFrame:
    """
    Customers with no transaction in the ``months`` before ``as_of``.

    Customers who never transacted are included with a null
    last_transaction_date. Transactions dated after ``as_of`` are ignored.

    Args:
        snapshot: Reporting tables
        as_of: Reference time supplied by the caller's clock
        months: Length of the trailing window in calendar months

    Returns:
        DataFrame[customer_id, name, last_transaction_date] ordered by
        customer_id
    """
    if months < 0:
        raise ValueError("months must be non-negative")

    as_of = to_naive_utc(as_of)
    cutoff = months_before(as_of, months)

    last_seen = (
        snapshot.transactions_as_of(as_of)
        .group_by("customer_id")
        .agg(pl.col("transaction_date").max().alias("last_transaction_date"))
    )

    churned = (
        snapshot.customers.select("customer_id", "name")
        .join(last_seen, on="customer_id", how="left")
        .filter(
            pl.col("last_transaction_date").is_null()
            | (pl.col("last_transaction_date") < cutoff)
        )
        .sort("customer_id")
    )

    logger.debug(
        "Churn computed",
        as_of=as_of.isoformat(),
        cutoff=cutoff.isoformat(),
        churned=churned.height,
    )
    return churned
