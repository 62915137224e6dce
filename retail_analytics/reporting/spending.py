"""
Customer Spending Reports

Per-customer spend aggregates:
- Total spend and spend segments (High / Mid / Low)
- Running cumulative spend per customer
- Average transaction value for frequent customers
- Customer ranking by average transaction value

Sums are taken over integer cents and converted to currency units last.
"""

import polars as pl

from .snapshot import RetailSnapshot, cents_to_currency, to_cents


class SpendSegment:
    """Spend segment labels"""
    HIGH = "High-Spender"
    MID = "Mid-Spender"
    LOW = "Low-Spender"


def _customer_transactions(snapshot: RetailSnapshot, dated_only: bool = False) -> pl.DataFrame:
    transactions = snapshot.dated_transactions if dated_only else snapshot.transactions
    return snapshot.customers.select("customer_id", "name").join(
        transactions, on="customer_id", how="inner"
    )


def total_spend_per_customer(snapshot: RetailSnapshot) -> pl.DataFrame:
    """
    Total amount spent by each customer with at least one transaction.

    Returns:
        DataFrame[customer_id, name, total_spent] ordered by total_spent
        descending, then customer_id
    """
    return (
        _customer_transactions(snapshot)
        .group_by(["customer_id", "name"])
        .agg(pl.col("amount_cents").sum().alias("total_cents"))
        .select(
            "customer_id",
            "name",
            cents_to_currency("total_cents").alias("total_spent"),
        )
        .sort(["total_spent", "customer_id"], descending=[True, False])
    )


def label_spend_segments(
    totals: pl.DataFrame,
    high_threshold: float = 1000.0,
    mid_threshold: float = 500.0,
) -> pl.DataFrame:
    """
    Attach a spending_segment label to per-customer totals.

    High-Spender above ``high_threshold``; Mid-Spender from
    ``mid_threshold`` to ``high_threshold`` inclusive; Low-Spender below.
    Totals and thresholds are compared as whole cents.

    Args:
        totals: Output of :func:`total_spend_per_customer`
        high_threshold: Exclusive lower bound of the high segment
        mid_threshold: Inclusive lower bound of the mid segment
    """
    if mid_threshold > high_threshold:
        raise ValueError(
            f"mid_threshold ({mid_threshold}) must not exceed high_threshold ({high_threshold})"
        )

    cents = (pl.col("total_spent") * 100).round(0).cast(pl.Int64)

    return totals.with_columns(
        pl.when(cents > to_cents(high_threshold))
        .then(pl.lit(SpendSegment.HIGH))
        .when(cents >= to_cents(mid_threshold))
        .then(pl.lit(SpendSegment.MID))
        .otherwise(pl.lit(SpendSegment.LOW))
        .alias("spending_segment")
    )


def spending_segments(
    snapshot: RetailSnapshot,
    high_threshold: float = 1000.0,
    mid_threshold: float = 500.0,
) -> pl.DataFrame:
    """Segment customers by their total spend (aggregate first, then label)."""
    return label_spend_segments(
        total_spend_per_customer(snapshot),
        high_threshold=high_threshold,
        mid_threshold=mid_threshold,
    )


def running_spend(snapshot: RetailSnapshot) -> pl.DataFrame:
    """
    Cumulative spend per customer in transaction order.

    The running sum restarts for each customer. Transactions sharing a
    timestamp are added one at a time in transaction_id order. Rows
    without a date are left out.

    Returns:
        DataFrame[customer_id, name, transaction_id, transaction_date,
        amount_spent, cumulative_spent]
    """
    return (
        _customer_transactions(snapshot, dated_only=True)
        .sort(["customer_id", "transaction_date", "transaction_id"])
        .with_columns(
            pl.col("amount_cents").cum_sum().over("customer_id").alias("cumulative_cents")
        )
        .select(
            "customer_id",
            "name",
            "transaction_id",
            "transaction_date",
            cents_to_currency("amount_cents").alias("amount_spent"),
            cents_to_currency("cumulative_cents").alias("cumulative_spent"),
        )
    )


def _average_per_customer(snapshot: RetailSnapshot) -> pl.DataFrame:
    return (
        _customer_transactions(snapshot)
        .group_by(["customer_id", "name"])
        .agg(
            pl.len().cast(pl.Int64).alias("transaction_count"),
            pl.col("amount_cents").sum().alias("total_cents"),
        )
        .with_columns(
            (pl.col("total_cents") / pl.col("transaction_count") / 100).alias("avg_spent")
        )
    )


def frequent_customer_average(
    snapshot: RetailSnapshot,
    min_transactions: int = 5,
) -> pl.DataFrame:
    """
    Average transaction value of customers with more than
    ``min_transactions`` transactions.

    Returns:
        DataFrame[customer_id, name, transaction_count, avg_spent]
        ordered by customer_id
    """
    if min_transactions < 0:
        raise ValueError("min_transactions must be non-negative")

    return (
        _average_per_customer(snapshot)
        .filter(pl.col("transaction_count") > min_transactions)
        .select("customer_id", "name", "transaction_count", "avg_spent")
        .sort("customer_id")
    )


def customer_spending_rank(snapshot: RetailSnapshot) -> pl.DataFrame:
    """
    Rank customers by average transaction value, highest first.

    Ties share a rank and the following rank is skipped (1, 1, 3).

    Returns:
        DataFrame[customer_id, name, avg_spent, spending_rank]
    """
    return (
        _average_per_customer(snapshot)
        .with_columns(
            pl.col("avg_spent")
            .rank(method="min", descending=True)
            .cast(pl.Int64)
            .alias("spending_rank")
        )
        .select("customer_id", "name", "avg_spent", "spending_rank")
        .sort(["spending_rank", "customer_id"])
    )
