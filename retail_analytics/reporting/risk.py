"""
Risk Reports

- High-frequency transaction flag: many transactions in a very short span
- Statistical outliers: amounts far from the global mean (Z-score)
"""

from datetime import datetime, timedelta

import numpy as np
import polars as pl
import structlog

from .clock import to_naive_utc
from .snapshot import RetailSnapshot, cents_to_currency

logger = structlog.get_logger(__name__)


def high_frequency_customers(
    snapshot: RetailSnapshot,
    as_of: datetime,
    min_transactions: int = 10,
    window: timedelta = timedelta(days=1),
) -> pl.DataFrame:
    """
    Flag customers with a burst of transactions.

    A customer is flagged when, among their dated transactions up to
    ``as_of``, there are more than ``min_transactions`` and the time
    between the first and last is strictly less than ``window``.

    Returns:
        DataFrame[customer_id, name, transaction_count, first_transaction,
        last_transaction] ordered by customer_id
    """
    if min_transactions < 0:
        raise ValueError("min_transactions must be non-negative")
    if window <= timedelta(0):
        raise ValueError("window must be positive")

    as_of = to_naive_utc(as_of)
    flagged = (
        snapshot.customers.select("customer_id", "name")
        .join(snapshot.transactions_as_of(as_of), on="customer_id", how="inner")
        .group_by(["customer_id", "name"])
        .agg(
            pl.len().cast(pl.Int64).alias("transaction_count"),
            pl.col("transaction_date").min().alias("first_transaction"),
            pl.col("transaction_date").max().alias("last_transaction"),
        )
        .filter(
            (pl.col("transaction_count") > min_transactions)
            & ((pl.col("last_transaction") - pl.col("first_transaction")) < pl.lit(window))
        )
        .sort("customer_id")
    )

    if flagged.height:
        logger.info(
            "High-frequency customers flagged",
            count=flagged.height,
            window_hours=window.total_seconds() / 3600,
        )
    return flagged


def outlier_transactions(
    snapshot: RetailSnapshot,
    z_threshold: float = 3.0,
    ddof: int = 0,
) -> pl.DataFrame:
    """
    Transactions whose amount lies more than ``z_threshold`` standard
    deviations from the mean amount of all transactions.

    Uses the population standard deviation by default (``ddof=0``); pass
    ``ddof=1`` for the sample convention. Fewer than two amounts, or no
    spread at all, means there are no outliers.

    Returns:
        DataFrame[transaction_id, customer_id, transaction_date,
        amount_spent, z_score] ordered by transaction_id
    """
    if z_threshold <= 0:
        raise ValueError("z_threshold must be positive")
    if ddof not in (0, 1):
        raise ValueError("ddof must be 0 (population) or 1 (sample)")

    transactions = snapshot.transactions.filter(pl.col("amount_cents").is_not_null())
    columns = ["transaction_id", "customer_id", "transaction_date", "amount_spent", "z_score"]

    if transactions.height < 2:
        return _empty_outliers(transactions, columns)

    values = transactions["amount_cents"].to_numpy().astype(np.float64)
    mean = float(np.mean(values))
    std = float(np.std(values, ddof=ddof))

    if std == 0:
        return _empty_outliers(transactions, columns)

    outliers = (
        transactions
        .with_columns(((pl.col("amount_cents") - mean) / std).alias("z_score"))
        .filter(pl.col("z_score").abs() > z_threshold)
        .with_columns(
            cents_to_currency("amount_cents").alias("amount_spent"),
            pl.col("z_score").round(4),
        )
        .select(columns)
        .sort("transaction_id")
    )

    logger.debug(
        "Outlier scan complete",
        mean=round(mean / 100, 2),
        std=round(std / 100, 2),
        outliers=outliers.height,
    )
    return outliers


def _empty_outliers(transactions: pl.DataFrame, columns: list) -> pl.DataFrame:
    return (
        transactions.head(0)
        .with_columns(
            cents_to_currency("amount_cents").alias("amount_spent"),
            pl.lit(None, dtype=pl.Float64).alias("z_score"),
        )
        .select(columns)
    )
