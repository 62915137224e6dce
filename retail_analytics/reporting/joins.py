"""
Row-level joins of transactions with their customer and product.
"""

import polars as pl

from .snapshot import RetailSnapshot, cents_to_currency


def customer_transactions(snapshot: RetailSnapshot) -> pl.DataFrame:
    """
    Every transaction alongside the customer who made it.

    Transactions whose customer is unknown are dropped (inner join).
    Ordered by transaction_id.
    """
    return (
        snapshot.customers.select("customer_id", "name")
        .join(snapshot.transactions, on="customer_id", how="inner")
        .sort("transaction_id")
        .select(
            "customer_id",
            "name",
            "transaction_id",
            "transaction_date",
            cents_to_currency("amount_cents").alias("amount_spent"),
        )
    )


def customer_transaction_products(snapshot: RetailSnapshot) -> pl.DataFrame:
    """Transactions with customer name, product name and category."""
    return (
        snapshot.customers.select("customer_id", "name")
        .join(snapshot.transactions, on="customer_id", how="inner")
        .join(snapshot.products, on="product_id", how="inner")
        .sort("transaction_id")
        .select(
            "customer_id",
            "name",
            "transaction_id",
            "transaction_date",
            cents_to_currency("amount_cents").alias("amount_spent"),
            "product_id",
            "product_name",
            "category",
        )
    )
