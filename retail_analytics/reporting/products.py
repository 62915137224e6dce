"""
Product and Category Reports

Two-stage reports are split into a grouping stage and a ranking/share
stage so each can be checked on its own:
- customer_product_spend -> rank_top_products
- category_sales -> sales_share
"""

import polars as pl
import structlog

from .snapshot import RetailSnapshot, cents_to_currency

logger = structlog.get_logger(__name__)


def customer_product_spend(snapshot: RetailSnapshot) -> pl.DataFrame:
    """
    Total spend per (customer, product) pair.

    Returns:
        DataFrame[customer_id, name, product_id, product_name, total_spent]
    """
    return (
        snapshot.customers.select("customer_id", "name")
        .join(snapshot.transactions, on="customer_id", how="inner")
        .join(snapshot.products.select("product_id", "product_name"), on="product_id", how="inner")
        .group_by(["customer_id", "name", "product_id", "product_name"])
        .agg(pl.col("amount_cents").sum().alias("total_cents"))
        .select(
            "customer_id",
            "name",
            "product_id",
            "product_name",
            cents_to_currency("total_cents").alias("total_spent"),
        )
    )


def rank_top_products(spend: pl.DataFrame, limit: int = 3) -> pl.DataFrame:
    """
    Keep each customer's ``limit`` highest-spend products.

    Ranks are 1-based and unique within a customer; equal totals are
    ordered by product_id, and anything past ``limit`` is cut even when
    tied with the last kept product.

    Args:
        spend: Output of :func:`customer_product_spend`
        limit: Products kept per customer
    """
    if limit < 1:
        raise ValueError("limit must be at least 1")

    return (
        spend.sort(
            ["customer_id", "total_spent", "product_id"],
            descending=[False, True, False],
        )
        .with_columns(
            (pl.int_range(pl.len()).over("customer_id") + 1)
            .cast(pl.Int64)
            .alias("product_rank")
        )
        .filter(pl.col("product_rank") <= limit)
    )


def top_products_per_customer(snapshot: RetailSnapshot, limit: int = 3) -> pl.DataFrame:
    """Top products by spend for every customer."""
    return rank_top_products(customer_product_spend(snapshot), limit=limit)


def category_sales(snapshot: RetailSnapshot) -> pl.DataFrame:
    """
    Sales per product category, in cents.

    Returns:
        DataFrame[category, total_cents]
    """
    return (
        snapshot.transactions
        .join(snapshot.products.select("product_id", "category"), on="product_id", how="inner")
        .group_by("category")
        .agg(pl.col("amount_cents").sum().alias("total_cents"))
    )


def sales_share(category_totals: pl.DataFrame) -> pl.DataFrame:
    """
    Share of global sales per category, as a percentage rounded to 2 places.

    When total sales are zero the percentage is null for every category;
    an empty input gives an empty result.

    Returns:
        DataFrame[category, total_sales, percent_of_total_sales] ordered by
        percentage descending, then category
    """
    grand_total = category_totals["total_cents"].sum() if category_totals.height else 0

    if category_totals.height and not grand_total:
        logger.warning(
            "Total sales are zero, category shares undefined",
            categories=category_totals.height,
        )
        share = pl.lit(None, dtype=pl.Float64)
    else:
        share = (pl.col("total_cents") * 100 / pl.lit(grand_total or 1)).round(2)

    return (
        category_totals.select(
            "category",
            cents_to_currency("total_cents").alias("total_sales"),
            share.cast(pl.Float64).alias("percent_of_total_sales"),
        )
        .sort(
            ["percent_of_total_sales", "category"],
            descending=[True, False],
            nulls_last=True,
        )
    )


def category_sales_share(snapshot: RetailSnapshot) -> pl.DataFrame:
    """Category share of total sales."""
    return sales_share(category_sales(snapshot))


def product_popularity_by_region(snapshot: RetailSnapshot) -> pl.DataFrame:
    """
    Number of purchases of each product within each region.

    Customers without a region are not counted.

    Returns:
        DataFrame[region_id, region_name, product_id, product_name,
        purchase_count] grouped by region, most purchased first
    """
    return (
        snapshot.transactions.select("customer_id", "product_id")
        .join(snapshot.customers.select("customer_id", "region_id"), on="customer_id", how="inner")
        .join(snapshot.regions, on="region_id", how="inner")
        .join(snapshot.products.select("product_id", "product_name"), on="product_id", how="inner")
        .group_by(["region_id", "region_name", "product_id", "product_name"])
        .agg(pl.len().cast(pl.Int64).alias("purchase_count"))
        .sort(
            ["region_name", "region_id", "purchase_count", "product_name", "product_id"],
            descending=[False, False, True, False, False],
        )
    )
