"""
Synthetic Data Generator

Generates realistic reporting tables for development and tests:
- Regions and customers (some without a region)
- Products across categories
- Transactions with log-normal amounts per category and skewed
  customer activity
"""

from datetime import datetime, timedelta
from typing import Optional

import numpy as np
import polars as pl
import structlog
from faker import Faker

from retail_analytics.reporting.snapshot import RetailSnapshot

logger = structlog.get_logger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

REGIONS = ["North", "South", "East", "West", "Central"]

CATEGORIES = {
    "electronics": ["Phone", "Laptop", "Tablet", "Headphones", "Camera"],
    "clothing": ["Shirt", "Pants", "Dress", "Shoes", "Jacket"],
    "home_garden": ["Lamp", "Chair", "Bedding", "Planter", "Rug"],
    "sports": ["Bike", "Racket", "Yoga Mat", "Tent", "Ball"],
    "books": ["Novel", "Cookbook", "Atlas", "Comic", "Textbook"],
}

# Median and spread of amounts per category (log-normal)
CATEGORY_PRICING = {
    "electronics": (250.0, 0.8),
    "clothing": (45.0, 0.6),
    "home_garden": (80.0, 0.7),
    "sports": (60.0, 0.9),
    "books": (18.0, 0.4),
}


class SyntheticDataGenerator:
    """
    Reproducible generator of reporting snapshots.

    Example:
        generator = SyntheticDataGenerator(seed=7)
        snapshot = generator.generate(n_customers=200, n_transactions=5000)
    """

    def __init__(self, seed: int = 42):
        self.seed = seed
        self.rng = np.random.default_rng(seed)
        self.fake = Faker()
        self.fake.seed_instance(seed)

    def regions(self) -> pl.DataFrame:
        return pl.DataFrame({
            "region_id": list(range(1, len(REGIONS) + 1)),
            "region_name": REGIONS,
        })

    def customers(self, n: int, unassigned_share: float = 0.05) -> pl.DataFrame:
        """Customers with Faker names; a share of them have no region"""
        region_ids = self.rng.integers(1, len(REGIONS) + 1, size=n)
        unassigned = self.rng.random(n) < unassigned_share

        return pl.DataFrame({
            "customer_id": list(range(1, n + 1)),
            "name": [self.fake.name() for _ in range(n)],
            "region_id": [None if skip else int(rid) for rid, skip in zip(region_ids, unassigned)],
        }, schema={"customer_id": pl.Int64, "name": pl.Utf8, "region_id": pl.Int64})

    def products(self, n: int) -> pl.DataFrame:
        categories = list(CATEGORIES)
        chosen = self.rng.choice(categories, size=n)

        names = []
        for i, category in enumerate(chosen, start=1):
            kind = CATEGORIES[category][int(self.rng.integers(len(CATEGORIES[category])))]
            names.append(f"{self.fake.word().title()} {kind} {i}")

        return pl.DataFrame({
            "product_id": list(range(1, n + 1)),
            "product_name": names,
            "category": [str(c) for c in chosen],
        })

    def transactions(
        self,
        n: int,
        customers: pl.DataFrame,
        products: pl.DataFrame,
        start: datetime,
        end: datetime,
    ) -> pl.DataFrame:
        """
        Transactions between ``start`` and ``end``.

        Customer activity is skewed (a few customers buy a lot) and amounts
        follow each category's log-normal pricing.
        """
        customer_ids = customers["customer_id"].to_numpy()
        product_ids = products["product_id"].to_numpy()
        product_categories = products["category"].to_list()

        # Zipf-like weights so some customers are frequent buyers
        weights = 1.0 / np.arange(1, len(customer_ids) + 1) ** 0.8
        weights /= weights.sum()
        buyers = self.rng.choice(customer_ids, size=n, p=weights)

        picks = self.rng.integers(0, len(product_ids), size=n)

        span_seconds = max(int((end - start).total_seconds()), 1)
        offsets = np.sort(self.rng.integers(0, span_seconds, size=n))
        dates = [start + timedelta(seconds=int(s)) for s in offsets]

        amounts = []
        for pick in picks:
            median, sigma = CATEGORY_PRICING[product_categories[pick]]
            amounts.append(round(float(self.rng.lognormal(np.log(median), sigma)), 2))

        return pl.DataFrame({
            "transaction_id": list(range(1, n + 1)),
            "customer_id": buyers.astype(np.int64),
            "product_id": product_ids[picks].astype(np.int64),
            "transaction_date": dates,
            "amount_spent": amounts,
        })

    def generate(
        self,
        n_customers: int = 100,
        n_products: int = 40,
        n_transactions: int = 2000,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> RetailSnapshot:
        """Generate a complete snapshot"""
        end = end or datetime(2024, 12, 31)
        start = start or end - timedelta(days=365)

        regions = self.regions()
        customers = self.customers(n_customers)
        products = self.products(n_products)
        transactions = self.transactions(n_transactions, customers, products, start, end)

        logger.info(
            "Generated synthetic snapshot",
            customers=n_customers,
            products=n_products,
            transactions=n_transactions,
            seed=self.seed,
        )

        return RetailSnapshot.from_frames(
            customers=customers,
            transactions=transactions,
            products=products,
            regions=regions,
        )


def generate_snapshot(
    n_customers: int = 100,
    n_products: int = 40,
    n_transactions: int = 2000,
    seed: int = 42,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> RetailSnapshot:
    """Convenience wrapper around :class:`SyntheticDataGenerator`."""
    return SyntheticDataGenerator(seed=seed).generate(
        n_customers=n_customers,
        n_products=n_products,
        n_transactions=n_transactions,
        start=start,
        end=end,
    )
