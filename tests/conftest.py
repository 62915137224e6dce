"""
Test Suite Configuration
"""
from datetime import datetime

import polars as pl
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from retail_analytics.config import Settings
from retail_analytics.database.models import Base
from retail_analytics.reporting import FixedClock, RetailSnapshot


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(app_env="testing")


@pytest.fixture
def as_of() -> datetime:
    return datetime(2024, 9, 1)


@pytest.fixture
def fixed_clock(as_of) -> FixedClock:
    return FixedClock(as_of)


@pytest.fixture
def sample_customers_df() -> pl.DataFrame:
    """Five customers; Dave has no region and no transactions"""
    return pl.DataFrame({
        "customer_id": [1, 2, 3, 4, 5],
        "name": ["Alice", "Bob", "Carol", "Dave", "Erin"],
        "region_id": [1, 2, 1, None, 2],
    })


@pytest.fixture
def sample_products_df() -> pl.DataFrame:
    return pl.DataFrame({
        "product_id": [10, 11, 12, 13],
        "product_name": ["Laptop", "Novel", "Shirt", "Headphones"],
        "category": ["electronics", "books", "clothing", "electronics"],
    })


@pytest.fixture
def sample_regions_df() -> pl.DataFrame:
    return pl.DataFrame({
        "region_id": [1, 2],
        "region_name": ["North", "South"],
    })


@pytest.fixture
def sample_transactions_df() -> pl.DataFrame:
    """
    Totals: Alice 1100, Carol 1000, Erin 500, Bob 50.
    Categories: electronics 1700, clothing 650, books 300.
    """
    return pl.DataFrame({
        "transaction_id": [101, 102, 103, 104, 105, 106, 107, 108, 109],
        "customer_id": [1, 1, 1, 1, 2, 2, 3, 5, 5],
        "product_id": [10, 11, 12, 13, 11, 11, 10, 12, 12],
        "transaction_date": [
            datetime(2024, 1, 5, 10, 0),
            datetime(2024, 2, 10, 12, 0),
            datetime(2024, 3, 15, 9, 0),
            datetime(2024, 3, 15, 18, 0),
            datetime(2024, 1, 20, 11, 0),
            datetime(2024, 1, 20, 15, 0),
            datetime(2024, 6, 1, 10, 0),
            datetime(2024, 5, 5, 8, 0),
            datetime(2024, 6, 20, 8, 0),
        ],
        "amount_spent": [600.00, 250.00, 150.00, 100.00, 20.00, 30.00, 1000.00, 250.00, 250.00],
    })


@pytest.fixture
def sample_snapshot(
    sample_customers_df,
    sample_transactions_df,
    sample_products_df,
    sample_regions_df,
) -> RetailSnapshot:
    return RetailSnapshot.from_frames(
        customers=sample_customers_df,
        transactions=sample_transactions_df,
        products=sample_products_df,
        regions=sample_regions_df,
    )


def make_snapshot(transactions, customers=None, products=None, regions=None) -> RetailSnapshot:
    """
    Build a snapshot from transaction tuples
    (transaction_id, customer_id, product_id, date, amount).

    Customers and products default to whatever the transactions reference.
    """
    rows = [
        {
            "transaction_id": tid,
            "customer_id": cid,
            "product_id": pid,
            "transaction_date": when,
            "amount_spent": amount,
        }
        for tid, cid, pid, when, amount in transactions
    ]
    if customers is None:
        customers = [
            {"customer_id": cid, "name": f"Customer {cid}", "region_id": None}
            for cid in sorted({r["customer_id"] for r in rows})
        ]
    if products is None:
        products = [
            {"product_id": pid, "product_name": f"Product {pid}", "category": "general"}
            for pid in sorted({r["product_id"] for r in rows})
        ]
    return RetailSnapshot.from_records(
        customers=customers,
        transactions=rows,
        products=products,
        regions=regions,
    )


@pytest.fixture
def snapshot_factory():
    return make_snapshot


@pytest_asyncio.fixture
async def test_engine():
    """In-memory SQLite engine with the reporting schema"""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def test_db(test_engine):
    """Create test database session"""
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()
