"""
Unit Tests - Snapshot Loading from the Store
"""
from datetime import datetime
from decimal import Decimal

import pytest

from retail_analytics.database import (
    Customer,
    Product,
    Region,
    Transaction,
    close_database,
    get_db,
    get_engine,
    init_database,
    load_snapshot,
)
from retail_analytics.reporting import spending_segments, total_spend_per_customer


async def _seed(session):
    session.add_all([
        Region(region_id=1, region_name="North"),
        Customer(customer_id=1, name="Alice", region_id=1),
        Customer(customer_id=2, name="Bob", region_id=None),
        Product(product_id=10, product_name="Laptop", category="electronics"),
    ])
    await session.flush()
    session.add_all([
        Transaction(
            transaction_id=101,
            customer_id=1,
            product_id=10,
            transaction_date=datetime(2024, 1, 1),
            amount_spent=Decimal("999.99"),
        ),
        Transaction(
            transaction_id=102,
            customer_id=1,
            product_id=10,
            transaction_date=datetime(2024, 2, 1),
            amount_spent=Decimal("0.02"),
        ),
        Transaction(
            transaction_id=103,
            customer_id=2,
            product_id=10,
            transaction_date=None,
            amount_spent=Decimal("10.00"),
        ),
    ])
    await session.flush()


class TestLoadSnapshot:
    """Tests for reading the reporting tables"""

    @pytest.mark.asyncio
    async def test_load_snapshot(self, test_db):
        await _seed(test_db)

        snapshot = await load_snapshot(test_db)

        assert snapshot.customers.height == 2
        assert snapshot.regions["region_name"].to_list() == ["North"]
        assert snapshot.transactions["amount_cents"].to_list() == [99999, 2, 1000]
        assert snapshot.transactions["transaction_date"].to_list()[2] is None

    @pytest.mark.asyncio
    async def test_decimal_amounts_stay_exact(self, test_db):
        await _seed(test_db)

        snapshot = await load_snapshot(test_db)
        segments = spending_segments(snapshot)

        alice = segments.row(0, named=True)
        assert alice["total_spent"] == 1000.01
        assert alice["spending_segment"] == "High-Spender"

    @pytest.mark.asyncio
    async def test_empty_tables(self, test_db):
        snapshot = await load_snapshot(test_db)

        assert snapshot.transactions.height == 0
        assert total_spend_per_customer(snapshot).height == 0


class TestConnection:
    """Tests for engine lifecycle"""

    def test_engine_requires_init(self):
        with pytest.raises(RuntimeError):
            get_engine()

    @pytest.mark.asyncio
    async def test_init_and_session(self):
        await init_database("sqlite+aiosqlite:///:memory:")
        try:
            assert get_engine() is not None
            async with get_db() as db:
                assert db.bind is get_engine()
        finally:
            await close_database()

        with pytest.raises(RuntimeError):
            get_engine()
