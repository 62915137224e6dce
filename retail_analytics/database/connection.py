"""
Database Connection Management

Async SQLAlchemy 2.0 engine and session handling for the reporting store,
plus loading of the four reporting tables into an in-memory snapshot.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import structlog
from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from retail_analytics.config import get_settings
from retail_analytics.database.models import Customer, Product, Region, Transaction
from retail_analytics.reporting.snapshot import RetailSnapshot

logger = structlog.get_logger(__name__)

# Global engine and session factory
_engine: Optional[AsyncEngine] = None
_async_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


async def init_database(url: Optional[str] = None) -> AsyncEngine:
    """
    Initialize the database engine.

    Args:
        url: Override the configured database URL

    Returns:
        AsyncEngine: The initialized database engine
    """
    global _engine, _async_session_factory

    if _engine is not None:
        logger.warning("Database already initialized")
        return _engine

    settings = get_settings()
    _engine = create_async_engine(
        url or settings.database.url,
        echo=settings.database.echo,
        future=True,
        poolclass=NullPool,
    )

    _async_session_factory = async_sessionmaker(
        bind=_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    try:
        async with _engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Database connection established", url=_engine.url.render_as_string(hide_password=True))
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        raise

    return _engine


async def close_database() -> None:
    """Dispose of the engine and forget the session factory."""
    global _engine, _async_session_factory

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _async_session_factory = None
        logger.info("Database engine disposed")


def get_engine() -> AsyncEngine:
    """
    Get the database engine.

    Raises:
        RuntimeError: If database is not initialized
    """
    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    return _engine


@asynccontextmanager
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Get a read session.

    Reporting never writes, so the session is rolled back rather than
    committed when the block exits.

    Example:
        async with get_db() as db:
            snapshot = await load_snapshot(db)
    """
    if _async_session_factory is None:
        logger.error("Database not initialized when get_db() called")
        raise RuntimeError("Database not initialized. Call init_database() first.")

    session = _async_session_factory()
    try:
        yield session
    except Exception as e:
        logger.error("Database session error", error=str(e), error_type=type(e).__name__)
        raise
    finally:
        await session.rollback()
        await session.close()


async def load_snapshot(session: AsyncSession) -> RetailSnapshot:
    """
    Read the four reporting tables into a snapshot.

    All reads go through the same session so a store with snapshot
    isolation serves them from one point in time.

    Args:
        session: Open async session

    Returns:
        RetailSnapshot built from the table contents
    """
    try:
        customers = (await session.execute(
            select(Customer.customer_id, Customer.name, Customer.region_id)
            .order_by(Customer.customer_id)
        )).mappings().all()
        transactions = (await session.execute(
            select(
                Transaction.transaction_id,
                Transaction.customer_id,
                Transaction.product_id,
                Transaction.transaction_date,
                Transaction.amount_spent,
            ).order_by(Transaction.transaction_id)
        )).mappings().all()
        products = (await session.execute(
            select(Product.product_id, Product.product_name, Product.category)
            .order_by(Product.product_id)
        )).mappings().all()
        regions = (await session.execute(
            select(Region.region_id, Region.region_name).order_by(Region.region_id)
        )).mappings().all()
    except Exception as e:
        logger.error("Failed to load reporting tables", error=str(e), error_type=type(e).__name__)
        raise

    logger.info(
        "Loaded reporting snapshot",
        customers=len(customers),
        transactions=len(transactions),
        products=len(products),
        regions=len(regions),
    )

    return RetailSnapshot.from_records(
        customers=[dict(row) for row in customers],
        transactions=[dict(row) for row in transactions],
        products=[dict(row) for row in products],
        regions=[dict(row) for row in regions],
    )
