"""
Database Models - Retail Reporting Schema

Four tables back the reporting queries:

Fact Tables:
- Transaction: one purchase of a product by a customer

Reference Tables:
- Customer: customers and their (optional) region
- Product: product catalog with category labels
- Region: sales regions

The reporting layer only reads these tables; rows are created by the
ingestion side.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


# =============================================================================
# REFERENCE TABLES
# =============================================================================

class Region(Base):
    """Sales region"""
    __tablename__ = "regions"

    region_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    region_name: Mapped[str] = mapped_column(String(100), nullable=False)

    customers: Mapped[List["Customer"]] = relationship(back_populates="region")


class Customer(Base):
    """
    Customer Table

    A customer belongs to at most one region.
    """
    __tablename__ = "customers"

    customer_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    region_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("regions.region_id")
    )

    region: Mapped[Optional["Region"]] = relationship(back_populates="customers")
    transactions: Mapped[List["Transaction"]] = relationship(back_populates="customer")

    __table_args__ = (
        Index("ix_customers_region", "region_id"),
    )


class Product(Base):
    """Product catalog entry"""
    __tablename__ = "products"

    product_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    product_name: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)

    transactions: Mapped[List["Transaction"]] = relationship(back_populates="product")

    __table_args__ = (
        Index("ix_products_category", "category"),
    )


# =============================================================================
# FACT TABLES
# =============================================================================

class Transaction(Base):
    """
    Transaction Fact Table

    Append-only. Amounts are stored as NUMERIC(12, 2).
    """
    __tablename__ = "transactions"

    transaction_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    customer_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("customers.customer_id"), nullable=False
    )
    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.product_id"), nullable=False
    )
    transaction_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    amount_spent: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    customer: Mapped["Customer"] = relationship(back_populates="transactions")
    product: Mapped["Product"] = relationship(back_populates="transactions")

    __table_args__ = (
        CheckConstraint("amount_spent >= 0", name="ck_transactions_amount_non_negative"),
        Index("ix_transactions_customer_date", "customer_id", "transaction_date"),
        Index("ix_transactions_product", "product_id"),
    )
