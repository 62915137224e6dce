"""
Database Module
"""
from .connection import init_database, close_database, get_db, get_engine, load_snapshot
from .models import Base, Customer, Product, Region, Transaction

__all__ = [
    "init_database",
    "close_database",
    "get_db",
    "get_engine",
    "load_snapshot",
    "Base",
    "Customer",
    "Product",
    "Region",
    "Transaction",
]
