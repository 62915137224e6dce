"""
Reporting Snapshot

Read-only, normalized view of the four reporting tables. Every query
takes a snapshot, so all of them see the same column names and dtypes
regardless of where the data came from (ORM rows, CSV, Parquet, tests).

Monetary amounts are held as integer cents (``amount_cents``) so sums
are exact; queries convert back to currency units only for output.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Mapping, Optional

import polars as pl
import structlog

from .clock import to_naive_utc

logger = structlog.get_logger(__name__)


CUSTOMER_SCHEMA = {
    "customer_id": pl.Int64,
    "name": pl.Utf8,
    "region_id": pl.Int64,
}

TRANSACTION_SCHEMA = {
    "transaction_id": pl.Int64,
    "customer_id": pl.Int64,
    "product_id": pl.Int64,
    "transaction_date": pl.Datetime("us"),
    "amount_cents": pl.Int64,
}

PRODUCT_SCHEMA = {
    "product_id": pl.Int64,
    "product_name": pl.Utf8,
    "category": pl.Utf8,
}

REGION_SCHEMA = {
    "region_id": pl.Int64,
    "region_name": pl.Utf8,
}


class SnapshotSchemaError(ValueError):
    """Raised when an input table is missing required columns"""

    def __init__(self, table: str, missing: List[str]):
        self.table = table
        self.missing = missing
        super().__init__(f"Table '{table}' is missing required columns: {', '.join(missing)}")


def to_cents(amount: Any) -> Optional[int]:
    """Convert a currency amount to integer cents, rounding half up."""
    if amount is None:
        return None
    if not isinstance(amount, Decimal):
        # str() keeps the shortest repr of floats, so 0.1 stays 0.1
        amount = Decimal(str(amount))
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def cents_to_currency(column: str) -> pl.Expr:
    """Expression turning an integer-cents column into currency units."""
    return (pl.col(column) / 100).cast(pl.Float64)


def _to_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    raise TypeError(f"Unsupported transaction_date value: {value!r}")


def _require(df: pl.DataFrame, table: str, columns: Iterable[str]) -> None:
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise SnapshotSchemaError(table, missing)


def _normalize_dates(df: pl.DataFrame) -> pl.DataFrame:
    """Coerce transaction_date to naive microsecond datetimes."""
    dtype = df.schema["transaction_date"]

    if dtype == pl.Utf8:
        expr = pl.col("transaction_date").str.to_datetime(time_unit="us", strict=False)
    elif isinstance(dtype, pl.Datetime) and dtype.time_zone is not None:
        expr = (
            pl.col("transaction_date")
            .dt.convert_time_zone("UTC")
            .dt.replace_time_zone(None)
        )
    else:
        expr = pl.col("transaction_date")

    return df.with_columns(expr.cast(pl.Datetime("us")).alias("transaction_date"))


@dataclass(frozen=True)
class RetailSnapshot:
    """
    Point-in-time copy of the reporting tables.

    Build with :meth:`from_frames` or :meth:`from_records`; the
    constructor expects frames that already match the normalized schemas.
    """

    customers: pl.DataFrame
    transactions: pl.DataFrame
    products: pl.DataFrame
    regions: pl.DataFrame

    @classmethod
    def from_frames(
        cls,
        customers: pl.DataFrame,
        transactions: pl.DataFrame,
        products: pl.DataFrame,
        regions: Optional[pl.DataFrame] = None,
    ) -> "RetailSnapshot":
        """
        Normalize raw frames into a snapshot.

        ``transactions`` must carry either ``amount_spent`` (currency
        units, float or decimal) or ``amount_cents``. ``customers`` may
        omit ``region_id`` and ``regions`` may be omitted entirely.

        Raises:
            SnapshotSchemaError: If a required column is missing
        """
        _require(customers, "customers", ["customer_id", "name"])
        _require(transactions, "transactions", ["transaction_id", "customer_id", "product_id", "transaction_date"])
        _require(products, "products", ["product_id", "product_name", "category"])

        if "region_id" not in customers.columns:
            customers = customers.with_columns(pl.lit(None, dtype=pl.Int64).alias("region_id"))

        if "amount_cents" not in transactions.columns:
            _require(transactions, "transactions", ["amount_spent"])
            transactions = transactions.with_columns(
                (pl.col("amount_spent").cast(pl.Float64) * 100)
                .round(0)
                .cast(pl.Int64)
                .alias("amount_cents")
            )

        transactions = _normalize_dates(transactions)

        if regions is None:
            regions = pl.DataFrame(schema=REGION_SCHEMA)
        else:
            _require(regions, "regions", ["region_id", "region_name"])

        def conform(df: pl.DataFrame, schema: Dict[str, pl.DataType]) -> pl.DataFrame:
            return df.select([pl.col(name).cast(dtype) for name, dtype in schema.items()])

        snapshot = cls(
            customers=conform(customers, CUSTOMER_SCHEMA),
            transactions=conform(transactions, TRANSACTION_SCHEMA),
            products=conform(products, PRODUCT_SCHEMA),
            regions=conform(regions, REGION_SCHEMA),
        )

        logger.debug(
            "Snapshot built",
            customers=snapshot.customers.height,
            transactions=snapshot.transactions.height,
            products=snapshot.products.height,
            regions=snapshot.regions.height,
        )
        return snapshot

    @classmethod
    def from_records(
        cls,
        customers: List[Mapping[str, Any]],
        transactions: List[Mapping[str, Any]],
        products: List[Mapping[str, Any]],
        regions: Optional[List[Mapping[str, Any]]] = None,
    ) -> "RetailSnapshot":
        """
        Build a snapshot from row dictionaries (ORM mappings, JSON, fixtures).

        Amounts are converted to cents with :class:`~decimal.Decimal`
        arithmetic, so ``Numeric`` values from the store stay exact.
        """
        transaction_rows = []
        for row in transactions:
            cents = row.get("amount_cents")
            if cents is None:
                cents = to_cents(row.get("amount_spent"))
            transaction_rows.append({
                "transaction_id": row.get("transaction_id"),
                "customer_id": row.get("customer_id"),
                "product_id": row.get("product_id"),
                "transaction_date": _to_datetime(row.get("transaction_date")),
                "amount_cents": cents,
            })

        customer_rows = [
            {
                "customer_id": row.get("customer_id"),
                "name": row.get("name"),
                "region_id": row.get("region_id"),
            }
            for row in customers
        ]

        return cls.from_frames(
            customers=pl.DataFrame(customer_rows, schema=CUSTOMER_SCHEMA),
            transactions=pl.DataFrame(transaction_rows, schema=TRANSACTION_SCHEMA),
            products=pl.DataFrame(
                [{k: row.get(k) for k in PRODUCT_SCHEMA} for row in products],
                schema=PRODUCT_SCHEMA,
            ),
            regions=pl.DataFrame(
                [{k: row.get(k) for k in REGION_SCHEMA} for row in (regions or [])],
                schema=REGION_SCHEMA,
            ),
        )

    @classmethod
    def empty(cls) -> "RetailSnapshot":
        """Snapshot with four empty tables."""
        return cls(
            customers=pl.DataFrame(schema=CUSTOMER_SCHEMA),
            transactions=pl.DataFrame(schema=TRANSACTION_SCHEMA),
            products=pl.DataFrame(schema=PRODUCT_SCHEMA),
            regions=pl.DataFrame(schema=REGION_SCHEMA),
        )

    @property
    def dated_transactions(self) -> pl.DataFrame:
        """Transactions with a known date"""
        return self.transactions.filter(pl.col("transaction_date").is_not_null())

    def transactions_as_of(self, as_of: datetime) -> pl.DataFrame:
        """Dated transactions visible at ``as_of`` (inclusive)."""
        return self.dated_transactions.filter(pl.col("transaction_date") <= to_naive_utc(as_of))
