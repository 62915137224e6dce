"""
Report Runner

Runs the analytical queries against one snapshot with one reference time,
taking query parameters from configuration.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional

import polars as pl
import structlog
from prometheus_client import Counter, Histogram

from retail_analytics.config import Settings, get_settings
from retail_analytics.quality.validators import ValidationResult, validate_snapshot
from .activity import churned_customers, monthly_sales, repeat_customers
from .clock import Clock, to_naive_utc
from .joins import customer_transaction_products, customer_transactions
from .products import (
    category_sales_share,
    product_popularity_by_region,
    top_products_per_customer,
)
from .risk import high_frequency_customers, outlier_transactions
from .snapshot import RetailSnapshot
from .spending import (
    customer_spending_rank,
    frequent_customer_average,
    running_spend,
    spending_segments,
    total_spend_per_customer,
)

logger = structlog.get_logger(__name__)

REPORTS_RUN = Counter(
    "retail_reports_run_total",
    "Total number of report queries run",
    ["query", "status"],
)

REPORT_DURATION = Histogram(
    "retail_report_duration_seconds",
    "Time spent computing a report",
    ["query"],
)


class ReportQuery(str, Enum):
    """The analytical queries, in catalogue order"""
    CUSTOMER_TRANSACTIONS = "customer_transactions"
    CUSTOMER_TRANSACTION_PRODUCTS = "customer_transaction_products"
    TOTAL_SPEND = "total_spend_per_customer"
    SPENDING_SEGMENTS = "spending_segments"
    RUNNING_SPEND = "running_spend"
    TOP_PRODUCTS = "top_products_per_customer"
    FREQUENT_CUSTOMER_AVERAGE = "frequent_customer_average"
    REPEAT_CUSTOMERS = "repeat_customers"
    CATEGORY_SALES_SHARE = "category_sales_share"
    MONTHLY_SALES = "monthly_sales"
    CHURNED_CUSTOMERS = "churned_customers"
    CUSTOMER_SPENDING_RANK = "customer_spending_rank"
    PRODUCT_POPULARITY_BY_REGION = "product_popularity_by_region"
    HIGH_FREQUENCY_CUSTOMERS = "high_frequency_customers"
    OUTLIER_TRANSACTIONS = "outlier_transactions"


@dataclass
class ReportResult:
    """Result of one query run"""
    query: ReportQuery
    frame: pl.DataFrame
    as_of: datetime
    started_at: datetime
    completed_at: datetime
    duration_seconds: float
    error: Optional[str] = None

    @property
    def row_count(self) -> int:
        return self.frame.height

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class ReportSuite:
    """Results of a multi-query run"""
    as_of: datetime
    results: Dict[ReportQuery, ReportResult] = field(default_factory=dict)
    validation: Optional[ValidationResult] = None

    def __getitem__(self, query) -> ReportResult:
        return self.results[ReportQuery(query)]

    def __len__(self) -> int:
        return len(self.results)

    @property
    def failed(self) -> List[ReportResult]:
        return [r for r in self.results.values() if not r.succeeded]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class ReportRunner:
    """
    Runs reporting queries against a snapshot.

    The clock is asked for the reference time once per run, so every
    query in a run sees the same "now".

    Example:
        runner = ReportRunner(snapshot, clock=FixedClock(datetime(2024, 6, 30)))
        suite = runner.run_all()
        suite["churned_customers"].frame
    """

    def __init__(
        self,
        snapshot: RetailSnapshot,
        clock: Clock,
        settings: Optional[Settings] = None,
        validate: bool = True,
    ):
        self.snapshot = snapshot
        self.clock = clock
        self.settings = settings or get_settings()
        self.validate = validate

    def _query_func(self, query: ReportQuery, as_of: datetime) -> Callable[[], pl.DataFrame]:
        """Bind a query to the snapshot and configured parameters"""
        cfg = self.settings.reporting
        snapshot = self.snapshot

        table: Dict[ReportQuery, Callable[[], pl.DataFrame]] = {
            ReportQuery.CUSTOMER_TRANSACTIONS: lambda: customer_transactions(snapshot),
            ReportQuery.CUSTOMER_TRANSACTION_PRODUCTS: lambda: customer_transaction_products(snapshot),
            ReportQuery.TOTAL_SPEND: lambda: total_spend_per_customer(snapshot),
            ReportQuery.SPENDING_SEGMENTS: lambda: spending_segments(
                snapshot,
                high_threshold=cfg.high_spender_threshold,
                mid_threshold=cfg.mid_spender_threshold,
            ),
            ReportQuery.RUNNING_SPEND: lambda: running_spend(snapshot),
            ReportQuery.TOP_PRODUCTS: lambda: top_products_per_customer(
                snapshot, limit=cfg.top_products_limit
            ),
            ReportQuery.FREQUENT_CUSTOMER_AVERAGE: lambda: frequent_customer_average(
                snapshot, min_transactions=cfg.frequent_customer_min_transactions
            ),
            ReportQuery.REPEAT_CUSTOMERS: lambda: repeat_customers(snapshot),
            ReportQuery.CATEGORY_SALES_SHARE: lambda: category_sales_share(snapshot),
            ReportQuery.MONTHLY_SALES: lambda: monthly_sales(snapshot),
            ReportQuery.CHURNED_CUSTOMERS: lambda: churned_customers(
                snapshot, as_of=as_of, months=cfg.churn_months
            ),
            ReportQuery.CUSTOMER_SPENDING_RANK: lambda: customer_spending_rank(snapshot),
            ReportQuery.PRODUCT_POPULARITY_BY_REGION: lambda: product_popularity_by_region(snapshot),
            ReportQuery.HIGH_FREQUENCY_CUSTOMERS: lambda: high_frequency_customers(
                snapshot,
                as_of=as_of,
                min_transactions=cfg.high_frequency_min_transactions,
                window=timedelta(hours=cfg.high_frequency_window_hours),
            ),
            ReportQuery.OUTLIER_TRANSACTIONS: lambda: outlier_transactions(
                snapshot, z_threshold=cfg.outlier_z_threshold, ddof=cfg.outlier_ddof
            ),
        }
        return table[query]

    def _execute(self, query: ReportQuery, as_of: datetime) -> ReportResult:
        # Logs emitted by the query itself carry the report name and reference time
        with structlog.contextvars.bound_contextvars(query=query.value, as_of=as_of.isoformat()):
            started_at = _utcnow()
            start = time.perf_counter()
            error = None

            logger.debug("Running report")

            try:
                frame = self._query_func(query, as_of)()
            except Exception as e:
                logger.error("Report failed", error=str(e), error_type=type(e).__name__)
                frame = pl.DataFrame()
                error = str(e)

            duration = time.perf_counter() - start
            REPORT_DURATION.labels(query=query.value).observe(duration)
            REPORTS_RUN.labels(query=query.value, status="success" if error is None else "error").inc()

            if error is None:
                logger.info(
                    "Report complete",
                    rows=frame.height,
                    duration_ms=round(duration * 1000, 2),
                )

        return ReportResult(
            query=query,
            frame=frame,
            as_of=as_of,
            started_at=started_at,
            completed_at=_utcnow(),
            duration_seconds=duration,
            error=error,
        )

    def run(self, query) -> ReportResult:
        """
        Run a single query.

        Args:
            query: ReportQuery member or its name

        Raises:
            ValueError: If the query name is unknown
        """
        return self._execute(ReportQuery(query), to_naive_utc(self.clock.now()))

    def run_all(self, queries: Optional[Iterable] = None) -> ReportSuite:
        """
        Run several queries (all of them by default) with one reference time.

        A query that raises is recorded with its error and the rest still
        run. Snapshot validation issues are logged and attached to the
        suite, never fatal.
        """
        selected = [ReportQuery(q) for q in queries] if queries is not None else list(ReportQuery)
        as_of = to_naive_utc(self.clock.now())
        suite = ReportSuite(as_of=as_of)

        logger.info("Starting report run", queries=len(selected), as_of=as_of.isoformat())

        if self.validate:
            suite.validation = validate_snapshot(self.snapshot)

        for query in selected:
            suite.results[query] = self._execute(query, as_of)

        logger.info(
            "Report run finished",
            succeeded=len(suite) - len(suite.failed),
            failed=len(suite.failed),
        )
        return suite
