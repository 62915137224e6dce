"""
Data Validation Module

Rule-based checks over the reporting tables before reports run.
Implements validation patterns inspired by Great Expectations.

Features:
- Null checks
- Uniqueness checks
- Range/boundary checks
- Referential integrity checks

Reports tolerate dirty data (orphans are dropped by joins, undated rows
are skipped by date reports), so failures here are surfaced, not fatal.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

import polars as pl
import structlog

if TYPE_CHECKING:
    from retail_analytics.reporting.snapshot import RetailSnapshot

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class ValidationSeverity(str, Enum):
    """Severity levels for validation failures"""
    ERROR = "error"  # Data contradicts the schema invariants
    WARNING = "warning"  # Tolerated, but reports will skip rows
    INFO = "info"  # Informational only


class ValidationStatus(str, Enum):
    """Overall validation status"""
    PASSED = "passed"
    FAILED = "failed"
    PARTIAL = "partial"


@dataclass
class ValidationCheck:
    """Single validation check result"""
    name: str
    passed: bool
    severity: ValidationSeverity
    message: str
    details: Optional[Dict[str, Any]] = None
    failed_rows: int = 0
    total_rows: int = 0


@dataclass
class ValidationResult:
    """Complete validation suite result"""
    status: ValidationStatus
    total_checks: int
    passed_checks: int
    failed_checks: int
    warning_count: int
    checks: List[ValidationCheck] = field(default_factory=list)
    started_at: datetime = field(default_factory=_utcnow)
    completed_at: Optional[datetime] = None

    @property
    def success_rate(self) -> float:
        """Percentage of passed checks"""
        if self.total_checks == 0:
            return 100.0
        return (self.passed_checks / self.total_checks) * 100

    @property
    def failures(self) -> List[ValidationCheck]:
        return [c for c in self.checks if not c.passed]


class DataValidator:
    """
    Data validator built from chained checks.

    Example:
        validator = DataValidator("transactions")
        validator.add_not_null_check("customer_id")
        validator.add_range_check("amount_cents", min_value=0)
        result = validator.validate(df)
    """

    def __init__(self, table: str = "table", strict_mode: bool = False):
        self.table = table
        self.strict_mode = strict_mode  # Fail on any warning
        self._checks: List[Callable[[pl.DataFrame], ValidationCheck]] = []

    def reset(self) -> None:
        """Reset validator state"""
        self._checks = []

    def _missing_column(self, name: str, column: str, severity: ValidationSeverity) -> ValidationCheck:
        return ValidationCheck(
            name=name,
            passed=False,
            severity=severity,
            message=f"Column '{column}' not found in {self.table}",
        )

    def add_not_null_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for null values in column"""
        name = f"{self.table}.not_null_{column}"

        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return self._missing_column(name, column, severity)

            null_count = df[column].null_count()
            total = len(df)
            passed = null_count == 0

            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {null_count} null values" if not passed else f"Column '{column}' has no null values",
                details={"null_count": null_count, "null_percentage": (null_count / total) * 100 if total > 0 else 0},
                failed_rows=null_count,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def add_unique_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for uniqueness of column values"""
        name = f"{self.table}.unique_{column}"

        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return self._missing_column(name, column, severity)

            total = len(df)
            duplicate_count = total - df[column].n_unique()
            passed = duplicate_count == 0

            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {duplicate_count} duplicate values" if not passed else f"Column '{column}' values are unique",
                details={"duplicate_count": duplicate_count},
                failed_rows=duplicate_count,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def add_range_check(
        self,
        column: str,
        min_value: Optional[float] = None,
        max_value: Optional[float] = None,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for values within specified range"""
        name = f"{self.table}.range_{column}"

        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return self._missing_column(name, column, severity)

            conditions = []
            if min_value is not None:
                conditions.append(pl.col(column) < min_value)
            if max_value is not None:
                conditions.append(pl.col(column) > max_value)

            if not conditions:
                return ValidationCheck(
                    name=name,
                    passed=True,
                    severity=severity,
                    message="No range specified",
                )

            combined = conditions[0]
            for cond in conditions[1:]:
                combined = combined | cond

            out_of_range = df.filter(combined).height
            passed = out_of_range == 0

            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {out_of_range} values outside range [{min_value}, {max_value}]" if not passed else "All values in range",
                details={"min": min_value, "max": max_value, "out_of_range_count": out_of_range},
                failed_rows=out_of_range,
                total_rows=len(df),
            )

        self._checks.append(check)
        return self

    def add_referential_integrity_check(
        self,
        column: str,
        reference_df: pl.DataFrame,
        reference_column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check that every non-null value exists in the reference table"""
        name = f"{self.table}.ref_integrity_{column}"

        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return self._missing_column(name, column, severity)

            orphans = (
                df.filter(pl.col(column).is_not_null())
                .join(
                    reference_df.select(pl.col(reference_column).alias(column)).unique(),
                    on=column,
                    how="anti",
                )
                .height
            )
            passed = orphans == 0

            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {orphans} orphan records" if not passed else "Referential integrity maintained",
                details={"orphan_count": orphans},
                failed_rows=orphans,
                total_rows=len(df),
            )

        self._checks.append(check)
        return self

    def validate(self, df: pl.DataFrame) -> ValidationResult:
        """
        Run all validation checks on DataFrame.

        Args:
            df: DataFrame to validate

        Returns:
            ValidationResult with all check results
        """
        started_at = _utcnow()
        results = []

        logger.debug("Running validation checks", table=self.table, checks=len(self._checks), rows=len(df))

        for check_func in self._checks:
            result = check_func(df)
            results.append(result)

            if not result.passed:
                logger.warning(
                    f"Validation failed: {result.name}",
                    message=result.message,
                    severity=result.severity.value,
                )

        return _summarize(results, started_at, self.strict_mode)


def _summarize(
    results: List[ValidationCheck],
    started_at: datetime,
    strict_mode: bool = False,
) -> ValidationResult:
    passed_checks = sum(1 for r in results if r.passed)
    failed_checks = sum(1 for r in results if not r.passed and r.severity == ValidationSeverity.ERROR)
    warning_count = sum(1 for r in results if not r.passed and r.severity == ValidationSeverity.WARNING)

    if failed_checks > 0:
        status = ValidationStatus.FAILED
    elif warning_count > 0 and strict_mode:
        status = ValidationStatus.FAILED
    elif warning_count > 0:
        status = ValidationStatus.PARTIAL
    else:
        status = ValidationStatus.PASSED

    return ValidationResult(
        status=status,
        total_checks=len(results),
        passed_checks=passed_checks,
        failed_checks=failed_checks,
        warning_count=warning_count,
        checks=results,
        started_at=started_at,
        completed_at=_utcnow(),
    )


# Pre-built validators for the reporting tables
def create_customers_validator(snapshot: "RetailSnapshot") -> DataValidator:
    """Customers: unique ids, names present, known regions"""
    return (
        DataValidator("customers")
        .add_not_null_check("customer_id")
        .add_unique_check("customer_id")
        .add_not_null_check("name", severity=ValidationSeverity.WARNING)
        .add_referential_integrity_check(
            "region_id", snapshot.regions, "region_id", severity=ValidationSeverity.WARNING
        )
    )


def create_transactions_validator(snapshot: "RetailSnapshot") -> DataValidator:
    """Transactions: unique ids, non-negative amounts, existing customers and products"""
    return (
        DataValidator("transactions")
        .add_not_null_check("transaction_id")
        .add_unique_check("transaction_id")
        .add_not_null_check("amount_cents")
        .add_range_check("amount_cents", min_value=0)
        .add_not_null_check("transaction_date", severity=ValidationSeverity.WARNING)
        .add_referential_integrity_check("customer_id", snapshot.customers, "customer_id")
        .add_referential_integrity_check("product_id", snapshot.products, "product_id")
    )


def create_products_validator() -> DataValidator:
    """Products: unique ids, category present"""
    return (
        DataValidator("products")
        .add_not_null_check("product_id")
        .add_unique_check("product_id")
        .add_not_null_check("category", severity=ValidationSeverity.WARNING)
    )


def create_regions_validator() -> DataValidator:
    """Regions: unique ids"""
    return (
        DataValidator("regions")
        .add_not_null_check("region_id")
        .add_unique_check("region_id")
    )


def validate_snapshot(snapshot: "RetailSnapshot", strict_mode: bool = False) -> ValidationResult:
    """
    Validate all four tables of a snapshot and merge the results.

    Args:
        snapshot: Reporting tables
        strict_mode: Treat warnings as failures

    Returns:
        ValidationResult covering every table's checks
    """
    started_at = _utcnow()
    checks: List[ValidationCheck] = []

    for validator, df in (
        (create_customers_validator(snapshot), snapshot.customers),
        (create_transactions_validator(snapshot), snapshot.transactions),
        (create_products_validator(), snapshot.products),
        (create_regions_validator(), snapshot.regions),
    ):
        checks.extend(validator.validate(df).checks)

    result = _summarize(checks, started_at, strict_mode)

    logger.info(
        f"Snapshot validation complete: {result.status.value}",
        passed=result.passed_checks,
        failed=result.failed_checks,
        warnings=result.warning_count,
    )
    return result
