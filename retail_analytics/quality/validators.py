"""
Data Validation Module

Rule-based ingestion checks for snapshot frames. The analytics engine
assumes validated input; these checks let a loader fail fast before any
report runs.

Features:
- Null checks on identifiers
- Uniqueness checks
- Range checks for money and counts
- Referential integrity between sales and dimensions
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

import polars as pl
import structlog

from retail_analytics.analytics.exceptions import SnapshotValidationError

if TYPE_CHECKING:
    from retail_analytics.analytics.snapshot import Snapshot

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ValidationSeverity(str, Enum):
    """Severity levels for validation failures"""
    ERROR = "error"  # Critical - blocks the snapshot
    WARNING = "warning"  # Non-critical - logged but continues
    INFO = "info"


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

    def merge(self, other: "ValidationResult", strict: bool = False) -> "ValidationResult":
        """Combine two suite results into one"""
        checks = self.checks + other.checks
        return _summarize(checks, self.started_at, other.completed_at or _utcnow(), strict)


def _missing_column(name: str, column: str, severity: ValidationSeverity) -> ValidationCheck:
    return ValidationCheck(
        name=name,
        passed=False,
        severity=severity,
        message=f"Column '{column}' not found",
    )


def _summarize(
    checks: List[ValidationCheck],
    started_at: datetime,
    completed_at: datetime,
    strict: bool,
) -> ValidationResult:
    passed_checks = sum(1 for r in checks if r.passed)
    failed_checks = sum(1 for r in checks if not r.passed and r.severity == ValidationSeverity.ERROR)
    warning_count = sum(1 for r in checks if not r.passed and r.severity == ValidationSeverity.WARNING)

    if failed_checks > 0:
        status = ValidationStatus.FAILED
    elif warning_count > 0 and strict:
        status = ValidationStatus.FAILED
    elif warning_count > 0:
        status = ValidationStatus.PARTIAL
    else:
        status = ValidationStatus.PASSED

    return ValidationResult(
        status=status,
        total_checks=len(checks),
        passed_checks=passed_checks,
        failed_checks=failed_checks,
        warning_count=warning_count,
        checks=checks,
        started_at=started_at,
        completed_at=completed_at,
    )


class DataValidator:
    """
    Chainable validator for one record frame.

    Example:
        validator = DataValidator()
        validator.add_not_null_check("product_id")
        validator.add_range_check("price", min_value=0)
        result = validator.validate(products_df)
    """

    def __init__(self, strict_mode: bool = False):
        self.strict_mode = strict_mode  # Fail on any warning
        self._checks: List[Callable[[pl.DataFrame], ValidationCheck]] = []

    def reset(self) -> None:
        """Reset validator state"""
        self._checks = []

    def add_not_null_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for null values in column"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            name = f"not_null_{column}"
            if column not in df.columns:
                return _missing_column(name, column, severity)

            null_count = df[column].null_count()
            total = len(df)
            passed = null_count == 0

            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {null_count} null values" if not passed else f"Column '{column}' has no null values",
                details={"null_count": null_count},
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
        def check(df: pl.DataFrame) -> ValidationCheck:
            name = f"unique_{column}"
            if column not in df.columns:
                return _missing_column(name, column, severity)

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
        def check(df: pl.DataFrame) -> ValidationCheck:
            name = f"range_{column}"
            if column not in df.columns:
                return _missing_column(name, column, severity)

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
            total = len(df)
            passed = out_of_range == 0

            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {out_of_range} values outside range [{min_value}, {max_value}]" if not passed else "All values in range",
                details={"min": min_value, "max": max_value, "out_of_range_count": out_of_range},
                failed_rows=out_of_range,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def add_positive_check(
        self,
        column: str,
        allow_zero: bool = True,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for non-negative (or strictly positive) values"""
        if allow_zero:
            return self.add_range_check(column, min_value=0, severity=severity)
        return self.add_range_check(column, min_value=1, severity=severity)

    def add_referential_integrity_check(
        self,
        column: str,
        reference_df: pl.DataFrame,
        reference_column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check that non-null values of column exist in the reference frame"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            name = f"ref_integrity_{column}"
            if column not in df.columns:
                return _missing_column(name, column, severity)

            orphans = df.filter(
                ~pl.col(column).is_in(reference_df[reference_column].drop_nulls().to_list()) & pl.col(column).is_not_null()
            ).height
            total = len(df)
            passed = orphans == 0

            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {orphans} orphan records" if not passed else "Referential integrity maintained",
                details={"orphan_count": orphans},
                failed_rows=orphans,
                total_rows=total,
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

        logger.info("Running validation checks", checks=len(self._checks), rows=len(df))

        results = []
        for check_func in self._checks:
            result = check_func(df)
            results.append(result)

            if not result.passed:
                logger.warning(
                    f"Validation failed: {result.name}",
                    message=result.message,
                    severity=result.severity.value,
                )

        validation_result = _summarize(results, started_at, _utcnow(), self.strict_mode)

        logger.info(
            f"Validation complete: {validation_result.status.value}",
            passed=validation_result.passed_checks,
            failed=validation_result.failed_checks,
            warnings=validation_result.warning_count,
        )

        return validation_result


# Pre-built validators for the snapshot record types
def create_customers_validator() -> DataValidator:
    """Create pre-configured validator for customer records"""
    return (
        DataValidator()
        .add_not_null_check("customer_id")
        .add_unique_check("customer_id")
    )


def create_products_validator() -> DataValidator:
    """Create pre-configured validator for product records"""
    return (
        DataValidator()
        .add_not_null_check("product_id")
        .add_unique_check("product_id")
        .add_not_null_check("price")
        .add_not_null_check("cost")
        .add_not_null_check("stock")
        .add_positive_check("price")
        .add_positive_check("cost")
        .add_positive_check("stock")
    )


def create_sales_validator(
    customers_df: pl.DataFrame,
    products_df: pl.DataFrame,
) -> DataValidator:
    """
    Create pre-configured validator for sale records.

    Unresolved customer/product references are warnings: reports treat
    them as absent rather than failing.
    """
    return (
        DataValidator()
        .add_not_null_check("sale_id")
        .add_unique_check("sale_id")
        .add_not_null_check("order_date")
        .add_not_null_check("quantity")
        .add_positive_check("quantity", allow_zero=False)
        .add_positive_check("amount")
        .add_referential_integrity_check(
            "customer_id", customers_df, "customer_id", severity=ValidationSeverity.WARNING
        )
        .add_referential_integrity_check(
            "product_id", products_df, "product_id", severity=ValidationSeverity.WARNING
        )
    )


def validate_snapshot(
    snapshot: "Snapshot",
    strict: bool = False,
    raise_on_failure: bool = False,
) -> ValidationResult:
    """
    Validate all three collections of a snapshot.

    Args:
        snapshot: Snapshot to check
        strict: Treat warnings as failures
        raise_on_failure: Raise instead of returning a FAILED result

    Raises:
        SnapshotValidationError: when raise_on_failure and the result is FAILED
    """
    result = create_customers_validator().validate(snapshot.customers)
    result = result.merge(create_products_validator().validate(snapshot.products), strict)
    result = result.merge(
        create_sales_validator(snapshot.customers, snapshot.products).validate(snapshot.sales),
        strict,
    )

    if raise_on_failure and result.status == ValidationStatus.FAILED:
        names = ", ".join(c.name for c in result.failures)
        raise SnapshotValidationError(f"Snapshot validation failed: {names}", result)

    return result
