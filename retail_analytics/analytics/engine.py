"""
Analytics Engine

Report catalogue and runner. Every report is a pure function of one
snapshot, so reports can be computed concurrently over the same snapshot.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional

import polars as pl
import structlog
from structlog.contextvars import bound_contextvars

from retail_analytics.config import Settings, get_settings
from . import customers, demographics, inventory, products, revenue
from .exceptions import UnknownReportError
from .snapshot import Snapshot

logger = structlog.get_logger(__name__)


@dataclass
class ReportResult:
    """Result of a single report run"""
    name: str
    rows: Optional[pl.DataFrame]
    started_at: datetime
    completed_at: datetime
    duration_seconds: float
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def row_count(self) -> int:
        return 0 if self.rows is None else self.rows.height


class AnalyticsEngine:
    """
    Runs the report catalogue against one snapshot.

    Reports that depend on the current date use the injected `as_of`;
    the engine never reads the system clock for report inputs.

    Example:
        engine = AnalyticsEngine(snapshot, as_of=date(2024, 6, 30))
        results = engine.run_all()
        results["pareto_products"].rows
    """

    def __init__(
        self,
        snapshot: Snapshot,
        as_of: date,
        settings: Optional[Settings] = None,
        cohort_start: Optional[date] = None,
        cohort_end: Optional[date] = None,
    ):
        self.snapshot = snapshot
        self.as_of = as_of
        self.settings = settings or get_settings()
        # Churn cohort defaults to customers who joined in the year before as_of
        self.cohort_end = cohort_end or as_of
        self.cohort_start = cohort_start or date(self.cohort_end.year - 1, 1, 1)
        self._reports = self._build_catalogue()

    def _build_catalogue(self) -> Dict[str, Callable[[], pl.DataFrame]]:
        snap = self.snapshot
        seg = self.settings.segmentation
        bands = self.settings.inventory
        high, medium = seg.spending_thresholds

        return {
            # Inventory
            "stock_segmentation": lambda: inventory.stock_segmentation(
                snap, bands.at_risk_max, bands.normal_max
            ),
            "stock_status_summary": lambda: inventory.stock_status_summary(
                snap, bands.at_risk_max, bands.normal_max
            ),
            "stock_value_by_category": lambda: inventory.stock_value_by_category(snap),
            "stock_to_sales_ratio": lambda: inventory.stock_to_sales_ratio(snap),
            "depletion_forecast": lambda: inventory.depletion_forecast(snap),
            # Products
            "top_selling_products": lambda: products.top_selling_products(snap, seg.top_n),
            "average_order_value_by_category": lambda: products.average_order_value_by_category(snap),
            "pareto_products": lambda: products.pareto_products(snap, seg.pareto_threshold),
            "category_profitability": lambda: products.category_profitability(snap),
            "product_profit_margins": lambda: products.product_profit_margins(snap),
            # Customers
            "inactive_customers": lambda: customers.inactive_customers(snap),
            "repeat_purchase_customers": lambda: customers.repeat_purchase_customers(snap),
            "top_decile_customers": lambda: customers.top_decile_customers(snap),
            "average_purchase_interval": lambda: customers.average_purchase_interval(snap),
            "average_sale_amount": lambda: customers.average_sale_amount(snap),
            "spending_segments": lambda: customers.spending_segments(snap, high, medium),
            "spending_segment_summary": lambda: customers.spending_segment_summary(
                snap, high_threshold=high, medium_threshold=medium
            ),
            "recency_segments": lambda: customers.recency_segments(
                snap, self.as_of, seg.active_days, seg.recent_days, seg.lapsed_days
            ),
            "churn_rate": lambda: customers.churn_rate(
                snap, self.cohort_start, self.cohort_end, seg.churn_window
            ),
            "top_quartile_marital_distribution": lambda: customers.top_quartile_marital_distribution(snap),
            # Revenue & geography
            "revenue_by_country": lambda: revenue.revenue_by_country(snap),
            "revenue_by_month": lambda: revenue.revenue_by_month(snap),
            "acquisition_rate_by_country": lambda: revenue.acquisition_rate_by_country(snap),
            "lapsed_countries": lambda: revenue.lapsed_countries(
                snap, self.as_of, seg.country_lapse_days
            ),
            # Demographics
            "demographic_order_frequency": lambda: demographics.demographic_order_frequency(
                snap, seg.top_n
            ),
            "age_group_behavior": lambda: demographics.age_group_behavior(snap, self.as_of),
        }

    @property
    def report_names(self) -> List[str]:
        return list(self._reports)

    def compute(self, name: str) -> pl.DataFrame:
        """Compute one report and return its rows, letting errors propagate"""
        try:
            report = self._reports[name]
        except KeyError:
            raise UnknownReportError(name) from None
        return report()

    def run(self, name: str) -> ReportResult:
        """
        Run one report, capturing timing and any failure.

        Log events emitted while the report runs carry its name.

        Raises:
            UnknownReportError: if name is not in the catalogue
        """
        if name not in self._reports:
            raise UnknownReportError(name)

        with bound_contextvars(report=name):
            return self._timed(name)

    def _timed(self, name: str) -> ReportResult:
        started_at = datetime.now(timezone.utc)
        rows = None
        error = None

        try:
            rows = self._reports[name]()
        except Exception as e:
            logger.error("Report failed", error=str(e), exc_info=True)
            error = str(e)

        completed_at = datetime.now(timezone.utc)
        result = ReportResult(
            name=name,
            rows=rows,
            started_at=started_at,
            completed_at=completed_at,
            duration_seconds=(completed_at - started_at).total_seconds(),
            error=error,
        )

        if result.succeeded:
            logger.info(
                "Report complete",
                rows=result.row_count,
                duration=round(result.duration_seconds, 4),
            )
        return result

    def run_all(
        self,
        names: Optional[Iterable[str]] = None,
        max_workers: Optional[int] = None,
    ) -> Dict[str, ReportResult]:
        """
        Run several reports over the snapshot in parallel.

        Args:
            names: Reports to run, defaults to the whole catalogue
            max_workers: Thread pool size, defaults to settings.max_workers

        Returns:
            Dictionary of report results by name, in request order
        """
        names = list(names) if names is not None else self.report_names
        unknown = [n for n in names if n not in self._reports]
        if unknown:
            raise UnknownReportError(unknown[0])

        workers = max_workers or self.settings.max_workers
        logger.info("Running reports", count=len(names), workers=workers, as_of=str(self.as_of))

        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = dict(zip(names, pool.map(self.run, names)))

        failed = [n for n, r in results.items() if not r.succeeded]
        logger.info(
            "Reports complete",
            succeeded=len(results) - len(failed),
            failed=len(failed),
            total_duration=round(sum(r.duration_seconds for r in results.values()), 4),
        )
        return results
