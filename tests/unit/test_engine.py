"""
Unit Tests - Analytics Engine
"""
from datetime import date

import pytest

from retail_analytics.analytics import AnalyticsEngine, UnknownReportError
from retail_analytics.analytics import products
from retail_analytics.config import Settings
from retail_analytics.config.settings import InventorySettings, SegmentationSettings


class TestAnalyticsEngine:
    """Tests for the report runner"""

    def test_catalogue(self, snapshot, as_of):
        engine = AnalyticsEngine(snapshot, as_of)

        assert "pareto_products" in engine.report_names
        assert "churn_rate" in engine.report_names
        assert len(engine.report_names) == 26

    def test_run_all_succeeds(self, snapshot, as_of):
        """Every report runs on the fixture snapshot"""
        results = AnalyticsEngine(snapshot, as_of).run_all()

        assert list(results) == AnalyticsEngine(snapshot, as_of).report_names
        assert all(r.succeeded for r in results.values())
        assert results["stock_segmentation"].row_count == 5

    def test_run_all_subset_in_request_order(self, snapshot, as_of):
        results = AnalyticsEngine(snapshot, as_of).run_all(
            ["revenue_by_month", "inactive_customers"], max_workers=2
        )

        assert list(results) == ["revenue_by_month", "inactive_customers"]

    def test_reports_are_idempotent(self, snapshot, as_of):
        """Two runs over one snapshot give identical frames"""
        first = AnalyticsEngine(snapshot, as_of).run_all()
        second = AnalyticsEngine(snapshot, as_of).run_all(max_workers=1)

        for name, result in first.items():
            assert result.rows.equals(second[name].rows), name

    def test_unknown_report(self, snapshot, as_of):
        engine = AnalyticsEngine(snapshot, as_of)

        with pytest.raises(UnknownReportError):
            engine.run("no_such_report")
        with pytest.raises(UnknownReportError):
            engine.run_all(["pareto_products", "no_such_report"])
        with pytest.raises(UnknownReportError):
            engine.compute("no_such_report")

    def test_failure_is_recorded_not_raised(self, snapshot, as_of, monkeypatch):
        """One failing report does not stop the others"""
        def boom(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(products, "pareto_products", boom)

        results = AnalyticsEngine(snapshot, as_of).run_all()

        assert results["pareto_products"].error == "boom"
        assert results["pareto_products"].rows is None
        assert results["category_profitability"].succeeded

    def test_compute_propagates_errors(self, snapshot, as_of, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(products, "pareto_products", boom)

        with pytest.raises(RuntimeError):
            AnalyticsEngine(snapshot, as_of).compute("pareto_products")

    def test_settings_drive_thresholds(self, snapshot, as_of):
        """Premium preset moves C1 from High to Medium"""
        settings = Settings(segmentation=SegmentationSettings(spending_preset="premium"))
        engine = AnalyticsEngine(snapshot, as_of, settings=settings)

        rows = engine.compute("spending_segments")

        segments = dict(zip(rows["customer_id"], rows["spending_segment"]))
        assert segments["C1"] == "Medium"

    def test_injected_stock_bands_reach_every_stock_report(self, snapshot, as_of):
        """Segmentation and its summary agree under non-default bands"""
        settings = Settings(inventory=InventorySettings(at_risk_max=10, normal_max=20))
        engine = AnalyticsEngine(snapshot, as_of, settings=settings)

        rows = engine.compute("stock_segmentation")
        summary = engine.compute("stock_status_summary")

        statuses = dict(zip(rows["product_id"], rows["stock_status"]))
        assert statuses["P1"] == "Out_Of_Stock"
        assert rows["stock_status"].to_list().count("Overstocked") == 4
        assert dict(zip(summary["stock_status"], summary["product_count"])) == {
            "Out_Of_Stock": 1,
            "At_Risk": 0,
            "Normal": 0,
            "Overstocked": 4,
        }

    def test_injected_recency_bands(self, snapshot, as_of):
        """C2, 29 days since the last purchase, is past every narrowed band"""
        settings = Settings(
            segmentation=SegmentationSettings(active_days=5, recent_days=6, lapsed_days=7)
        )
        engine = AnalyticsEngine(snapshot, as_of, settings=settings)

        rows = engine.compute("recency_segments")

        segments = dict(zip(rows["customer_id"], rows["recency_segment"]))
        assert segments["C2"] == "Inactive"

        defaults = AnalyticsEngine(snapshot, as_of).compute("recency_segments")
        assert dict(zip(defaults["customer_id"], defaults["recency_segment"]))["C2"] == "Active"

    def test_churn_cohort_defaults_to_previous_year(self, snapshot, as_of):
        engine = AnalyticsEngine(snapshot, as_of)

        assert engine.cohort_start == date(2023, 1, 1)
        assert engine.cohort_end == as_of
        assert engine.compute("churn_rate")["cohort_size"].to_list() == [6]

    def test_explicit_churn_cohort(self, snapshot, as_of):
        engine = AnalyticsEngine(
            snapshot, as_of, cohort_start=date(2023, 1, 1), cohort_end=date(2023, 12, 31)
        )

        assert engine.compute("churn_rate")["churn_rate"].to_list() == [25.0]
