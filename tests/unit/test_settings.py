"""
Unit Tests - Settings
"""
import pytest
from pydantic import ValidationError

from retail_analytics.config import Settings, get_settings
from retail_analytics.config.settings import InventorySettings, MonitoringSettings, SegmentationSettings


class TestSettings:
    """Tests for configuration"""

    def test_defaults(self, test_settings):
        assert test_settings.app_env == "testing"
        assert test_settings.inventory.at_risk_max == 200
        assert test_settings.inventory.normal_max == 500
        assert test_settings.segmentation.spending_thresholds == (1000.0, 500.0)
        assert test_settings.segmentation.churn_window == "1mo"

    def test_only_read_fields_are_declared(self):
        assert set(Settings.model_fields) == {
            "app_env",
            "max_workers",
            "inventory",
            "segmentation",
            "monitoring",
        }
        assert not hasattr(Settings(), "is_production")

    def test_invalid_env(self):
        with pytest.raises(ValidationError):
            Settings(APP_ENV="bogus")

    def test_preset_from_environment(self, monkeypatch):
        monkeypatch.setenv("SEGMENT_SPENDING_PRESET", "premium")

        assert get_settings().segmentation.spending_thresholds == (5000.0, 1000.0)

    def test_threshold_override(self, monkeypatch):
        monkeypatch.setenv("SEGMENT_HIGH_SPEND_THRESHOLD", "2500")

        assert get_settings().segmentation.spending_thresholds == (2500.0, 500.0)

    def test_medium_override_above_preset_high(self, monkeypatch):
        """A Medium override above the preset High is rejected at load time"""
        monkeypatch.setenv("SEGMENT_MEDIUM_SPEND_THRESHOLD", "2000")

        with pytest.raises(ValidationError):
            get_settings()

    def test_medium_override_within_premium_preset(self):
        settings = SegmentationSettings(spending_preset="premium", medium_spend_threshold=2000)

        assert settings.spending_thresholds == (5000.0, 2000.0)

    def test_unknown_log_format(self):
        with pytest.raises(ValidationError):
            MonitoringSettings(LOG_FORMAT="xml")

    def test_unknown_preset(self):
        with pytest.raises(ValidationError):
            SegmentationSettings(spending_preset="gold")

    def test_unordered_bands(self):
        with pytest.raises(ValidationError):
            InventorySettings(at_risk_max=600, normal_max=500)
        with pytest.raises(ValidationError):
            SegmentationSettings(active_days=60, recent_days=30)

    def test_pareto_threshold_range(self):
        with pytest.raises(ValidationError):
            SegmentationSettings(pareto_threshold=1.5)

    def test_stock_bands_from_environment(self, monkeypatch, snapshot):
        """Report defaults follow the environment"""
        from retail_analytics.analytics.inventory import stock_segmentation

        monkeypatch.setenv("STOCK_AT_RISK_MAX", "100")

        result = stock_segmentation(snapshot)

        assert dict(zip(result["product_id"], result["stock_status"]))["P2"] == "Normal"
