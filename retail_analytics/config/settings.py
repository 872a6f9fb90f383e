"""
Retail BI Analytics
Centralized Configuration Management

Business parameters of the reports (stock bands, spending thresholds,
recency bands, churn and lapse windows) live here rather than in the
report code, so they can be tuned through environment variables.
"""

from functools import lru_cache
from typing import Dict, Optional, Tuple
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


SPENDING_PRESETS: Dict[str, Tuple[float, float]] = {
    "standard": (1000.0, 500.0),
    "premium": (5000.0, 1000.0),
}


class InventorySettings(BaseSettings):
    """Stock band configuration"""

    model_config = SettingsConfigDict(env_prefix="STOCK_")

    at_risk_max: int = Field(default=200, description="Upper bound (inclusive) of the At_Risk band")
    normal_max: int = Field(default=500, description="Upper bound (inclusive) of the Normal band")

    @model_validator(mode="after")
    def validate_bands(self) -> "InventorySettings":
        """Bands must be ordered"""
        if not 0 < self.at_risk_max < self.normal_max:
            raise ValueError("Stock bands must satisfy 0 < at_risk_max < normal_max")
        return self


class SegmentationSettings(BaseSettings):
    """Customer and product segmentation parameters"""

    model_config = SettingsConfigDict(env_prefix="SEGMENT_")

    # Spending segmentation
    spending_preset: str = Field(default="standard", description="Named spending threshold preset")
    high_spend_threshold: Optional[float] = Field(default=None, description="Overrides the preset High threshold")
    medium_spend_threshold: Optional[float] = Field(default=None, description="Overrides the preset Medium threshold")

    # Recency segmentation (days since last purchase, inclusive upper bounds)
    active_days: int = Field(default=30, description="Active segment upper bound")
    recent_days: int = Field(default=60, description="Recent segment upper bound")
    lapsed_days: int = Field(default=90, description="Lapsed segment upper bound")

    # Windows
    country_lapse_days: int = Field(default=90, description="Cutoff age of the last sale for lapsed countries")
    churn_window: str = Field(default="1mo", description="Polars duration after the first purchase")

    # Product analysis
    pareto_threshold: float = Field(default=0.8, description="Cumulative sales share for Pareto analysis")
    top_n: int = Field(default=5, description="Row limit for top-N reports")

    @field_validator("spending_preset")
    @classmethod
    def validate_preset(cls, v: str) -> str:
        """Validate preset name"""
        if v.lower() not in SPENDING_PRESETS:
            raise ValueError(f"Spending preset must be one of: {list(SPENDING_PRESETS)}")
        return v.lower()

    @field_validator("pareto_threshold")
    @classmethod
    def validate_threshold(cls, v: float) -> float:
        """Share must be a fraction"""
        if not 0 < v <= 1:
            raise ValueError("Pareto threshold must be in (0, 1]")
        return v

    @model_validator(mode="after")
    def validate_recency_bands(self) -> "SegmentationSettings":
        """Recency bands must be ordered"""
        if not 0 <= self.active_days < self.recent_days < self.lapsed_days:
            raise ValueError("Recency bands must satisfy active < recent < lapsed")
        return self

    @model_validator(mode="after")
    def validate_spending_thresholds(self) -> "SegmentationSettings":
        """Resolved Medium threshold must not exceed the High one"""
        high, medium = self.spending_thresholds
        if medium > high:
            raise ValueError(
                f"Medium spend threshold ({medium}) exceeds High spend threshold ({high})"
            )
        return self

    @property
    def spending_thresholds(self) -> Tuple[float, float]:
        """(high, medium) spending thresholds after applying overrides"""
        high, medium = SPENDING_PRESETS[self.spending_preset]
        if self.high_spend_threshold is not None:
            high = self.high_spend_threshold
        if self.medium_spend_threshold is not None:
            medium = self.medium_spend_threshold
        return high, medium


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", alias="LOG_FORMAT", description="Log format: json or text")

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate renderer name"""
        if v.lower() not in ("json", "text"):
            raise ValueError("Log format must be json or text")
        return v.lower()


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")

    # Report execution
    max_workers: int = Field(default=4, alias="REPORT_MAX_WORKERS", description="Parallel report workers")

    # Subsystem configurations
    inventory: InventorySettings = Field(default_factory=InventorySettings)
    segmentation: SegmentationSettings = Field(default_factory=SegmentationSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
