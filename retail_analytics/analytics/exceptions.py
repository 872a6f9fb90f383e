"""
Analytics Exceptions
"""
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from retail_analytics.quality.validators import ValidationResult


class AnalyticsError(Exception):
    """Base error for the analytics engine"""


class UnknownReportError(AnalyticsError, KeyError):
    """Requested report is not in the catalogue"""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown report: {self.name!r}"


class SnapshotValidationError(AnalyticsError):
    """Snapshot failed ingestion validation"""

    def __init__(self, message: str, result: Optional["ValidationResult"] = None):
        super().__init__(message)
        self.result = result
