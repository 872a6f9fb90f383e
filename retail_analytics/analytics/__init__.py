"""
Analytics Engine Module
"""
from .engine import AnalyticsEngine, ReportResult
from .exceptions import AnalyticsError, SnapshotValidationError, UnknownReportError
from .models import Customer, Product, Sale
from .snapshot import Snapshot

__all__ = [
    "AnalyticsEngine",
    "ReportResult",
    "AnalyticsError",
    "SnapshotValidationError",
    "UnknownReportError",
    "Customer",
    "Product",
    "Sale",
    "Snapshot",
]
