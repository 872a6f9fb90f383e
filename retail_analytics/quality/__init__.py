"""
Data Quality Module
"""
from .validators import DataValidator, ValidationResult, validate_snapshot

__all__ = [
    "DataValidator",
    "ValidationResult",
    "validate_snapshot",
]
