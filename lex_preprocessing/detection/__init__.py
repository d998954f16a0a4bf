"""Quality detection.

This module provides the QualityDetector and the individual checks it runs.
"""

from __future__ import annotations

from .checks import (
    COLUMN_CHECKS,
    check_class_imbalance,
    check_constant_column,
    check_date_format,
    check_duplicate_rows,
    check_encoding,
    check_high_cardinality,
    check_missing_values,
    check_outliers,
    check_type_inconsistency,
    check_whitespace,
    outlier_bounds,
)
from .detector import QualityDetector

__all__ = [
    "QualityDetector",
    "COLUMN_CHECKS",
    "check_encoding",
    "check_missing_values",
    "check_duplicate_rows",
    "check_type_inconsistency",
    "check_outliers",
    "check_class_imbalance",
    "check_high_cardinality",
    "check_constant_column",
    "check_whitespace",
    "check_date_format",
    "outlier_bounds",
]
