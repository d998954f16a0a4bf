"""Individual quality checks.

Each column check takes a column, the snapshot it belongs to and the active
configuration, and returns at most one QualityIssue. Checks never modify
their inputs.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
from scipy import stats

from ..config import OutlierMethod, QualityConfig
from ..core.snapshot import (
    Column,
    ColumnType,
    DatasetSnapshot,
    date_format_family,
    has_encoding_damage,
    missing_mask,
    present_values,
    semantic_kind,
)
from ..core.types import IssueType, QualityIssue, Severity

# Minority semantic kinds at or below this share are tolerated
_TYPE_MINORITY_TOLERANCE = 0.05

# Share of values that must look like dates before formats are compared
_DATE_COLUMN_MIN_SHARE = 0.8

_KIND_ORDER = ("numeric", "date", "boolean", "text")

_MISSING_FIXES = {
    Severity.CRITICAL: "Consider dropping column or collecting better data",
    Severity.HIGH: "Impute with median/mode or use predictive model",
    Severity.MEDIUM: "Impute with median/mode",
    Severity.LOW: "Impute with median/mode or drop rows",
}


def _ratio(count: int, total: int) -> float:
    if total == 0:
        return 0.0
    return count / total


def _is_label(column: Column, config: QualityConfig) -> bool:
    return config.label_column is not None and column.name == config.label_column


def check_encoding(
    column: Column, snapshot: DatasetSnapshot, config: QualityConfig
) -> QualityIssue | None:
    """Flag text values damaged by a wrong encoding."""
    if column.dtype is not ColumnType.TEXT:
        return None

    present = present_values(column.values)
    damaged = present.map(has_encoding_damage)
    count = int(damaged.sum())
    ratio = _ratio(count, snapshot.row_count)
    severity = config.missing_value_bands.classify(ratio)
    if severity is None:
        return None

    return QualityIssue(
        type=IssueType.ENCODING_ISSUE,
        severity=severity,
        column_name=column.name,
        description=f"{count} values with encoding damage ({ratio:.1%})",
        suggested_fix="Re-export the source as UTF-8 or drop the damaged rows",
        metadata={"affected_count": count, "affected_ratio": ratio},
    )


def check_missing_values(
    column: Column, snapshot: DatasetSnapshot, config: QualityConfig
) -> QualityIssue | None:
    """Flag columns with missing values, banded by missing ratio."""
    mask = missing_mask(column.values)
    count = int(mask.sum())
    ratio = _ratio(count, snapshot.row_count)
    severity = config.missing_value_bands.classify(ratio)
    if severity is None:
        return None

    skewness = 0.0
    if column.dtype is ColumnType.NUMERIC:
        present = pd.to_numeric(column.values[~mask], errors="coerce").dropna()
        if len(present) >= 3:
            value = float(present.skew())
            skewness = 0.0 if np.isnan(value) else value

    return QualityIssue(
        type=IssueType.MISSING_VALUES,
        severity=severity,
        column_name=column.name,
        description=f"{ratio:.1%} missing values ({count} of {snapshot.row_count})",
        suggested_fix=_MISSING_FIXES[severity],
        metadata={
            "missing_count": count,
            "missing_ratio": ratio,
            "column_type": column.dtype.value,
            "skewness": skewness,
            "is_label": _is_label(column, config),
        },
    )


def check_type_inconsistency(
    column: Column, snapshot: DatasetSnapshot, config: QualityConfig
) -> QualityIssue | None:
    """Flag text columns whose values do not share one semantic type."""
    if column.dtype is not ColumnType.TEXT:
        return None

    present = present_values(column.values)
    if present.empty:
        return None

    counts = present.map(semantic_kind).value_counts()
    if len(counts) == 1:
        return _check_token_only_text(column, snapshot, str(counts.index[0]), int(counts.iloc[0]))

    ranked = sorted(counts.items(), key=lambda kv: (-kv[1], _KIND_ORDER.index(kv[0])))
    dominant, dominant_count = ranked[0]
    inconsistent = int(len(present) - dominant_count)
    if dominant == "text" or _ratio(inconsistent, len(present)) <= _TYPE_MINORITY_TOLERANCE:
        return None

    ratio = _ratio(inconsistent, snapshot.row_count)
    severity = config.missing_value_bands.classify(ratio)
    if severity is None:
        return None

    breakdown = ", ".join(f"{n} {kind}" for kind, n in ranked)
    return QualityIssue(
        type=IssueType.TYPE_INCONSISTENCY,
        severity=severity,
        column_name=column.name,
        description=f"Mixed types: {breakdown}",
        suggested_fix=f"Convert to {dominant}, treat unparseable values as missing",
        metadata={
            "dominant_type": dominant,
            "inconsistent_count": inconsistent,
            "inconsistent_ratio": ratio,
            "type_counts": {kind: int(n) for kind, n in ranked},
        },
    )


def _check_token_only_text(
    column: Column, snapshot: DatasetSnapshot, kind: str, count: int
) -> QualityIssue | None:
    """Numbers or booleans kept as text only because of null tokens like '?'."""
    if kind not in ("numeric", "boolean"):
        return None

    tokens = int((missing_mask(column.values) & column.values.notna()).sum())
    if tokens == 0:
        return None

    return QualityIssue(
        type=IssueType.TYPE_INCONSISTENCY,
        severity=Severity.LOW,
        column_name=column.name,
        description=f"{kind.capitalize()} values stored as text alongside {tokens} null token(s)",
        suggested_fix=f"Convert to {kind}, treat null tokens as missing",
        metadata={
            "dominant_type": kind,
            "inconsistent_count": tokens,
            "inconsistent_ratio": _ratio(tokens, snapshot.row_count),
            "type_counts": {kind: count},
        },
    )


def outlier_bounds(
    values: pd.Series, method: OutlierMethod, threshold: float
) -> tuple[float, float] | None:
    """Compute the inclusive range outside of which values are outliers.

    Returns None when the spread is zero and no value can be an outlier.
    """
    numbers = values.to_numpy(dtype=float)
    if method is OutlierMethod.IQR:
        q1, q3 = np.percentile(numbers, [25, 75])
        iqr = q3 - q1
        if iqr == 0:
            return None
        return float(q1 - threshold * iqr), float(q3 + threshold * iqr)

    std = float(np.std(numbers))
    if std == 0:
        return None
    mean = float(np.mean(numbers))
    return mean - threshold * std, mean + threshold * std


def check_outliers(
    column: Column, snapshot: DatasetSnapshot, config: QualityConfig
) -> QualityIssue | None:
    """Flag numeric columns with values outside IQR fences or a z-score cutoff."""
    if column.dtype is not ColumnType.NUMERIC or _is_label(column, config):
        return None

    values = pd.to_numeric(present_values(column.values), errors="coerce").dropna()
    if len(values) < 4:
        return None

    threshold = config.effective_outlier_threshold
    bounds = outlier_bounds(values, config.outlier_method, threshold)
    if bounds is None:
        return None
    lower, upper = bounds

    if config.outlier_method is OutlierMethod.ZSCORE:
        flagged = np.abs(stats.zscore(values.to_numpy(dtype=float))) > threshold
    else:
        flagged = ((values < lower) | (values > upper)).to_numpy()
    count = int(flagged.sum())

    ratio = _ratio(count, snapshot.row_count)
    severity = config.outlier_bands.classify(ratio)
    if severity is None:
        return None

    return QualityIssue(
        type=IssueType.OUTLIERS,
        severity=severity,
        column_name=column.name,
        description=f"{ratio:.1%} outliers detected by {config.outlier_method.value}",
        suggested_fix="Clip extreme values to the detection bounds",
        metadata={
            "method": config.outlier_method.value,
            "threshold": threshold,
            "lower_bound": lower,
            "upper_bound": upper,
            "outlier_count": count,
            "outlier_ratio": ratio,
        },
    )


def check_class_imbalance(
    column: Column, snapshot: DatasetSnapshot, config: QualityConfig
) -> QualityIssue | None:
    """Flag a label column whose minority class is under-represented."""
    if not _is_label(column, config):
        return None

    present = present_values(column.values)
    counts = present.value_counts()
    if len(counts) < 2:
        return None

    ranked = sorted(((str(k), int(v)) for k, v in counts.items()), key=lambda kv: (kv[1], kv[0]))
    minority, minority_count = ranked[0]
    majority, majority_count = max(ranked, key=lambda kv: (kv[1], kv[0]))
    ratio = minority_count / majority_count
    if ratio >= config.minority_class_ratio:
        return None

    severity = Severity.HIGH if ratio < config.minority_class_ratio / 2.5 else Severity.MEDIUM
    return QualityIssue(
        type=IssueType.CLASS_IMBALANCE,
        severity=severity,
        column_name=column.name,
        description=f"Class imbalance detected: {majority_count / minority_count:.1f}:1 ratio",
        suggested_fix="Resample so the minority class reaches the configured ratio",
        metadata={
            "class_counts": dict(sorted(ranked)),
            "minority_class": minority,
            "majority_class": majority,
            "minority_ratio": ratio,
        },
    )


def check_high_cardinality(
    column: Column, snapshot: DatasetSnapshot, config: QualityConfig
) -> QualityIssue | None:
    """Report text columns where almost every value is distinct."""
    if column.dtype is not ColumnType.TEXT or _is_label(column, config):
        return None

    present = present_values(column.values)
    if present.empty:
        return None

    unique = int(present.nunique())
    ratio = unique / len(present)
    if unique < config.high_cardinality_min_unique or ratio <= config.high_cardinality_ratio:
        return None

    return QualityIssue(
        type=IssueType.HIGH_CARDINALITY,
        severity=Severity.INFO,
        column_name=column.name,
        description=f"{unique} distinct values ({ratio:.1%} of rows)",
        suggested_fix=f"Keep the {config.max_categories} most frequent values, group the rest",
        metadata={"unique_count": unique, "unique_ratio": ratio},
    )


def check_constant_column(
    column: Column, snapshot: DatasetSnapshot, config: QualityConfig
) -> QualityIssue | None:
    """Flag columns with exactly one distinct value."""
    present = present_values(column.values)
    if present.nunique() != 1:
        return None

    is_label = _is_label(column, config)
    return QualityIssue(
        type=IssueType.CONSTANT_COLUMN,
        severity=Severity.CRITICAL if is_label else Severity.MEDIUM,
        column_name=column.name,
        description="Column has constant value (zero variance)",
        suggested_fix=(
            "Label column must have varying values for training"
            if is_label
            else "Remove this column as it provides no information"
        ),
        metadata={"value": str(present.iloc[0]), "is_label": is_label},
    )


def check_whitespace(
    column: Column, snapshot: DatasetSnapshot, config: QualityConfig
) -> QualityIssue | None:
    """Flag text values with leading or trailing whitespace."""
    if column.dtype is not ColumnType.TEXT:
        return None

    present = present_values(column.values)
    padded = present.map(lambda v: isinstance(v, str) and v != v.strip())
    count = int(padded.sum())
    if count == 0:
        return None

    ratio = _ratio(count, snapshot.row_count)
    return QualityIssue(
        type=IssueType.WHITESPACE_ISSUES,
        severity=Severity.LOW,
        column_name=column.name,
        description=f"{count} values with leading/trailing whitespace",
        suggested_fix="Trim whitespace",
        metadata={"affected_count": count, "affected_ratio": ratio},
    )


def check_date_format(
    column: Column, snapshot: DatasetSnapshot, config: QualityConfig
) -> QualityIssue | None:
    """Flag date-like text columns that mix date formats."""
    if column.dtype is not ColumnType.TEXT:
        return None

    present = present_values(column.values)
    if present.empty:
        return None

    families = present.map(date_format_family)
    matched = families.dropna()
    if len(matched) / len(present) < _DATE_COLUMN_MIN_SHARE:
        return None

    counts = matched.value_counts()
    if len(counts) < 2:
        return None

    formats = {str(k): int(v) for k, v in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))}
    dominant = next(iter(formats))
    return QualityIssue(
        type=IssueType.DATE_FORMAT_ISSUE,
        severity=Severity.MEDIUM,
        column_name=column.name,
        description=f"Inconsistent date formats: {formats}",
        suggested_fix="Standardize dates to ISO-8601",
        metadata={"formats": formats, "dominant_format": dominant},
    )


def check_duplicate_rows(snapshot: DatasetSnapshot, config: QualityConfig) -> QualityIssue | None:
    """Flag exact duplicate rows across the whole dataset."""
    if snapshot.row_count == 0:
        return None

    duplicated = snapshot.to_frame().astype(object).duplicated(keep="first")
    count = int(duplicated.sum())
    ratio = _ratio(count, snapshot.row_count)
    severity = config.duplicate_row_bands.classify(ratio)
    if severity is None:
        return None

    return QualityIssue(
        type=IssueType.DUPLICATE_ROWS,
        severity=severity,
        description=f"Found {count} duplicate rows ({ratio:.1%} of data)",
        suggested_fix="Remove duplicate rows",
        metadata={"duplicate_count": count, "duplicate_ratio": ratio},
    )


# Column checks in fixed issue-type order
COLUMN_CHECKS = (
    check_encoding,
    check_missing_values,
    check_type_inconsistency,
    check_outliers,
    check_class_imbalance,
    check_high_cardinality,
    check_constant_column,
    check_whitespace,
    check_date_format,
)
