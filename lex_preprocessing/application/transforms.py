"""Transformation table.

Every TransformationKind maps to one pure function
``(snapshot, column, parameters) -> TransformOutcome``. Functions never touch
their input snapshot; they build and return a new one together with the row
accounting for the rule result.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import numpy as np
import pandas as pd
from sklearn.utils import resample

from ..core.snapshot import (
    DATE_PATTERNS,
    Column,
    ColumnType,
    DatasetSnapshot,
    date_format_family,
    has_encoding_damage,
    is_missing_value,
    missing_mask,
    parse_boolean,
    parse_number,
)
from ..core.types import PreprocessingRule, TransformationKind
from ..errors import TransformationError

K = TransformationKind

CAST_TARGETS = ("numeric", "date", "boolean", "text")
DROP_CONDITIONS = ("missing", "encoding")
RESAMPLE_MODES = ("undersample", "oversample")

NUMERIC_KINDS = frozenset({K.IMPUTE_MEAN, K.IMPUTE_MEDIAN, K.CLIP_OUTLIERS})
TEXT_KINDS = frozenset({K.TRIM_WHITESPACE, K.NORMALIZE_DATE_FORMAT})

_REQUIRED_PARAMETERS: dict[TransformationKind, tuple[str, ...]] = {
    K.DROP_ROWS: ("condition",),
    K.CAST_TYPE: ("target_type",),
    K.CLIP_OUTLIERS: ("lower", "upper"),
    K.RESAMPLE_MINORITY_CLASS: ("mode", "target_ratio"),
    K.TRUNCATE_HIGH_CARDINALITY: ("max_categories",),
}

_ALLOWED_VALUES: dict[str, tuple[str, ...]] = {
    "condition": DROP_CONDITIONS,
    "target_type": CAST_TARGETS,
    "mode": RESAMPLE_MODES,
    "errors": ("coerce", "raise"),
}


@dataclass(frozen=True)
class TransformOutcome:
    """New snapshot produced by a transformation plus its row accounting."""

    snapshot: DatasetSnapshot
    rows_affected: int
    rows_skipped: int


Transformation = Callable[[DatasetSnapshot, str | None, Mapping[str, Any]], TransformOutcome]


def validate_rule(snapshot: DatasetSnapshot, rule: PreprocessingRule) -> str | None:
    """Check that a rule can still be applied to a working copy.

    Returns:
        None when the rule is applicable, otherwise a message describing why
        it is not.
    """
    kind = rule.kind
    if not kind.is_dataset_level:
        if rule.target_column is None:
            return f"{kind.value} requires a target column"
        if not snapshot.has_column(rule.target_column):
            return f"column '{rule.target_column}' does not exist"

        dtype = snapshot.column(rule.target_column).dtype
        if kind in NUMERIC_KINDS and dtype is not ColumnType.NUMERIC:
            return f"{kind.value} requires a numeric column, '{rule.target_column}' is {dtype.value}"
        if kind in TEXT_KINDS and dtype is not ColumnType.TEXT:
            return f"{kind.value} requires a text column, '{rule.target_column}' is {dtype.value}"
        if kind is K.DROP_COLUMN and len(snapshot.columns) == 1:
            return "cannot drop the only remaining column"

    missing = [p for p in _REQUIRED_PARAMETERS.get(kind, ()) if p not in rule.parameters]
    if missing:
        return f"missing parameter(s): {', '.join(missing)}"

    for name, allowed in _ALLOWED_VALUES.items():
        if name in rule.parameters and rule.parameters[name] not in allowed:
            return f"parameter '{name}' must be one of {list(allowed)}, got {rule.parameters[name]!r}"

    if kind is K.TRUNCATE_HIGH_CARDINALITY and int(rule.parameters["max_categories"]) < 1:
        return "max_categories must be at least 1"
    if kind is K.RESAMPLE_MINORITY_CLASS and not 0 < float(rule.parameters["target_ratio"]) <= 1:
        return "target_ratio must be in (0, 1]"

    if kind in (K.DROP_ROWS, K.DEDUPE_ROWS) and snapshot.row_count > 0:
        if _removed_rows(snapshot, rule.target_column, rule.parameters).all():
            return f"{kind.value} would remove all {snapshot.row_count} rows"
    return None


# =============================================================================
# Helpers
# =============================================================================


def _with_values(snapshot: DatasetSnapshot, name: str, values: pd.Series) -> DatasetSnapshot:
    values = values.reset_index(drop=True).rename(name)
    columns = tuple(
        Column(name=name, dtype=ColumnType.from_series(values), values=values)
        if col.name == name
        else col
        for col in snapshot.columns
    )
    return DatasetSnapshot(columns=columns, row_count=snapshot.row_count)


def _keep_rows(snapshot: DatasetSnapshot, keep: np.ndarray) -> TransformOutcome:
    """Filter rows by mask, preserving the order of the survivors."""
    frame = snapshot.to_frame()
    removed = int((~keep).sum())
    result = DatasetSnapshot.from_frame(frame.loc[keep])
    return TransformOutcome(result, removed, snapshot.row_count - removed)


def _removed_rows(snapshot: DatasetSnapshot, column: str | None, params: Mapping[str, Any]) -> np.ndarray:
    """Mask of the rows a DropRows or DedupeRows rule would remove."""
    if column is None:
        duplicated = snapshot.to_frame().astype(object).duplicated(keep=params.get("keep", "first"))
        return duplicated.to_numpy()
    values = snapshot.series(column)
    if params["condition"] == "missing":
        return missing_mask(values).to_numpy()
    return values.map(has_encoding_damage).astype(bool).to_numpy()


def _count_changed(before: pd.Series, after: pd.Series) -> int:
    return sum(1 for a, b in zip(before, after) if not (a is b or a == b))


def _parse_date(value: Any) -> datetime | None:
    if isinstance(value, (pd.Timestamp, datetime)):
        return value
    family = date_format_family(value)
    if family is None:
        return None
    try:
        return datetime.strptime(value.strip(), DATE_PATTERNS[family][1])
    except ValueError:
        return None


# =============================================================================
# Structural transformations
# =============================================================================


def drop_column(snapshot: DatasetSnapshot, column: str | None, params: Mapping[str, Any]) -> TransformOutcome:
    columns = tuple(c for c in snapshot.columns if c.name != column)
    result = DatasetSnapshot(columns=columns, row_count=snapshot.row_count)
    return TransformOutcome(result, snapshot.row_count, 0)


def dedupe_rows(snapshot: DatasetSnapshot, column: str | None, params: Mapping[str, Any]) -> TransformOutcome:
    return _keep_rows(snapshot, ~_removed_rows(snapshot, None, params))


def drop_rows(snapshot: DatasetSnapshot, column: str | None, params: Mapping[str, Any]) -> TransformOutcome:
    return _keep_rows(snapshot, ~_removed_rows(snapshot, column, params))


def resample_minority_class(
    snapshot: DatasetSnapshot, column: str | None, params: Mapping[str, Any]
) -> TransformOutcome:
    """Rebalance label classes.

    ``undersample`` caps every class at ``minority / target_ratio`` rows;
    ``oversample`` draws extra rows with replacement until every class has
    at least ``majority * target_ratio`` rows. Rows with a missing label are
    left alone.
    """
    kind = K.RESAMPLE_MINORITY_CLASS.value
    labels = snapshot.series(column)
    present = ~missing_mask(labels).to_numpy()
    keys = labels.map(str).to_numpy()

    groups = {
        key: np.flatnonzero((keys == key) & present)
        for key in sorted(set(keys[present]))
    }
    if len(groups) < 2:
        raise TransformationError(kind, f"'{column}' needs at least two classes")

    target_ratio = float(params["target_ratio"])
    counts = {key: len(rows) for key, rows in groups.items()}
    rng = np.random.RandomState(params.get("random_state"))

    if params["mode"] == "undersample":
        cap = max(1, math.floor(min(counts.values()) / target_ratio))
        keep = np.ones(snapshot.row_count, dtype=bool)
        for rows in groups.values():
            if len(rows) > cap:
                kept = resample(rows, replace=False, n_samples=cap, random_state=rng)
                keep[np.setdiff1d(rows, kept)] = False
        return _keep_rows(snapshot, keep)

    target = math.ceil(max(counts.values()) * target_ratio)
    extra: list[np.ndarray] = []
    affected = 0
    for rows in groups.values():
        if len(rows) < target:
            extra.append(resample(rows, replace=True, n_samples=target - len(rows), random_state=rng))
            affected += len(rows)

    if not extra:
        return TransformOutcome(snapshot, 0, snapshot.row_count)

    frame = snapshot.to_frame()
    drawn = np.sort(np.concatenate(extra))
    frame = pd.concat([frame, frame.iloc[drawn]], ignore_index=True)
    return TransformOutcome(DatasetSnapshot.from_frame(frame), affected, snapshot.row_count - affected)


# =============================================================================
# Value transformations
# =============================================================================


def _impute(snapshot: DatasetSnapshot, column: str, kind: TransformationKind, statistic: str) -> TransformOutcome:
    values = snapshot.series(column)
    mask = missing_mask(values)
    present = values[~mask]
    if present.empty:
        raise TransformationError(kind.value, f"'{column}' has no values to compute the {statistic}")

    fill = present.mean() if statistic == "mean" else present.median()
    filled = values.fillna(float(fill))
    affected = int(mask.sum())
    return TransformOutcome(_with_values(snapshot, column, filled), affected, snapshot.row_count - affected)


def impute_mean(snapshot: DatasetSnapshot, column: str | None, params: Mapping[str, Any]) -> TransformOutcome:
    return _impute(snapshot, column, K.IMPUTE_MEAN, "mean")


def impute_median(snapshot: DatasetSnapshot, column: str | None, params: Mapping[str, Any]) -> TransformOutcome:
    return _impute(snapshot, column, K.IMPUTE_MEDIAN, "median")


def impute_mode(snapshot: DatasetSnapshot, column: str | None, params: Mapping[str, Any]) -> TransformOutcome:
    values = snapshot.series(column)
    mask = missing_mask(values)
    present = values[~mask]
    if present.empty:
        raise TransformationError(K.IMPUTE_MODE.value, f"'{column}' has no values to compute the mode")

    # Ties go to the value seen first
    counts = present.value_counts(sort=False)
    best = counts.max()
    mode = next(v for v in present.drop_duplicates() if counts[v] == best)

    filled = values.where(~mask, mode)
    affected = int(mask.sum())
    return TransformOutcome(_with_values(snapshot, column, filled), affected, snapshot.row_count - affected)


def trim_whitespace(snapshot: DatasetSnapshot, column: str | None, params: Mapping[str, Any]) -> TransformOutcome:
    values = snapshot.series(column)
    trimmed = values.map(lambda v: v.strip() if isinstance(v, str) else v)
    affected = _count_changed(values, trimmed)
    return TransformOutcome(_with_values(snapshot, column, trimmed), affected, snapshot.row_count - affected)


def cast_type(snapshot: DatasetSnapshot, column: str | None, params: Mapping[str, Any]) -> TransformOutcome:
    """Convert a column to numeric, date, boolean or text.

    Unparseable values become missing with ``errors="coerce"`` (the default)
    and fail the rule with ``errors="raise"``. Already-missing values are
    counted as skipped.
    """
    target = params["target_type"]
    values = snapshot.series(column)
    missing = missing_mask(values)

    if target == "numeric":
        parsed = [None if m else parse_number(v) for v, m in zip(values, missing)]
        converted = pd.Series(parsed, dtype="float64")
    elif target == "boolean":
        parsed = [None if m else parse_boolean(v) for v, m in zip(values, missing)]
        converted = pd.Series(parsed, dtype="boolean")
    elif target == "date":
        parsed = [None if m else _parse_date(v) for v, m in zip(values, missing)]
        converted = pd.to_datetime(pd.Series(parsed, dtype=object))
    else:
        parsed = [None if m else str(v) for v, m in zip(values, missing)]
        converted = pd.Series(parsed, dtype=object)

    failures = sum(1 for p, m in zip(parsed, missing) if p is None and not m)
    if failures and params.get("errors", "coerce") == "raise":
        raise TransformationError(
            K.CAST_TYPE.value, f"{failures} value(s) in '{column}' cannot be cast to {target}"
        )

    skipped = int(missing.sum())
    return TransformOutcome(
        _with_values(snapshot, column, converted), snapshot.row_count - skipped, skipped
    )


def clip_outliers(snapshot: DatasetSnapshot, column: str | None, params: Mapping[str, Any]) -> TransformOutcome:
    lower = float(params["lower"])
    upper = float(params["upper"])
    if lower > upper:
        raise TransformationError(K.CLIP_OUTLIERS.value, f"lower bound {lower} exceeds upper bound {upper}")

    values = snapshot.series(column)
    outside = ((values < lower) | (values > upper)).fillna(False).astype(bool)
    clipped = values.clip(lower=lower, upper=upper)
    affected = int(outside.sum())
    return TransformOutcome(_with_values(snapshot, column, clipped), affected, snapshot.row_count - affected)


def truncate_high_cardinality(
    snapshot: DatasetSnapshot, column: str | None, params: Mapping[str, Any]
) -> TransformOutcome:
    """Keep the most frequent categories and fold the rest into one label.

    Categories are ranked by frequency; equally frequent categories keep
    their order of first appearance.
    """
    max_categories = int(params["max_categories"])
    other_label = params.get("other_label", "__other__")

    values = snapshot.series(column)
    mask = missing_mask(values)
    present = values[~mask]
    counts = present.value_counts(sort=False)
    first_seen = {v: i for i, v in enumerate(present.drop_duplicates())}
    ranked = sorted(first_seen, key=lambda v: (-counts[v], first_seen[v]))
    kept = set(ranked[:max_categories])

    folded = (~mask) & ~values.map(lambda v: v in kept).astype(bool)
    truncated = values.where(~folded, other_label)
    affected = int(folded.sum())
    return TransformOutcome(_with_values(snapshot, column, truncated), affected, snapshot.row_count - affected)


def normalize_date_format(
    snapshot: DatasetSnapshot, column: str | None, params: Mapping[str, Any]
) -> TransformOutcome:
    output_format = params.get("output_format", "%Y-%m-%d")

    def normalize(value: Any) -> Any:
        if is_missing_value(value) or date_format_family(value) is None:
            return value
        parsed = _parse_date(value)
        # Date-shaped but impossible, e.g. 31.02.2020
        if parsed is None:
            return None
        return parsed.strftime(output_format)

    values = snapshot.series(column)
    normalized = values.map(normalize)
    affected = _count_changed(values, normalized)
    return TransformOutcome(_with_values(snapshot, column, normalized), affected, snapshot.row_count - affected)


TRANSFORMATIONS: dict[TransformationKind, Transformation] = {
    K.DROP_COLUMN: drop_column,
    K.DROP_ROWS: drop_rows,
    K.IMPUTE_MEAN: impute_mean,
    K.IMPUTE_MEDIAN: impute_median,
    K.IMPUTE_MODE: impute_mode,
    K.TRIM_WHITESPACE: trim_whitespace,
    K.CAST_TYPE: cast_type,
    K.CLIP_OUTLIERS: clip_outliers,
    K.DEDUPE_ROWS: dedupe_rows,
    K.RESAMPLE_MINORITY_CLASS: resample_minority_class,
    K.TRUNCATE_HIGH_CARDINALITY: truncate_high_cardinality,
    K.NORMALIZE_DATE_FORMAT: normalize_date_format,
}
