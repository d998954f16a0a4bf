"""Immutable columnar dataset snapshots.

A DatasetSnapshot captures typed columns and a row count. Column values are
copied on capture and on every read, so a snapshot handed to the engine can
never be changed through a reference held elsewhere.
"""

from __future__ import annotations

import hashlib
import re
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

import numpy as np
import pandas as pd

from ..errors import InvalidDataError

MISSING_TOKENS = frozenset({"NULL", "NA", "N/A", "NAN", "NONE", "-", "?"})

# UTF-8 text decoded as cp1252/latin-1, plus the replacement character
ENCODING_DAMAGE = re.compile("\ufffd|\u00c3[\u0080-\u00bf]|\u00e2\u20ac|\u00c2[\u00a0-\u00bf]")

_BOOLEAN_TOKENS = frozenset({"TRUE", "FALSE", "YES", "NO", "Y", "N", "ON", "OFF"})

DATE_PATTERNS: dict[str, tuple[re.Pattern[str], str]] = {
    "iso": (re.compile(r"^\d{4}-\d{2}-\d{2}$"), "%Y-%m-%d"),
    "us": (re.compile(r"^\d{1,2}/\d{1,2}/\d{4}$"), "%m/%d/%Y"),
    "eu": (re.compile(r"^\d{1,2}\.\d{1,2}\.\d{4}$"), "%d.%m.%Y"),
}


class ColumnType(Enum):
    """Storage type of a snapshot column."""

    NUMERIC = "numeric"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    TEXT = "text"

    @classmethod
    def from_series(cls, series: pd.Series) -> ColumnType:
        """Infer the column type from a pandas dtype."""
        if pd.api.types.is_bool_dtype(series):
            return cls.BOOLEAN
        if pd.api.types.is_numeric_dtype(series):
            return cls.NUMERIC
        if pd.api.types.is_datetime64_any_dtype(series):
            return cls.DATETIME
        return cls.TEXT


@dataclass(frozen=True)
class Column:
    """A named, typed column of a snapshot."""

    name: str
    dtype: ColumnType
    values: pd.Series

    def __len__(self) -> int:
        return len(self.values)


@dataclass(frozen=True)
class DatasetSnapshot:
    """Immutable, typed, columnar view of a dataset with a fixed row count."""

    columns: tuple[Column, ...]
    row_count: int

    @classmethod
    def from_frame(cls, frame: pd.DataFrame) -> DatasetSnapshot:
        """Capture a snapshot of a DataFrame.

        Raises:
            InvalidDataError: If column names are not unique.
        """
        if not frame.columns.is_unique:
            duplicated = sorted({str(c) for c in frame.columns[frame.columns.duplicated()]})
            raise InvalidDataError(f"Duplicate column names: {duplicated}")

        frame = frame.reset_index(drop=True)
        columns = tuple(
            Column(
                name=str(name),
                dtype=ColumnType.from_series(frame[name]),
                values=frame[name].copy(deep=True).rename(str(name)),
            )
            for name in frame.columns
        )
        return cls(columns=columns, row_count=len(frame))

    @classmethod
    def from_columns(cls, data: Mapping[str, Sequence[Any]]) -> DatasetSnapshot:
        """Capture a snapshot from raw column sequences.

        Columns may differ in length here; such a snapshot is malformed and
        is rejected by ``validate`` and the detector.
        """
        columns = []
        for name, values in data.items():
            series = pd.Series(list(values), name=str(name))
            columns.append(Column(name=str(name), dtype=ColumnType.from_series(series), values=series))
        row_count = len(columns[0]) if columns else 0
        return cls(columns=tuple(columns), row_count=row_count)

    @property
    def column_names(self) -> list[str]:
        """Column names in declaration order."""
        return [c.name for c in self.columns]

    def __iter__(self) -> Iterator[Column]:
        return iter(self.columns)

    def has_column(self, name: str) -> bool:
        """Whether a column with this name exists."""
        return any(c.name == name for c in self.columns)

    def column(self, name: str) -> Column:
        """Look up a column by name.

        Raises:
            KeyError: If the column does not exist.
        """
        for col in self.columns:
            if col.name == name:
                return col
        raise KeyError(name)

    def series(self, name: str) -> pd.Series:
        """Return a copy of a column's values."""
        return self.column(name).values.copy(deep=True)

    def validate(self) -> list[str]:
        """Return structural problems; an empty list means well-formed."""
        problems: list[str] = []
        if not self.columns:
            problems.append("snapshot has no columns")
            return problems

        names = self.column_names
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            problems.append(f"duplicate column names: {duplicates}")

        for col in self.columns:
            if len(col) != self.row_count:
                problems.append(
                    f"column '{col.name}' has {len(col)} rows, expected {self.row_count}"
                )
        return problems

    def to_frame(self) -> pd.DataFrame:
        """Return the snapshot as a new DataFrame."""
        if not self.columns:
            return pd.DataFrame(index=pd.RangeIndex(self.row_count))
        data = {c.name: c.values.reset_index(drop=True).copy(deep=True) for c in self.columns}
        return pd.DataFrame(data)

    def fingerprint(self) -> str:
        """SHA-256 digest of names, types and values."""
        digest = hashlib.sha256()
        digest.update(str(self.row_count).encode())
        for col in self.columns:
            digest.update(col.name.encode())
            digest.update(col.dtype.value.encode())
            digest.update(str(col.values.dtype).encode())
            hashed = pd.util.hash_pandas_object(col.values.astype(object), index=False)
            digest.update(hashed.to_numpy().tobytes())
        return digest.hexdigest()

    def equals(self, other: DatasetSnapshot) -> bool:
        """Content equality, including column order and types."""
        if self.column_names != other.column_names or self.row_count != other.row_count:
            return False
        return all(
            a.dtype == b.dtype
            and a.values.reset_index(drop=True).equals(b.values.reset_index(drop=True))
            for a, b in zip(self.columns, other.columns)
        )


def is_missing_value(value: Any) -> bool:
    """Whether a single raw value counts as missing."""
    if value is None:
        return True
    if isinstance(value, str):
        stripped = value.strip()
        return not stripped or stripped.upper() in MISSING_TOKENS
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def missing_mask(series: pd.Series) -> pd.Series:
    """Boolean mask of missing entries, including textual null tokens."""
    mask = series.isna()
    if series.dtype == object or pd.api.types.is_string_dtype(series):
        mask = mask | series.map(
            lambda v: isinstance(v, str) and (not v.strip() or v.strip().upper() in MISSING_TOKENS)
        ).astype(bool)
    return mask.astype(bool)


def present_values(series: pd.Series) -> pd.Series:
    """Non-missing values of a column."""
    return series[~missing_mask(series)]


def parse_number(value: Any) -> float | None:
    """Parse a numeric value, tolerating thousands separators."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        return float(value)
    if not isinstance(value, str):
        return None
    cleaned = value.replace(",", "").replace(" ", "").strip()
    if not cleaned:
        return None
    try:
        number = float(cleaned)
    except ValueError:
        return None
    if np.isnan(number):
        return None
    return number


def parse_boolean(value: Any) -> bool | None:
    """Parse a boolean token."""
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if not isinstance(value, str):
        return None
    normalized = value.strip().upper()
    if normalized in ("TRUE", "YES", "Y", "ON"):
        return True
    if normalized in ("FALSE", "NO", "N", "OFF"):
        return False
    return None


def date_format_family(value: Any) -> str | None:
    """Return the date pattern family (iso, us, eu) a value matches."""
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    for family, (pattern, _) in DATE_PATTERNS.items():
        if pattern.match(stripped):
            return family
    return None


def semantic_kind(value: Any) -> str:
    """Classify a present value as numeric, date, boolean or text."""
    if isinstance(value, str) and value.strip().upper() in _BOOLEAN_TOKENS:
        return "boolean"
    if isinstance(value, (bool, np.bool_)):
        return "boolean"
    if parse_number(value) is not None:
        return "numeric"
    if isinstance(value, pd.Timestamp) or date_format_family(value) is not None:
        return "date"
    return "text"


def has_encoding_damage(value: Any) -> bool:
    """Whether a text value shows signs of a wrong encoding."""
    return isinstance(value, str) and bool(ENCODING_DAMAGE.search(value))
