"""Value types for lex-preprocessing.

This module contains the issue, rule and result dataclasses that flow between
the detector, rule discovery, the application engine and the orchestrator.
Issues and rules reference each other only through string ids.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Severity(Enum):
    """Severity of a quality issue, totally ordered from Info to Critical."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"

    @property
    def rank(self) -> int:
        """Numeric rank, higher is more severe."""
        return _SEVERITY_RANKS[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank


_SEVERITY_RANKS = {
    Severity.CRITICAL: 4,
    Severity.HIGH: 3,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
    Severity.INFO: 0,
}


class IssueType(Enum):
    """Types of data quality issues.

    Declaration order is the fixed priority used to order issues that share
    a column.
    """

    ENCODING_ISSUE = "encoding_issue"
    MISSING_VALUES = "missing_values"
    DUPLICATE_ROWS = "duplicate_rows"
    TYPE_INCONSISTENCY = "type_inconsistency"
    OUTLIERS = "outliers"
    CLASS_IMBALANCE = "class_imbalance"
    HIGH_CARDINALITY = "high_cardinality"
    CONSTANT_COLUMN = "constant_column"
    WHITESPACE_ISSUES = "whitespace_issues"
    DATE_FORMAT_ISSUE = "date_format_issue"

    @property
    def priority(self) -> int:
        """Position in the fixed issue-type order."""
        return _ISSUE_PRIORITIES[self]


_ISSUE_PRIORITIES = {issue_type: i for i, issue_type in enumerate(IssueType)}


class TransformationKind(Enum):
    """Closed set of corrective transformations."""

    DROP_COLUMN = "drop_column"
    DROP_ROWS = "drop_rows"
    IMPUTE_MEAN = "impute_mean"
    IMPUTE_MEDIAN = "impute_median"
    IMPUTE_MODE = "impute_mode"
    TRIM_WHITESPACE = "trim_whitespace"
    CAST_TYPE = "cast_type"
    CLIP_OUTLIERS = "clip_outliers"
    DEDUPE_ROWS = "dedupe_rows"
    RESAMPLE_MINORITY_CLASS = "resample_minority_class"
    TRUNCATE_HIGH_CARDINALITY = "truncate_high_cardinality"
    NORMALIZE_DATE_FORMAT = "normalize_date_format"

    @property
    def is_dataset_level(self) -> bool:
        """Whether the kind applies to the whole dataset rather than one column."""
        return self is TransformationKind.DEDUPE_ROWS


@dataclass(frozen=True)
class QualityIssue:
    """A quality defect found by one detection pass."""

    type: IssueType
    severity: Severity
    description: str
    column_name: str | None = None
    suggested_fix: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def id(self) -> str:
        """Deterministic id, unique within one detection pass."""
        return f"{self.type.value}:{self.column_name or '*'}"

    def __str__(self) -> str:
        column = f" (column: {self.column_name})" if self.column_name else ""
        return f"[{self.severity.value}] {self.type.value}: {self.description}{column}"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to plain data."""
        return {
            "id": self.id,
            "type": self.type.value,
            "severity": self.severity.value,
            "column_name": self.column_name,
            "description": self.description,
            "suggested_fix": self.suggested_fix,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class PreprocessingRule:
    """A corrective transformation derived from one or more issues."""

    kind: TransformationKind
    originating_issue_ids: frozenset[str]
    target_column: str | None = None
    parameters: dict[str, Any] = field(default_factory=dict, compare=False)
    priority: int = 0
    description: str = ""

    @property
    def id(self) -> str:
        """Deterministic id: one rule per kind per column."""
        return f"{self.kind.value}:{self.target_column or '*'}"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to plain data."""
        return {
            "id": self.id,
            "kind": self.kind.value,
            "target_column": self.target_column,
            "parameters": dict(self.parameters),
            "priority": self.priority,
            "originating_issue_ids": sorted(self.originating_issue_ids),
            "description": self.description,
        }


@dataclass(frozen=True)
class RuleApplicationResult:
    """Outcome of applying one rule to the working copy.

    For row-scoped rules ``rows_affected + rows_skipped`` equals the row count
    of the working copy before the rule ran. Structural rules report the full
    row count as affected and nothing skipped.
    """

    rule: PreprocessingRule
    rows_affected: int
    rows_skipped: int
    duration: float
    success: bool
    error_message: str | None = None
    validation_message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to plain data."""
        return {
            "rule": self.rule.to_dict(),
            "rows_affected": self.rows_affected,
            "rows_skipped": self.rows_skipped,
            "duration_seconds": self.duration,
            "success": self.success,
            "error_message": self.error_message,
            "validation_message": self.validation_message,
        }


class ApplicationStopReason(Enum):
    """Why a bulk application stopped scheduling rules."""

    COMPLETED = "completed"
    FAILED_FAST = "failed_fast"
    CANCELLED = "cancelled"
    BUDGET_EXCEEDED = "budget_exceeded"


@dataclass(frozen=True)
class BulkApplicationResult:
    """Aggregate outcome of applying an ordered rule list.

    ``results`` follows application order exactly. A run stopped early still
    reports ``total_rules`` as the length of the submitted list.
    """

    total_rules: int
    successful_rules: int
    failed_rules: int
    results: tuple[RuleApplicationResult, ...]
    total_duration: float
    stop_reason: ApplicationStopReason = ApplicationStopReason.COMPLETED

    @property
    def total_rows_affected(self) -> int:
        """Total rows affected across all rules."""
        return sum(r.rows_affected for r in self.results)

    @property
    def success_rate(self) -> float:
        """Fraction of submitted rules applied successfully."""
        if self.total_rules == 0:
            return 0.0
        return self.successful_rules / self.total_rules

    @property
    def completed(self) -> bool:
        """Whether every submitted rule was attempted."""
        return self.stop_reason is ApplicationStopReason.COMPLETED

    def to_dict(self) -> dict[str, Any]:
        """Serialize to plain data."""
        return {
            "total_rules": self.total_rules,
            "successful_rules": self.successful_rules,
            "failed_rules": self.failed_rules,
            "total_rows_affected": self.total_rows_affected,
            "success_rate": self.success_rate,
            "total_duration_seconds": self.total_duration,
            "stop_reason": self.stop_reason.value,
            "results": [r.to_dict() for r in self.results],
        }
