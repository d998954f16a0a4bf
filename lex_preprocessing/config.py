"""Configuration dataclasses for lex-preprocessing."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from .core.types import Severity

if TYPE_CHECKING:
    from typing import Self


class FailurePolicy(Enum):
    """What the application engine does after a transformation error."""

    FAIL_FAST = "fail_fast"
    CONTINUE_ON_ERROR = "continue_on_error"


class OutlierMethod(Enum):
    """Statistical test used to flag outliers in numeric columns."""

    IQR = "iqr"
    ZSCORE = "zscore"


DEFAULT_OUTLIER_THRESHOLDS = {
    OutlierMethod.IQR: 1.5,
    OutlierMethod.ZSCORE: 3.0,
}


@dataclass(frozen=True)
class SeverityBands:
    """Ratio thresholds mapping an affected-row ratio to a severity.

    A band applies when the ratio is strictly greater than its lower bound,
    so a ratio sitting exactly on a boundary belongs to the band below.
    Any positive ratio not above ``medium`` is Low; zero yields no issue.

    Attributes:
        critical: Lower bound of the Critical band.
        high: Lower bound of the High band.
        medium: Lower bound of the Medium band.
    """

    critical: float
    high: float
    medium: float

    def __post_init__(self) -> None:
        if not 0 <= self.medium <= self.high <= self.critical <= 1:
            raise ValueError("bands must satisfy 0 <= medium <= high <= critical <= 1")

    def classify(self, ratio: float) -> Severity | None:
        """Return the severity for ``ratio``, or None when nothing is affected."""
        if ratio <= 0:
            return None
        if ratio > self.critical:
            return Severity.CRITICAL
        if ratio > self.high:
            return Severity.HIGH
        if ratio > self.medium:
            return Severity.MEDIUM
        return Severity.LOW


def _missing_value_bands() -> SeverityBands:
    return SeverityBands(critical=0.5, high=0.2, medium=0.05)


def _duplicate_row_bands() -> SeverityBands:
    return SeverityBands(critical=0.5, high=0.25, medium=0.10)


def _outlier_bands() -> SeverityBands:
    return SeverityBands(critical=0.30, high=0.20, medium=0.10)


@dataclass
class QualityConfig:
    """Configuration shared by the detector, discovery, engine and orchestrator.

    Attributes:
        label_column: Name of the label column, enables class-balance checks.
        missing_value_bands: Severity bands for per-column missing ratios.
        duplicate_row_bands: Severity bands for the dataset duplicate ratio.
        outlier_bands: Severity bands for the flagged-outlier ratio.
        outlier_method: IQR fences or z-score.
        outlier_threshold: IQR multiplier or z-score cutoff. None picks the
            method default (1.5 for IQR, 3.0 for z-score).
        high_cardinality_ratio: Unique/non-missing ratio above which a text
            column is reported as high cardinality.
        high_cardinality_min_unique: Minimum distinct values before a column
            can be reported as high cardinality.
        max_categories: Categories kept by TruncateHighCardinality.
        minority_class_ratio: Minority/majority class ratio below which the
            label is reported as imbalanced.
        drop_column_missing_ratio: Missing ratio above which a column is
            dropped instead of imputed.
        max_incremental_iterations: Upper bound on detect/discover/apply cycles.
        min_actionable_severity: Lowest severity that still requires a fix.
        failure_policy: Behaviour after a transformation error.
        time_budget_seconds: Wall-clock budget for one bulk application. None
            disables the budget.
        max_rule_duration_seconds: Longest a single rule may run before its
            output is discarded as a transformation error.
        n_jobs: Parallel workers for column detection (-1 for all cores).
        random_seed: Seed for any sampling transformation.
    """

    label_column: str | None = None
    missing_value_bands: SeverityBands = field(default_factory=_missing_value_bands)
    duplicate_row_bands: SeverityBands = field(default_factory=_duplicate_row_bands)
    outlier_bands: SeverityBands = field(default_factory=_outlier_bands)
    outlier_method: OutlierMethod = OutlierMethod.IQR
    outlier_threshold: float | None = None
    high_cardinality_ratio: float = 0.9
    high_cardinality_min_unique: int = 20
    max_categories: int = 20
    minority_class_ratio: float = 0.25
    drop_column_missing_ratio: float = 0.5
    max_incremental_iterations: int = 5
    min_actionable_severity: Severity = Severity.LOW
    failure_policy: FailurePolicy = FailurePolicy.CONTINUE_ON_ERROR
    time_budget_seconds: float | None = None
    max_rule_duration_seconds: float | None = 300.0
    n_jobs: int = 1
    random_seed: int = 42

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.outlier_threshold is not None and self.outlier_threshold <= 0:
            raise ValueError("outlier_threshold must be positive")
        if not 0 < self.high_cardinality_ratio <= 1:
            raise ValueError("high_cardinality_ratio must be between 0 and 1")
        if self.high_cardinality_min_unique < 2:
            raise ValueError("high_cardinality_min_unique must be at least 2")
        if self.max_categories < 1:
            raise ValueError("max_categories must be at least 1")
        if not 0 < self.minority_class_ratio < 1:
            raise ValueError("minority_class_ratio must be between 0 and 1")
        if not 0 < self.drop_column_missing_ratio <= 1:
            raise ValueError("drop_column_missing_ratio must be between 0 and 1")
        if self.max_incremental_iterations < 1:
            raise ValueError("max_incremental_iterations must be at least 1")
        if self.time_budget_seconds is not None and self.time_budget_seconds <= 0:
            raise ValueError("time_budget_seconds must be positive")
        if self.max_rule_duration_seconds is not None and self.max_rule_duration_seconds <= 0:
            raise ValueError("max_rule_duration_seconds must be positive")
        if self.n_jobs == 0 or self.n_jobs < -1:
            raise ValueError("n_jobs must be -1 or a positive integer")

    @property
    def effective_outlier_threshold(self) -> float:
        """Outlier threshold with the per-method default applied."""
        if self.outlier_threshold is not None:
            return self.outlier_threshold
        return DEFAULT_OUTLIER_THRESHOLDS[self.outlier_method]

    @classmethod
    def builder(cls) -> QualityConfigBuilder:
        """Create a builder for QualityConfig."""
        return QualityConfigBuilder()


class QualityConfigBuilder:
    """Builder for QualityConfig with fluent interface."""

    def __init__(self) -> None:
        self._values: dict[str, object] = {}

    def _set(self, name: str, value: object) -> Self:
        self._values[name] = value
        return self

    def label_column(self, value: str) -> Self:
        """Set the label column name."""
        return self._set("label_column", value)

    def missing_value_bands(self, value: SeverityBands) -> Self:
        """Set the missing-value severity bands."""
        return self._set("missing_value_bands", value)

    def duplicate_row_bands(self, value: SeverityBands) -> Self:
        """Set the duplicate-row severity bands."""
        return self._set("duplicate_row_bands", value)

    def outlier_bands(self, value: SeverityBands) -> Self:
        """Set the outlier severity bands."""
        return self._set("outlier_bands", value)

    def outlier_method(self, value: OutlierMethod) -> Self:
        """Set the outlier detection method."""
        return self._set("outlier_method", value)

    def outlier_threshold(self, value: float) -> Self:
        """Set the IQR multiplier or z-score cutoff."""
        return self._set("outlier_threshold", value)

    def high_cardinality_ratio(self, value: float) -> Self:
        """Set the unique-value ratio that marks high cardinality."""
        return self._set("high_cardinality_ratio", value)

    def high_cardinality_min_unique(self, value: int) -> Self:
        """Set the minimum distinct values before high cardinality is reported."""
        return self._set("high_cardinality_min_unique", value)

    def max_categories(self, value: int) -> Self:
        """Set the number of categories kept when truncating."""
        return self._set("max_categories", value)

    def minority_class_ratio(self, value: float) -> Self:
        """Set the minority/majority ratio that marks class imbalance."""
        return self._set("minority_class_ratio", value)

    def drop_column_missing_ratio(self, value: float) -> Self:
        """Set the missing ratio above which columns are dropped."""
        return self._set("drop_column_missing_ratio", value)

    def max_incremental_iterations(self, value: int) -> Self:
        """Set the iteration cap."""
        return self._set("max_incremental_iterations", value)

    def min_actionable_severity(self, value: Severity) -> Self:
        """Set the lowest severity that requires a fix."""
        return self._set("min_actionable_severity", value)

    def failure_policy(self, value: FailurePolicy) -> Self:
        """Set the failure policy."""
        return self._set("failure_policy", value)

    def time_budget_seconds(self, value: float) -> Self:
        """Set the wall-clock budget for one bulk application."""
        return self._set("time_budget_seconds", value)

    def max_rule_duration_seconds(self, value: float) -> Self:
        """Set the single-rule duration guard."""
        return self._set("max_rule_duration_seconds", value)

    def n_jobs(self, value: int) -> Self:
        """Set the number of detection workers."""
        return self._set("n_jobs", value)

    def random_seed(self, value: int) -> Self:
        """Set the random seed."""
        return self._set("random_seed", value)

    def build(self) -> QualityConfig:
        """Build the QualityConfig."""
        return QualityConfig(**self._values)  # type: ignore[arg-type]
