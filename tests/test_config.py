"""Tests for QualityConfig, SeverityBands and configuration validation."""

from __future__ import annotations

from dataclasses import fields

import pytest

from lex_preprocessing import (
    FailurePolicy,
    OutlierMethod,
    QualityConfig,
    QualityConfigBuilder,
    Severity,
    SeverityBands,
)


class TestSeverity:
    """Tests for the Severity ordering."""

    def test_total_order(self):
        """Critical > High > Medium > Low > Info."""
        assert Severity.CRITICAL > Severity.HIGH > Severity.MEDIUM > Severity.LOW > Severity.INFO

    def test_max_picks_most_severe(self):
        """max() works on severities."""
        assert max([Severity.LOW, Severity.CRITICAL, Severity.MEDIUM]) is Severity.CRITICAL

    def test_from_string(self):
        """Can create Severity from string value."""
        assert Severity("high") is Severity.HIGH

    def test_invalid_string(self):
        """Invalid string raises ValueError."""
        with pytest.raises(ValueError):
            Severity("urgent")


class TestSeverityBands:
    """Tests for ratio banding."""

    def test_missing_value_boundary_is_high(self):
        """A ratio exactly on the critical bound stays High."""
        bands = QualityConfig().missing_value_bands
        assert bands.classify(0.5) is Severity.HIGH

    def test_just_above_boundary_is_critical(self):
        """A ratio just above the critical bound is Critical."""
        bands = QualityConfig().missing_value_bands
        assert bands.classify(0.5000001) is Severity.CRITICAL

    def test_lower_bands(self):
        """Each band applies above its lower bound."""
        bands = SeverityBands(critical=0.5, high=0.2, medium=0.05)

        assert bands.classify(0.3) is Severity.HIGH
        assert bands.classify(0.2) is Severity.MEDIUM
        assert bands.classify(0.1) is Severity.MEDIUM
        assert bands.classify(0.05) is Severity.LOW
        assert bands.classify(0.001) is Severity.LOW

    def test_zero_ratio_has_no_severity(self):
        """Nothing affected means no issue."""
        assert SeverityBands(0.5, 0.2, 0.05).classify(0.0) is None

    def test_duplicate_bands_ten_percent_is_low(self):
        """10% duplicate rows is Low with the default duplicate bands."""
        assert QualityConfig().duplicate_row_bands.classify(0.10) is Severity.LOW

    def test_unordered_bands_rejected(self):
        """Bands must be ordered."""
        with pytest.raises(ValueError, match="bands must satisfy"):
            SeverityBands(critical=0.1, high=0.2, medium=0.05)


class TestQualityConfig:
    """Tests for QualityConfig dataclass."""

    def test_all_defaults(self):
        """Default values are set correctly."""
        config = QualityConfig()

        assert config.label_column is None
        assert config.outlier_method is OutlierMethod.IQR
        assert config.outlier_threshold is None
        assert config.high_cardinality_ratio == 0.9
        assert config.minority_class_ratio == 0.25
        assert config.drop_column_missing_ratio == 0.5
        assert config.max_incremental_iterations == 5
        assert config.min_actionable_severity is Severity.LOW
        assert config.failure_policy is FailurePolicy.CONTINUE_ON_ERROR
        assert config.time_budget_seconds is None
        assert config.max_rule_duration_seconds == 300.0
        assert config.n_jobs == 1
        assert config.random_seed == 42

    def test_effective_outlier_threshold(self):
        """Threshold defaults depend on the method."""
        assert QualityConfig().effective_outlier_threshold == 1.5
        assert QualityConfig(outlier_method=OutlierMethod.ZSCORE).effective_outlier_threshold == 3.0
        assert QualityConfig(outlier_threshold=2.0).effective_outlier_threshold == 2.0

    @pytest.mark.parametrize(
        "field,value,message",
        [
            ("outlier_threshold", 0.0, "outlier_threshold"),
            ("high_cardinality_ratio", 1.5, "high_cardinality_ratio"),
            ("max_categories", 0, "max_categories"),
            ("minority_class_ratio", 1.0, "minority_class_ratio"),
            ("drop_column_missing_ratio", 0.0, "drop_column_missing_ratio"),
            ("max_incremental_iterations", 0, "max_incremental_iterations"),
            ("time_budget_seconds", -1.0, "time_budget_seconds"),
            ("max_rule_duration_seconds", 0.0, "max_rule_duration_seconds"),
            ("n_jobs", 0, "n_jobs"),
        ],
    )
    def test_invalid_values(self, field, value, message):
        """Invalid values raise ValueError naming the field."""
        with pytest.raises(ValueError, match=message):
            QualityConfig(**{field: value})


class TestQualityConfigBuilder:
    """Tests for QualityConfig.builder()."""

    def test_builder_type(self):
        """builder() returns a QualityConfigBuilder."""
        assert isinstance(QualityConfig.builder(), QualityConfigBuilder)

    def test_builder_chain(self):
        """Builder methods chain and set values."""
        config = (
            QualityConfig.builder()
            .label_column("target")
            .outlier_method(OutlierMethod.ZSCORE)
            .max_incremental_iterations(3)
            .min_actionable_severity(Severity.MEDIUM)
            .failure_policy(FailurePolicy.FAIL_FAST)
            .n_jobs(4)
            .build()
        )

        assert config.label_column == "target"
        assert config.outlier_method is OutlierMethod.ZSCORE
        assert config.max_incremental_iterations == 3
        assert config.min_actionable_severity is Severity.MEDIUM
        assert config.failure_policy is FailurePolicy.FAIL_FAST
        assert config.n_jobs == 4

    def test_builder_returns_self(self):
        """Builder methods return self for chaining."""
        builder = QualityConfig.builder()
        assert builder.label_column("y") is builder
        assert builder.random_seed(1) is builder

    def test_builder_covers_every_field(self):
        """Every QualityConfig field has a builder method."""
        missing = [f.name for f in fields(QualityConfig) if not hasattr(QualityConfigBuilder, f.name)]
        assert missing == []

    def test_high_cardinality_min_unique(self):
        """The distinct-value floor for high cardinality can be set."""
        config = QualityConfig.builder().high_cardinality_min_unique(5).build()
        assert config.high_cardinality_min_unique == 5

    def test_builder_validates_on_build(self):
        """Validation runs when the config is built."""
        with pytest.raises(ValueError):
            QualityConfig.builder().max_incremental_iterations(0).build()
