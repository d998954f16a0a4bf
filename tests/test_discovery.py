"""Tests for RuleDiscovery."""

from __future__ import annotations

from lex_preprocessing import (
    IssueType,
    QualityConfig,
    QualityIssue,
    RuleDiscovery,
    Severity,
    TransformationKind,
)
from lex_preprocessing.discovery import PRECEDENCE, PRIORITIES, conflicts

K = TransformationKind


def missing(column: str, ratio: float, severity: Severity = Severity.MEDIUM, **meta) -> QualityIssue:
    metadata = {"missing_ratio": ratio, "column_type": "numeric", "skewness": 0.0, "is_label": False}
    metadata.update(meta)
    return QualityIssue(
        type=IssueType.MISSING_VALUES,
        severity=severity,
        description="missing",
        column_name=column,
        metadata=metadata,
    )


def issue(issue_type: IssueType, column: str | None, severity: Severity, **meta) -> QualityIssue:
    return QualityIssue(
        type=issue_type,
        severity=severity,
        description=issue_type.value,
        column_name=column,
        metadata=meta,
    )


class TestMapping:
    """Tests for the issue -> rule table."""

    def test_mostly_missing_column_is_dropped(self):
        """A missing ratio above the drop threshold selects DropColumn."""
        rules = RuleDiscovery().discover([missing("age", 0.6, Severity.CRITICAL)])

        assert len(rules) == 1
        assert rules[0].kind is K.DROP_COLUMN
        assert rules[0].target_column == "age"
        assert rules[0].originating_issue_ids == frozenset({"missing_values:age"})

    def test_symmetric_numeric_uses_mean(self):
        """Numeric columns without strong skew are mean-imputed."""
        rules = RuleDiscovery().discover([missing("a", 0.1)])
        assert rules[0].kind is K.IMPUTE_MEAN

    def test_skewed_numeric_uses_median(self):
        """Skewed numeric columns are median-imputed."""
        rules = RuleDiscovery().discover([missing("a", 0.1, skewness=2.5)])
        assert rules[0].kind is K.IMPUTE_MEDIAN

    def test_text_uses_mode(self):
        """Non-numeric columns are mode-imputed."""
        rules = RuleDiscovery().discover([missing("a", 0.1, column_type="text")])
        assert rules[0].kind is K.IMPUTE_MODE

    def test_missing_label_drops_rows(self):
        """Rows without a label are dropped, never imputed."""
        rules = RuleDiscovery().discover([missing("y", 0.7, Severity.CRITICAL, is_label=True)])

        assert rules[0].kind is K.DROP_ROWS
        assert rules[0].parameters == {"condition": "missing"}

    def test_drop_threshold_is_configurable(self):
        """The drop threshold comes from the configuration."""
        discovery = RuleDiscovery(QualityConfig(drop_column_missing_ratio=0.3))
        assert discovery.discover([missing("a", 0.4, Severity.HIGH)])[0].kind is K.DROP_COLUMN

    def test_duplicates_are_dataset_level(self):
        """DedupeRows targets no column."""
        rules = RuleDiscovery().discover([issue(IssueType.DUPLICATE_ROWS, None, Severity.LOW)])

        assert rules[0].kind is K.DEDUPE_ROWS
        assert rules[0].target_column is None
        assert rules[0].id == "dedupe_rows:*"

    def test_outliers_carry_bounds(self):
        """Clip bounds come from the issue metadata."""
        outliers = issue(IssueType.OUTLIERS, "a", Severity.LOW, lower_bound=-1.0, upper_bound=5.0)
        rule = RuleDiscovery().discover([outliers])[0]

        assert rule.kind is K.CLIP_OUTLIERS
        assert rule.parameters == {"lower": -1.0, "upper": 5.0}

    def test_type_inconsistency_casts_to_dominant(self):
        """Casts target the dominant type and coerce failures."""
        mixed = issue(IssueType.TYPE_INCONSISTENCY, "a", Severity.MEDIUM, dominant_type="numeric")
        rule = RuleDiscovery().discover([mixed])[0]

        assert rule.kind is K.CAST_TYPE
        assert rule.parameters == {"target_type": "numeric", "errors": "coerce"}

    def test_class_imbalance_undersamples(self):
        """Class imbalance resamples with the configured ratio and seed."""
        config = QualityConfig(minority_class_ratio=0.3, random_seed=7)
        rule = RuleDiscovery(config).discover(
            [issue(IssueType.CLASS_IMBALANCE, "y", Severity.HIGH)]
        )[0]

        assert rule.kind is K.RESAMPLE_MINORITY_CLASS
        assert rule.parameters == {"mode": "undersample", "target_ratio": 0.3, "random_state": 7}

    def test_constant_label_has_no_fix(self):
        """A constant label cannot be fixed by a rule."""
        constant = issue(IssueType.CONSTANT_COLUMN, "y", Severity.CRITICAL, is_label=True)
        assert RuleDiscovery().discover([constant]) == []

    def test_every_issue_type_maps(self):
        """Each issue type has a rule in the table."""
        issues = [
            issue(IssueType.ENCODING_ISSUE, "t", Severity.LOW),
            missing("m", 0.1),
            issue(IssueType.DUPLICATE_ROWS, None, Severity.LOW),
            issue(IssueType.TYPE_INCONSISTENCY, "n", Severity.LOW, dominant_type="numeric"),
            issue(IssueType.OUTLIERS, "o", Severity.LOW, lower_bound=0.0, upper_bound=1.0),
            issue(IssueType.CLASS_IMBALANCE, "y", Severity.HIGH),
            issue(IssueType.HIGH_CARDINALITY, "h", Severity.INFO),
            issue(IssueType.CONSTANT_COLUMN, "c", Severity.MEDIUM, is_label=False),
            issue(IssueType.WHITESPACE_ISSUES, "w", Severity.LOW),
            issue(IssueType.DATE_FORMAT_ISSUE, "d", Severity.MEDIUM),
        ]
        kinds = {r.kind for r in RuleDiscovery().discover(issues)}

        assert kinds == {
            K.DROP_ROWS,
            K.IMPUTE_MEAN,
            K.DEDUPE_ROWS,
            K.CAST_TYPE,
            K.CLIP_OUTLIERS,
            K.RESAMPLE_MINORITY_CLASS,
            K.TRUNCATE_HIGH_CARDINALITY,
            K.DROP_COLUMN,
            K.TRIM_WHITESPACE,
            K.NORMALIZE_DATE_FORMAT,
        }


class TestConflicts:
    """Tests for conflict resolution on the same column."""

    def test_higher_severity_wins(self):
        """The rule from the more severe issue survives."""
        issues = [
            missing("a", 0.3, Severity.HIGH),
            issue(IssueType.CONSTANT_COLUMN, "a", Severity.MEDIUM, is_label=False),
        ]
        rules = RuleDiscovery().discover(issues)

        assert [r.kind for r in rules] == [K.IMPUTE_MEAN]

    def test_tie_prefers_structural_fix(self):
        """Equal severity goes to the kind with higher precedence."""
        issues = [
            missing("a", 0.1, Severity.MEDIUM),
            issue(IssueType.CONSTANT_COLUMN, "a", Severity.MEDIUM, is_label=False),
        ]
        rules = RuleDiscovery().discover(issues)

        assert [r.kind for r in rules] == [K.DROP_COLUMN]

    def test_identical_rules_merge(self):
        """Two issues asking for the same rule produce one rule with both ids."""
        issues = [
            missing("a", 0.8, Severity.CRITICAL),
            issue(IssueType.CONSTANT_COLUMN, "a", Severity.MEDIUM, is_label=False),
        ]
        rules = RuleDiscovery().discover(issues)

        assert len(rules) == 1
        assert rules[0].originating_issue_ids == frozenset(
            {"missing_values:a", "constant_column:a"}
        )

    def test_different_families_coexist(self):
        """Trimming and imputing the same column do not conflict."""
        issues = [
            missing("a", 0.1, column_type="text"),
            issue(IssueType.WHITESPACE_ISSUES, "a", Severity.LOW),
        ]
        kinds = [r.kind for r in RuleDiscovery().discover(issues)]

        assert kinds == [K.TRIM_WHITESPACE, K.IMPUTE_MODE]

    def test_conflicts_helper(self):
        """DropColumn conflicts with anything on the same column only."""
        rules = RuleDiscovery().discover(
            [
                missing("a", 0.8, Severity.CRITICAL),
                missing("b", 0.1),
            ]
        )
        drop, impute = rules
        assert not conflicts(drop, impute)


class TestOrdering:
    """Tests for application order."""

    def test_dedupe_and_drops_first(self, dirty_snapshot):
        """Dataset-level and structural rules precede value rules."""
        from lex_preprocessing import QualityDetector

        issues = QualityDetector().detect(dirty_snapshot)
        rules = RuleDiscovery().discover(issues)
        kinds = [r.kind for r in rules]

        assert kinds[0] is K.DEDUPE_ROWS
        assert kinds[1] is K.DROP_COLUMN
        assert [r.priority for r in rules] == sorted(r.priority for r in rules)

    def test_deterministic(self, dirty_snapshot):
        """The same issues always give the same rule list."""
        from lex_preprocessing import QualityDetector

        issues = QualityDetector().detect(dirty_snapshot)
        first = RuleDiscovery().discover(issues)
        second = RuleDiscovery().discover(list(issues))

        assert [r.id for r in first] == [r.id for r in second]

    def test_tables_cover_every_kind(self):
        """Priority and precedence tables are exhaustive."""
        assert set(PRIORITIES) == set(TransformationKind)
        assert set(PRECEDENCE) == set(TransformationKind)
