"""Rule discovery.

Maps quality issues to corrective rules through a fixed table, resolves
conflicting rules on the same column and orders the survivors for safe
sequential application.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import Any

from ..config import QualityConfig
from ..core.types import (
    IssueType,
    PreprocessingRule,
    QualityIssue,
    Severity,
    TransformationKind,
)

logger = logging.getLogger(__name__)

K = TransformationKind

# Application phases, lower runs first. Dataset-level and structural rules
# come before value rules that may touch the same column.
PRIORITIES: dict[TransformationKind, int] = {
    K.DEDUPE_ROWS: 0,
    K.DROP_COLUMN: 10,
    K.DROP_ROWS: 20,
    K.CAST_TYPE: 30,
    K.NORMALIZE_DATE_FORMAT: 31,
    K.TRIM_WHITESPACE: 32,
    K.CLIP_OUTLIERS: 40,
    K.IMPUTE_MEDIAN: 50,
    K.IMPUTE_MEAN: 51,
    K.IMPUTE_MODE: 52,
    K.TRUNCATE_HIGH_CARDINALITY: 60,
    K.RESAMPLE_MINORITY_CLASS: 70,
}

# Tie-break between equally severe conflicting rules, structural fixes first
PRECEDENCE: tuple[TransformationKind, ...] = (
    K.DROP_COLUMN,
    K.DEDUPE_ROWS,
    K.DROP_ROWS,
    K.RESAMPLE_MINORITY_CLASS,
    K.CAST_TYPE,
    K.NORMALIZE_DATE_FORMAT,
    K.TRIM_WHITESPACE,
    K.CLIP_OUTLIERS,
    K.IMPUTE_MEDIAN,
    K.IMPUTE_MEAN,
    K.IMPUTE_MODE,
    K.TRUNCATE_HIGH_CARDINALITY,
)

# Rules of one family on the same column are alternatives to each other
FAMILIES: dict[TransformationKind, str] = {
    K.DROP_COLUMN: "drop",
    K.DEDUPE_ROWS: "dataset",
    K.DROP_ROWS: "rows",
    K.RESAMPLE_MINORITY_CLASS: "rows",
    K.CAST_TYPE: "type",
    K.NORMALIZE_DATE_FORMAT: "type",
    K.TRIM_WHITESPACE: "text",
    K.CLIP_OUTLIERS: "values",
    K.IMPUTE_MEAN: "impute",
    K.IMPUTE_MEDIAN: "impute",
    K.IMPUTE_MODE: "impute",
    K.TRUNCATE_HIGH_CARDINALITY: "categories",
}

# Skewness above which the median is preferred to the mean
SKEWED_THRESHOLD = 1.0


@dataclass
class _Candidate:
    """A proposed rule together with the strongest issue behind it."""

    rule: PreprocessingRule
    severity: Severity
    position: int

    @property
    def rank_key(self) -> tuple[int, int, int]:
        return (-self.severity.rank, PRECEDENCE.index(self.rule.kind), self.position)


def conflicts(a: PreprocessingRule, b: PreprocessingRule) -> bool:
    """Whether two rules are mutually exclusive alternatives."""
    if a.target_column is None or a.target_column != b.target_column:
        return False
    if K.DROP_COLUMN in (a.kind, b.kind):
        return True
    return FAMILIES[a.kind] == FAMILIES[b.kind]


class RuleDiscovery:
    """Synthesizes an ordered, conflict-free rule list from quality issues."""

    def __init__(self, config: QualityConfig | None = None) -> None:
        self._config = config or QualityConfig()

    def discover(self, issues: Sequence[QualityIssue]) -> list[PreprocessingRule]:
        """Derive corrective rules for a list of issues.

        Args:
            issues: Issues from one detection pass, in detector order.

        Returns:
            Rules ordered for sequential application.
        """
        column_positions: dict[str | None, int] = {None: -1}
        candidates: dict[str, _Candidate] = {}

        for issue in issues:
            if issue.column_name not in column_positions:
                column_positions[issue.column_name] = len(column_positions)

            rule = self.rule_for(issue)
            if rule is None:
                continue

            existing = candidates.get(rule.id)
            if existing is None:
                candidates[rule.id] = _Candidate(rule, issue.severity, len(candidates))
            elif existing.rule.parameters == rule.parameters:
                merged_ids = existing.rule.originating_issue_ids | rule.originating_issue_ids
                existing.rule = replace(existing.rule, originating_issue_ids=merged_ids)
                existing.severity = max(existing.severity, issue.severity)
            elif issue.severity > existing.severity:
                candidates[rule.id] = _Candidate(rule, issue.severity, existing.position)

        accepted: list[_Candidate] = []
        for candidate in sorted(candidates.values(), key=lambda c: c.rank_key):
            rival = next((a for a in accepted if conflicts(a.rule, candidate.rule)), None)
            if rival is not None:
                logger.debug(f"Rule {candidate.rule.id} dropped in favour of {rival.rule.id}")
                continue
            accepted.append(candidate)

        rules = [c.rule for c in accepted]
        rules.sort(
            key=lambda r: (
                r.priority,
                column_positions.get(r.target_column, -1),
                PRECEDENCE.index(r.kind),
            )
        )
        logger.info(f"Discovered {len(rules)} rule(s) from {len(issues)} issue(s)")
        return rules

    def rule_for(self, issue: QualityIssue) -> PreprocessingRule | None:
        """Map a single issue to its corrective rule, if one exists."""
        mapped = self._map(issue)
        if mapped is None:
            return None
        kind, parameters, description = mapped
        return PreprocessingRule(
            kind=kind,
            originating_issue_ids=frozenset({issue.id}),
            target_column=None if kind.is_dataset_level else issue.column_name,
            parameters=parameters,
            priority=PRIORITIES[kind],
            description=description,
        )

    def _map(
        self, issue: QualityIssue
    ) -> tuple[TransformationKind, dict[str, Any], str] | None:
        config = self._config
        meta = issue.metadata
        column = issue.column_name

        if issue.type is IssueType.MISSING_VALUES:
            if meta.get("is_label"):
                return (
                    K.DROP_ROWS,
                    {"condition": "missing"},
                    f"Drop rows with missing label '{column}'",
                )
            if meta.get("missing_ratio", 0.0) > config.drop_column_missing_ratio:
                return K.DROP_COLUMN, {}, f"Drop mostly-missing column '{column}'"
            if meta.get("column_type") == "numeric":
                if abs(meta.get("skewness", 0.0)) > SKEWED_THRESHOLD:
                    return K.IMPUTE_MEDIAN, {}, f"Impute '{column}' with median"
                return K.IMPUTE_MEAN, {}, f"Impute '{column}' with mean"
            return K.IMPUTE_MODE, {}, f"Impute '{column}' with mode"

        if issue.type is IssueType.DUPLICATE_ROWS:
            return K.DEDUPE_ROWS, {"keep": "first"}, "Remove duplicate rows"

        if issue.type is IssueType.CONSTANT_COLUMN:
            if meta.get("is_label"):
                return None
            return K.DROP_COLUMN, {}, f"Drop constant column '{column}'"

        if issue.type is IssueType.ENCODING_ISSUE:
            return (
                K.DROP_ROWS,
                {"condition": "encoding"},
                f"Drop rows with damaged text in '{column}'",
            )

        if issue.type is IssueType.TYPE_INCONSISTENCY:
            target = meta["dominant_type"]
            return (
                K.CAST_TYPE,
                {"target_type": target, "errors": "coerce"},
                f"Cast '{column}' to {target}",
            )

        if issue.type is IssueType.OUTLIERS:
            return (
                K.CLIP_OUTLIERS,
                {"lower": meta["lower_bound"], "upper": meta["upper_bound"]},
                f"Clip '{column}' to [{meta['lower_bound']:.4g}, {meta['upper_bound']:.4g}]",
            )

        if issue.type is IssueType.CLASS_IMBALANCE:
            return (
                K.RESAMPLE_MINORITY_CLASS,
                {
                    "mode": "undersample",
                    "target_ratio": config.minority_class_ratio,
                    "random_state": config.random_seed,
                },
                f"Rebalance classes of '{column}'",
            )

        if issue.type is IssueType.HIGH_CARDINALITY:
            return (
                K.TRUNCATE_HIGH_CARDINALITY,
                {"max_categories": config.max_categories, "other_label": "__other__"},
                f"Keep top {config.max_categories} values of '{column}'",
            )

        if issue.type is IssueType.WHITESPACE_ISSUES:
            return K.TRIM_WHITESPACE, {}, f"Trim whitespace in '{column}'"

        if issue.type is IssueType.DATE_FORMAT_ISSUE:
            return (
                K.NORMALIZE_DATE_FORMAT,
                {"output_format": "%Y-%m-%d"},
                f"Normalize dates in '{column}' to ISO-8601",
            )

        return None
