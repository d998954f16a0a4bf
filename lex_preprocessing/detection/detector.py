"""Quality detector.

Runs every column check plus the dataset-level duplicate check over one
snapshot and merges the findings into a deterministic order.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace

from ..config import QualityConfig
from ..core.protocols import QualityCheck
from ..core.snapshot import Column, DatasetSnapshot
from ..core.types import QualityIssue
from ..errors import DetectorError
from .checks import COLUMN_CHECKS, check_duplicate_rows

logger = logging.getLogger(__name__)


class QualityDetector:
    """Scans a snapshot and emits quality issues.

    Detection is read-only. Column checks may run on a thread pool when
    ``config.n_jobs`` allows it, but the returned issues are always ordered by
    column declaration, then by issue-type priority, with the dataset-level
    duplicate check first.
    """

    def __init__(
        self,
        config: QualityConfig | None = None,
        checks: tuple[QualityCheck, ...] = COLUMN_CHECKS,
    ) -> None:
        self._config = config or QualityConfig()
        self._checks = checks

    @property
    def config(self) -> QualityConfig:
        """Active configuration."""
        return self._config

    def detect(
        self,
        snapshot: DatasetSnapshot,
        label_column: str | None = None,
    ) -> list[QualityIssue]:
        """Detect quality issues in a snapshot.

        Args:
            snapshot: Snapshot to inspect.
            label_column: Overrides ``config.label_column`` for this pass.

        Returns:
            Issues in deterministic order.

        Raises:
            DetectorError: If the snapshot is malformed or the label column
                does not exist.
        """
        config = self._config
        if label_column is not None and label_column != config.label_column:
            config = _with_label(config, label_column)

        problems = snapshot.validate()
        if config.label_column is not None and not snapshot.has_column(config.label_column):
            problems.append(f"label column '{config.label_column}' not in snapshot")
        if problems:
            raise DetectorError(problems)

        issues: list[tuple[int, int, QualityIssue]] = []

        duplicates = check_duplicate_rows(snapshot, config)
        if duplicates is not None:
            issues.append((-1, duplicates.type.priority, duplicates))

        per_column = self._run_column_checks(snapshot, config)
        for position, column_issues in enumerate(per_column):
            issues.extend((position, issue.type.priority, issue) for issue in column_issues)

        issues.sort(key=lambda entry: (entry[0], entry[1]))
        result = [issue for _, _, issue in issues]

        logger.info(
            f"Detected {len(result)} quality issue(s) across {len(snapshot.columns)} columns"
        )
        return result

    def _run_column_checks(
        self, snapshot: DatasetSnapshot, config: QualityConfig
    ) -> list[list[QualityIssue]]:
        def inspect(column: Column) -> list[QualityIssue]:
            found = []
            for check in self._checks:
                issue = check(column, snapshot, config)
                if issue is not None:
                    found.append(issue)
            return found

        workers = _resolve_workers(config.n_jobs, len(snapshot.columns))
        if workers <= 1:
            return [inspect(column) for column in snapshot.columns]

        # map() yields in submission order, independent of completion order
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(inspect, snapshot.columns))


def _with_label(config: QualityConfig, label_column: str) -> QualityConfig:
    return replace(config, label_column=label_column)


def _resolve_workers(n_jobs: int, n_columns: int) -> int:
    if n_jobs == -1:
        n_jobs = os.cpu_count() or 1
    return max(1, min(n_jobs, n_columns))
