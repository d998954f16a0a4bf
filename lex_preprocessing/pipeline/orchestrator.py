"""Incremental cleaning orchestrator.

This module provides the IncrementalOrchestrator, which repeats
detect -> discover -> apply over a snapshot until no actionable issue
remains or a stop condition is hit.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from ..application import RuleApplicationEngine
from ..config import QualityConfig
from ..core.snapshot import DatasetSnapshot
from ..core.types import (
    ApplicationStopReason,
    BulkApplicationResult,
    PreprocessingRule,
    QualityIssue,
)
from ..detection import QualityDetector
from ..discovery import RuleDiscovery
from ..lineage import TrainingHandoff
from ..progress import (
    CallbackProgressReporter,
    CancellationCheck,
    NullProgressReporter,
    ProgressCallback,
    ProgressReporter,
)

if TYPE_CHECKING:
    from typing import Self

logger = logging.getLogger(__name__)


class StopReason(Enum):
    """Why an incremental run stopped."""

    CONVERGED = "converged"
    MAX_ITERATIONS = "max_iterations"
    PLATEAU = "plateau"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class IterationRecord:
    """Everything one detect -> discover -> apply cycle produced."""

    iteration: int
    issues: tuple[QualityIssue, ...]
    rules: tuple[PreprocessingRule, ...]
    result: BulkApplicationResult

    def to_dict(self) -> dict[str, Any]:
        """Serialize to plain data."""
        return {
            "iteration": self.iteration,
            "issues": [i.to_dict() for i in self.issues],
            "rules": [r.to_dict() for r in self.rules],
            "result": self.result.to_dict(),
        }


@dataclass
class IncrementalResult:
    """Outcome of an incremental run.

    Attributes:
        final_snapshot: Snapshot after the last applied rule.
        history: One record per apply cycle, in order.
        converged: True when the last detection pass found nothing actionable.
        stop_reason: Why the run stopped.
        remaining_issues: Issues found by the last detection pass.
        label_column: Label column used for detection.
    """

    final_snapshot: DatasetSnapshot
    history: tuple[IterationRecord, ...]
    converged: bool
    stop_reason: StopReason
    remaining_issues: tuple[QualityIssue, ...] = ()
    label_column: str | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def iterations(self) -> int:
        """Number of apply cycles that ran."""
        return len(self.history)

    @property
    def bulk_results(self) -> list[BulkApplicationResult]:
        """Bulk application results, one per iteration."""
        return [record.result for record in self.history]

    def handoff(self, label_column: str | None = None) -> TrainingHandoff:
        """Package the cleaned data and lineage for the training collaborator."""
        return TrainingHandoff(
            frame=self.final_snapshot.to_frame(),
            label_column=label_column or self.label_column,
            converged=self.converged,
            stop_reason=self.stop_reason.value,
            lineage=[record.to_dict() for record in self.history],
        )


class IncrementalOrchestrator:
    """Drives detection, discovery and application to a fixed point.

    Iterations run strictly one after another, each on the snapshot the
    previous one produced. The loop always terminates: it stops on
    convergence, after ``max_incremental_iterations`` apply cycles, on a
    plateau, on a fail-fast failure or on cancellation.

    Usage:
        result = IncrementalOrchestrator.builder() \\
            .config(config) \\
            .on_progress(lambda p: print(p.message)) \\
            .build() \\
            .run(snapshot)
    """

    def __init__(
        self,
        config: QualityConfig | None = None,
        progress_callback: ProgressCallback | None = None,
        cancellation_check: CancellationCheck | None = None,
        detector: QualityDetector | None = None,
        discovery: RuleDiscovery | None = None,
        engine: RuleApplicationEngine | None = None,
    ) -> None:
        """Initialize orchestrator.

        Use IncrementalOrchestrator.builder() for a fluent interface.
        """
        self._config = config or QualityConfig()
        self._reporter: ProgressReporter = (
            CallbackProgressReporter(progress_callback, cancellation_check)
            if progress_callback or cancellation_check
            else NullProgressReporter()
        )
        self._detector = detector or QualityDetector(self._config)
        self._discovery = discovery or RuleDiscovery(self._config)
        self._engine = engine or RuleApplicationEngine(self._config)

    @classmethod
    def builder(cls) -> IncrementalOrchestratorBuilder:
        """Create a builder for IncrementalOrchestrator."""
        return IncrementalOrchestratorBuilder()

    @property
    def config(self) -> QualityConfig:
        """Active configuration."""
        return self._config

    def run(
        self,
        snapshot: DatasetSnapshot,
        label_column: str | None = None,
    ) -> IncrementalResult:
        """Clean a snapshot incrementally.

        Args:
            snapshot: Initial snapshot. It is never modified.
            label_column: Overrides ``config.label_column``.

        Returns:
            IncrementalResult with the final snapshot and full history.

        Raises:
            DetectorError: If a snapshot cannot be inspected.
        """
        label = label_column or self._config.label_column
        threshold = self._config.min_actionable_severity
        history: list[IterationRecord] = []
        current = snapshot

        for iteration in range(1, self._config.max_incremental_iterations + 1):
            if self._reporter.is_cancelled():
                return self._finish(current, history, label, StopReason.CANCELLED)

            issues = self._detector.detect(current, label)
            actionable = [i for i in issues if i.severity >= threshold]
            if not actionable:
                logger.info(f"Converged before iteration {iteration}")
                return self._result(current, history, label, StopReason.CONVERGED, issues)

            rules = self._discovery.discover(actionable)
            if not rules:
                logger.warning(
                    f"Iteration {iteration}: {len(actionable)} actionable issue(s) without a fix"
                )
                return self._result(current, history, label, StopReason.PLATEAU, issues)

            logger.info(
                f"Iteration {iteration}: {len(actionable)} actionable issue(s), "
                f"{len(rules)} rule(s)"
            )
            updated, bulk = self._engine.apply(current, rules, self._reporter)
            history.append(
                IterationRecord(
                    iteration=iteration,
                    issues=tuple(issues),
                    rules=tuple(rules),
                    result=bulk,
                )
            )

            progressed = not updated.equals(current)
            current = updated

            if bulk.stop_reason is ApplicationStopReason.CANCELLED:
                return self._finish(current, history, label, StopReason.CANCELLED)
            if bulk.stop_reason is ApplicationStopReason.FAILED_FAST:
                return self._finish(current, history, label, StopReason.FAILED)
            if bulk.successful_rules == 0 or not progressed:
                logger.warning(f"Iteration {iteration} made no progress")
                return self._finish(current, history, label, StopReason.PLATEAU)

        # Final read-only pass decides convergence
        issues = self._detector.detect(current, label)
        if any(i.severity >= threshold for i in issues):
            logger.warning(
                f"Not converged after {self._config.max_incremental_iterations} iteration(s)"
            )
            return self._result(current, history, label, StopReason.MAX_ITERATIONS, issues)
        return self._result(current, history, label, StopReason.CONVERGED, issues)

    def _finish(
        self,
        snapshot: DatasetSnapshot,
        history: list[IterationRecord],
        label: str | None,
        reason: StopReason,
    ) -> IncrementalResult:
        """Stop early, recording what is left to fix."""
        issues = self._detector.detect(snapshot, label)
        return self._result(snapshot, history, label, reason, issues)

    def _result(
        self,
        snapshot: DatasetSnapshot,
        history: list[IterationRecord],
        label: str | None,
        reason: StopReason,
        issues: list[QualityIssue],
    ) -> IncrementalResult:
        warnings: list[str] = []
        if reason is not StopReason.CONVERGED:
            threshold = self._config.min_actionable_severity
            warnings = [str(i) for i in issues if i.severity >= threshold]
        return IncrementalResult(
            final_snapshot=snapshot,
            history=tuple(history),
            converged=reason is StopReason.CONVERGED,
            stop_reason=reason,
            remaining_issues=tuple(issues),
            label_column=label,
            warnings=warnings,
        )


class IncrementalOrchestratorBuilder:
    """Builder for IncrementalOrchestrator with fluent interface."""

    def __init__(self) -> None:
        self._config: QualityConfig | None = None
        self._progress_callback: ProgressCallback | None = None
        self._cancellation_check: CancellationCheck | None = None

    def config(self, config: QualityConfig) -> Self:
        """Set the configuration."""
        self._config = config
        return self

    def on_progress(self, callback: ProgressCallback) -> Self:
        """Set the progress callback."""
        self._progress_callback = callback
        return self

    def cancellation(self, check: CancellationCheck) -> Self:
        """Set the cancellation check, e.g. a CancellationToken."""
        self._cancellation_check = check
        return self

    def build(self) -> IncrementalOrchestrator:
        """Build the IncrementalOrchestrator."""
        if self._config is None:
            raise ValueError("config is required")

        return IncrementalOrchestrator(
            config=self._config,
            progress_callback=self._progress_callback,
            cancellation_check=self._cancellation_check,
        )
