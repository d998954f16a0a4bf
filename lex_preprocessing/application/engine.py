"""Rule application engine.

Applies an ordered rule list to a working copy, one rule at a time. Each
rule either fully replaces the working copy or leaves it untouched, and
produces exactly one RuleApplicationResult.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence

from ..config import FailurePolicy, QualityConfig
from ..core.snapshot import DatasetSnapshot
from ..core.types import (
    ApplicationStopReason,
    BulkApplicationResult,
    PreprocessingRule,
    RuleApplicationResult,
)
from ..errors import RuleValidationError, TransformationError
from ..progress import (
    CancellationCheck,
    NullProgressReporter,
    ProgressReporter,
    RuleApplicationProgress,
)
from .transforms import TRANSFORMATIONS, validate_rule

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class RuleApplicationEngine:
    """Applies preprocessing rules sequentially to a working copy.

    The engine is not reentrant for a given working copy: one ``apply`` call
    owns its copy until it returns.

    Usage:
        engine = RuleApplicationEngine(config)
        cleaned, report = engine.apply(snapshot, rules)
    """

    def __init__(
        self,
        config: QualityConfig | None = None,
        clock: Clock = time.perf_counter,
    ) -> None:
        """Initialize the engine.

        Args:
            config: Failure policy, time budget and duration guard.
            clock: Monotonic clock in seconds, used for all durations.
        """
        self._config = config or QualityConfig()
        self._clock = clock

    @property
    def config(self) -> QualityConfig:
        """Active configuration."""
        return self._config

    def apply(
        self,
        snapshot: DatasetSnapshot,
        rules: Sequence[PreprocessingRule],
        reporter: ProgressReporter | None = None,
        cancellation: CancellationCheck | None = None,
    ) -> tuple[DatasetSnapshot, BulkApplicationResult]:
        """Apply rules in order.

        Cancellation and the time budget are checked before each rule, never
        during one. When the run stops early the results gathered so far are
        still returned, and the snapshot reflects every successful rule up to
        that point.

        Args:
            snapshot: Input snapshot. It is never modified.
            rules: Rules in application order.
            reporter: Receives one progress update before each rule.
            cancellation: Extra cancellation check, e.g. a CancellationToken.

        Returns:
            Tuple of (resulting snapshot, bulk result).
        """
        reporter = reporter or NullProgressReporter()
        budget = self._config.time_budget_seconds
        total = len(rules)
        started = self._clock()

        working = snapshot
        results: list[RuleApplicationResult] = []
        stop_reason = ApplicationStopReason.COMPLETED

        for index, rule in enumerate(rules):
            if reporter.is_cancelled() or (cancellation is not None and cancellation()):
                logger.info(f"Rule application cancelled after {index} of {total} rule(s)")
                stop_reason = ApplicationStopReason.CANCELLED
                break

            if budget is not None and self._clock() - started > budget:
                logger.warning(f"Time budget of {budget}s exhausted after {index} of {total} rule(s)")
                stop_reason = ApplicationStopReason.BUDGET_EXCEEDED
                break

            reporter.report(
                RuleApplicationProgress(
                    current_rule=rule,
                    rule_index=index,
                    total_rules=total,
                    message=rule.description or f"Applying {rule.id}",
                )
            )

            working, result, transformation_failed = self._apply_rule(working, rule)
            results.append(result)

            if transformation_failed and self._config.failure_policy is FailurePolicy.FAIL_FAST:
                logger.warning(f"Stopping after failed rule {rule.id} (fail-fast)")
                stop_reason = ApplicationStopReason.FAILED_FAST
                break

        successful = sum(1 for r in results if r.success)
        bulk = BulkApplicationResult(
            total_rules=total,
            successful_rules=successful,
            failed_rules=len(results) - successful,
            results=tuple(results),
            total_duration=self._clock() - started,
            stop_reason=stop_reason,
        )
        logger.info(
            f"Applied {successful}/{total} rule(s), "
            f"{bulk.total_rows_affected} row(s) affected ({stop_reason.value})"
        )
        return working, bulk

    def _apply_rule(
        self, working: DatasetSnapshot, rule: PreprocessingRule
    ) -> tuple[DatasetSnapshot, RuleApplicationResult, bool]:
        """Apply one rule atomically.

        Returns:
            Tuple of (next working copy, result, whether a transformation
            error occurred).
        """
        started = self._clock()

        message = validate_rule(working, rule)
        if message is not None:
            error = RuleValidationError(rule.id, message)
            logger.warning(str(error))
            result = RuleApplicationResult(
                rule=rule,
                rows_affected=0,
                rows_skipped=working.row_count,
                duration=self._clock() - started,
                success=False,
                validation_message=message,
            )
            return working, result, False

        transform = TRANSFORMATIONS[rule.kind]
        try:
            outcome = transform(working, rule.target_column, rule.parameters)
            failure: str | None = None
        except TransformationError as e:
            failure = str(e)
        except Exception as e:
            failure = str(TransformationError(rule.kind.value, f"{type(e).__name__}: {e}"))

        duration = self._clock() - started
        limit = self._config.max_rule_duration_seconds
        if failure is None and limit is not None and duration > limit:
            failure = str(
                TransformationError(
                    rule.kind.value, f"took {duration:.2f}s, limit is {limit:.2f}s"
                )
            )

        if failure is not None:
            logger.warning(f"Rule {rule.id} failed: {failure}")
            result = RuleApplicationResult(
                rule=rule,
                rows_affected=0,
                rows_skipped=working.row_count,
                duration=duration,
                success=False,
                error_message=failure,
            )
            return working, result, True

        logger.info(
            f"Rule {rule.id} applied: {outcome.rows_affected} affected, "
            f"{outcome.rows_skipped} skipped"
        )
        result = RuleApplicationResult(
            rule=rule,
            rows_affected=outcome.rows_affected,
            rows_skipped=outcome.rows_skipped,
            duration=duration,
            success=True,
        )
        return outcome.snapshot, result, False
