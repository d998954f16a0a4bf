"""Progress reporting classes and types.

This module contains the progress reporting infrastructure for rule
application: the RuleApplicationProgress dataclass, reporter
implementations and a cooperative cancellation token.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from ..core.types import PreprocessingRule


@dataclass
class RuleApplicationProgress:
    """Progress update emitted before a rule starts executing.

    Attributes:
        current_rule: Rule about to be applied.
        rule_index: Number of rules already completed (0-based).
        total_rules: Number of rules in the bulk run.
        message: Human-readable status message.
    """

    current_rule: PreprocessingRule
    rule_index: int
    total_rules: int
    message: str | None = None

    @property
    def percentage(self) -> float:
        """Share of rules completed so far, from 0.0 to 1.0."""
        if self.total_rules == 0:
            return 0.0
        return self.rule_index / self.total_rules


# Type alias for progress callback
ProgressCallback = Callable[[RuleApplicationProgress], None]

# Type alias for cancellation check
CancellationCheck = Callable[[], bool]


class ProgressReporter(Protocol):
    """Protocol for progress reporting.

    Implement this protocol to receive progress updates during rule
    application. Updates are delivered synchronously on the caller's thread.
    """

    def report(self, update: RuleApplicationProgress) -> None:
        """Report a progress update.

        Args:
            update: The progress update to report.
        """
        ...

    def is_cancelled(self) -> bool:
        """Check if the operation should be cancelled.

        Returns:
            True if the operation should be cancelled, False otherwise.
        """
        ...


class CallbackProgressReporter:
    """Progress reporter that uses callbacks.

    This reporter calls a progress callback function for each update
    and a cancellation check function to determine if application should stop.
    """

    def __init__(
        self,
        progress_callback: ProgressCallback | None = None,
        cancellation_check: CancellationCheck | None = None,
    ) -> None:
        """Initialize the callback progress reporter.

        Args:
            progress_callback: Function to call with progress updates.
            cancellation_check: Function to call to check for cancellation.
        """
        self._progress_callback = progress_callback
        self._cancellation_check = cancellation_check

    def report(self, update: RuleApplicationProgress) -> None:
        """Report progress update via callback."""
        if self._progress_callback is not None:
            self._progress_callback(update)

    def is_cancelled(self) -> bool:
        """Check if operation should be cancelled."""
        if self._cancellation_check is not None:
            return self._cancellation_check()
        return False


class NullProgressReporter:
    """No-op progress reporter.

    Use this when you don't need progress reporting.
    """

    def report(self, update: RuleApplicationProgress) -> None:
        """Do nothing."""
        pass

    def is_cancelled(self) -> bool:
        """Never cancelled."""
        return False


class CancellationToken:
    """Thread-safe cancellation flag.

    Another thread may call ``cancel()`` at any time; the engine only looks
    at the flag between rules.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        """Whether cancellation was requested."""
        return self._event.is_set()

    def __call__(self) -> bool:
        return self._event.is_set()
