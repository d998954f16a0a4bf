"""Protocols for the collaborators around the rule engine.

The engine consumes snapshots from a DataProvider and hands its cleaned output
to a TrainingSink. Individual detection checks implement QualityCheck.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..config import QualityConfig
    from ..lineage import TrainingHandoff
    from .snapshot import Column, DatasetSnapshot
    from .types import QualityIssue


class DataProvider(Protocol):
    """Supplies dataset snapshots and validates label selection."""

    def load(self) -> DatasetSnapshot:
        """Load the dataset as a snapshot.

        Raises:
            DataLoadError: If the source cannot be read.
            InvalidDataError: If the data cannot form a snapshot.
        """
        ...

    def select_label(self, snapshot: DatasetSnapshot, label_column: str | None) -> str | None:
        """Validate and return the label column for a snapshot.

        Raises:
            LabelNotFoundError: If the requested label does not exist.
        """
        ...


class TrainingSink(Protocol):
    """Receives the cleaned dataset and its rule-application lineage."""

    def train(self, handoff: TrainingHandoff) -> None:
        """Consume a training handoff."""
        ...


class QualityCheck(Protocol):
    """A single per-column detection check.

    Checks are pure: they read one column (and the snapshot for context) and
    return at most one issue.
    """

    def __call__(
        self,
        column: Column,
        snapshot: DatasetSnapshot,
        config: QualityConfig,
    ) -> QualityIssue | None:
        ...
