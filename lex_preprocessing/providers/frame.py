"""In-memory data provider."""

from __future__ import annotations

import logging

import pandas as pd

from ..core.snapshot import DatasetSnapshot
from ..errors import InvalidDataError, LabelNotFoundError

logger = logging.getLogger(__name__)


def select_label(snapshot: DatasetSnapshot, label_column: str | None) -> str | None:
    """Validate a requested label column against a snapshot.

    Raises:
        LabelNotFoundError: If the column does not exist.
    """
    if label_column is None:
        return None
    if not snapshot.has_column(label_column):
        raise LabelNotFoundError(label_column, snapshot.column_names)
    return label_column


class FrameDataProvider:
    """Supplies snapshots of a DataFrame already in memory.

    The frame is captured on every ``load``; later changes to the caller's
    DataFrame do not leak into snapshots that were already taken.
    """

    def __init__(self, frame: pd.DataFrame, label_column: str | None = None) -> None:
        if not isinstance(frame, pd.DataFrame):
            raise InvalidDataError(f"Expected a pandas DataFrame, got {type(frame).__name__}")
        self._frame = frame
        self.label_column = label_column

    def load(self) -> DatasetSnapshot:
        snapshot = DatasetSnapshot.from_frame(self._frame)
        logger.info(f"Captured {snapshot.row_count} rows, {len(snapshot.columns)} columns")
        return snapshot

    def select_label(
        self, snapshot: DatasetSnapshot, label_column: str | None = None
    ) -> str | None:
        return select_label(snapshot, label_column or self.label_column)
