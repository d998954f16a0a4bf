"""Training handoff and lineage persistence.

The cleaned dataset leaves the engine as a TrainingHandoff: a DataFrame for
the training collaborator plus the per-iteration record of issues, rules and
application results that produced it.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from .errors import DataLoadError


@dataclass
class TrainingHandoff:
    """Cleaned data and lineage passed to model training.

    Attributes:
        frame: Cleaned dataset.
        label_column: Label column, if one was selected.
        converged: Whether the dataset reached an acceptable quality state.
        stop_reason: Why the incremental run stopped.
        lineage: One entry per iteration, in order.
    """

    frame: pd.DataFrame
    label_column: str | None
    converged: bool
    stop_reason: str
    lineage: list[dict[str, Any]] = field(default_factory=list)

    @property
    def features(self) -> pd.DataFrame:
        """Feature columns (everything except the label)."""
        if self.label_column is None:
            return self.frame.copy()
        return self.frame.drop(columns=[self.label_column])

    @property
    def target(self) -> pd.Series | None:
        """Label values, or None when no label was selected."""
        if self.label_column is None:
            return None
        return self.frame[self.label_column].copy()

    def to_dict(self) -> dict[str, Any]:
        """Lineage document, without the data itself."""
        return {
            "label_column": self.label_column,
            "converged": self.converged,
            "stop_reason": self.stop_reason,
            "rows": len(self.frame),
            "columns": [str(c) for c in self.frame.columns],
            "iterations": self.lineage,
        }


def _to_json(value: Any) -> Any:
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    if isinstance(value, pd.Timestamp):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def save_lineage(handoff: TrainingHandoff, path: str | Path) -> Path:
    """Write the lineage of a handoff as JSON.

    Args:
        handoff: Handoff whose lineage to save.
        path: Destination file.

    Returns:
        The path written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        json.dump(handoff.to_dict(), f, indent=2, default=_to_json)
    return path


def load_lineage(path: str | Path) -> dict[str, Any]:
    """Read a lineage document written by ``save_lineage``.

    Raises:
        DataLoadError: If the file does not exist or is not valid JSON.
    """
    path = Path(path)
    if not path.exists():
        raise DataLoadError(str(path), "file does not exist")

    with open(path, encoding="utf-8") as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as e:
            raise DataLoadError(str(path), f"invalid JSON: {e}") from e
