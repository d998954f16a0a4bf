"""File-backed data providers."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import pandas as pd

from ..core.snapshot import DatasetSnapshot
from ..errors import DataLoadError
from .frame import select_label

logger = logging.getLogger(__name__)


class CsvDataProvider:
    """Loads a CSV file into a snapshot.

    Values are parsed with the pandas defaults, so empty fields and the
    usual NA spellings are read as missing. Other null tokens such as ``?``
    stay in the data as text for the detector to find.
    """

    def __init__(
        self,
        path: str | Path,
        label_column: str | None = None,
        **read_options: Any,
    ) -> None:
        """Initialize the provider.

        Args:
            path: CSV file to read.
            label_column: Default label column for ``select_label``.
            **read_options: Extra keyword arguments for ``pandas.read_csv``.
        """
        self.path = Path(path)
        self.label_column = label_column
        self._read_options = read_options

    def load(self) -> DatasetSnapshot:
        """Read the file.

        Raises:
            DataLoadError: If the file is missing, empty or unparseable.
            InvalidDataError: If the header has duplicate column names.
        """
        if not self.path.exists():
            raise DataLoadError(str(self.path), "file does not exist")

        try:
            frame = pd.read_csv(self.path, **self._read_options)
        except pd.errors.EmptyDataError as e:
            raise DataLoadError(str(self.path), "file is empty") from e
        except (pd.errors.ParserError, UnicodeDecodeError) as e:
            raise DataLoadError(str(self.path), str(e)) from e

        logger.info(f"Loaded {len(frame)} rows, {len(frame.columns)} columns from {self.path}")
        return DatasetSnapshot.from_frame(frame)

    def select_label(
        self, snapshot: DatasetSnapshot, label_column: str | None = None
    ) -> str | None:
        return select_label(snapshot, label_column or self.label_column)
