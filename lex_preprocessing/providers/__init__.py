"""Data providers.

DataProvider implementations that turn in-memory frames and files into
dataset snapshots.
"""

from __future__ import annotations

from .files import CsvDataProvider
from .frame import FrameDataProvider, select_label

__all__ = [
    "FrameDataProvider",
    "CsvDataProvider",
    "select_label",
]
