"""Core types and protocols for lex-preprocessing.

This module contains the snapshot model, the issue/rule/result value types
and the protocols for collaborators.
"""

from __future__ import annotations

from .protocols import DataProvider, QualityCheck, TrainingSink
from .snapshot import Column, ColumnType, DatasetSnapshot, missing_mask, present_values
from .types import (
    ApplicationStopReason,
    BulkApplicationResult,
    IssueType,
    PreprocessingRule,
    QualityIssue,
    RuleApplicationResult,
    Severity,
    TransformationKind,
)

__all__ = [
    # Snapshot
    "Column",
    "ColumnType",
    "DatasetSnapshot",
    "missing_mask",
    "present_values",
    # Types
    "Severity",
    "IssueType",
    "TransformationKind",
    "QualityIssue",
    "PreprocessingRule",
    "RuleApplicationResult",
    "BulkApplicationResult",
    "ApplicationStopReason",
    # Protocols
    "DataProvider",
    "TrainingSink",
    "QualityCheck",
]
