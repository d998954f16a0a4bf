"""Progress reporting for lex-preprocessing.

This module provides progress tracking and reporting during rule
application, including callbacks and cooperative cancellation.
"""

from __future__ import annotations

from .reporter import (
    CallbackProgressReporter,
    CancellationCheck,
    CancellationToken,
    NullProgressReporter,
    ProgressCallback,
    ProgressReporter,
    RuleApplicationProgress,
)

__all__ = [
    "RuleApplicationProgress",
    "ProgressCallback",
    "CancellationCheck",
    "ProgressReporter",
    "CallbackProgressReporter",
    "NullProgressReporter",
    "CancellationToken",
]
