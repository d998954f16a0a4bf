"""Pipeline module for incremental cleaning.

This module provides the IncrementalOrchestrator and the result types of an
incremental run.
"""

from __future__ import annotations

from .orchestrator import (
    IncrementalOrchestrator,
    IncrementalOrchestratorBuilder,
    IncrementalResult,
    IterationRecord,
    StopReason,
)

__all__ = [
    # Main orchestrator
    "IncrementalOrchestrator",
    "IncrementalOrchestratorBuilder",
    # Results
    "IncrementalResult",
    "IterationRecord",
    "StopReason",
]
