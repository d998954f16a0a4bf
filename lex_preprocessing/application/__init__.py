"""Rule application.

This module provides the closed table of transformations and the engine
that applies rule lists to a working copy.
"""

from __future__ import annotations

from .engine import RuleApplicationEngine
from .transforms import TRANSFORMATIONS, TransformOutcome, validate_rule

__all__ = [
    "RuleApplicationEngine",
    "TRANSFORMATIONS",
    "TransformOutcome",
    "validate_rule",
]
