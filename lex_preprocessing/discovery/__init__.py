"""Rule discovery.

This module maps quality issues to an ordered list of corrective rules.
"""

from __future__ import annotations

from .discovery import FAMILIES, PRECEDENCE, PRIORITIES, RuleDiscovery, conflicts

__all__ = [
    "RuleDiscovery",
    "PRIORITIES",
    "PRECEDENCE",
    "FAMILIES",
    "conflicts",
]
