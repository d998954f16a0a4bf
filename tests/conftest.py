"""Shared test fixtures and utilities for lex-preprocessing tests."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd
import pytest

from lex_preprocessing import (
    DatasetSnapshot,
    PreprocessingRule,
    QualityConfig,
    RuleApplicationProgress,
    TransformationKind,
)

# =============================================================================
# Test Data Fixtures
# =============================================================================


@pytest.fixture
def clean_data() -> pd.DataFrame:
    """Create a dataset without any quality issue.

    Returns:
        DataFrame with uniform numeric features, a small categorical
        feature and a balanced label.
    """
    np.random.seed(42)
    n_samples = 100

    data = {
        "feature_a": np.random.uniform(0, 1, n_samples),
        "feature_b": np.random.uniform(10, 20, n_samples),
        "color": np.random.choice(["red", "green", "blue"], n_samples),
        "target": np.array(["high", "low"] * (n_samples // 2)),
    }

    return pd.DataFrame(data)


@pytest.fixture
def dirty_data() -> pd.DataFrame:
    """Create a dataset with several fixable issues.

    Returns:
        100 rows: 95 distinct rows plus 5 exact duplicates, with missing ages,
        padded city names, mixed date formats and a constant column.
    """
    np.random.seed(42)
    n_base = 95

    ages = np.random.randint(20, 60, n_base).astype(float)
    ages[np.arange(0, n_base, 9)] = np.nan  # 11 missing

    cities = np.random.choice(["Paris", "London", "Berlin"], n_base).astype(object)
    for i in (3, 17, 42, 66, 80):
        cities[i] = f" {cities[i]} "

    start = pd.Timestamp("2020-01-01")
    joined = [
        (start + pd.Timedelta(days=i)).strftime("%m/%d/%Y" if i % 8 == 0 else "%Y-%m-%d")
        for i in range(n_base)
    ]

    base = pd.DataFrame(
        {
            "age": ages,
            "city": cities,
            "joined": joined,
            "constant": ["x"] * n_base,
            "target": ["high", "low"] * (n_base // 2) + ["high"],
        }
    )
    return pd.concat([base, base.iloc[:5]], ignore_index=True)


@pytest.fixture
def clean_snapshot(clean_data: pd.DataFrame) -> DatasetSnapshot:
    """Snapshot of the clean dataset."""
    return DatasetSnapshot.from_frame(clean_data)


@pytest.fixture
def dirty_snapshot(dirty_data: pd.DataFrame) -> DatasetSnapshot:
    """Snapshot of the dirty dataset."""
    return DatasetSnapshot.from_frame(dirty_data)


@pytest.fixture
def mixed_snapshot() -> DatasetSnapshot:
    """Small snapshot used by the failure-policy scenarios."""
    return DatasetSnapshot.from_frame(
        pd.DataFrame(
            {
                "city": [" Paris", "London ", "Berlin", "Rome"],
                "name": ["alice", "bob", "carol", "dave"],
                "constant": [1, 1, 1, 1],
            }
        )
    )


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def default_config() -> QualityConfig:
    """Default configuration."""
    return QualityConfig()


@pytest.fixture
def labelled_config() -> QualityConfig:
    """Configuration with the label column set."""
    return QualityConfig.builder().label_column("target").build()


# =============================================================================
# Utility Fixtures
# =============================================================================


class StepClock:
    """Fake monotonic clock that advances by ``step`` on every call."""

    def __init__(self, step: float = 1.0) -> None:
        self.step = step
        self.now = 0.0

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value


@pytest.fixture
def fixed_clock():
    """Clock that never advances, making durations reproducible."""
    return lambda: 0.0


@pytest.fixture
def step_clock():
    """Factory for clocks that advance by a fixed step per call."""
    return StepClock


@pytest.fixture
def temp_dir() -> Path:
    """Create a temporary directory for test outputs.

    Yields:
        Path to temporary directory (cleaned up after test).
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def progress_tracker() -> dict[str, Any]:
    """Create a progress tracker for testing callbacks.

    Returns:
        Dictionary to store progress updates.
    """
    tracker: dict[str, Any] = {
        "updates": [],
        "rule_ids": [],
        "percentages": [],
    }
    return tracker


def make_progress_callback(tracker: dict[str, Any]):
    """Create a progress callback that stores updates in the tracker."""

    def callback(update: RuleApplicationProgress) -> None:
        tracker["updates"].append(update)
        tracker["rule_ids"].append(update.current_rule.id)
        tracker["percentages"].append(update.percentage)

    return callback


def make_rule(
    kind: TransformationKind,
    column: str | None = None,
    **parameters: Any,
) -> PreprocessingRule:
    """Build a rule without going through discovery."""
    return PreprocessingRule(
        kind=kind,
        originating_issue_ids=frozenset(),
        target_column=column,
        parameters=parameters,
    )


# =============================================================================
# Markers
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (full incremental run)"
    )
