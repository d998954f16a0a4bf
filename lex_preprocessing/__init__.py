"""lex-preprocessing: Data-quality driven preprocessing for ML training.

This library inspects a tabular training dataset, detects quality defects,
derives corrective rules and applies them incrementally until the data
reaches an acceptable quality state.

Example usage:
    from lex_preprocessing import (
        FrameDataProvider,
        IncrementalOrchestrator,
        QualityConfig,
        Severity,
    )

    config = QualityConfig.builder() \\
        .label_column("Survived") \\
        .min_actionable_severity(Severity.MEDIUM) \\
        .build()

    snapshot = FrameDataProvider(dataframe).load()
    result = IncrementalOrchestrator.builder() \\
        .config(config) \\
        .on_progress(lambda p: print(f"{p.percentage:.0%} - {p.message}")) \\
        .build() \\
        .run(snapshot)

    # Hand the cleaned data to training
    handoff = result.handoff()
    save_lineage(handoff, "lineage.json")
"""

from __future__ import annotations

# Application
from .application import TRANSFORMATIONS, RuleApplicationEngine, TransformOutcome, validate_rule

# Configuration
from .config import (
    FailurePolicy,
    OutlierMethod,
    QualityConfig,
    QualityConfigBuilder,
    SeverityBands,
)

# Types (from core module)
from .core import (
    ApplicationStopReason,
    BulkApplicationResult,
    Column,
    ColumnType,
    DataProvider,
    DatasetSnapshot,
    IssueType,
    PreprocessingRule,
    QualityCheck,
    QualityIssue,
    RuleApplicationResult,
    Severity,
    TrainingSink,
    TransformationKind,
)

# Detection and discovery
from .detection import QualityDetector
from .discovery import RuleDiscovery

# Errors
from .errors import (
    DataLoadError,
    DetectorError,
    InvalidConfigError,
    InvalidDataError,
    LabelNotFoundError,
    LexPreprocessingError,
    RuleValidationError,
    TransformationError,
)

# Lineage
from .lineage import TrainingHandoff, load_lineage, save_lineage

# Pipeline
from .pipeline import (
    IncrementalOrchestrator,
    IncrementalOrchestratorBuilder,
    IncrementalResult,
    IterationRecord,
    StopReason,
)

# Progress
from .progress import (
    CallbackProgressReporter,
    CancellationToken,
    NullProgressReporter,
    ProgressCallback,
    ProgressReporter,
    RuleApplicationProgress,
)

# Providers
from .providers import CsvDataProvider, FrameDataProvider

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Configuration
    "QualityConfig",
    "QualityConfigBuilder",
    "SeverityBands",
    "FailurePolicy",
    "OutlierMethod",
    # Types
    "Column",
    "ColumnType",
    "DatasetSnapshot",
    "Severity",
    "IssueType",
    "TransformationKind",
    "QualityIssue",
    "PreprocessingRule",
    "RuleApplicationResult",
    "BulkApplicationResult",
    "ApplicationStopReason",
    "DataProvider",
    "TrainingSink",
    "QualityCheck",
    # Components
    "QualityDetector",
    "RuleDiscovery",
    "RuleApplicationEngine",
    "TRANSFORMATIONS",
    "TransformOutcome",
    "validate_rule",
    # Pipeline
    "IncrementalOrchestrator",
    "IncrementalOrchestratorBuilder",
    "IncrementalResult",
    "IterationRecord",
    "StopReason",
    # Lineage
    "TrainingHandoff",
    "save_lineage",
    "load_lineage",
    # Providers
    "FrameDataProvider",
    "CsvDataProvider",
    # Progress
    "RuleApplicationProgress",
    "ProgressCallback",
    "ProgressReporter",
    "CallbackProgressReporter",
    "NullProgressReporter",
    "CancellationToken",
    # Errors
    "LexPreprocessingError",
    "InvalidConfigError",
    "InvalidDataError",
    "DataLoadError",
    "LabelNotFoundError",
    "DetectorError",
    "RuleValidationError",
    "TransformationError",
]
