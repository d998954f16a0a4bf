"""Exception hierarchy for lex-preprocessing."""

from __future__ import annotations


class LexPreprocessingError(Exception):
    """Base exception for lex-preprocessing."""

    pass


class InvalidConfigError(LexPreprocessingError):
    """Invalid configuration provided."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Invalid configuration: {message}")


class InvalidDataError(LexPreprocessingError):
    """Data could not be turned into a dataset snapshot."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Invalid data: {message}")


class DataLoadError(LexPreprocessingError):
    """A data provider could not read its source."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load data from {path}: {reason}")


class LabelNotFoundError(LexPreprocessingError):
    """Label column not found in data."""

    def __init__(self, column: str, available: list[str]) -> None:
        self.column = column
        self.available = available
        super().__init__(f"Label column '{column}' not found. Available columns: {available}")


class DetectorError(LexPreprocessingError):
    """Snapshot is malformed and cannot be inspected."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = problems
        details = "\n".join(f"  - {problem}" for problem in problems)
        super().__init__(f"Malformed dataset snapshot:\n{details}")


class RuleValidationError(LexPreprocessingError):
    """Rule is no longer applicable to the working copy."""

    def __init__(self, rule_id: str, message: str) -> None:
        self.rule_id = rule_id
        self.message = message
        super().__init__(f"Rule {rule_id} is not applicable: {message}")


class TransformationError(LexPreprocessingError):
    """Executing a transformation failed."""

    def __init__(self, kind: str, message: str) -> None:
        self.kind = kind
        self.message = message
        super().__init__(f"{kind} failed: {message}")
