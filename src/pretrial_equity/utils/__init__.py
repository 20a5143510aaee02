"""Shared utilities"""

from .error_handler import (
    CleaningError,
    ConfigError,
    ErrorHandler,
    EvaluationError,
    PartitionError,
    PipelineError,
    TrainingError,
)

__all__ = [
    "PipelineError",
    "ConfigError",
    "CleaningError",
    "PartitionError",
    "TrainingError",
    "EvaluationError",
    "ErrorHandler",
]
