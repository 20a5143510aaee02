"""Error types and stage-level error handling."""

import json
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Type


class PipelineError(Exception):
    """Base exception for pipeline errors."""

    stage: Optional[str] = None

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        if stage is not None:
            self.stage = stage


class ConfigError(PipelineError, ValueError):
    """Invalid configuration or catalog."""

    stage = "config"


class CleaningError(PipelineError):
    """Raw data could not be cleaned."""

    stage = "clean"


class PartitionError(PipelineError):
    """No valid stratified partition could be produced."""

    stage = "partition"


class TrainingError(PipelineError):
    """No hyperparameter candidate could be fitted."""

    stage = "train"


class EvaluationError(PipelineError):
    """Model outputs could not be evaluated."""

    stage = "evaluate"


STAGE_ERRORS: Dict[str, Type[PipelineError]] = {
    "config": ConfigError,
    "clean": CleaningError,
    "partition": PartitionError,
    "train": TrainingError,
    "evaluate": EvaluationError,
}


class ErrorHandler:
    """Runs pipeline stages and records failures."""

    def __init__(self, log_dir: Optional[str] = None):
        self.log_dir = Path(log_dir) if log_dir else None
        self.error_log: List[Dict[str, Any]] = []

    def run_stage(self, stage: str, func: Callable, *args, **kwargs):
        """Execute ``func`` as ``stage``; failures surface as that stage's error type."""
        try:
            return func(*args, **kwargs)
        except PipelineError as e:
            self.log_error(e, e.stage or stage)
            raise
        except Exception as e:
            self.log_error(e, stage)
            error_cls = STAGE_ERRORS.get(stage, PipelineError)
            raise error_cls(f"{type(e).__name__}: {e}", stage=stage) from e

    def log_error(self, error: Exception, stage: str):
        """Log error details."""
        error_entry = {
            "timestamp": datetime.now().isoformat(),
            "stage": stage,
            "error_type": type(error).__name__,
            "error_message": str(error),
            "traceback": traceback.format_exc(),
        }
        self.error_log.append(error_entry)

        if self.log_dir is None:
            return
        self.log_dir.mkdir(parents=True, exist_ok=True)
        with open(self.log_dir / "error_log.json", "a", encoding="utf-8") as f:
            f.write(json.dumps(error_entry) + "\n")
