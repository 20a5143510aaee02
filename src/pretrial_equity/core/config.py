"""
Configuration for the pretrial equity pipeline
"""

import math
import os
import warnings
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Optional

from ..utils.error_handler import ConfigError


@dataclass
class ColumnSchema:
    """Column roles used by the cleaning, slicing and judge-proxy stages."""

    # ==================== OUTCOME ====================
    outcome_column: str = "FTA1"
    outcome_positive: str = "Yes, FTA"
    outcome_flag: str = "FTA_OUT"
    not_applicable_token: str = "Not applicable"
    drop_columns: List[str] = field(default_factory=lambda: ["YEARSEQ"])

    # ==================== DEMOGRAPHICS ====================
    gender_column: str = "GENDER"
    age_column: str = "AGE"
    age_bins: List[float] = field(default_factory=lambda: [0, 25, 35, 45, 55, math.inf])
    age_labels: List[str] = field(default_factory=lambda: ["Under 25", "25-34", "35-44", "45-54", "55+"])
    # Checked in order; the first flag that is set wins, rows with none set are "Other".
    race_flags: Dict[str, str] = field(default_factory=lambda: {
        "HISPANIC": "Latinx",
        "BLACK": "Black",
        "WHITE": "White",
    })

    # ==================== RELEASE / BAIL ====================
    released_column: str = "RELEASED"
    bail_paid_column: str = "FINREL"
    bail_amount_column: str = "BAILAMT"
    true_values: List[str] = field(default_factory=lambda: ["1", "yes", "y", "true", "t", "released"])

    @property
    def demographic_columns(self) -> List[str]:
        return [self.gender_column, self.age_column] + list(self.race_flags)

    def validate(self) -> None:
        if len(self.age_bins) != len(self.age_labels) + 1:
            raise ConfigError("age_bins must have exactly one more edge than age_labels")
        if any(hi <= lo for lo, hi in zip(self.age_bins[:-1], self.age_bins[1:])):
            raise ConfigError("age_bins must be increasing")
        if not self.race_flags:
            raise ConfigError("race_flags cannot be empty")
        if "Other" in self.race_flags.values():
            raise ConfigError("'Other' is reserved for rows without a race flag")

    def validate_against(self, catalog, log=None) -> None:
        """Check the schema against the variable catalog at start-up."""
        from .catalog import ColumnRole

        outcome_names = catalog.names(ColumnRole.OUTCOME)
        if self.outcome_column not in outcome_names:
            raise ConfigError(
                f"Outcome column '{self.outcome_column}' is not tagged as an outcome in the catalog"
            )
        untagged = [c for c in self.demographic_columns if c not in catalog.names(ColumnRole.DEMOGRAPHIC)]
        if untagged:
            msg = f"Demographic slicing columns not tagged discrim in catalog: {untagged}"
            if log:
                log(f"   [WARNING] {msg}")
            else:
                warnings.warn(msg)


@dataclass
class Config:
    """
    Configuration for the pretrial equity pipeline.
    All stages read their settings from this single object.
    """

    schema: ColumnSchema = field(default_factory=ColumnSchema)

    # ==================== CLEANING ====================
    sentinel_strict: bool = False  # Recode repeated 8s everywhere, not only repeated 9s
    strict_sentinel_columns: List[str] = field(default_factory=list)
    sentinel_exclude_columns: List[str] = field(default_factory=list)

    # ==================== DATA SPLITTING ====================
    test_size: float = 0.25
    sample_size: Optional[int] = None  # Also train "sampled_*" variants on this many rows
    model_variants: List[str] = field(default_factory=lambda: ["full", "fair"])

    # ==================== MODEL TRAINING ====================
    cv_folds: int = 5
    n_trees_grid: List[int] = field(default_factory=lambda: list(range(100, 2501, 100)))
    depth_grid: List[int] = field(default_factory=lambda: [2, 3, 4])
    shrinkage_grid: List[float] = field(default_factory=lambda: [0.025, 0.05, 0.1])
    min_leaf_size: int = 20
    bag_fraction: float = 0.5
    scoring_metric: str = "accuracy"  # 'accuracy' or 'roc_auc'

    # ==================== EVALUATION ====================
    threshold: float = 0.5

    # ==================== OUTPUT ====================
    output_folder: str = "outputs"
    run_id: Optional[str] = None
    log_to_file: bool = True
    save_models: bool = True
    save_reports: bool = True

    # ==================== SYSTEM ====================
    random_state: int = 60615
    n_jobs: int = -1
    cpu_fraction: float = 0.8
    verbose: bool = True

    def validate(self) -> None:
        """Validate configuration parameters"""
        if self.test_size <= 0 or self.test_size >= 1:
            raise ConfigError("test_size must be between 0 and 1")

        if self.sample_size is not None and self.sample_size < 10:
            raise ConfigError("sample_size must be at least 10")

        valid_variants = ["full", "fair"]
        for variant in self.model_variants:
            if variant not in valid_variants:
                raise ConfigError(f"Unknown model variant: {variant}")
        if not self.model_variants:
            raise ConfigError("model_variants cannot be empty")

        if self.cv_folds < 2:
            raise ConfigError("cv_folds must be at least 2")

        if not self.n_trees_grid or min(self.n_trees_grid) < 1:
            raise ConfigError("n_trees_grid must contain positive tree counts")
        if not self.depth_grid or min(self.depth_grid) < 1:
            raise ConfigError("depth_grid must contain positive depths")
        if not self.shrinkage_grid or any(s <= 0 or s > 1 for s in self.shrinkage_grid):
            raise ConfigError("shrinkage_grid values must be in (0, 1]")
        if self.min_leaf_size < 1:
            raise ConfigError("min_leaf_size must be at least 1")
        if self.bag_fraction <= 0 or self.bag_fraction > 1:
            raise ConfigError("bag_fraction must be in (0, 1]")

        valid_metrics = ["accuracy", "roc_auc"]
        if self.scoring_metric not in valid_metrics:
            raise ConfigError(f"scoring_metric must be one of {valid_metrics}")

        if self.threshold <= 0 or self.threshold >= 1:
            raise ConfigError("threshold must be between 0 and 1")
        if self.cpu_fraction <= 0 or self.cpu_fraction > 1:
            raise ConfigError("cpu_fraction must be between 0 and 1")

        self.schema.validate()

    def _resolve_parallel_jobs(self, value: Optional[int]) -> int:
        """Resolve requested parallel jobs into an absolute worker count."""

        cpu_total = max(1, os.cpu_count() or 1)
        fraction = float(getattr(self, "cpu_fraction", 0.8) or 0.8)
        if value is None or value < 0:
            return max(1, math.floor(cpu_total * fraction))
        if value == 0:
            return 1
        return int(value)

    @property
    def variant_names(self) -> List[str]:
        names = list(self.model_variants)
        if self.sample_size:
            names = [f"sampled_{v}" for v in self.model_variants] + names
        return names

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary"""
        return asdict(self)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "Config":
        """Create configuration from dictionary; unknown keys are rejected."""
        known = {f.name for f in fields(cls)}
        unknown = set(config_dict) - known
        if unknown:
            raise ConfigError(f"Unknown config keys: {sorted(unknown)}")
        payload = dict(config_dict)
        schema = payload.get("schema")
        if isinstance(schema, dict):
            schema_fields = {f.name for f in fields(ColumnSchema)}
            bad = set(schema) - schema_fields
            if bad:
                raise ConfigError(f"Unknown schema keys: {sorted(bad)}")
            payload["schema"] = ColumnSchema(**schema)
        return cls(**payload)

    def __post_init__(self):
        """Post-initialization validation"""
        if isinstance(self.schema, dict):
            self.schema = ColumnSchema(**self.schema)
        self.validate()
        self.n_jobs = self._resolve_parallel_jobs(getattr(self, "n_jobs", None))
