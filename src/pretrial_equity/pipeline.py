"""Pretrial equity pipeline: clean, train, evaluate"""

import os
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
from sklearn.metrics import roc_auc_score

from .core.base import BasePipeline
from .core.catalog import VariableCatalog
from .core.cleaning import CleanedDataset, DataCleaner, RawDataset
from .core.config import Config
from .core.demographics import derive_demographics
from .core.descriptives import descriptive_tables
from .core.equity import EquityEvaluator
from .core.model_trainer import ModelArtifact, ModelTrainer, feature_importance
from .core.selector import ModelFrames, VariableSelector
from .core.summary import SummaryTable
from .core.utils import Timer
from .data.load import save_cleaned
from .reporting.report import save_metrics, write_tables
from .utils.error_handler import ErrorHandler

CLEANED_FILE = "cleaned_data.joblib"
REPORT_FILE = "equity_report.xlsx"


def model_path(output_folder: str, variant: str) -> str:
    return os.path.join(output_folder, f"{variant}_model.joblib")


class PretrialEquityPipeline(BasePipeline):
    """End-to-end run over one dataset and one variable catalog.

    Each stage can be called on its own (``clean``, ``train``, ``evaluate``)
    or chained with ``run``. Stage failures are written to the error log in
    the output folder and surface as the stage's ``PipelineError`` subclass.
    """

    def __init__(self, config: Optional[Config] = None, catalog: Optional[VariableCatalog] = None):
        super().__init__(config or Config())
        if catalog is None:
            raise ValueError("A VariableCatalog is required")
        self.catalog = catalog
        self.error_handler = ErrorHandler(self.cfg.output_folder)
        self.cfg.schema.validate_against(catalog, log=self._log)

        self.cleaned_: Optional[CleanedDataset] = None
        self.frames_: Optional[ModelFrames] = None
        self.models_: Dict[str, ModelArtifact] = {}
        self.tables_: List[SummaryTable] = []
        self.metrics_: Dict[str, Any] = {}

    def _stage(self, stage: str, label: str, func, *args, **kwargs):
        self._activate(stage)
        with Timer(label, self._log) as t:
            result = self.error_handler.run_stage(stage, func, *args, **kwargs)
        self.artifacts["timings"][stage] = round(t.elapsed, 3)
        return result

    # ------------------------------------------------------------------ clean
    def clean(self, raw: RawDataset) -> CleanedDataset:
        cleaner = DataCleaner(self.cfg, self.catalog, log=self._log)
        cleaned = self._stage("clean", "1) Data cleaning", cleaner.clean, raw)
        self.cleaned_ = cleaned
        if self.cfg.save_models and self.cfg.output_folder:
            path = save_cleaned(cleaned, os.path.join(self.cfg.output_folder, CLEANED_FILE))
            self._log(f"   - Cleaned data saved: {path}")
        return cleaned

    # ------------------------------------------------------------------ train
    def _train_all(self, cleaned: CleanedDataset) -> Dict[str, ModelArtifact]:
        selector = VariableSelector(self.catalog, self.cfg.schema, log=self._log)
        frames = selector.select(cleaned.data)
        self.frames_ = frames
        self._log(
            f"   - Full model: {frames.full.shape[1] - 1} inputs | "
            f"fair model: {frames.fair.shape[1] - 1} inputs "
            f"(demographics removed: {frames.demographic_columns})"
        )

        trainer = ModelTrainer(self.cfg, log=self._log)
        models = {}
        for variant in self.cfg.variant_names:
            self._log(f"   Training '{variant}' model")
            sample_size = self.cfg.sample_size if variant.startswith("sampled_") else None
            models[variant] = trainer.train_variant(
                variant,
                frames.view(variant),
                frames.outcome_name,
                sample_size=sample_size,
            )
        return models

    def train(self, cleaned: Optional[CleanedDataset] = None) -> Dict[str, ModelArtifact]:
        cleaned = cleaned or self.cleaned_
        if cleaned is None:
            raise ValueError("No cleaned data: call clean() first or pass a CleanedDataset")
        models = self._stage("train", "2) Model training", self._train_all, cleaned)
        self.models_ = models
        if self.cfg.save_models and self.cfg.output_folder:
            for variant, artifact in models.items():
                artifact.save(model_path(self.cfg.output_folder, variant))
            self._log(f"   - {len(models)} model artifacts saved to {self.cfg.output_folder}")
        return models

    # --------------------------------------------------------------- evaluate
    def _evaluate_all(self, cleaned: CleanedDataset, models: Dict[str, ModelArtifact]) -> List[SummaryTable]:
        demographics = derive_demographics(cleaned.data, self.cfg.schema, log=self._log)
        tables = [SummaryTable("variables", "Cleaned variables", cleaned.variable_table())]
        tables.extend(descriptive_tables(cleaned.data, demographics, self.cfg.schema))
        if models:
            tables.extend(EquityEvaluator(self.cfg, log=self._log).compare(models, cleaned.data, demographics))
            for variant, artifact in models.items():
                tables.append(
                    SummaryTable(f"{variant}_cv", f"Cross-validation results ({variant})", artifact.cv_results)
                )
                tables.append(
                    SummaryTable(f"{variant}_importance", f"Feature importance ({variant})", feature_importance(artifact))
                )
        return tables

    def evaluate(
        self,
        cleaned: Optional[CleanedDataset] = None,
        models: Optional[Dict[str, ModelArtifact]] = None,
    ) -> List[SummaryTable]:
        cleaned = cleaned or self.cleaned_
        models = self.models_ if models is None else models
        if cleaned is None:
            raise ValueError("No cleaned data: call clean() first or pass a CleanedDataset")
        tables = self._stage("evaluate", "3) Equity evaluation", self._evaluate_all, cleaned, models)
        self.tables_ = tables
        self.metrics_ = self._collect_metrics(cleaned, models)

        if self.cfg.save_reports and self.cfg.output_folder:
            path = write_tables(os.path.join(self.cfg.output_folder, REPORT_FILE), tables)
            save_metrics(self.metrics_, self.cfg.output_folder)
            self._log(f"   - Report saved: {path}")
        return tables

    def _collect_metrics(self, cleaned: CleanedDataset, models: Dict[str, ModelArtifact]) -> Dict[str, Any]:
        variants = {}
        for variant, artifact in models.items():
            y = artifact.testing_set[artifact.outcome].astype(int).to_numpy()
            p = artifact.test_prob.to_numpy()
            variants[variant] = {
                "best_params": artifact.best_params,
                "n_train": int(len(artifact.training_set)),
                "n_test": int(len(artifact.testing_set)),
                "n_features": len(artifact.feature_schema.feature_names),
                "test_accuracy": float(np.mean((p > self.cfg.threshold).astype(int) == y)),
                "test_auc": float(roc_auc_score(y, p)) if len(np.unique(y)) > 1 else None,
                "failed_tasks": len(artifact.failures),
            }
        return {
            "run_id": self.cfg.run_id,
            "rows": int(len(cleaned.data)),
            "columns": int(cleaned.data.shape[1]),
            "sentinels_recoded": dict(cleaned.recoded_counts),
            "absent_catalog_columns": list(cleaned.absent_catalog_columns),
            "models": variants,
            "timings": dict(self.artifacts["timings"]),
        }

    # -------------------------------------------------------------------- run
    def run(self, raw: RawDataset) -> Dict[str, Any]:
        self._log(f"Pretrial equity pipeline | run_id={self.cfg.run_id}")
        try:
            cleaned = self.clean(raw)
            models = self.train(cleaned)
            tables = self.evaluate(cleaned, models)
        finally:
            self.close()
        return {
            "cleaned": cleaned,
            "models": models,
            "tables": {t.name: t for t in tables},
            "metrics": self.metrics_,
        }

    def table(self, name: str) -> pd.DataFrame:
        for t in self.tables_:
            if t.name == name:
                return t.frame
        raise KeyError(name)
