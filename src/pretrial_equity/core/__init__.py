from .catalog import CatalogEntry, ColumnRole, VariableCatalog
from .cleaning import CleanedDataset, DataCleaner, RawDataset
from .config import ColumnSchema, Config
from .equity import EquityEvaluator, group_metrics, judge_decision
from .features import FeatureSchema, build_design_matrices
from .model_trainer import ModelArtifact, ModelTrainer
from .selector import ModelFrames, VariableSelector
from .splitter import DataSplit, DataSplitter, stratified_split
from .summary import SummaryTable

__all__ = [
    "CatalogEntry",
    "ColumnRole",
    "VariableCatalog",
    "CleanedDataset",
    "DataCleaner",
    "RawDataset",
    "ColumnSchema",
    "Config",
    "EquityEvaluator",
    "group_metrics",
    "judge_decision",
    "FeatureSchema",
    "build_design_matrices",
    "ModelArtifact",
    "ModelTrainer",
    "ModelFrames",
    "VariableSelector",
    "DataSplit",
    "DataSplitter",
    "stratified_split",
    "SummaryTable",
]
