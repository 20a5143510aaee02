"""
Pretrial Equity - FTA prediction and equity comparison against judge decisions
"""

import warnings

from ._version import __version__, __version_info__
from .api import run_pipeline
from .core.catalog import VariableCatalog
from .core.config import ColumnSchema, Config
from .data.sample import make_pretrial_sample
from .pipeline import PretrialEquityPipeline

warnings.filterwarnings(
    "ignore", category=FutureWarning, module=r"pandas\..*"
)
warnings.filterwarnings(
    "ignore", category=DeprecationWarning, module=r"sklearn\..*"
)

__all__ = [
    "__version__",
    "__version_info__",
    "run_pipeline",
    "PretrialEquityPipeline",
    "Config",
    "ColumnSchema",
    "VariableCatalog",
    "make_pretrial_sample",
]
