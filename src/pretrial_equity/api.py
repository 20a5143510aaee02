from pathlib import Path
from typing import Optional, Union

from .core.catalog import VariableCatalog
from .core.cleaning import RawDataset
from .core.config import Config
from .data.load import load_catalog, load_dataset
from .pipeline import PretrialEquityPipeline


def run_pipeline(
    raw: Union[RawDataset, str, Path],
    catalog: Union[VariableCatalog, str, Path],
    config: Optional[Config] = None,
    **config_kwargs,
) -> PretrialEquityPipeline:
    """Clean, train and evaluate in one call.

    ``raw`` and ``catalog`` may be loaded objects or file paths. Returns the
    pipeline with ``cleaned_``, ``models_``, ``tables_`` and ``metrics_`` set.
    """
    if not isinstance(raw, RawDataset):
        raw = load_dataset(raw)
    if not isinstance(catalog, VariableCatalog):
        catalog = load_catalog(catalog)
    cfg = config or Config(**config_kwargs)
    pipe = PretrialEquityPipeline(cfg, catalog)
    pipe.run(raw)
    return pipe
