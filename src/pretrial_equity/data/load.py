from pathlib import Path
from typing import Union

import joblib
import pandas as pd
import pyreadstat

from ..core.catalog import VariableCatalog
from ..core.cleaning import CleanedDataset, RawDataset

READERS = {
    ".sav": pyreadstat.read_sav,
    ".zsav": pyreadstat.read_sav,
    ".por": pyreadstat.read_por,
    ".dta": pyreadstat.read_dta,
}


def load_dataset(path: Union[str, Path]) -> RawDataset:
    """Read a statistical-package file (stored codes + label metadata) or a CSV."""
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Input file not found: {p}")

    suffix = p.suffix.lower()
    if suffix == ".csv":
        return RawDataset(frame=pd.read_csv(p), source=str(p))
    if suffix not in READERS:
        raise ValueError(f"Unsupported input format '{suffix}'; expected one of {sorted(READERS) + ['.csv']}")

    frame, meta = READERS[suffix](str(p), apply_value_formats=False)
    column_labels = {c: l for c, l in (meta.column_names_to_labels or {}).items() if l}
    return RawDataset(
        frame=frame,
        column_labels=column_labels,
        value_labels=dict(meta.variable_value_labels or {}),
        source=str(p),
    )


def load_catalog(path: Union[str, Path]) -> VariableCatalog:
    return VariableCatalog.from_csv(path)


def save_cleaned(dataset: CleanedDataset, path: Union[str, Path]) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    joblib.dump(dataset, p)
    return p


def load_cleaned(path: Union[str, Path]) -> CleanedDataset:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Cleaned dataset not found: {p}")
    dataset = joblib.load(p)
    if not isinstance(dataset, CleanedDataset):
        raise TypeError(f"{p} does not hold a cleaned dataset")
    return dataset
