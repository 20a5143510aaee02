"""Cleaning stage: sentinel recoding, type coercion and the catalog keep filter"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

import pandas as pd

from .catalog import VariableCatalog
from .coercion import coerce_frame
from .config import Config
from .selector import keep_columns
from .sentinel import recode_frame
from .utils import safe_print


@dataclass
class RawDataset:
    """A file as read from disk: stored codes plus its label metadata."""

    frame: pd.DataFrame
    column_labels: Dict[str, str] = field(default_factory=dict)
    value_labels: Dict[str, Mapping[Any, str]] = field(default_factory=dict)
    source: Optional[str] = None


@dataclass
class CleanedDataset:
    """Observation table after cleaning, with display labels per column."""

    data: pd.DataFrame
    labels: Dict[str, str] = field(default_factory=dict)
    recoded_counts: Dict[str, int] = field(default_factory=dict)
    absent_catalog_columns: List[str] = field(default_factory=list)

    def label(self, column: str) -> str:
        return self.labels.get(column, column)

    def variable_table(self) -> pd.DataFrame:
        """One row per column: name, display label, dtype and missing share."""
        return pd.DataFrame(
            [
                {
                    "variable": c,
                    "label": self.label(c),
                    "dtype": str(self.data[c].dtype),
                    "missing_rate": float(self.data[c].isna().mean()) if len(self.data) else 0.0,
                    "sentinels_recoded": self.recoded_counts.get(c, 0),
                }
                for c in self.data.columns
            ]
        )


class DataCleaner:
    """Turns a raw labelled file into the cleaned observation table"""

    def __init__(self, config: Config, catalog: VariableCatalog, log: Callable[[str], None] = safe_print):
        self.cfg = config
        self.catalog = catalog
        self.log = log

    def clean(self, raw: RawDataset) -> CleanedDataset:
        schema = self.cfg.schema
        self.log(f"   - Raw data: {raw.frame.shape[0]} rows x {raw.frame.shape[1]} columns")

        recoded, counts = recode_frame(
            raw.frame,
            strict=self.cfg.sentinel_strict,
            strict_columns=self.cfg.strict_sentinel_columns,
            exclude=list(self.cfg.sentinel_exclude_columns) + list(schema.drop_columns),
        )
        if counts:
            total = sum(counts.values())
            self.log(f"   - Recoded {total} sentinel cells to missing across {len(counts)} columns")

        coerced, file_labels = coerce_frame(
            recoded,
            value_labels=raw.value_labels,
            column_labels=raw.column_labels,
            na_token=schema.not_applicable_token,
        )

        kept, absent = keep_columns(coerced, self.catalog, log=self.log)
        labels = {c: self.catalog.label_for(c) or file_labels.get(c, c) for c in kept.columns}
        self.log(f"   - Cleaned data: {kept.shape[0]} rows x {kept.shape[1]} columns")

        return CleanedDataset(
            data=kept,
            labels=labels,
            recoded_counts={c: n for c, n in counts.items() if c in kept.columns},
            absent_catalog_columns=absent,
        )
