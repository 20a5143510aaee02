"""Design-matrix construction shared by training and testing partitions"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd
from pandas.api.types import is_bool_dtype, is_numeric_dtype

from ..utils.error_handler import PipelineError
from .utils import make_names

MISSING_LEVEL = "missing"


class FeatureSchemaError(PipelineError):
    """A frame does not fit the fitted expansion schema."""

    stage = "train"


def _as_text(series: pd.Series) -> pd.Series:
    """Level text per row; NA becomes the reserved ``missing`` level."""
    values = series.astype(object)
    present = values[values.notna()].map(str)
    if (present == MISSING_LEVEL).any():
        raise FeatureSchemaError(
            f"Column '{series.name}' has a level named '{MISSING_LEVEL}', which is reserved for missing values"
        )
    return values.map(lambda v: MISSING_LEVEL if pd.isna(v) else str(v))


def _kind(series: pd.Series) -> str:
    if is_bool_dtype(series.dtype):
        return "boolean"
    if isinstance(series.dtype, pd.CategoricalDtype):
        return "categorical"
    if is_numeric_dtype(series.dtype):
        return "numeric"
    return "categorical"


def _levels(parts: Iterable[pd.Series]) -> List[str]:
    """Observed levels, in category order where available, missing last."""
    parts = list(parts)
    seen = set()
    for part in parts:
        seen.update(_as_text(part).unique())

    first = parts[0]
    if isinstance(first.dtype, pd.CategoricalDtype):
        ordered = [str(c) for c in first.cat.categories if str(c) in seen and str(c) != MISSING_LEVEL]
    else:
        ordered = []
    extras = sorted(seen - set(ordered) - {MISSING_LEVEL})
    levels = ordered + extras
    if MISSING_LEVEL in seen:
        levels.append(MISSING_LEVEL)
    return levels


@dataclass
class FeatureSchema:
    """Expansion schema: which columns become which design-matrix columns.

    Categoricals get one indicator per level with the first level as the
    dropped baseline; missing values are their own ``missing`` level.
    Booleans become 0/1 and numerics pass through (NaN kept).
    """

    columns: List[str] = field(default_factory=list)
    kinds: Dict[str, str] = field(default_factory=dict)
    levels: Dict[str, List[str]] = field(default_factory=dict)
    feature_names: List[str] = field(default_factory=list)
    sources: List[Tuple[str, Optional[str]]] = field(default_factory=list)

    @classmethod
    def fit(
        cls,
        train: pd.DataFrame,
        test: Optional[pd.DataFrame] = None,
        *,
        exclude: Iterable[str] = (),
    ) -> "FeatureSchema":
        """Build the schema; categorical levels come from the union of both partitions."""
        exclude = set(exclude)
        schema = cls()
        raw_names: List[str] = []

        for col in train.columns:
            if col in exclude:
                continue
            kind = _kind(train[col])
            schema.columns.append(col)
            schema.kinds[col] = kind

            if kind != "categorical":
                raw_names.append(col)
                schema.sources.append((col, None))
                continue

            parts = [train[col]]
            if test is not None and col in test.columns:
                parts.append(test[col])
            levels = _levels(parts)
            schema.levels[col] = levels
            for level in levels[1:]:
                raw_names.append(f"{col}{level}")
                schema.sources.append((col, level))

        schema.feature_names = make_names(raw_names)
        return schema

    def transform(self, frame: pd.DataFrame) -> pd.DataFrame:
        missing = [c for c in self.columns if c not in frame.columns]
        if missing:
            raise FeatureSchemaError(f"Columns missing from frame: {missing}")

        text_cache: Dict[str, pd.Series] = {}
        for col, levels in self.levels.items():
            text = _as_text(frame[col])
            unseen = sorted(set(text.unique()) - set(levels))
            if unseen:
                raise FeatureSchemaError(f"Column '{col}' has levels not seen when fitting: {unseen}")
            text_cache[col] = text

        data = {}
        for name, (col, level) in zip(self.feature_names, self.sources):
            kind = self.kinds[col]
            if kind == "categorical":
                data[name] = (text_cache[col] == level).astype(float).to_numpy()
            elif kind == "boolean":
                data[name] = frame[col].astype("boolean").to_numpy(dtype=float, na_value=np.nan)
            else:
                data[name] = pd.to_numeric(frame[col], errors="coerce").astype(float).to_numpy()

        return pd.DataFrame(data, index=frame.index, columns=self.feature_names)


def build_design_matrices(
    train: pd.DataFrame,
    test: pd.DataFrame,
    outcome: str,
) -> Tuple[FeatureSchema, pd.DataFrame, pd.DataFrame]:
    """Fit one schema on both partitions and expand each of them with it."""
    schema = FeatureSchema.fit(train, test, exclude=[outcome])
    return schema, schema.transform(train), schema.transform(test)
