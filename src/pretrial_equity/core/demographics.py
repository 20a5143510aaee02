"""Demographic slices used for equity reporting: gender, age band and race"""

from typing import Callable, Iterable

import numpy as np
import pandas as pd
from pandas.api.types import is_bool_dtype, is_numeric_dtype

from .config import ColumnSchema
from .utils import safe_print

DIMENSIONS = {
    "gender": "Gender",
    "age_band": "Age",
    "race": "Race",
}
RACE_OTHER = "Other"


def as_flag(series: pd.Series, true_values: Iterable[str]) -> pd.Series:
    """Nullable boolean view of an indicator column (bool, 0/1 or labelled text)."""
    if is_bool_dtype(series.dtype):
        return series.astype("boolean")
    if is_numeric_dtype(series.dtype):
        numeric = series.astype(float)
        return numeric.eq(1).astype("boolean").mask(numeric.isna())

    truthy = {str(v).strip().lower() for v in true_values}

    def _flag(v):
        if pd.isna(v):
            return pd.NA
        return str(v).strip().lower() in truthy

    return series.astype(object).map(_flag).astype("boolean")


def race_category(frame: pd.DataFrame, schema: ColumnSchema) -> pd.Series:
    """Mutually exclusive race category from indicator flags.

    Flags are checked in ``schema.race_flags`` order; rows with no flag set
    (or no flag data) fall into "Other".
    """
    conditions = []
    choices = []
    for column, category in schema.race_flags.items():
        if column not in frame.columns:
            continue
        flag = as_flag(frame[column], schema.true_values).fillna(False).astype(bool)
        conditions.append(flag.to_numpy())
        choices.append(category)

    levels = list(dict.fromkeys(list(schema.race_flags.values()) + [RACE_OTHER]))
    if conditions:
        values = np.select(conditions, choices, default=RACE_OTHER)
    else:
        values = np.full(len(frame), RACE_OTHER, dtype=object)
    return pd.Series(pd.Categorical(values, categories=levels), index=frame.index, name="race")


def age_band(series: pd.Series, schema: ColumnSchema) -> pd.Series:
    if isinstance(series.dtype, pd.CategoricalDtype) or not is_numeric_dtype(series.dtype):
        # Already banded in the source file
        return series.astype("category").rename("age_band")
    return pd.cut(
        series.astype(float),
        bins=schema.age_bins,
        labels=schema.age_labels,
        right=False,
    ).rename("age_band")


def derive_demographics(
    frame: pd.DataFrame,
    schema: ColumnSchema,
    log: Callable[[str], None] = safe_print,
) -> pd.DataFrame:
    """Index-aligned frame with ``gender``, ``age_band`` and ``race`` categoricals."""
    out = pd.DataFrame(index=frame.index)

    if schema.gender_column in frame.columns:
        gender = frame[schema.gender_column]
        out["gender"] = gender.astype(object).where(gender.notna()).astype("category")
    else:
        log(f"   [WARNING] Gender column '{schema.gender_column}' not found; gender slice empty")
        out["gender"] = pd.Series(pd.Categorical([np.nan] * len(frame)), index=frame.index)

    if schema.age_column in frame.columns:
        out["age_band"] = age_band(frame[schema.age_column], schema)
    else:
        log(f"   [WARNING] Age column '{schema.age_column}' not found; age slice empty")
        out["age_band"] = pd.Series(pd.Categorical([np.nan] * len(frame)), index=frame.index)

    missing_flags = [c for c in schema.race_flags if c not in frame.columns]
    if missing_flags:
        log(f"   [WARNING] Race flag columns not found: {missing_flags}")
    out["race"] = race_category(frame, schema)
    return out
