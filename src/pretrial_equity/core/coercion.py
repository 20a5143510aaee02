"""Type coercion for labelled survey columns"""

from dataclasses import dataclass
from typing import Any, Dict, Hashable, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd
from pandas.api.types import is_bool_dtype, is_numeric_dtype

NOT_APPLICABLE = "Not applicable"
LOGICAL_TRUE = {"1", "t", "true"}
LOGICAL_FALSE = {"0", "f", "false"}


@dataclass(frozen=True)
class Labelled:
    """A column's values paired with its human-readable label."""

    values: pd.Series
    label: Optional[str] = None

    @property
    def display_label(self) -> str:
        return self.label or str(self.values.name)


def _normalize_code(code: Any) -> Hashable:
    if isinstance(code, (float, np.floating)) and float(code).is_integer():
        return int(code)
    if isinstance(code, np.integer):
        return int(code)
    return code


def _code_text(code: Any) -> str:
    return str(_normalize_code(code))


def decode_value_labels(series: pd.Series, value_labels: Mapping[Any, str]) -> pd.Series:
    """Map stored codes to their labels; codes without a label keep their own text."""
    lookup = {_normalize_code(k): v for k, v in value_labels.items()}

    def _decode(v):
        if pd.isna(v):
            return np.nan
        key = _normalize_code(v)
        return lookup.get(key, _code_text(v))

    decoded = series.astype(object).map(_decode)
    present = set(decoded.dropna().unique())
    # Labels follow code order; unlabelled codes come after, sorted
    try:
        code_order = sorted(lookup)
    except TypeError:
        code_order = sorted(lookup, key=str)
    ordered = [lab for lab in dict.fromkeys(lookup[k] for k in code_order) if lab in present]
    extras = sorted(present - set(ordered))
    return pd.Series(
        pd.Categorical(decoded, categories=ordered + extras),
        index=series.index,
        name=series.name,
    )


def numeric_if_parseable(series: pd.Series, na_token: str = NOT_APPLICABLE) -> Optional[pd.Series]:
    """Numeric version of a text/categorical column, or None if any value is not a number.

    ``na_token`` counts as missing, not as a failed parse.
    """
    values = series.astype(object)
    values = values.where(values.notna() & (values.astype(str).str.strip() != na_token))
    present = values.notna()
    if not present.any():
        return None

    parsed = pd.to_numeric(values[present].astype(str).str.strip(), errors="coerce")
    if parsed.isna().any():
        return None

    out = pd.Series(np.nan, index=series.index, dtype=float, name=series.name)
    out[present] = parsed.astype(float)
    return out


def can_be_logical(series: pd.Series) -> bool:
    present = series.dropna()
    if present.empty:
        return False
    if is_bool_dtype(series.dtype):
        return True
    if is_numeric_dtype(series.dtype):
        return set(present.astype(float).unique()) <= {0.0, 1.0}
    tokens = set(present.astype(str).str.strip().str.lower().unique())
    return tokens <= (LOGICAL_TRUE | LOGICAL_FALSE)


def as_logical(series: pd.Series) -> pd.Series:
    if is_bool_dtype(series.dtype):
        return series.astype("boolean")
    if is_numeric_dtype(series.dtype):
        return series.astype(float).map({1.0: True, 0.0: False}).astype("boolean")

    def _flag(v):
        if pd.isna(v):
            return np.nan
        return str(v).strip().lower() in LOGICAL_TRUE

    return series.astype(object).map(_flag).astype("boolean")


def coerce_column(
    series: pd.Series,
    *,
    value_labels: Optional[Mapping[Any, str]] = None,
    label: Optional[str] = None,
    na_token: str = NOT_APPLICABLE,
) -> Labelled:
    """Coerce one raw column and pair it with its descriptive label."""
    values = series
    if value_labels:
        values = decode_value_labels(values, value_labels)

    is_text = isinstance(values.dtype, (pd.CategoricalDtype, pd.StringDtype)) or values.dtype == object
    if is_text:
        numeric = numeric_if_parseable(values, na_token=na_token)
        if numeric is not None:
            values = numeric

    if can_be_logical(values):
        values = as_logical(values)
    elif values.dtype == object or isinstance(values.dtype, pd.StringDtype):
        text = values.where(values.isna(), values.astype(str))
        values = text.astype("category")

    return Labelled(values=values.rename(series.name), label=label)


def coerce_frame(
    frame: pd.DataFrame,
    *,
    value_labels: Optional[Dict[str, Mapping[Any, str]]] = None,
    column_labels: Optional[Dict[str, str]] = None,
    na_token: str = NOT_APPLICABLE,
) -> Tuple[pd.DataFrame, Dict[str, str]]:
    """Coerce every column; returns the coerced frame and column -> display label."""
    value_labels = value_labels or {}
    column_labels = column_labels or {}

    columns: List[pd.Series] = []
    labels: Dict[str, str] = {}
    for col in frame.columns:
        labelled = coerce_column(
            frame[col],
            value_labels=value_labels.get(col),
            label=column_labels.get(col),
            na_token=na_token,
        )
        columns.append(labelled.values)
        labels[col] = labelled.display_label

    out = pd.concat(columns, axis=1) if columns else frame.copy()
    out.columns = frame.columns
    return out, labels
