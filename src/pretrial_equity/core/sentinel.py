"""Recode repeated-digit placeholder codes (99, 999, 88 ...) to missing.

Legacy survey files store "unknown" and "not applicable" as a run of 9s (or
8s) as wide as the largest value in the column. The width is taken from the
values actually observed, so a column topping out at 45 treats 99 as a
placeholder while one reaching 150 only treats 999 as one.
"""

from typing import Dict, Iterable, List, Tuple

import numpy as np
import pandas as pd
from pandas.api.types import is_bool_dtype, is_numeric_dtype


def _numeric_view(series: pd.Series) -> pd.Series:
    """Numeric interpretation of a column; anything unparseable becomes NaN."""
    if is_bool_dtype(series.dtype):
        return pd.Series(np.nan, index=series.index, dtype=float)
    if is_numeric_dtype(series.dtype):
        return series.astype(float)
    return pd.to_numeric(series.astype(object), errors="coerce").astype(float)


def digit_width(values) -> float:
    """Number of digits in the largest absolute finite value, NaN if there is none."""
    numeric = _numeric_view(pd.Series(values))
    finite = numeric[np.isfinite(numeric)]
    if finite.empty:
        return np.nan
    return float(len(str(int(finite.abs().max()))))


def sentinel_codes(width: float, strict: bool = False) -> List[int]:
    if not np.isfinite(width) or width < 1:
        return []
    width = int(width)
    codes = [int("9" * width)]
    if strict:
        codes.append(int("8" * width))
    return codes


def recode_sentinels(series: pd.Series, strict: bool = False) -> pd.Series:
    """Replace placeholder codes in ``series`` with a missing marker.

    Columns without any numeric interpretation are returned unchanged.
    """
    codes = sentinel_codes(digit_width(series), strict=strict)
    if not codes:
        return series

    hits = _numeric_view(series).isin(codes)
    if not hits.any():
        return series

    out = series.mask(hits)
    if isinstance(out.dtype, pd.CategoricalDtype):
        out = out.cat.remove_unused_categories()
    return out


def recode_frame(
    frame: pd.DataFrame,
    *,
    strict: bool = False,
    strict_columns: Iterable[str] = (),
    exclude: Iterable[str] = (),
) -> Tuple[pd.DataFrame, Dict[str, int]]:
    """Apply :func:`recode_sentinels` to every column.

    Returns the recoded frame and the number of cells recoded per column
    (columns with no hits are left out of the counts).
    """
    strict_columns = set(strict_columns)
    exclude = set(exclude)
    out = frame.copy()
    counts: Dict[str, int] = {}

    for col in frame.columns:
        if col in exclude:
            continue
        before = frame[col].isna().sum()
        out[col] = recode_sentinels(frame[col], strict=strict or col in strict_columns)
        recoded = int(out[col].isna().sum() - before)
        if recoded:
            counts[col] = recoded

    return out, counts
