"""Release and bail descriptive statistics by demographic group"""

from typing import List

import numpy as np
import pandas as pd

from .config import ColumnSchema
from .demographics import DIMENSIONS, as_flag
from .summary import SummaryTable


def _flag_or_nan(data: pd.DataFrame, column: str, schema: ColumnSchema) -> pd.Series:
    if column not in data.columns:
        return pd.Series(np.nan, index=data.index, dtype=float)
    flag = as_flag(data[column], schema.true_values)
    return pd.Series(flag.to_numpy(dtype=float, na_value=np.nan), index=data.index)


def release_and_bail(data: pd.DataFrame, demographics: pd.DataFrame, schema: ColumnSchema) -> pd.DataFrame:
    """One row per (dimension, group) with release and bail rates and bail amounts.

    Rates ignore rows where the flag is missing. Bail amounts are summarised
    over cases with a positive amount only.
    """
    if schema.bail_amount_column in data.columns:
        amount = pd.to_numeric(data[schema.bail_amount_column], errors="coerce").astype(float)
    else:
        amount = pd.Series(np.nan, index=data.index, dtype=float)

    work = pd.DataFrame(
        {
            "released": _flag_or_nan(data, schema.released_column, schema),
            "financial_release": _flag_or_nan(data, schema.bail_paid_column, schema),
            "bail_set": (amount > 0).astype(float).where(amount.notna()),
            "bail_amount": amount.where(amount > 0),
        },
        index=data.index,
    )
    aggregations = dict(
        defendants=("released", "size"),
        release_rate=("released", "mean"),
        bail_set_rate=("bail_set", "mean"),
        financial_release_rate=("financial_release", "mean"),
        mean_bail=("bail_amount", "mean"),
        median_bail=("bail_amount", "median"),
    )

    overall = work.assign(group="All").groupby("group").agg(**aggregations).reset_index()
    overall.insert(0, "dimension", "All")
    frames = [overall]
    for dim, title in DIMENSIONS.items():
        if dim not in demographics.columns:
            continue
        grouped = (
            work.join(demographics[[dim]])
            .groupby(dim, observed=True)
            .agg(**aggregations)
            .reset_index()
            .rename(columns={dim: "group"})
        )
        grouped["group"] = grouped["group"].astype(str)
        grouped.insert(0, "dimension", title)
        frames.append(grouped)
    return pd.concat(frames, ignore_index=True)


def descriptive_tables(data: pd.DataFrame, demographics: pd.DataFrame, schema: ColumnSchema) -> List[SummaryTable]:
    counts = []
    for dim, title in DIMENSIONS.items():
        if dim not in demographics.columns:
            continue
        share = demographics[dim].value_counts(dropna=False, sort=False)
        counts.append(
            pd.DataFrame(
                {
                    "dimension": title,
                    "group": ["Missing" if pd.isna(g) else str(g) for g in share.index],
                    "defendants": share.to_numpy(),
                    "share": (share / max(len(demographics), 1)).to_numpy(),
                }
            )
        )
    composition = pd.concat(counts, ignore_index=True) if counts else pd.DataFrame()
    return [
        SummaryTable("composition", "Defendants by demographic group", composition),
        SummaryTable("release_bail", "Release and bail outcomes by demographic group", release_and_bail(data, demographics, schema)),
    ]
