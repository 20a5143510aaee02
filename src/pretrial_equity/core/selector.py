"""Variable selection against the catalog"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

import pandas as pd
from pandas.api.types import is_bool_dtype

from ..utils.error_handler import ConfigError
from .catalog import ColumnRole, VariableCatalog
from .config import ColumnSchema
from .utils import safe_print


def keep_columns(
    frame: pd.DataFrame,
    catalog: VariableCatalog,
    *,
    log: Callable[[str], None] = safe_print,
) -> Tuple[pd.DataFrame, List[str]]:
    """Restrict ``frame`` to catalog columns flagged keep.

    Returns the filtered frame and the kept catalog names missing from the data.
    """
    wanted = catalog.names(ColumnRole.KEEP)
    kept = [c for c in frame.columns if c in wanted]
    absent = sorted(wanted - set(frame.columns))
    if absent:
        log(f"   - {len(absent)} catalog variables not in data, skipped: {absent}")
    dropped = len(frame.columns) - len(kept)
    if dropped:
        log(f"   - {dropped} columns not flagged keep in catalog were dropped")
    return frame[kept].copy(), absent


def outcome_flag(series: pd.Series, schema: ColumnSchema) -> pd.Series:
    """Boolean FTA flag; NA where the outcome is missing or not applicable."""
    if is_bool_dtype(series.dtype):
        return series.astype("boolean")

    def _flag(v):
        if pd.isna(v):
            return pd.NA
        text = str(v).strip()
        if text == schema.not_applicable_token:
            return pd.NA
        return text == schema.outcome_positive

    return series.astype(object).map(_flag).astype("boolean")


@dataclass
class ModelFrames:
    """Full, fair (no demographics) and outcome-only views of the modelling rows."""

    full: pd.DataFrame
    fair: pd.DataFrame
    outcome: pd.DataFrame
    demographic_columns: List[str]
    outcome_columns: List[str]

    @property
    def outcome_name(self) -> str:
        return self.outcome.columns[0]

    def view(self, variant: str) -> pd.DataFrame:
        base = variant.replace("sampled_", "", 1)
        if base == "full":
            return self.full
        if base == "fair":
            return self.fair
        raise KeyError(f"Unknown model variant: {variant}")


class VariableSelector:
    """Builds the model views from a cleaned table."""

    def __init__(self, catalog: VariableCatalog, schema: ColumnSchema, log: Callable[[str], None] = safe_print):
        self.catalog = catalog
        self.schema = schema
        self.log = log

    def resolve(self, columns) -> Dict[ColumnRole, List[str]]:
        columns = list(columns)
        return {role: self.catalog.present(role, columns) for role in ColumnRole}

    def select(self, frame: pd.DataFrame) -> ModelFrames:
        schema = self.schema
        if schema.outcome_column not in frame.columns:
            raise ConfigError(f"Outcome column '{schema.outcome_column}' not found in data")

        roles = self.resolve(frame.columns)
        demographic = roles[ColumnRole.DEMOGRAPHIC]
        outcomes = roles[ColumnRole.OUTCOME]
        if schema.outcome_column not in outcomes:
            outcomes = outcomes + [schema.outcome_column]

        flag = outcome_flag(frame[schema.outcome_column], schema)
        rows = flag.notna()
        self.log(
            f"   - Modelling rows: {int(rows.sum())} of {len(frame)} "
            f"({int((~rows).sum())} with missing or not-applicable outcome removed)"
        )

        drop = [c for c in frame.columns if c in set(outcomes) | set(schema.drop_columns)]
        full = frame.loc[rows].drop(columns=drop)
        full[schema.outcome_flag] = flag[rows].astype(bool)

        demographic = [c for c in demographic if c in full.columns]
        fair = full.drop(columns=demographic)

        return ModelFrames(
            full=full,
            fair=fair,
            outcome=full[[schema.outcome_flag]].copy(),
            demographic_columns=demographic,
            outcome_columns=outcomes,
        )
