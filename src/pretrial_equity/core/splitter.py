"""
Stratified train/test partitioning
"""

from dataclasses import dataclass
from typing import Callable, Dict, Optional

import pandas as pd
from sklearn.model_selection import train_test_split

from ..utils.error_handler import PartitionError
from .utils import safe_print


@dataclass
class DataSplit:
    """Disjoint training/testing partitions; original row index is preserved."""

    train: pd.DataFrame
    test: pd.DataFrame
    outcome: str

    def positive_rate(self, part: str) -> float:
        frame = self.train if part == "train" else self.test
        return float(frame[self.outcome].mean()) if len(frame) else float("nan")


def stratified_split(
    frame: pd.DataFrame,
    outcome: str,
    *,
    test_size: float = 0.25,
    random_state: Optional[int] = None,
) -> DataSplit:
    """Split ``frame`` so both sides keep the outcome's class balance.

    Raises PartitionError when the outcome cannot be stratified (missing
    column, missing values, a single class or too few rows per class).
    """
    if outcome not in frame.columns:
        raise PartitionError(f"Outcome column '{outcome}' not in data")
    if frame.empty:
        raise PartitionError("Cannot partition an empty table")
    y = frame[outcome]
    if y.isna().any():
        raise PartitionError(f"Outcome column '{outcome}' has missing values")
    if y.nunique() < 2:
        raise PartitionError(f"Outcome column '{outcome}' has a single class; stratified split impossible")

    try:
        train_df, test_df = train_test_split(
            frame,
            test_size=test_size,
            random_state=random_state,
            stratify=y,
        )
    except ValueError as exc:
        raise PartitionError(f"Stratified split failed: {exc}") from exc

    return DataSplit(train=train_df, test=test_df, outcome=outcome)


def subsample(frame: pd.DataFrame, n: int, *, random_state: Optional[int] = None) -> pd.DataFrame:
    """Uniform random sample of ``n`` rows (the whole frame when it is smaller)."""
    if n >= len(frame):
        return frame
    return frame.sample(n=n, random_state=random_state)


class DataSplitter:
    """Config-driven partitioning with per-split statistics."""

    def __init__(self, config, log: Callable[[str], None] = safe_print):
        self.config = config
        self.log = log
        self.split_stats_: Dict[str, Dict[str, float]] = {}

    def split(self, frame: pd.DataFrame, outcome: str, *, sample_size: Optional[int] = None) -> DataSplit:
        seed = getattr(self.config, "random_state", None)
        if sample_size:
            frame = subsample(frame, sample_size, random_state=seed)
            self.log(f"   - Sampled {len(frame)} rows")

        result = stratified_split(
            frame,
            outcome,
            test_size=getattr(self.config, "test_size", 0.25),
            random_state=seed,
        )
        self._calculate_statistics(result)
        return result

    def _calculate_statistics(self, split: DataSplit):
        self.split_stats_ = {}
        for name, part in (("train", split.train), ("test", split.test)):
            n_pos = int(part[split.outcome].sum())
            self.split_stats_[name] = {
                "n_samples": len(part),
                "n_fta": n_pos,
                "n_appeared": len(part) - n_pos,
                "fta_rate": split.positive_rate(name),
            }
            self.log(f"   - {name}: {len(part)} rows, FTA rate {self.split_stats_[name]['fta_rate']:.2%}")

    def get_split_summary(self) -> pd.DataFrame:
        summary_data = []
        for split_name, stats in self.split_stats_.items():
            summary_data.append({
                "split": split_name,
                "samples": stats["n_samples"],
                "fta": stats["n_fta"],
                "appeared": stats["n_appeared"],
                "fta_rate": stats["fta_rate"],
            })
        return pd.DataFrame(summary_data)
