"""Equity evaluation of trained models against a judge-decision proxy"""

from typing import Callable, Dict, Iterable, List, Optional

import numpy as np
import pandas as pd
from sklearn.metrics import roc_auc_score

from ..utils.error_handler import EvaluationError
from .config import Config
from .demographics import DIMENSIONS, as_flag
from .model_trainer import ModelArtifact
from .selector import outcome_flag
from .summary import SummaryTable
from .utils import safe_print

CORRECT = "correct"
FALSE_NEGATIVE = "false_negative"
FALSE_POSITIVE = "false_positive"
ALL_GROUP = "All"


def judge_decision(released: pd.Series, bail_paid: pd.Series, fta: pd.Series) -> pd.Series:
    """Score each judge decision against what the defendant then did.

    Requiring bail is read as the judge predicting FTA. Only released
    defendants with known bail status and a known outcome are scored; every
    other row is NA.

    ==========  ========  ===============
    bail paid   FTA       result
    ==========  ========  ===============
    no          yes       false_negative
    yes         yes       correct
    yes         no        false_positive
    no          no        correct
    ==========  ========  ===============
    """
    released = released.astype("boolean")
    bail_paid = bail_paid.astype("boolean")
    fta = fta.astype("boolean")

    known = (released.fillna(False) & bail_paid.notna() & fta.notna()).astype(bool)
    bail = bail_paid.fillna(False).astype(bool)
    failed = fta.fillna(False).astype(bool)

    result = np.select(
        [~bail & failed, bail & ~failed],
        [FALSE_NEGATIVE, FALSE_POSITIVE],
        default=CORRECT,
    ).astype(object)
    result[~known.to_numpy()] = None
    return pd.Series(result, index=fta.index, name="judge_decision", dtype=object)


def _auc(y_true: np.ndarray, prob: np.ndarray) -> float:
    if len(np.unique(y_true)) < 2:
        return float("nan")
    return float(roc_auc_score(y_true, prob))


def _group_row(y_true: np.ndarray, prob: np.ndarray, threshold: float) -> Dict[str, float]:
    predicted = (prob > threshold).astype(int)
    return {
        "n": int(len(y_true)),
        "fta_rate": float(y_true.mean()),
        "accuracy": float((predicted == y_true).mean()),
        "auc": _auc(y_true, prob),
        "mean_probability": float(prob.mean()),
    }


def group_metrics(
    y_true: pd.Series,
    prob: pd.Series,
    groups: pd.DataFrame,
    *,
    threshold: float = 0.5,
    dimensions: Optional[Iterable[str]] = None,
) -> pd.DataFrame:
    """Accuracy, AUC and mean probability overall and per demographic group.

    ``y_true``, ``prob`` and ``groups`` are aligned on their index. Groups with
    no rows are left out; AUC is NaN for groups holding a single class.
    """
    index = y_true.index
    y = y_true.astype(int).to_numpy()
    p = prob.reindex(index).astype(float).to_numpy()
    if np.isnan(p).any():
        raise EvaluationError("Probabilities are missing for some evaluated rows")

    rows = [{"dimension": ALL_GROUP, "group": ALL_GROUP, **_group_row(y, p, threshold)}]
    aligned = groups.reindex(index)
    for dim in dimensions or [d for d in DIMENSIONS if d in groups.columns]:
        labels = aligned[dim]
        levels = labels.cat.categories if isinstance(labels.dtype, pd.CategoricalDtype) else labels.dropna().unique()
        for level in levels:
            mask = (labels == level).fillna(False).to_numpy(dtype=bool)
            if not mask.any():
                continue
            rows.append(
                {"dimension": DIMENSIONS.get(dim, dim), "group": str(level), **_group_row(y[mask], p[mask], threshold)}
            )
    return pd.DataFrame(rows)


class EquityEvaluator:
    """Per-group model metrics and the judge-decision comparison"""

    def __init__(self, config: Config, log: Callable[[str], None] = safe_print):
        self.cfg = config
        self.log = log

    def evaluate_model(self, artifact: ModelArtifact, demographics: pd.DataFrame, part: str = "test") -> pd.DataFrame:
        """Group metrics on the artifact's testing (or training) partition."""
        frame = artifact.testing_set if part == "test" else artifact.training_set
        prob = artifact.test_prob if part == "test" else artifact.train_prob
        metrics = group_metrics(frame[artifact.outcome], prob, demographics, threshold=self.cfg.threshold)
        metrics.insert(0, "model", artifact.variant)
        metrics.insert(1, "partition", part)
        return metrics

    def judge_decisions(self, data: pd.DataFrame) -> pd.Series:
        schema = self.cfg.schema
        missing = [
            c for c in (schema.released_column, schema.bail_paid_column, schema.outcome_column) if c not in data.columns
        ]
        if missing:
            raise EvaluationError(f"Judge proxy needs columns not in the cleaned data: {missing}")
        return judge_decision(
            as_flag(data[schema.released_column], schema.true_values),
            as_flag(data[schema.bail_paid_column], schema.true_values),
            outcome_flag(data[schema.outcome_column], schema),
        )

    def judge_proxy(self, data: pd.DataFrame, demographics: pd.DataFrame) -> pd.DataFrame:
        """Judge accuracy and error rates overall and per demographic group."""
        decisions = self.judge_decisions(data)
        scored = decisions.dropna()
        self.log(f"   - Judge proxy: {len(scored)} released defendants with known bail status and outcome")

        fta = outcome_flag(data[self.cfg.schema.outcome_column], self.cfg.schema)
        aligned = demographics.reindex(scored.index)

        def _row(dimension: str, group: str, outcome: pd.Series, mask: np.ndarray) -> Dict:
            part = outcome[mask]
            return {
                "dimension": dimension,
                "group": group,
                "n": int(mask.sum()),
                "fta_rate": float(fta.reindex(part.index).astype(float).mean()),
                "accuracy": float((part == CORRECT).mean()),
                "false_negative_rate": float((part == FALSE_NEGATIVE).mean()),
                "false_positive_rate": float((part == FALSE_POSITIVE).mean()),
            }

        rows = []
        if len(scored):
            rows.append(_row(ALL_GROUP, ALL_GROUP, scored, np.ones(len(scored), dtype=bool)))
        for dim, title in DIMENSIONS.items():
            if dim not in aligned.columns:
                continue
            labels = aligned[dim]
            levels = labels.cat.categories if isinstance(labels.dtype, pd.CategoricalDtype) else labels.dropna().unique()
            for level in levels:
                mask = (labels == level).fillna(False).to_numpy(dtype=bool)
                if mask.any():
                    rows.append(_row(title, str(level), scored, mask))
        return pd.DataFrame(
            rows,
            columns=["dimension", "group", "n", "fta_rate", "accuracy", "false_negative_rate", "false_positive_rate"],
        )

    def compare(
        self,
        artifacts: Dict[str, ModelArtifact],
        data: pd.DataFrame,
        demographics: pd.DataFrame,
    ) -> List[SummaryTable]:
        """Model metrics, judge metrics and a side-by-side accuracy table."""
        model_frames = [self.evaluate_model(a, demographics) for a in artifacts.values()]
        model_metrics = pd.concat(model_frames, ignore_index=True) if model_frames else pd.DataFrame()
        judge = self.judge_proxy(data, demographics)

        side_by_side = judge[["dimension", "group", "accuracy"]].rename(columns={"accuracy": "judge_accuracy"})
        for variant, frame in zip(artifacts, model_frames):
            side_by_side = side_by_side.merge(
                frame[["dimension", "group", "accuracy", "auc"]].rename(
                    columns={"accuracy": f"{variant}_accuracy", "auc": f"{variant}_auc"}
                ),
                on=["dimension", "group"],
                how="outer",
                sort=False,
            )

        return [
            SummaryTable("model_equity", "Model accuracy, AUC and mean probability by group", model_metrics),
            SummaryTable("judge_proxy", "Judge decisions scored against appearance", judge),
            SummaryTable("accuracy_comparison", "Judge versus model accuracy by group", side_by_side),
        ]
