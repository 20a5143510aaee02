"""Model training: cross-validated grid search over boosted trees"""

import itertools
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import joblib
import numpy as np
import pandas as pd
from joblib import Parallel, delayed
from lightgbm import LGBMClassifier
from sklearn.metrics import roc_auc_score
from sklearn.model_selection import StratifiedKFold

from ..utils.error_handler import TrainingError
from .features import FeatureSchema, build_design_matrices
from .splitter import DataSplitter
from .utils import predict_positive_proba, safe_print

warnings.filterwarnings("ignore", message="X does not have valid feature names")


def build_estimator(
    n_trees: int,
    depth: int,
    shrinkage: float,
    *,
    min_leaf_size: int = 20,
    bag_fraction: float = 0.5,
    random_state: Optional[int] = None,
) -> LGBMClassifier:
    """Boosted-tree classifier for one grid point.

    ``depth`` is the interaction depth: the number of splits per tree, so a
    tree has ``depth + 1`` leaves.
    """
    return LGBMClassifier(
        n_estimators=int(n_trees),
        num_leaves=int(depth) + 1,
        max_depth=-1,
        learning_rate=float(shrinkage),
        min_child_samples=int(min_leaf_size),
        subsample=float(bag_fraction),
        subsample_freq=1 if bag_fraction < 1 else 0,
        random_state=random_state,
        n_jobs=1,
        verbosity=-1,
    )


def score_predictions(y_true: np.ndarray, proba: np.ndarray, metric: str, threshold: float = 0.5) -> float:
    if metric == "roc_auc":
        return float(roc_auc_score(y_true, proba))
    return float(np.mean((proba > threshold).astype(int) == y_true))


def _fit_fold(
    X: np.ndarray,
    y: np.ndarray,
    train_idx: np.ndarray,
    val_idx: np.ndarray,
    *,
    depth: int,
    shrinkage: float,
    fold: int,
    n_trees_grid: List[int],
    min_leaf_size: int,
    bag_fraction: float,
    random_state: Optional[int],
    metric: str,
    threshold: float,
) -> Dict[str, Any]:
    """Fit the largest ensemble once and score every tree count on the held-out fold."""
    task = {"depth": depth, "shrinkage": shrinkage, "fold": fold}
    try:
        model = build_estimator(
            max(n_trees_grid),
            depth,
            shrinkage,
            min_leaf_size=min_leaf_size,
            bag_fraction=bag_fraction,
            random_state=random_state,
        )
        model.fit(X[train_idx], y[train_idx])
        pos = int(np.where(model.classes_ == 1)[0][0])
        scores = []
        for n_trees in n_trees_grid:
            proba = model.predict_proba(X[val_idx], num_iteration=int(n_trees))[:, pos]
            scores.append(
                {"n_trees": int(n_trees), "score": score_predictions(y[val_idx], proba, metric, threshold)}
            )
        return {**task, "scores": scores, "error": None}
    except Exception as exc:
        return {**task, "scores": [], "error": f"{type(exc).__name__}: {exc}"}


@dataclass(frozen=True)
class ModelArtifact:
    """Everything one training run produced; read-only after creation."""

    variant: str
    outcome: str
    training_set: pd.DataFrame
    testing_set: pd.DataFrame
    model: Any
    train_prob: pd.Series
    test_prob: pd.Series
    feature_schema: FeatureSchema
    best_params: Dict[str, Any] = field(default_factory=dict)
    cv_results: pd.DataFrame = field(default_factory=pd.DataFrame)
    failures: List[Dict[str, Any]] = field(default_factory=list)

    def save(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        joblib.dump(self, path)
        return path

    @staticmethod
    def load(path: Union[str, Path]) -> "ModelArtifact":
        artifact = joblib.load(path)
        if not isinstance(artifact, ModelArtifact):
            raise TypeError(f"{path} does not hold a ModelArtifact")
        return artifact


class ModelTrainer:
    """Grid search, final refit and artifact assembly"""

    def __init__(self, config, log: Callable[[str], None] = safe_print):
        self.cfg = config
        self.log = log
        self.cv_results_: Optional[pd.DataFrame] = None
        self.failures_: List[Dict[str, Any]] = []
        self.best_params_: Optional[Dict[str, Any]] = None

    def param_grid(self) -> List[Dict[str, Any]]:
        """All grid points, simplest first (fewest trees, shallowest, slowest)."""
        return [
            {"n_trees": n, "depth": d, "shrinkage": s, "min_leaf_size": self.cfg.min_leaf_size}
            for n, d, s in itertools.product(
                sorted(self.cfg.n_trees_grid),
                sorted(self.cfg.depth_grid),
                sorted(self.cfg.shrinkage_grid),
            )
        ]

    def cross_validate(self, X: pd.DataFrame, y: np.ndarray) -> pd.DataFrame:
        """Mean CV score per grid point; points with any failed fold are excluded."""
        cfg = self.cfg
        X_values = np.asarray(X, dtype=float)
        y = np.asarray(y).astype(int)

        # Every validation fold needs both classes
        smallest = int(np.bincount(y, minlength=2).min()) if len(y) else 0
        if smallest < cfg.cv_folds:
            raise TrainingError(
                f"Cannot build {cfg.cv_folds} stratified folds: smallest class has {smallest} rows"
            )

        skf = StratifiedKFold(n_splits=cfg.cv_folds, shuffle=True, random_state=cfg.random_state)
        try:
            folds = list(skf.split(X_values, y))
        except ValueError as exc:
            raise TrainingError(f"Cannot build {cfg.cv_folds} stratified folds: {exc}") from exc

        tasks = [
            (depth, shrinkage, fold, train_idx, val_idx)
            for depth, shrinkage in itertools.product(sorted(cfg.depth_grid), sorted(cfg.shrinkage_grid))
            for fold, (train_idx, val_idx) in enumerate(folds)
        ]
        self.log(
            f"   - Grid search: {len(self.param_grid())} combinations x {cfg.cv_folds} folds "
            f"({len(tasks)} fits, n_jobs={cfg.n_jobs})"
        )

        results = Parallel(n_jobs=cfg.n_jobs)(
            delayed(_fit_fold)(
                X_values,
                y,
                train_idx,
                val_idx,
                depth=depth,
                shrinkage=shrinkage,
                fold=fold,
                n_trees_grid=sorted(cfg.n_trees_grid),
                min_leaf_size=cfg.min_leaf_size,
                bag_fraction=cfg.bag_fraction,
                random_state=cfg.random_state,
                metric=cfg.scoring_metric,
                threshold=cfg.threshold,
            )
            for depth, shrinkage, fold, train_idx, val_idx in tasks
        )

        self.failures_ = [
            {k: r[k] for k in ("depth", "shrinkage", "fold", "error")} for r in results if r["error"]
        ]
        for failure in self.failures_:
            self.log(
                f"   [WARNING] Skipped depth={failure['depth']} shrinkage={failure['shrinkage']} "
                f"fold={failure['fold']}: {failure['error']}"
            )

        failed = {(f["depth"], f["shrinkage"]) for f in self.failures_}
        rows = [
            {
                "n_trees": s["n_trees"],
                "depth": r["depth"],
                "shrinkage": r["shrinkage"],
                "fold": r["fold"],
                "score": s["score"],
            }
            for r in results
            if (r["depth"], r["shrinkage"]) not in failed
            for s in r["scores"]
        ]
        if not rows:
            raise TrainingError("Every hyperparameter combination failed to fit")

        per_fold = pd.DataFrame(rows)
        summary = (
            per_fold.groupby(["n_trees", "depth", "shrinkage"], sort=True)["score"]
            .agg(mean_score="mean", std_score="std", n_folds="count")
            .reset_index()
        )
        summary["metric"] = cfg.scoring_metric
        self.cv_results_ = summary
        return summary

    @staticmethod
    def select_best(cv_results: pd.DataFrame) -> Dict[str, Any]:
        """Best mean score; ties go to the simplest grid point."""
        ordered = cv_results.sort_values(["n_trees", "depth", "shrinkage"], kind="mergesort")
        best = ordered.loc[ordered["mean_score"].idxmax()]
        return {
            "n_trees": int(best["n_trees"]),
            "depth": int(best["depth"]),
            "shrinkage": float(best["shrinkage"]),
            "cv_score": float(best["mean_score"]),
        }

    def fit(self, X: pd.DataFrame, y: np.ndarray) -> LGBMClassifier:
        cv_results = self.cross_validate(X, y)
        best = self.select_best(cv_results)
        self.best_params_ = {**best, "min_leaf_size": self.cfg.min_leaf_size, "bag_fraction": self.cfg.bag_fraction}
        self.log(
            f"   - Best: n_trees={best['n_trees']} depth={best['depth']} "
            f"shrinkage={best['shrinkage']} ({self.cfg.scoring_metric}={best['cv_score']:.4f})"
        )

        model = build_estimator(
            best["n_trees"],
            best["depth"],
            best["shrinkage"],
            min_leaf_size=self.cfg.min_leaf_size,
            bag_fraction=self.cfg.bag_fraction,
            random_state=self.cfg.random_state,
        )
        try:
            model.fit(X, np.asarray(y).astype(int))
        except Exception as exc:
            raise TrainingError(f"Final refit failed: {type(exc).__name__}: {exc}") from exc
        return model

    def train_variant(
        self,
        variant: str,
        frame: pd.DataFrame,
        outcome: str,
        *,
        sample_size: Optional[int] = None,
    ) -> ModelArtifact:
        """Partition, expand, tune and refit one model variant."""
        splitter = DataSplitter(self.cfg, log=self.log)
        split = splitter.split(frame, outcome, sample_size=sample_size)

        schema, X_train, X_test = build_design_matrices(split.train, split.test, outcome)
        self.log(f"   - Design matrix: {X_train.shape[1]} columns")
        y_train = split.train[outcome].astype(int).to_numpy()

        model = self.fit(X_train, y_train)
        train_prob = pd.Series(
            predict_positive_proba(model, X_train, positive_label=1), index=X_train.index, name="train_prob"
        )
        test_prob = pd.Series(
            predict_positive_proba(model, X_test, positive_label=1), index=X_test.index, name="test_prob"
        )

        return ModelArtifact(
            variant=variant,
            outcome=outcome,
            training_set=split.train,
            testing_set=split.test,
            model=model,
            train_prob=train_prob,
            test_prob=test_prob,
            feature_schema=schema,
            best_params=dict(self.best_params_ or {}),
            cv_results=self.cv_results_.copy() if self.cv_results_ is not None else pd.DataFrame(),
            failures=list(self.failures_),
        )


def feature_importance(artifact: ModelArtifact, top: Optional[int] = None) -> pd.DataFrame:
    """Split-gain importance of the fitted ensemble, largest first."""
    model = artifact.model
    gains = model.booster_.feature_importance(importance_type="gain")
    frame = pd.DataFrame({"feature": artifact.feature_schema.feature_names, "gain": gains})
    total = frame["gain"].sum()
    frame["share"] = frame["gain"] / total if total > 0 else 0.0
    frame = frame.sort_values("gain", ascending=False, kind="mergesort").reset_index(drop=True)
    return frame.head(top) if top else frame
