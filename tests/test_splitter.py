"""Tests for stratified partitioning."""

import numpy as np
import pandas as pd
import pytest

from pretrial_equity.core.splitter import DataSplitter, stratified_split, subsample
from pretrial_equity.utils.error_handler import PartitionError


@pytest.fixture
def imbalanced():
    rng = np.random.default_rng(42)
    n = 2000
    y = np.zeros(n, dtype=bool)
    y[: int(n * 0.3)] = True
    rng.shuffle(y)
    return pd.DataFrame({"x": rng.normal(size=n), "FTA_OUT": y}, index=np.arange(100, 100 + n))


def test_stratified_split_preserves_positive_rate(imbalanced):
    split = stratified_split(imbalanced, "FTA_OUT", test_size=0.25, random_state=60615)
    overall = imbalanced["FTA_OUT"].mean()

    assert abs(split.positive_rate("train") - overall) < 0.02
    assert abs(split.positive_rate("test") - overall) < 0.02
    assert len(split.test) == 500


def test_split_is_disjoint_and_keeps_index(imbalanced):
    split = stratified_split(imbalanced, "FTA_OUT", random_state=1)
    assert set(split.train.index).isdisjoint(split.test.index)
    assert set(split.train.index) | set(split.test.index) == set(imbalanced.index)


def test_split_is_reproducible(imbalanced):
    a = stratified_split(imbalanced, "FTA_OUT", random_state=5)
    b = stratified_split(imbalanced, "FTA_OUT", random_state=5)
    assert list(a.test.index) == list(b.test.index)


@pytest.mark.parametrize(
    "frame, message",
    [
        (pd.DataFrame({"FTA_OUT": [True] * 20}), "single class"),
        (pd.DataFrame({"FTA_OUT": pd.Series([], dtype=bool)}), "empty"),
        (pd.DataFrame({"FTA_OUT": [True, False, None, True]}), "missing values"),
        (pd.DataFrame({"y": [True, False]}), "not in data"),
    ],
)
def test_invalid_outcome_raises(frame, message):
    with pytest.raises(PartitionError, match=message):
        stratified_split(frame, "FTA_OUT")


def test_too_few_rows_per_class_raises():
    frame = pd.DataFrame({"FTA_OUT": [True] + [False] * 9})
    with pytest.raises(PartitionError):
        stratified_split(frame, "FTA_OUT")


def test_subsample(imbalanced):
    assert len(subsample(imbalanced, 300, random_state=1)) == 300
    assert subsample(imbalanced, 5000) is imbalanced


class TestDataSplitter:
    def test_sampled_split_and_summary(self, imbalanced, config, messages):
        splitter = DataSplitter(config, log=messages.append)
        split = splitter.split(imbalanced, "FTA_OUT", sample_size=400)
        assert len(split.train) + len(split.test) == 400

        summary = splitter.get_split_summary()
        assert summary["split"].tolist() == ["train", "test"]
        assert summary["samples"].sum() == 400
        assert (summary["fta"] + summary["appeared"] == summary["samples"]).all()
        assert any("Sampled 400 rows" in m for m in messages)
