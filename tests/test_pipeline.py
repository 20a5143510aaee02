"""End-to-end runs on the synthetic sample."""

import json

import numpy as np
import pandas as pd
import pytest
from conftest import fast_config
from openpyxl import load_workbook

from pretrial_equity import PretrialEquityPipeline, run_pipeline
from pretrial_equity.core.catalog import CatalogEntry, VariableCatalog
from pretrial_equity.core.model_trainer import ModelArtifact
from pretrial_equity.data.load import load_cleaned
from pretrial_equity.data.sample import make_pretrial_sample
from pretrial_equity.utils.error_handler import ConfigError, PartitionError


def test_end_to_end_with_heavy_sentinels(tmp_path):
    raw, catalog = make_pretrial_sample(1000, seed=11, sentinel_rate=0.3)
    cfg = fast_config(tmp_path, log_to_file=True)
    pipe = run_pipeline(raw, catalog, cfg)
    out = tmp_path / "out"

    cleaned = pipe.cleaned_.data
    # Placeholders are gone and counted
    assert not (cleaned["AGE"] == 99).any()
    assert not (cleaned["BAILAMT"] == 999999).any()
    assert cleaned["AGE"].isna().mean() == pytest.approx(0.3, abs=0.05)
    assert "Unknown" not in cleaned["GENDER"].cat.categories
    assert pipe.cleaned_.recoded_counts["AGE"] > 200
    # Catalog filtering
    assert "NOTES" not in cleaned.columns
    assert "PRETRIAL_RISK" in pipe.cleaned_.absent_catalog_columns
    assert pipe.cleaned_.label("AGE") == "Age at arrest"

    # Both variants trained on the modelling rows
    assert set(pipe.models_) == {"full", "fair"}
    full, fair = pipe.models_["full"], pipe.models_["fair"]
    n_model_rows = len(pipe.frames_.full)
    assert len(full.training_set) + len(full.testing_set) == n_model_rows
    assert pipe.frames_.full["FTA_OUT"].notna().all()
    fair_sources = {col for col, _ in fair.feature_schema.sources}
    assert fair_sources.isdisjoint({"GENDER", "AGE", "HISPANIC", "BLACK", "WHITE"})
    assert {"GENDER", "AGE"} <= {col for col, _ in full.feature_schema.sources}
    for col in ("YEARSEQ", "RELEASED", "FINREL", "BAILAMT", "FTA1", "FTA2"):
        assert col not in full.feature_schema.columns
    # Same partition for both variants
    assert full.testing_set.index.equals(fair.testing_set.index)

    # Outputs
    for name in ("cleaned_data.joblib", "full_model.joblib", "fair_model.joblib", "equity_report.xlsx", "metrics.json"):
        assert (out / name).exists(), name
    assert list(out.glob("pipeline_log_*.txt"))

    sheets = load_workbook(out / "equity_report.xlsx").sheetnames
    for sheet in ("variables", "composition", "release_bail", "model_equity", "judge_proxy", "accuracy_comparison"):
        assert sheet in sheets

    metrics = json.loads((out / "metrics.json").read_text(encoding="utf-8"))
    assert set(metrics["models"]) == {"full", "fair"}
    assert 0 <= metrics["models"]["full"]["test_accuracy"] <= 1
    assert set(metrics["timings"]) == {"clean", "train", "evaluate"}

    reloaded = ModelArtifact.load(out / "full_model.joblib")
    pd.testing.assert_series_equal(reloaded.test_prob, full.test_prob)
    assert load_cleaned(out / "cleaned_data.joblib").data.shape == cleaned.shape


def test_sampled_variants_share_rows(tmp_path, sample):
    raw, catalog = sample
    cfg = fast_config(tmp_path, sample_size=300, depth_grid=[2], save_reports=False)
    pipe = run_pipeline(raw, catalog, cfg)

    assert list(pipe.models_) == ["sampled_full", "sampled_fair", "full", "fair"]
    sf, sfair = pipe.models_["sampled_full"], pipe.models_["sampled_fair"]
    assert len(sf.training_set) + len(sf.testing_set) == 300
    assert sf.training_set.index.equals(sfair.training_set.index)
    assert not (tmp_path / "out" / "equity_report.xlsx").exists()


def test_stages_run_separately(tmp_path, sample):
    raw, catalog = sample
    cfg = fast_config(tmp_path, depth_grid=[2], save_models=False)
    with PretrialEquityPipeline(cfg, catalog) as pipe:
        cleaned = pipe.clean(raw)
        models = pipe.train(cleaned)
        tables = pipe.evaluate(cleaned, models)

    names = [t.name for t in tables]
    assert "full_cv" in names and "fair_importance" in names
    judge = pipe.table("judge_proxy")
    assert judge.iloc[0]["group"] == "All"
    assert 0 <= judge.iloc[0]["accuracy"] <= 1
    assert not (tmp_path / "out" / "full_model.joblib").exists()


def test_evaluate_without_models_reports_descriptives(tmp_path, sample):
    raw, catalog = sample
    with PretrialEquityPipeline(fast_config(tmp_path), catalog) as pipe:
        cleaned = pipe.clean(raw)
        tables = pipe.evaluate(cleaned, {})
    assert [t.name for t in tables] == ["variables", "composition", "release_bail"]


def test_single_class_outcome_fails_in_partition(tmp_path, sample, messages):
    raw, catalog = sample
    frame = raw.frame.copy()
    frame.loc[frame["FTA1"] == 1.0, "FTA1"] = 0.0
    raw.frame = frame

    cfg = fast_config(tmp_path)
    with PretrialEquityPipeline(cfg, catalog) as pipe:
        cleaned = pipe.clean(raw)
        with pytest.raises(PartitionError) as info:
            pipe.train(cleaned)
    assert info.value.stage == "partition"

    log_lines = (tmp_path / "out" / "error_log.json").read_text(encoding="utf-8").splitlines()
    entry = json.loads(log_lines[-1])
    assert entry["stage"] == "partition"
    assert entry["error_type"] == "PartitionError"


def test_outcome_must_be_tagged_in_catalog(tmp_path):
    catalog = VariableCatalog([CatalogEntry(value="FTA1", keep=True)])
    with pytest.raises(ConfigError):
        PretrialEquityPipeline(fast_config(tmp_path), catalog)


def test_train_requires_cleaned_data(tmp_path, sample):
    _, catalog = sample
    with PretrialEquityPipeline(fast_config(tmp_path), catalog) as pipe:
        with pytest.raises(ValueError, match="clean"):
            pipe.train()


def test_sample_is_reproducible():
    a, _ = make_pretrial_sample(50, seed=3)
    b, _ = make_pretrial_sample(50, seed=3)
    pd.testing.assert_frame_equal(a.frame, b.frame)
    assert np.isin(a.frame["FTA1"].unique(), [0.0, 1.0, 7.0]).all()
