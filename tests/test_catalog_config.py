"""Tests for the variable catalog and configuration."""

import math

import pandas as pd
import pytest

from pretrial_equity.core.catalog import CatalogEntry, ColumnRole, VariableCatalog
from pretrial_equity.core.config import ColumnSchema, Config
from pretrial_equity.utils.error_handler import ConfigError


def _catalog_frame():
    return pd.DataFrame(
        {
            "value": ["FTA1", "GENDER", "AGE", "PRIORS", "NOTES"],
            "keep": ["TRUE", "TRUE", "TRUE", "1", ""],
            "outcome": ["TRUE", "FALSE", "FALSE", "", ""],
            "discrim": ["", "yes", "TRUE", "", ""],
            "label": ["Failed to appear", "", None, "Prior arrests", ""],
        }
    )


class TestVariableCatalog:
    def test_roles_from_frame(self):
        catalog = VariableCatalog.from_frame(_catalog_frame())
        assert len(catalog) == 5
        assert catalog.names(ColumnRole.KEEP) == {"FTA1", "GENDER", "AGE", "PRIORS"}
        assert catalog.names(ColumnRole.OUTCOME) == {"FTA1"}
        assert catalog.names(ColumnRole.DEMOGRAPHIC) == {"GENDER", "AGE"}

    def test_blank_cells_fall_back_to_defaults(self):
        catalog = VariableCatalog.from_frame(_catalog_frame())
        assert catalog["NOTES"].keep is False
        assert catalog.label_for("GENDER") is None
        assert catalog.label_for("PRIORS") == "Prior arrests"
        assert catalog.label_for("UNKNOWN") is None

    def test_present_keeps_column_order(self):
        catalog = VariableCatalog.from_frame(_catalog_frame())
        assert catalog.present(ColumnRole.DEMOGRAPHIC, ["AGE", "X", "GENDER"]) == ["AGE", "GENDER"]

    def test_duplicate_entries_rejected(self):
        with pytest.raises(ConfigError, match="Duplicate"):
            VariableCatalog([CatalogEntry(value="AGE"), CatalogEntry(value="AGE")])

    def test_invalid_flag_rejected(self):
        frame = pd.DataFrame({"value": ["AGE"], "keep": ["maybe"]})
        with pytest.raises(ConfigError, match="row 1"):
            VariableCatalog.from_frame(frame)

    def test_value_column_required(self):
        with pytest.raises(ConfigError):
            VariableCatalog.from_frame(pd.DataFrame({"name": ["AGE"]}))

    def test_from_csv(self, tmp_path):
        path = tmp_path / "catalog.csv"
        _catalog_frame().to_csv(path, index=False)
        catalog = VariableCatalog.from_csv(path)
        assert "FTA1" in catalog
        assert catalog.to_frame()["value"].tolist() == ["FTA1", "GENDER", "AGE", "PRIORS", "NOTES"]

    def test_missing_csv(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            VariableCatalog.from_csv(tmp_path / "nope.csv")


class TestConfig:
    def test_defaults(self):
        cfg = Config(n_jobs=1)
        assert cfg.random_state == 60615
        assert cfg.test_size == 0.25
        assert cfg.cv_folds == 5
        assert cfg.n_trees_grid[0] == 100 and cfg.n_trees_grid[-1] == 2500
        assert len(cfg.n_trees_grid) == 25
        assert cfg.depth_grid == [2, 3, 4]
        assert cfg.shrinkage_grid == [0.025, 0.05, 0.1]
        assert cfg.min_leaf_size == 20
        assert cfg.scoring_metric == "accuracy"
        assert cfg.model_variants == ["full", "fair"]

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"test_size": 1.5},
            {"cv_folds": 1},
            {"scoring_metric": "f1"},
            {"model_variants": ["biased"]},
            {"shrinkage_grid": [0.0]},
            {"sample_size": 3},
        ],
    )
    def test_invalid_values_raise(self, kwargs):
        with pytest.raises(ConfigError):
            Config(**kwargs)

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            Config(test_size=0)

    def test_parallel_jobs_resolution(self):
        assert Config(n_jobs=0).n_jobs == 1
        assert Config(n_jobs=3).n_jobs == 3
        assert Config(n_jobs=-1).n_jobs >= 1

    def test_variant_names(self):
        assert Config(n_jobs=1).variant_names == ["full", "fair"]
        assert Config(n_jobs=1, sample_size=500).variant_names == [
            "sampled_full",
            "sampled_fair",
            "full",
            "fair",
        ]

    def test_from_dict_nested_schema(self):
        cfg = Config.from_dict({"n_jobs": 1, "schema": {"outcome_column": "FTA2"}})
        assert isinstance(cfg.schema, ColumnSchema)
        assert cfg.schema.outcome_column == "FTA2"

    def test_from_dict_rejects_unknown_keys(self):
        with pytest.raises(ConfigError, match="Unknown config keys"):
            Config.from_dict({"target_col": "y"})
        with pytest.raises(ConfigError, match="Unknown schema keys"):
            Config.from_dict({"schema": {"target": "y"}})

    def test_to_dict_round_trip(self):
        cfg = Config(n_jobs=2, sample_size=100)
        again = Config.from_dict(cfg.to_dict())
        assert again.to_dict() == cfg.to_dict()


class TestColumnSchema:
    def test_age_bins_must_match_labels(self):
        with pytest.raises(ConfigError):
            Config(schema=ColumnSchema(age_labels=["young"]))

    def test_other_is_reserved(self):
        with pytest.raises(ConfigError):
            Config(schema=ColumnSchema(race_flags={"ASIAN": "Other"}))

    def test_default_age_bands(self):
        schema = ColumnSchema()
        assert schema.age_bins[-1] == math.inf
        assert len(schema.age_labels) == 5

    def test_outcome_must_be_tagged(self):
        catalog = VariableCatalog([CatalogEntry(value="FTA1", keep=True)])
        with pytest.raises(ConfigError, match="not tagged as an outcome"):
            ColumnSchema().validate_against(catalog)

    def test_untagged_demographics_warn(self):
        catalog = VariableCatalog([CatalogEntry(value="FTA1", keep=True, outcome=True)])
        logged = []
        ColumnSchema().validate_against(catalog, log=logged.append)
        assert any("not tagged discrim" in m for m in logged)
