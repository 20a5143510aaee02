"""Tests for catalog-driven column selection and the model views."""

import numpy as np
import pandas as pd
import pytest

from pretrial_equity.core.catalog import CatalogEntry, VariableCatalog
from pretrial_equity.core.config import ColumnSchema
from pretrial_equity.core.selector import VariableSelector, keep_columns, outcome_flag
from pretrial_equity.utils.error_handler import ConfigError


@pytest.fixture
def catalog():
    return VariableCatalog(
        [
            CatalogEntry(value="YEARSEQ", keep=True),
            CatalogEntry(value="GENDER", keep=True, discrim=True),
            CatalogEntry(value="AGE", keep=True, discrim=True),
            CatalogEntry(value="PRIORS", keep=True),
            CatalogEntry(value="RELEASED", keep=True, outcome=True),
            CatalogEntry(value="FTA1", keep=True, outcome=True),
            CatalogEntry(value="COURT", keep=True),
        ]
    )


@pytest.fixture
def cleaned():
    return pd.DataFrame(
        {
            "YEARSEQ": [1.0, 2.0, 3.0, 4.0, 5.0],
            "GENDER": pd.Categorical(["Male", "Female", "Male", None, "Female"]),
            "AGE": [22.0, 35.0, np.nan, 60.0, 41.0],
            "PRIORS": [0.0, 3.0, 1.0, 2.0, 5.0],
            "RELEASED": pd.Categorical(["Yes", "Yes", "No", "Yes", "Yes"]),
            "FTA1": pd.Categorical(["No", "Yes, FTA", "Not applicable", None, "No"]),
        },
        index=[10, 11, 12, 13, 14],
    )


def test_keep_columns_reports_absent_names(catalog, messages):
    frame = pd.DataFrame({"AGE": [30.0], "NOTES": ["x"]})
    kept, absent = keep_columns(frame, catalog, log=messages.append)
    assert list(kept.columns) == ["AGE"]
    assert "COURT" in absent and "FTA1" in absent
    assert any("not in data" in m for m in messages)
    assert any("dropped" in m for m in messages)


def test_outcome_flag_marks_not_applicable_missing():
    s = pd.Series(["No", "Yes, FTA", "Not applicable", None])
    flag = outcome_flag(s, ColumnSchema())
    assert flag.iloc[:2].tolist() == [False, True]
    assert flag.iloc[2:].isna().all()


class TestVariableSelector:
    def test_views(self, catalog, cleaned, messages):
        frames = VariableSelector(catalog, ColumnSchema(), log=messages.append).select(cleaned)

        # Rows with a missing or not-applicable outcome are removed
        assert list(frames.full.index) == [10, 11, 14]
        assert frames.full["FTA_OUT"].tolist() == [False, True, False]
        assert frames.full["FTA_OUT"].dtype == bool

        # Outcomes, post-decision columns and the sequence id are not inputs
        assert list(frames.full.columns) == ["GENDER", "AGE", "PRIORS", "FTA_OUT"]
        assert list(frames.fair.columns) == ["PRIORS", "FTA_OUT"]
        assert list(frames.outcome.columns) == ["FTA_OUT"]
        assert frames.outcome_name == "FTA_OUT"
        assert frames.demographic_columns == ["GENDER", "AGE"]
        assert set(frames.outcome_columns) == {"RELEASED", "FTA1"}

    def test_view_by_variant(self, catalog, cleaned):
        frames = VariableSelector(catalog, ColumnSchema(), log=lambda m: None).select(cleaned)
        assert frames.view("sampled_fair") is frames.fair
        assert frames.view("full") is frames.full
        with pytest.raises(KeyError):
            frames.view("biased")

    def test_missing_outcome_column(self, catalog, cleaned):
        selector = VariableSelector(catalog, ColumnSchema(), log=lambda m: None)
        with pytest.raises(ConfigError, match="FTA1"):
            selector.select(cleaned.drop(columns=["FTA1"]))

    def test_resolve_only_present_columns(self, catalog):
        selector = VariableSelector(catalog, ColumnSchema())
        roles = selector.resolve(["AGE", "PRIORS"])
        assert [c for c in roles.values()][0] == ["AGE", "PRIORS"]
