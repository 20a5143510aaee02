"""Tests for value-label decoding and type coercion."""

import numpy as np
import pandas as pd
import pytest

from pretrial_equity.core.coercion import (
    Labelled,
    can_be_logical,
    coerce_column,
    coerce_frame,
    decode_value_labels,
    numeric_if_parseable,
)


def test_decode_value_labels_keeps_unlabelled_codes():
    s = pd.Series([1.0, 2.0, 3.0, np.nan], name="GENDER")
    out = decode_value_labels(s, {1: "Male", 2: "Female"})
    assert list(out.cat.categories) == ["Male", "Female", "3"]
    assert out.iloc[:3].tolist() == ["Male", "Female", "3"]
    assert pd.isna(out.iloc[3])


def test_decode_value_labels_follows_code_order():
    s = pd.Series([2.0, 1.0, 2.0])
    out = decode_value_labels(s, {2.0: "Yes", 1.0: "No"})
    assert list(out.cat.categories) == ["No", "Yes"]


def test_numeric_if_parseable_treats_token_as_missing():
    s = pd.Series(["1.5", "2", "Not applicable", None])
    out = numeric_if_parseable(s)
    assert out.iloc[:2].tolist() == [1.5, 2.0]
    assert out.iloc[2:].isna().all()


def test_numeric_if_parseable_rejects_text():
    assert numeric_if_parseable(pd.Series(["1", "two"])) is None


@pytest.mark.parametrize(
    "values, expected",
    [
        (["t", "f", "TRUE", None], True),
        ([0, 1, 1], True),
        (["yes", "no"], False),
        ([0, 1, 2], False),
        ([None, None], False),
    ],
)
def test_can_be_logical(values, expected):
    assert can_be_logical(pd.Series(values)) is expected


class TestCoerceColumn:
    def test_labelled_numeric_codes_become_numbers(self):
        out = coerce_column(
            pd.Series([1.0, 2.0, 10.0], name="PRIORS"),
            value_labels={1.0: "1", 2.0: "2"},
            label="Number of prior arrests",
        )
        assert isinstance(out, Labelled)
        assert out.values.dtype == float
        assert out.values.tolist() == [1.0, 2.0, 10.0]
        assert out.display_label == "Number of prior arrests"

    def test_logical_text_becomes_nullable_boolean(self):
        out = coerce_column(pd.Series(["t", "f", "TRUE", None], name="FLAG"))
        assert str(out.values.dtype) == "boolean"
        assert out.values.iloc[:3].tolist() == [True, False, True]
        assert pd.isna(out.values.iloc[3])

    def test_zero_one_numbers_become_boolean(self):
        out = coerce_column(pd.Series([0, 1, 1], name="FELONY"))
        assert str(out.values.dtype) == "boolean"

    def test_plain_text_becomes_categorical(self):
        out = coerce_column(pd.Series(["Drug", "Violent", None], name="CHARGE"))
        assert isinstance(out.values.dtype, pd.CategoricalDtype)
        assert set(out.values.cat.categories) == {"Drug", "Violent"}

    def test_labelled_outcome_stays_categorical(self):
        out = coerce_column(
            pd.Series([0.0, 1.0, 7.0], name="FTA1"),
            value_labels={0: "No", 1: "Yes, FTA", 7: "Not applicable"},
        )
        assert list(out.values.cat.categories) == ["No", "Yes, FTA", "Not applicable"]

    def test_display_label_falls_back_to_name(self):
        out = coerce_column(pd.Series([1.5, 2.5], name="AGE"))
        assert out.display_label == "AGE"


def test_coerce_frame_returns_labels_for_every_column():
    frame = pd.DataFrame({"AGE": ["30", "41"], "CHARGE": ["Drug", "DUI"]})
    out, labels = coerce_frame(frame, column_labels={"AGE": "Age at arrest"})
    assert labels == {"AGE": "Age at arrest", "CHARGE": "CHARGE"}
    assert out["AGE"].tolist() == [30.0, 41.0]
    assert list(out.columns) == ["AGE", "CHARGE"]
