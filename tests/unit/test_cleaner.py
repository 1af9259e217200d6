"""Tests for output sanitizing."""

import polars as pl

from incremental_features.preprocessing.cleaner import (
    clean_output,
    coerce_text_to_categorical,
    replace_infinite,
    simple_impute,
)


def test_replace_infinite_nulls_both_signs():
    df = pl.DataFrame({"v": [1.0, float("inf"), float("-inf")], "n": [1, 2, 3]})
    result = replace_infinite(df)
    assert result["v"].to_list() == [1.0, None, None]
    assert result["n"].to_list() == [1, 2, 3]


def test_text_becomes_categorical():
    df = pl.DataFrame({"store": ["a", "b", None], "v": [1.0, 2.0, 3.0]})
    result = coerce_text_to_categorical(df)
    assert result.schema["store"] == pl.Categorical
    assert result.schema["v"] == pl.Float64


def test_simple_impute_fills_numeric_with_minus_one():
    df = pl.DataFrame({
        "f": [1.5, None, float("nan")],
        "i": [1, None, 3],
    })
    result = simple_impute(df)
    assert result["f"].to_list() == [1.5, -1.0, -1.0]
    assert result["i"].to_list() == [1, -1, 3]


def test_simple_impute_adds_zero_category():
    df = pl.DataFrame({"store": ["a", None, "b"]}).cast({"store": pl.Categorical})
    result = simple_impute(df)
    assert result["store"].cast(pl.String).to_list() == ["a", "0", "b"]
    assert result.schema["store"] == pl.Categorical


def test_clean_output_leaves_no_missing_cells():
    df = pl.DataFrame({
        "store": ["a", None],
        "lag": [float("inf"), None],
        "count": [None, 2],
    })
    result = clean_output(df, impute=True)
    assert sum(result.null_count().row(0)) == 0
    assert result["lag"].to_list() == [-1.0, -1.0]


def test_clean_output_without_impute_keeps_nulls():
    df = pl.DataFrame({"lag": [float("inf"), 1.0]})
    result = clean_output(df, impute=False)
    assert result["lag"].to_list() == [None, 1.0]
