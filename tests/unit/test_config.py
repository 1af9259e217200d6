"""Tests for feature spec validation and settings loading."""

import pytest

from incremental_features.config import FeatureSpec, StatSpec, load_feature_spec, load_settings
from incremental_features.exceptions import ConfigError


def test_defaults_are_valid():
    spec = load_feature_spec({})
    assert spec.lags == [1, 2, 3, 4, 5]
    assert spec.stats == [StatSpec(name="MA", fn="mean")]
    assert spec.direction == "Lag"


def test_stats_accept_strings_pairs_and_mappings():
    spec = load_feature_spec({
        "stats": ["mean", ("Spread", "sd"), {"name": "Top", "fn": "max"}],
    })
    assert spec.stats == [
        StatSpec(name="MA", fn="mean"),
        StatSpec(name="Spread", fn="sd"),
        StatSpec(name="Top", fn="max"),
    ]


def test_lags_and_periods_are_deduplicated_and_sorted():
    spec = load_feature_spec({"lags": [3, 1, 3], "periods": [5, 2, 2]})
    assert spec.lags == [1, 3]
    assert spec.periods == [2, 5]


def test_direction_is_case_insensitive():
    assert load_feature_spec({"direction": "LEAD"}).direction == "Lead"


@pytest.mark.parametrize(
    "params",
    [
        {"records_keep": 0},
        {"direction": "sideways"},
        {"targets": []},
        {"sort_column": ""},
        {"lags": [1, -2]},
        {"periods": [0]},
        {"windowing_lag": 2},
        {"stats": ["kurtosis"]},
        {"time_unit": "fortnight"},
        {"lags": ["one"]},
        {"lags": [], "periods": [], "windowing_lag": 0},
        {"targets": ["x", "x"]},
        {"grouping_vars": ["store", "store"]},
        {"lags": [-1.0, 1]},
        {"lags": ["-1", 1]},
        {"periods": [-2.0]},
        {"periods": ["0", 3]},
        {"stats": [["MA", "mean"], ["MA", "median"]]},
        {"stats": ["mean", ["MA", "mean"]]},
    ],
)
def test_malformed_specs_raise_config_error(params):
    with pytest.raises(ConfigError):
        load_feature_spec(params)


def test_coerced_lags_are_checked_after_conversion():
    with pytest.raises(ConfigError, match="non-negative"):
        load_feature_spec({"lags": ["-1", 2]})
    assert load_feature_spec({"lags": ["2", 1.0]}).lags == [1, 2]


def test_spec_is_frozen():
    spec = FeatureSpec()
    with pytest.raises(Exception):
        spec.records_keep = 5


def test_load_settings_from_yaml(tmp_path):
    params = tmp_path / "params.yaml"
    params.write_text(
        "features:\n"
        "  lags: [1, 2]\n"
        "  periods: [3]\n"
        "  targets: [sales]\n"
        "  grouping_vars: store\n"
        "  time_unit: hours\n"
        "chunk_entities: 10\n"
    )
    settings = load_settings(params)
    assert settings.features.grouping_vars == ["store"]
    assert settings.features.time_unit == "hour"
    assert settings.chunk_entities == 10


def test_load_settings_rejects_bad_yaml_spec(tmp_path):
    params = tmp_path / "params.yaml"
    params.write_text("features:\n  records_keep: 0\n")
    with pytest.raises(ConfigError):
        load_settings(params)


def test_load_settings_defaults_when_file_missing(tmp_path):
    settings = load_settings(tmp_path / "missing.yaml")
    assert settings.features == FeatureSpec()
