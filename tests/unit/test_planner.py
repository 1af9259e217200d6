"""Tests for history planning."""

from incremental_features.config import FeatureSpec
from incremental_features.features.planner import effective_lags, plan_window


def test_max_cols_with_windowing_lag():
    spec = FeatureSpec(lags=[1, 2], periods=[3, 5], windowing_lag=1)
    plan = plan_window(spec)
    assert plan.max_cols == 5
    assert plan.history_depth == 5


def test_max_cols_without_windowing_lag():
    spec = FeatureSpec(lags=[1, 2], periods=[3, 5], windowing_lag=0)
    plan = plan_window(spec)
    assert plan.max_cols == 4
    # Selection still reaches lag slot 5 for the widest window
    assert plan.history_depth == 5


def test_deep_lag_dominates():
    spec = FeatureSpec(lags=[1, 12], periods=[3], windowing_lag=0)
    assert plan_window(spec).max_cols == 12


def test_windowing_lag_forces_lag_one():
    spec = FeatureSpec(lags=[3, 4], periods=[2], windowing_lag=1)
    assert effective_lags(spec) == (1, 3, 4)


def test_lag_zero_is_excluded():
    spec = FeatureSpec(lags=[0, 2], periods=[2], windowing_lag=0)
    assert effective_lags(spec) == (2,)


def test_time_gap_channel_counts():
    with_windowing = FeatureSpec(lags=[1, 2], periods=[4], windowing_lag=1)
    without_windowing = FeatureSpec(lags=[1, 2], periods=[4], windowing_lag=0)
    no_gaps = FeatureSpec(lags=[1, 2], periods=[4], time_gap_name=None)

    assert plan_window(with_windowing).n_time_gap_channels == 4
    assert plan_window(without_windowing).n_time_gap_channels == 2
    assert plan_window(no_gaps).n_time_gap_channels == 0


def test_total_runs_counts_time_gap_target():
    spec = FeatureSpec(
        lags=[1, 2], periods=[2, 3], targets=["x", "y"],
        time_gap_name="gap", windowing_lag=1,
    )
    # 3 entities * (2 targets + gap) * (2 periods + max_cols 3)
    assert plan_window(spec, n_entities=3).total_runs == 3 * 3 * 5
