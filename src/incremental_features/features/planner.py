"""History planning: how many trailing rows each kept record needs."""

from dataclasses import dataclass

from incremental_features.config import FeatureSpec


@dataclass(frozen=True)
class WindowPlan:
    """Row-window arithmetic for one scoring call.

    ``max_cols`` sizes the lag/time-gap families exactly as the full-history
    pipeline does. ``history_depth`` is the number of predecessor rows
    selected per kept row and of lag slots / time-gap channels materialised;
    it also covers slots ``1..max(periods)`` so a rolling window is never cut
    short by the selection itself.
    """

    lags: tuple[int, ...]
    max_cols: int
    history_depth: int
    n_time_gap_channels: int
    total_runs: int


def effective_lags(spec: FeatureSpec) -> tuple[int, ...]:
    """Requested lags without 0, with lag 1 forced in under windowing lag 1."""
    lags = {lag for lag in spec.lags if lag > 0}
    if spec.windowing_lag == 1:
        lags.add(1)
    return tuple(sorted(lags))


def plan_window(spec: FeatureSpec, n_entities: int = 1) -> WindowPlan:
    """Compute the minimal trailing-history depth for ``spec``."""
    lags = effective_lags(spec)
    max_lag = max(lags, default=0)
    max_period = max(spec.periods, default=0)

    if spec.windowing_lag == 1:
        max_cols = max(max_lag, max_period)
    else:
        max_cols = max(max_lag, max_period - 1)

    if spec.time_gap_name is None:
        n_channels = 0
    elif spec.windowing_lag == 1:
        n_channels = max_cols
    else:
        n_channels = len(lags)

    n_targets = len(spec.targets) + (1 if spec.time_gap_name is not None else 0)
    n_families = len(spec.grouping_vars) if spec.grouping_vars else 1
    total_runs = max(n_entities, 1) * n_families * n_targets * (len(spec.periods) + max_cols)

    history_depth = max(max_cols, max_period)
    return WindowPlan(
        lags=lags,
        max_cols=max_cols,
        history_depth=history_depth,
        n_time_gap_channels=n_channels,
        total_runs=total_runs,
    )
