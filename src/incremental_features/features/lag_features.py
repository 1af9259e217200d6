"""Lag features: shifted target values per entity."""

import polars as pl

from incremental_features.features.naming import ColumnNamer
from incremental_features.utils.polars_utils import over_group


def build_lag_features(
    df: pl.DataFrame,
    targets: list[str],
    depth: int,
    namer: ColumnNamer,
    group_col: str | None = None,
) -> tuple[pl.DataFrame, dict[str, list[str]]]:
    """Create lag columns 1..depth for every target.

    The frame must already be sorted in scoring direction (see
    ``partition.sort_for_direction``), so ``Lead`` needs no forward shift.
    Returns the widened frame and, per target, its lag column names in lag
    order; slot ``i`` of that list holds lag ``i + 1``.
    """
    group_cols = [group_col] if group_col else []
    slots: dict[str, list[str]] = {t: [] for t in targets}
    exprs = []

    # Lag-major order matches the full-history column layout
    for lag in range(1, depth + 1):
        for target in targets:
            name = namer.lag(lag, target, group_col)
            exprs.append(over_group(pl.col(target).shift(lag), group_cols).alias(name))
            slots[target].append(name)

    return df.with_columns(exprs), slots


def retained_lag_columns(
    targets: list[str],
    lags: tuple[int, ...],
    namer: ColumnNamer,
    group_col: str | None = None,
) -> list[str]:
    """Lag columns that survive into the output, in output order."""
    return [namer.lag(lag, target, group_col) for lag in lags for target in targets]


def baseline_targets(
    targets: list[str],
    windowing_lag: int,
    namer: ColumnNamer,
    group_col: str | None = None,
) -> dict[str, str]:
    """Map each target to the column name its rolling stats are labelled with.

    Under windowing lag 1 the baseline is the lag-1 column, so a rolling stat
    never includes the row's own value; under 0 it is the raw target.
    """
    if windowing_lag == 1:
        return {t: namer.lag(1, t, group_col) for t in targets}
    return {t: t for t in targets}
