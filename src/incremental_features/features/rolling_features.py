"""Rolling window aggregation features.

A rolling stat of period ``p`` for a row aggregates that row's lag slots
``1..p`` (or time-gap channels ``1..p``), which are exactly the ``p``
observations preceding it in scoring order. Computing across the already
materialised slots means the frame can be cut down to the kept rows first.
"""

from dataclasses import dataclass

import polars as pl

from incremental_features.config import StatSpec
from incremental_features.features.naming import ColumnNamer
from incremental_features.features.stats import get_stat, window_stat_expr


@dataclass(frozen=True)
class RollingTarget:
    """A series to roll: ``label`` goes into column names, ``slots`` are lag 1..n columns."""

    label: str
    slots: list[str]


def _rolling_expr(target: RollingTarget, period: int, stat: StatSpec, name: str) -> pl.Expr:
    """Build a single rolling statistic expression."""
    return window_stat_expr(target.slots[:period], get_stat(stat.fn)).alias(name)


def build_rolling_features(
    df: pl.DataFrame,
    targets: list[RollingTarget],
    periods: list[int],
    stats: list[StatSpec],
    namer: ColumnNamer,
    group_col: str | None = None,
) -> tuple[pl.DataFrame, list[str]]:
    """Create rolling features for every (period, stat, target) triple."""
    names = []
    exprs = []
    for period in periods:
        for stat in stats:
            for target in targets:
                name = namer.rolling(stat.name, period, target.label, group_col)
                exprs.append(_rolling_expr(target, period, stat, name))
                names.append(name)

    return df.with_columns(exprs), names
