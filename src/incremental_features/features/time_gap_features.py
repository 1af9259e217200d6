"""Time-gap features: elapsed time between consecutive events of an entity.

Channel 1 is the gap between a row and the event before it; channel ``l`` is
the gap between the events ``l - 1`` and ``l`` positions earlier. Gaps are
floats in the configured unit. Under ``Lead`` ordering the gaps come out
negative, since "earlier in sorted order" is later in time.
"""

import polars as pl

from incremental_features.exceptions import ConfigError
from incremental_features.features.naming import ColumnNamer
from incremental_features.utils.polars_utils import over_group

_DAY = 86_400.0

TIME_UNIT_SECONDS: dict[str, float] = {
    "hour": 3_600.0,
    "day": _DAY,
    "week": 7 * _DAY,
    "month": 30.4375 * _DAY,
    "quarter": 3 * 30.4375 * _DAY,
    "year": 365.25 * _DAY,
}


def normalize_time_unit(unit: str) -> str:
    """Canonical unit name; accepts plurals and any casing ("Days" -> "day")."""
    key = unit.strip().lower()
    if key not in TIME_UNIT_SECONDS and key.endswith("s"):
        key = key[:-1]
    if key not in TIME_UNIT_SECONDS:
        raise ConfigError(
            f"Unknown time unit: {unit!r}",
            details={"known": list(TIME_UNIT_SECONDS)},
        )
    return key


def _in_unit(delta: pl.Expr, unit: str) -> pl.Expr:
    return delta.dt.total_microseconds() / (TIME_UNIT_SECONDS[unit] * 1_000_000)


def build_time_gap_features(
    df: pl.DataFrame,
    sort_column: str,
    gap_name: str,
    unit: str,
    depth: int,
    namer: ColumnNamer,
    group_col: str | None = None,
) -> tuple[pl.DataFrame, list[str]]:
    """Create time-gap channels 1..depth.

    Shifted timestamps ``shift_1..shift_{depth}`` are materialised first
    and dropped once the differences exist. Returns the widened frame and
    the channel names in channel order.
    """
    group_cols = [group_col] if group_col else []
    ts = pl.col(sort_column)

    shifted = [namer.shifted_time(lag, group_col) for lag in range(1, depth + 1)]
    df = df.with_columns([
        over_group(ts.shift(lag), group_cols).alias(name)
        for lag, name in enumerate(shifted, start=1)
    ])

    channels = []
    exprs = []
    for lag in range(1, depth + 1):
        name = namer.time_gap(lag, gap_name, group_col)
        newer = ts if lag == 1 else pl.col(shifted[lag - 2])
        exprs.append(_in_unit(newer - pl.col(shifted[lag - 1]), unit).alias(name))
        channels.append(name)

    return df.with_columns(exprs).drop(shifted), channels
