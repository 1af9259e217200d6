"""Registry of aggregates applied across the lag slots of a rolling window.

Each aggregate receives a list expression holding the non-missing slot values
of one row and returns a scalar expression. Empty windows never reach the
aggregate: ``window_stat_expr`` maps them to null first.
"""

from collections.abc import Callable
from dataclasses import dataclass

import polars as pl

from incremental_features.exceptions import ConfigError


@dataclass(frozen=True)
class StatDefinition:
    """A registered rolling aggregate."""

    key: str
    display_name: str
    aggregate: Callable[[pl.Expr], pl.Expr]


STAT_REGISTRY: dict[str, StatDefinition] = {
    "mean": StatDefinition("mean", "MA", lambda w: w.list.mean()),
    "median": StatDefinition("median", "Median", lambda w: w.list.median()),
    "sd": StatDefinition("sd", "SD", lambda w: w.list.std()),
    "var": StatDefinition("var", "VAR", lambda w: w.list.var()),
    "min": StatDefinition("min", "Min", lambda w: w.list.min()),
    "max": StatDefinition("max", "Max", lambda w: w.list.max()),
    "sum": StatDefinition("sum", "Sum", lambda w: w.list.sum()),
}

_ALIASES = {"std": "sd", "avg": "mean", "average": "mean", "ma": "mean"}


def get_stat(key: str) -> StatDefinition:
    """Look up an aggregate by name (case-insensitive, common aliases accepted)."""
    normalized = key.strip().lower()
    normalized = _ALIASES.get(normalized, normalized)
    if normalized not in STAT_REGISTRY:
        raise ConfigError(
            f"Unknown rolling stat: {key!r}",
            details={"known": sorted(STAT_REGISTRY)},
        )
    return STAT_REGISTRY[normalized]


def window_stat_expr(slot_cols: list[str], stat: StatDefinition) -> pl.Expr:
    """Aggregate ``stat`` across ``slot_cols`` row-wise, skipping missing slots."""
    window = pl.concat_list(
        [pl.col(c).cast(pl.Float64).fill_nan(None) for c in slot_cols]
    ).list.drop_nulls()
    return (
        pl.when(window.list.len() > 0)
        .then(stat.aggregate(window))
        .otherwise(None)
        .cast(pl.Float64)
    )
