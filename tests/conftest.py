"""Shared test fixtures."""

from datetime import date, timedelta

import numpy as np
import polars as pl
import pytest
import structlog


def add_rank(df: pl.DataFrame, group_cols: list[str] | None, date_col: str = "date") -> pl.DataFrame:
    """Rank 1 = most recent row of each entity."""
    rank = pl.col(date_col).rank("ordinal", descending=True)
    if group_cols:
        rank = rank.over(group_cols)
    return df.with_columns(rank.cast(pl.Int64).alias("temp"))


@pytest.fixture
def scenario_panel() -> pl.DataFrame:
    """Two entities: A with x = 10, 20, 30 and B with x = 5, 15."""
    df = pl.DataFrame({
        "entity": ["A", "A", "A", "B", "B"],
        "date": [
            date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3),
            date(2024, 1, 1), date(2024, 1, 2),
        ],
        "x": [10, 20, 30, 5, 15],
    })
    return add_rank(df, ["entity"])


@pytest.fixture
def random_panel() -> pl.DataFrame:
    """Four integer-keyed entities of uneven length with irregular event spacing."""
    rng = np.random.default_rng(7)
    rows = []
    for entity, n_rows in zip([1, 2, 3, 4], [12, 9, 3, 1]):
        day = date(2024, 1, 1)
        for _ in range(n_rows):
            day += timedelta(days=int(rng.integers(1, 6)))
            rows.append({
                "entity": entity,
                "date": day,
                "x": float(rng.normal(50, 10)),
                "y": int(rng.integers(0, 100)),
            })
    # Shuffle so nothing relies on input order
    df = pl.DataFrame(rows).sample(fraction=1.0, shuffle=True, seed=3)
    return add_rank(df, ["entity"])


@pytest.fixture(autouse=True)
def _reset_structlog():
    """The CLI reconfigures structlog against the runner's streams; undo that per test."""
    yield
    structlog.reset_defaults()
