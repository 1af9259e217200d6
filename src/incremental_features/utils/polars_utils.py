"""Polars utility functions."""

import polars as pl


def over_group(expr: pl.Expr, group_cols: list[str]) -> pl.Expr:
    """Apply ``expr`` per entity, or over the whole frame when ungrouped."""
    return expr.over(group_cols) if group_cols else expr


def text_columns(df: pl.DataFrame) -> list[str]:
    return [name for name, dtype in df.schema.items() if dtype == pl.String]


def float_columns(df: pl.DataFrame) -> list[str]:
    return [name for name, dtype in df.schema.items() if dtype.is_float()]
