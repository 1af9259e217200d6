"""Output sanitizing: infinities, text columns, and simple imputation."""

import polars as pl
import structlog

from incremental_features.utils.polars_utils import float_columns, text_columns

logger = structlog.get_logger()

CATEGORICAL_FILL = "0"
NUMERIC_FILL = -1


def replace_infinite(df: pl.DataFrame) -> pl.DataFrame:
    """Turn +/-inf in float columns into nulls."""
    return df.with_columns([
        pl.when(pl.col(c).is_infinite()).then(None).otherwise(pl.col(c)).alias(c)
        for c in float_columns(df)
    ])


def coerce_text_to_categorical(df: pl.DataFrame) -> pl.DataFrame:
    """Cast every String column to Categorical."""
    return df.with_columns([pl.col(c).cast(pl.Categorical) for c in text_columns(df)])


def simple_impute(df: pl.DataFrame) -> pl.DataFrame:
    """Fill categorical gaps with "0" and numeric gaps (null or NaN) with -1.

    Temporal and boolean columns are left as they are.
    """
    exprs = []
    for name, dtype in df.schema.items():
        col = pl.col(name)
        if isinstance(dtype, (pl.Categorical, pl.Enum)) or dtype == pl.String:
            # Round-trip through String so "0" joins the category set if absent
            exprs.append(col.cast(pl.String).fill_null(CATEGORICAL_FILL).cast(pl.Categorical))
        elif dtype.is_float():
            exprs.append(col.fill_nan(None).fill_null(NUMERIC_FILL))
        elif dtype.is_unsigned_integer():
            if df[name].null_count():
                exprs.append(col.cast(pl.Int64).fill_null(NUMERIC_FILL))
        elif dtype.is_integer():
            exprs.append(col.fill_null(NUMERIC_FILL))
    return df.with_columns(exprs)


def clean_output(df: pl.DataFrame, impute: bool) -> pl.DataFrame:
    """Apply all sanitizing steps in order: inf -> null, text -> categorical, impute."""
    logger.debug("cleaning_output", n_rows=df.height, impute=impute)
    df = coerce_text_to_categorical(replace_infinite(df))
    if impute:
        df = simple_impute(df)
    return df
