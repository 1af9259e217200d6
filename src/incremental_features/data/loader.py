"""Panel loading from CSV or Parquet files."""

from pathlib import Path

import polars as pl

from incremental_features.exceptions import PreconditionError


def load_panel(path: Path, sort_column: str | None = None) -> pl.DataFrame:
    """Read a panel table; a text ``sort_column`` is parsed into a Date/Datetime."""
    suffix = path.suffix.lower()
    if suffix == ".parquet":
        df = pl.read_parquet(path)
    elif suffix == ".csv":
        df = pl.read_csv(path, try_parse_dates=True)
    else:
        raise PreconditionError(f"Unsupported panel format: {path.suffix!r}", details={"path": str(path)})

    if sort_column is not None and df.schema.get(sort_column) == pl.String:
        df = df.with_columns(pl.col(sort_column).str.to_datetime().alias(sort_column))
    return df
