"""Precondition checks on the input panel."""

import polars as pl
import structlog

from incremental_features.config import FeatureSpec
from incremental_features.exceptions import PreconditionError

logger = structlog.get_logger()


def validate_panel(df: pl.DataFrame, spec: FeatureSpec) -> None:
    """Check the panel carries every column the spec refers to."""
    columns = set(df.columns)

    if spec.rank_column not in columns:
        raise PreconditionError(
            f"Rank column {spec.rank_column!r} not found; the caller must supply "
            "an ascending per-entity rank where 1 is the most recent record",
            details={"columns": df.columns},
        )

    required = [*spec.targets, spec.sort_column, *(spec.grouping_vars or [])]
    missing = [c for c in required if c not in columns]
    if missing:
        raise PreconditionError(f"Missing columns: {missing}", details={"missing": missing})

    for target in spec.targets:
        dtype = df.schema[target]
        if not (dtype.is_numeric() or dtype == pl.Null):
            raise PreconditionError(
                f"Target {target!r} must be numeric, got {dtype}",
                details={"target": target, "dtype": str(dtype)},
            )

    if spec.time_gap_name is not None and not df.schema[spec.sort_column].is_temporal():
        raise PreconditionError(
            f"Time gaps need a Date/Datetime sort column, {spec.sort_column!r} is "
            f"{df.schema[spec.sort_column]}",
            details={"sort_column": spec.sort_column},
        )

    logger.debug("panel_validation_passed", n_rows=df.height, n_columns=df.width)
