"""Output assembly: merge feature families and sanitize the result."""

from dataclasses import dataclass, field

import polars as pl
import structlog

from incremental_features.config import FeatureSpec
from incremental_features.preprocessing.cleaner import clean_output

logger = structlog.get_logger()

ROW_ID = "__row_nr"


@dataclass
class FamilyResult:
    """Kept rows of one feature family plus the names of its output columns."""

    group_col: str | None
    frame: pl.DataFrame
    lag_columns: list[str] = field(default_factory=list)
    time_gap_columns: list[str] = field(default_factory=list)
    rolling_columns: list[str] = field(default_factory=list)

    @property
    def feature_columns(self) -> list[str]:
        return [*self.lag_columns, *self.time_gap_columns, *self.rolling_columns]


def assemble_output(
    families: list[FamilyResult],
    input_columns: list[str],
    spec: FeatureSpec,
    keep_input_order: bool = False,
) -> pl.DataFrame:
    """Merge families, clean, and lay columns out as the training pipeline does.

    Families are joined on the source row, which refines the
    (entity key, rank) identity of a kept record. With time gaps enabled the
    join is outer so no family can drop a record; otherwise it is inner.
    """
    how = "full" if spec.time_gap_name is not None else "inner"

    first = families[0]
    out = first.frame.select([ROW_ID, *input_columns, *first.feature_columns])
    for family in families[1:]:
        out = out.join(
            family.frame.select([ROW_ID, *family.feature_columns]),
            on=ROW_ID,
            how=how,
            coalesce=True,
        )

    if keep_input_order:
        out = out.sort(ROW_ID)
    else:
        out = out.sort([*(spec.grouping_vars or []), spec.rank_column, ROW_ID], nulls_last=True)

    out = clean_output(out.drop(ROW_ID), impute=spec.simple_impute)

    if spec.drop_rank_column:
        out = out.drop(spec.rank_column)

    logger.debug("output_assembled", n_families=len(families), join=how, n_rows=out.height)
    return out
