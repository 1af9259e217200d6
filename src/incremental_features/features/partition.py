"""Entity partitioning: the minimal slice of history each kept row needs.

For every entity the rows are sorted by the time column (ascending for
``Lag``, descending for ``Lead``). A kept row is one whose rank lies in
``1..records_keep``. Each kept row at sorted position ``p`` pulls in the
block ``[max(p - depth, 0) .. p]``; the union of those blocks is returned in
the same order. Entities without any kept row are dropped entirely.
"""

import polars as pl
import structlog

from incremental_features.config import FeatureSpec
from incremental_features.utils.polars_utils import over_group

logger = structlog.get_logger()

_POS = "__pos"
_NEXT_KEPT = "__next_kept"


def kept_rows_expr(spec: FeatureSpec) -> pl.Expr:
    """Rows to score: rank 1 .. records_keep."""
    return pl.col(spec.rank_column).is_between(1, spec.records_keep)


def sort_for_direction(df: pl.DataFrame, spec: FeatureSpec, group_cols: list[str]) -> pl.DataFrame:
    """Sort by entity then time; ``Lead`` reverses the time axis."""
    descending = spec.direction == "Lead"
    return df.sort(
        [*group_cols, spec.sort_column],
        descending=[descending] * (len(group_cols) + 1),
        maintain_order=True,
    )


def select_history(
    df: pl.DataFrame,
    spec: FeatureSpec,
    depth: int,
    group_col: str | None = None,
    keep_all: bool = False,
) -> pl.DataFrame:
    """Return the sorted working set for one feature family.

    With ``keep_all`` every row of every entity is returned (full-history
    mode); otherwise only kept rows and their ``depth`` predecessors.
    """
    group_cols = [group_col] if group_col else []
    is_kept = kept_rows_expr(spec)

    if keep_all:
        return sort_for_direction(df, spec, group_cols)

    if group_cols:
        scored_entities = df.filter(is_kept).select(group_cols).unique()
        df = df.join(scored_entities, on=group_cols, how="semi")

    df = sort_for_direction(df, spec, group_cols)

    # Nearest kept position at or after each row; rows more than ``depth``
    # positions before it are outside every block.
    working = df.with_columns(
        over_group(pl.int_range(pl.len()), group_cols).alias(_POS)
    ).with_columns(
        over_group(
            pl.when(is_kept).then(pl.col(_POS)).otherwise(None).fill_null(strategy="backward"),
            group_cols,
        ).alias(_NEXT_KEPT)
    )
    block_start = (pl.col(_NEXT_KEPT) - depth).clip(lower_bound=0)
    selected = working.filter(
        pl.col(_NEXT_KEPT).is_not_null() & (pl.col(_POS) >= block_start)
    ).drop(_POS, _NEXT_KEPT)

    logger.debug(
        "history_selected",
        family=group_col or "ungrouped",
        rows_in=df.height,
        rows_out=selected.height,
        depth=depth,
    )
    return selected
