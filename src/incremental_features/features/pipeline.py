"""Feature pipeline orchestrator: chains planner, partitioner and builders."""

import gc
import time
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import polars as pl
import pyarrow.parquet as pq
import structlog

from incremental_features.config import FeatureSpec, Settings, load_feature_spec, load_settings
from incremental_features.data.loader import load_panel
from incremental_features.data.validator import validate_panel
from incremental_features.features.assembler import ROW_ID, FamilyResult, assemble_output
from incremental_features.features.lag_features import (
    baseline_targets,
    build_lag_features,
    retained_lag_columns,
)
from incremental_features.features.naming import ColumnNamer
from incremental_features.features.partition import kept_rows_expr, select_history
from incremental_features.features.planner import WindowPlan, plan_window
from incremental_features.features.rolling_features import RollingTarget, build_rolling_features
from incremental_features.features.time_gap_features import build_time_gap_features

logger = structlog.get_logger()

SpecLike = FeatureSpec | Mapping[str, Any]


def _build_family(
    df: pl.DataFrame,
    spec: FeatureSpec,
    plan: WindowPlan,
    namer: ColumnNamer,
    group_col: str | None,
    keep_all: bool,
) -> FamilyResult:
    """Run one grouping variable (or the ungrouped table) through every builder."""
    depth = plan.history_depth

    # 1. Minimal sorted working set
    working = select_history(df, spec, depth, group_col=group_col, keep_all=keep_all)

    # 2. Lags 1..depth; only the requested ones are kept later
    working, lag_slots = build_lag_features(working, spec.targets, depth, namer, group_col)
    lag_columns = retained_lag_columns(spec.targets, plan.lags, namer, group_col)

    baselines = baseline_targets(spec.targets, spec.windowing_lag, namer, group_col)
    rolling_targets = [RollingTarget(baselines[t], lag_slots[t]) for t in spec.targets]

    # 3. Time gaps; channel 1 is rolled like a target
    time_gap_columns: list[str] = []
    if spec.time_gap_name is not None:
        working, channels = build_time_gap_features(
            working,
            sort_column=spec.sort_column,
            gap_name=spec.time_gap_name,
            unit=spec.time_unit,
            depth=depth,
            namer=namer,
            group_col=group_col,
        )
        time_gap_columns = channels[: plan.n_time_gap_channels]
        rolling_targets.append(RollingTarget(channels[0], channels))

    # 4. Rolling stats only for the rows being scored
    if not keep_all:
        working = working.filter(kept_rows_expr(spec))
    working, rolling_columns = build_rolling_features(
        working, rolling_targets, spec.periods, spec.stats, namer, group_col
    )

    logger.debug(
        "family_built",
        family=group_col or "ungrouped",
        n_rows=working.height,
        n_lags=len(lag_columns),
        n_time_gaps=len(time_gap_columns),
        n_rolling=len(rolling_columns),
    )
    return FamilyResult(group_col, working, lag_columns, time_gap_columns, rolling_columns)


def _count_entities(df: pl.DataFrame, spec: FeatureSpec) -> int:
    if not spec.grouped:
        return 1
    return df.filter(kept_rows_expr(spec)).select(spec.grouping_vars).unique().height


def _build(df: pl.DataFrame | pl.LazyFrame, spec: SpecLike, keep_all: bool) -> pl.DataFrame:
    spec = load_feature_spec(spec)
    if isinstance(df, pl.LazyFrame):
        df = df.collect()

    validate_panel(df, spec)
    input_columns = df.columns
    df = df.with_row_index(ROW_ID)

    plan = plan_window(spec, _count_entities(df, spec))
    logger.info(
        "building_features",
        mode="history" if keep_all else "scoring",
        n_rows=df.height,
        max_cols=plan.max_cols,
        history_depth=plan.history_depth,
        total_runs=plan.total_runs,
    )

    namer = ColumnNamer(reserved=df.columns)
    families = [
        _build_family(df, spec, plan, namer, group_col, keep_all)
        for group_col in (spec.grouping_vars or [None])
    ]
    out = assemble_output(families, input_columns, spec, keep_input_order=keep_all)

    logger.info("features_built", n_rows=out.height, n_columns=out.width)
    return out


def build_scoring_features(df: pl.DataFrame | pl.LazyFrame, spec: SpecLike) -> pl.DataFrame:
    """Derive features for the ``records_keep`` most recent rows of each entity.

    Reads only the history the deepest lag and widest rolling window need.
    Column names and order match ``build_history_features`` for the same spec.
    """
    return _build(df, spec, keep_all=False)


def build_history_features(df: pl.DataFrame | pl.LazyFrame, spec: SpecLike) -> pl.DataFrame:
    """Full-history counterpart: the same features for every row, in input order.

    Used to produce training tables; ``records_keep`` is ignored.
    """
    return _build(df, spec, keep_all=True)


def output_schema(schema: Mapping[str, pl.DataType] | pl.DataFrame, spec: SpecLike) -> list[str]:
    """Ordered output column names for a panel with ``schema``, computed on an empty frame."""
    if isinstance(schema, pl.DataFrame):
        schema = schema.schema
    return build_scoring_features(pl.DataFrame(schema=schema), spec).columns


def _score_in_chunks(
    panel: pl.DataFrame,
    spec: FeatureSpec,
    chunk_entities: int,
    out_path: Path,
) -> int:
    """Score a single-key panel a batch of entities at a time, writing parquet incrementally.

    Entities are independent, so each chunk's output is exactly the matching
    slice of a one-shot run.
    """
    group_col = spec.grouping_vars[0]
    entities = panel.select(group_col).unique(maintain_order=True).to_series().to_list()
    writer: pq.ParquetWriter | None = None
    total_rows = 0

    for start in range(0, len(entities), chunk_entities):
        batch = entities[start : start + chunk_entities]
        logger.info(
            "processing_chunk",
            progress=f"{min(start + chunk_entities, len(entities))}/{len(entities)}",
        )

        in_batch = pl.col(group_col).is_in([e for e in batch if e is not None])
        if None in batch:
            in_batch = in_batch | pl.col(group_col).is_null()

        chunk_df = build_scoring_features(panel.filter(in_batch), spec)
        if chunk_df.height == 0:
            logger.warning("empty_entity_chunk", first_entity=str(batch[0]))
            continue

        total_rows += chunk_df.height
        arrow_table = chunk_df.to_arrow()

        if writer is None:
            writer = pq.ParquetWriter(str(out_path), arrow_table.schema)
        else:
            arrow_table = arrow_table.cast(writer.schema)
        writer.write_table(arrow_table)

        del chunk_df, arrow_table
        gc.collect()

    if writer is not None:
        writer.close()
    else:
        build_scoring_features(panel.clear(), spec).write_parquet(out_path)
    return total_rows


def run_scoring_pipeline(
    input_path: Path,
    output_path: Path,
    settings: Settings | None = None,
) -> int:
    """Load a panel file, derive scoring features and save them to parquet.

    Single-key panels are processed in entity chunks to bound memory; others
    in one pass. Returns the number of rows written.
    """
    settings = settings or load_settings()
    spec = settings.features
    output_path.parent.mkdir(parents=True, exist_ok=True)
    t0 = time.time()

    logger.info("loading_panel", path=str(input_path))
    panel = load_panel(input_path, sort_column=spec.sort_column)

    if spec.grouping_vars and len(spec.grouping_vars) == 1 and settings.chunk_entities > 0:
        validate_panel(panel, spec)
        total_rows = _score_in_chunks(panel, spec, settings.chunk_entities, output_path)
    else:
        features_df = build_scoring_features(panel, spec)
        features_df.write_parquet(output_path)
        total_rows = features_df.height

    elapsed = time.time() - t0
    logger.info(
        "saved_features",
        path=str(output_path),
        total_rows=total_rows,
        elapsed_sec=f"{elapsed:.1f}",
    )
    return total_rows
