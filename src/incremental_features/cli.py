"""CLI entry point for the incremental feature engine."""

import logging
import sys
from pathlib import Path
from typing import Annotated

import structlog
import typer

app = typer.Typer(
    name="incfeat",
    help="Incremental feature engine - scoring-time lags, time gaps and rolling stats.",
)


def configure_logging(level: int = logging.INFO) -> None:
    """Send structlog output to stderr so stdout carries only command results."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
    )


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logs")] = False,
) -> None:
    configure_logging(logging.DEBUG if verbose else logging.INFO)


@app.command()
def score(
    input_path: Annotated[Path, typer.Argument(help="Panel table (.csv or .parquet)")],
    output_path: Annotated[Path, typer.Argument(help="Where to write the features (.parquet)")],
    params: Annotated[Path | None, typer.Option(help="params.yaml with a 'features' section")] = None,
) -> None:
    """Derive features for the most recent records of every entity."""
    from incremental_features.config import load_settings
    from incremental_features.exceptions import FeatureEngineError
    from incremental_features.features.pipeline import run_scoring_pipeline

    typer.echo(f"Scoring features for {input_path}...")
    try:
        n_rows = run_scoring_pipeline(input_path, output_path, load_settings(params))
    except FeatureEngineError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(f"Wrote {n_rows} rows to {output_path}")


@app.command()
def schema(
    input_path: Annotated[Path, typer.Argument(help="Panel table (.csv or .parquet)")],
    params: Annotated[Path | None, typer.Option(help="params.yaml with a 'features' section")] = None,
) -> None:
    """Print the output column names, in order, without computing features."""
    from incremental_features.config import load_settings
    from incremental_features.data.loader import load_panel
    from incremental_features.features.pipeline import output_schema

    # stdout is the column list; only warnings and errors are logged
    configure_logging(logging.WARNING)
    settings = load_settings(params)
    panel = load_panel(input_path, sort_column=settings.features.sort_column)
    for name in output_schema(panel, settings.features):
        typer.echo(name)


if __name__ == "__main__":
    app()
