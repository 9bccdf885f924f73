from __future__ import annotations

from pathlib import Path
from typing import NoReturn

import typer

from degree_trends.config import DEFAULT_CONFIG_PATH, AppConfig, SparklinesConfig, load_config
from degree_trends.errors import DegreeTrendsError
from degree_trends.io.read import load_records
from degree_trends.logging import configure_logging
from degree_trends.paths import build_output_paths
from degree_trends.pipeline.run_all import build_aggregation, run_all, write_aggregation_tables

app = typer.Typer(no_args_is_help=True, add_completion=False)


def _load_app_config(config_path: Path) -> AppConfig:
    return load_config(config_path)


def _fail(exc: DegreeTrendsError) -> NoReturn:
    typer.echo(f"Error: {exc}", err=True)
    raise typer.Exit(code=1) from exc


@app.command()
def aggregate(
    csv: Path = typer.Option(..., exists=True, readable=True, resolve_path=True),
    out: Path = typer.Option(Path("out"), resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
) -> None:
    """Write the canonical series and wide tables without rendering charts."""
    configure_logging()
    cfg = _load_app_config(config)
    paths = build_output_paths(out)
    try:
        artifacts = build_aggregation(load_records(csv_path=csv, config=cfg), cfg)
    except DegreeTrendsError as exc:
        _fail(exc)
    written = write_aggregation_tables(artifacts, out_dir=paths.root, config=cfg)
    typer.echo(
        f"Aggregation complete. Categories: {len(artifacts.wide.index)}, "
        f"periods: {len(artifacts.wide.columns)}"
    )
    for path in written:
        typer.echo(f"- {path}")


@app.command("run-all")
def run_all_command(
    csv: Path = typer.Option(..., exists=True, readable=True, resolve_path=True),
    out: Path = typer.Option(Path("out"), resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
    workers: int | None = typer.Option(
        None,
        min=1,
        max=32,
        help="Render sparklines on this many threads. Falls back to sparklines.workers.",
    ),
) -> None:
    """Aggregate, pivot, render sparkline tables and write the HTML report."""
    configure_logging()
    cfg = _load_app_config(config)
    if workers is not None:
        cfg.sparklines = SparklinesConfig.model_validate(
            {**cfg.sparklines.model_dump(), "workers": int(workers)}
        )
    try:
        report_path = run_all(csv_path=csv, out_dir=out, config=cfg)
    except DegreeTrendsError as exc:
        _fail(exc)
    typer.echo(f"Run complete. Report: {report_path}")


if __name__ == "__main__":
    app()
