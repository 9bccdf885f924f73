from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from time import perf_counter

import pandas as pd

from degree_trends.config import AppConfig
from degree_trends.features.aggregate import aggregate, conservation_delta
from degree_trends.features.categories import (
    normalize_category_labels,
    normalize_label,
    normalize_label_keys,
)
from degree_trends.features.wide import to_wide
from degree_trends.io.read import load_records
from degree_trends.io.schema import CanonicalColumns
from degree_trends.io.write import write_summary, write_table
from degree_trends.paths import build_output_paths
from degree_trends.report.bindings import bind_charts
from degree_trends.report.render import render_report
from degree_trends.report.table import PresentationTable, build_presentation_table
from degree_trends.viz.sparklines import SparklineKind, SparklineStyle, make_renderer
from degree_trends.viz.time_series import plot_category_trends

LOGGER = logging.getLogger(__name__)

CONSERVATION_TOLERANCE = 1e-9


@dataclass(frozen=True)
class AggregationArtifacts:
    records: pd.DataFrame
    series: pd.DataFrame
    wide: pd.DataFrame
    colors: dict[str, str]
    conservation_delta: float
    other_label: str


def build_aggregation(records: pd.DataFrame, config: AppConfig) -> AggregationArtifacts:
    normalized = normalize_category_labels(records, aliases=config.categories.aliases)
    keep = [str(normalize_label(label)) for label in config.categories.keep]
    if not keep:
        # An empty keep-list keeps every category rather than collapsing all of them.
        keep = sorted(normalized[CanonicalColumns.category].dropna().astype(str).unique())
    other_label = str(normalize_label(config.categories.other_label))
    series = aggregate(normalized, keep, other_label=other_label)

    delta = conservation_delta(normalized, series)
    if delta > CONSERVATION_TOLERANCE:
        LOGGER.warning("Per-period totals drifted by %.3g during aggregation", delta)

    wide = to_wide(series, key_column="category")
    categories = config.categories.model_copy(
        update={
            "colors": normalize_label_keys(config.categories.colors),
            "other_label": other_label,
        }
    )
    colors = categories.color_map([str(category) for category in wide.index])
    LOGGER.info(
        "Aggregated %d records into %d categories over %d periods",
        len(normalized),
        len(wide.index),
        len(wide.columns),
    )
    return AggregationArtifacts(
        records=normalized,
        series=series,
        wide=wide,
        colors=colors,
        conservation_delta=delta,
        other_label=other_label,
    )


def write_aggregation_tables(
    artifacts: AggregationArtifacts, out_dir: Path, config: AppConfig
) -> list[Path]:
    paths = build_output_paths(out_dir)
    fmt = config.outputs.tables_format
    return [
        write_table(artifacts.series, paths.tables / f"canonical_series.{fmt}", fmt=fmt),
        write_table(
            artifacts.wide.reset_index(),
            paths.tables / f"wide_by_category.{fmt}",
            fmt=fmt,
        ),
        write_table(
            to_wide(artifacts.series, key_column="period").reset_index(),
            paths.tables / f"wide_by_period.{fmt}",
            fmt=fmt,
        ),
    ]


def _trend_table(
    artifacts: AggregationArtifacts,
    config: AppConfig,
    *,
    kind: SparklineKind,
    caption: str,
) -> PresentationTable:
    style = SparklineStyle.from_config(config.sparklines, kind=kind)
    bindings = bind_charts(
        artifacts.series,
        make_renderer(style),
        colors=artifacts.colors,
        workers=config.sparklines.workers,
    )
    return build_presentation_table(
        artifacts.wide,
        bindings,
        artifacts.colors,
        config.report,
        caption=caption,
        other_label=artifacts.other_label,
    )


def build_trend_tables(
    artifacts: AggregationArtifacts, config: AppConfig
) -> list[PresentationTable]:
    primary_kind = config.sparklines.kind
    tables = [
        _trend_table(
            artifacts,
            config,
            kind=primary_kind,
            caption=f"Field popularity with {primary_kind} trends",
        )
    ]
    if config.sparklines.column_kind_table and primary_kind != "column":
        tables.append(
            _trend_table(
                artifacts,
                config,
                kind="column",
                caption="Field popularity with column trends",
            )
        )
    return tables


def run_all(csv_path: Path, out_dir: Path, config: AppConfig) -> Path:
    started = perf_counter()
    paths = build_output_paths(out_dir)

    records = load_records(csv_path=csv_path, config=config)
    artifacts = build_aggregation(records, config)
    write_aggregation_tables(artifacts, out_dir=paths.root, config=config)

    render_started = perf_counter()
    tables = build_trend_tables(artifacts, config)
    render_ms = round((perf_counter() - render_started) * 1000.0, 3)

    figure_name = f"category_trends.{config.outputs.figures_format}"
    figure_path = plot_category_trends(
        artifacts.series,
        artifacts.colors,
        paths.figures / figure_name,
        title=config.report.title,
    )
    report_path = render_report(
        tables,
        out_dir=paths.root,
        config=config.report,
        figure_files=[figure_path.name] if figure_path is not None else [],
    )

    write_summary(
        {
            "records": len(artifacts.records),
            "series_rows": len(artifacts.series),
            "categories": [str(category) for category in artifacts.wide.index],
            "periods": artifacts.wide.columns.tolist(),
            "conservation_max_abs_delta": artifacts.conservation_delta,
            "sparkline_render_ms": render_ms,
            "total_ms": round((perf_counter() - started) * 1000.0, 3),
        },
        paths.artifacts / "run_summary.json",
    )
    return report_path
