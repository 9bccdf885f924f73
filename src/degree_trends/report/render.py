from __future__ import annotations

import json
import logging
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from time import perf_counter
from typing import Any, Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape

from degree_trends.config import ReportConfig
from degree_trends.report.table import PresentationTable

LOGGER = logging.getLogger(__name__)


def _template_env() -> Environment:
    templates_path = Path(__file__).resolve().parent / "templates"
    return Environment(
        loader=FileSystemLoader(str(templates_path)),
        autoescape=select_autoescape(enabled_extensions=("html", "xml", "html.j2")),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def _style_directives(config: ReportConfig) -> dict[str, Any]:
    return {
        "category_column_width": config.category_column_width,
        "value_column_width": config.value_column_width,
        "trend_column_width": config.trend_column_width,
        "value_align": config.value_align,
        "period_spanner": config.period_spanner,
    }


def render_report(
    tables: Sequence[PresentationTable],
    out_dir: Path,
    config: ReportConfig,
    figure_files: Sequence[str] = (),
) -> Path:
    report_started = perf_counter()
    generated_at = datetime.now(timezone.utc).isoformat()
    template = _template_env().get_template("report.html.j2")

    rendered = template.render(
        generated_at=generated_at,
        title=config.title,
        subtitle=config.subtitle,
        source_note=config.source_note,
        style=_style_directives(config),
        tables=[asdict(table) for table in tables],
        figure_files=list(figure_files),
    )

    report_path = out_dir / "report.html"
    report_path.parent.mkdir(parents=True, exist_ok=True)
    report_path.write_text(rendered, encoding="utf-8")

    runtime_metrics = {
        "generated_at": generated_at,
        "tables": len(tables),
        "report_total_ms": round((perf_counter() - report_started) * 1000.0, 3),
        "report_html_bytes": int(report_path.stat().st_size),
    }
    runtime_path = out_dir / "artifacts" / "report_runtime.json"
    runtime_path.parent.mkdir(parents=True, exist_ok=True)
    runtime_path.write_text(json.dumps(runtime_metrics, indent=2), encoding="utf-8")
    LOGGER.info(
        "Report written to %s (%d bytes)", report_path, runtime_metrics["report_html_bytes"]
    )
    return report_path
