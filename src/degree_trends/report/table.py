from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

import pandas as pd

from degree_trends.config import ReportConfig
from degree_trends.errors import SchemaError
from degree_trends.report.bindings import ChartBinding, merge_bindings

MISSING_CELL = "n/a"


@dataclass(frozen=True)
class PresentationRow:
    label: str
    color: str | None
    cells: list[str]
    trend: str | None = None


@dataclass(frozen=True)
class PresentationTable:
    caption: str
    orientation: str
    row_header: str
    column_labels: list[str]
    rows: list[PresentationRow]
    trend_label: str
    trend_cells: list[str] = field(default_factory=list)
    column_colors: list[str | None] = field(default_factory=list)


def format_share(value: Any, decimals: int = 1) -> str:
    if value is None:
        return MISSING_CELL
    number = float(value)
    if math.isnan(number):
        return MISSING_CELL
    return f"{number * 100:.{decimals}f}%"


def order_categories(
    wide: pd.DataFrame,
    *,
    row_order: str = "latest_value",
    other_label: str | None = None,
    other_last: bool = True,
) -> list[str]:
    categories = [str(category) for category in wide.index]
    if row_order == "latest_value" and len(wide.columns) > 0:
        latest = wide[wide.columns.max()]
        ranked = latest.sort_values(ascending=False, na_position="last", kind="mergesort")
        categories = [str(category) for category in ranked.index]
    else:
        categories = sorted(categories)
    if other_last and other_label in categories:
        categories.remove(other_label)
        categories.append(other_label)
    return categories


def _display_periods(wide: pd.DataFrame, requested: Sequence[int]) -> list[Any]:
    if not requested:
        return list(wide.columns)
    available = {period for period in wide.columns}
    unknown = [period for period in requested if period not in available]
    if unknown:
        raise SchemaError(
            f"display_periods not present in data: {', '.join(str(p) for p in unknown)}",
            stage="present",
            key=unknown[0],
        )
    return list(requested)


def build_presentation_table(
    wide: pd.DataFrame,
    bindings: Sequence[ChartBinding],
    colors: Mapping[str, str],
    config: ReportConfig,
    *,
    caption: str,
    other_label: str | None = None,
) -> PresentationTable:
    """Merge chart bindings into a category-indexed wide table and format it.

    ``wide`` must be indexed by category. For the period orientation the
    table is transposed for display and the sparklines move to a trailing
    trend row, still looked up by category.
    """
    merged = merge_bindings(wide, bindings, trend_column="__trend__")
    periods = _display_periods(wide, config.display_periods)
    categories = order_categories(
        wide,
        row_order=config.row_order,
        other_label=other_label,
        other_last=config.other_last,
    )
    merged.index = merged.index.map(str)
    decimals = config.percent_decimals

    if config.orientation == "period":
        rows = [
            PresentationRow(
                label=str(period),
                color=None,
                cells=[
                    format_share(merged.at[category, period], decimals) for category in categories
                ],
            )
            for period in periods
        ]
        return PresentationTable(
            caption=caption,
            orientation="period",
            row_header="Year",
            column_labels=categories,
            rows=rows,
            trend_label=config.trend_label,
            trend_cells=[merged.at[category, "__trend__"].data_uri() for category in categories],
            column_colors=[colors.get(category) for category in categories],
        )

    rows = [
        PresentationRow(
            label=category,
            color=colors.get(category),
            cells=[format_share(merged.at[category, period], decimals) for period in periods],
            trend=merged.at[category, "__trend__"].data_uri(),
        )
        for category in categories
    ]
    return PresentationTable(
        caption=caption,
        orientation="category",
        row_header="Field",
        column_labels=[str(period) for period in periods],
        rows=rows,
        trend_label=config.trend_label,
    )
