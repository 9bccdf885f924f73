from __future__ import annotations

import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Mapping, Sequence

import pandas as pd

from degree_trends.errors import BindingMismatchError, RenderError
from degree_trends.io.schema import CanonicalColumns
from degree_trends.viz.sparklines import RenderFn, SparklineImage

LOGGER = logging.getLogger(__name__)

DEFAULT_CHART_COLOR = "#0072B2"


@dataclass(frozen=True)
class SubSeries:
    category: str
    points: tuple[tuple[float, float], ...]
    color: str


@dataclass(frozen=True)
class ChartBinding:
    category: str
    image: SparklineImage


def split_series(
    series: pd.DataFrame,
    colors: Mapping[str, str] | None = None,
) -> list[SubSeries]:
    """Partition a canonical series into period-ordered sub-series per category."""
    colors = colors or {}
    subseries: list[SubSeries] = []
    for category, group in series.groupby(CanonicalColumns.category, sort=True):
        ordered = group.sort_values(CanonicalColumns.period, kind="mergesort")
        points = tuple(
            (float(period), float(value))
            for period, value in zip(
                ordered[CanonicalColumns.period], ordered[CanonicalColumns.value]
            )
        )
        label = str(category)
        subseries.append(
            SubSeries(category=label, points=points, color=colors.get(label, DEFAULT_CHART_COLOR))
        )
    return subseries


def _render_one(subseries: SubSeries, render_fn: RenderFn) -> ChartBinding:
    try:
        image = render_fn(subseries.points, subseries.color)
    except Exception as exc:
        raise RenderError(
            subseries.category,
            f"sparkline rendering failed: {exc}",
        ) from exc
    return ChartBinding(category=subseries.category, image=image)


def bind_charts(
    series: pd.DataFrame,
    render_fn: RenderFn,
    *,
    colors: Mapping[str, str] | None = None,
    workers: int = 1,
) -> list[ChartBinding]:
    """Render one chart per category and return bindings keyed by category.

    Bindings come back in sorted category order regardless of ``workers``;
    the first rendering failure aborts the batch with a ``RenderError``.
    """
    subseries = split_series(series, colors=colors)
    if workers <= 1 or len(subseries) <= 1:
        return [_render_one(item, render_fn) for item in subseries]

    LOGGER.debug("Rendering %d sparklines on %d workers", len(subseries), workers)
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(_render_one, item, render_fn) for item in subseries]
        # result() re-raises the worker's RenderError in category order.
        return [future.result() for future in futures]


def merge_bindings(
    wide: pd.DataFrame,
    bindings: Sequence[ChartBinding],
    *,
    trend_column: str = "trend",
) -> pd.DataFrame:
    """Attach chart images to a category-indexed wide table by category key."""
    counts = Counter(binding.category for binding in bindings)
    duplicates = [category for category, count in counts.items() if count > 1]
    row_categories = {str(category) for category in wide.index}
    bound_categories = set(counts)
    missing = row_categories - bound_categories
    orphans = bound_categories - row_categories
    if duplicates or missing or orphans:
        raise BindingMismatchError(
            missing_bindings=missing,
            orphan_bindings=orphans,
            duplicate_bindings=duplicates,
        )

    images = {binding.category: binding.image for binding in bindings}
    merged = wide.copy()
    merged[trend_column] = [images[str(category)] for category in merged.index]
    return merged
