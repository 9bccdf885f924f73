from __future__ import annotations

import base64
import io
from dataclasses import dataclass, replace
from typing import Callable, Literal, Sequence

import numpy as np
from matplotlib.figure import Figure

from degree_trends.config import SparklinesConfig

SparklineKind = Literal["line", "column"]
Point = tuple[float, float]

_MIME_TYPES = {"png": "image/png", "svg": "image/svg+xml"}


@dataclass(frozen=True)
class SparklineStyle:
    kind: SparklineKind = "line"
    color: str = "#0072B2"
    height_px: int = 30
    aspect: float = 4.0
    dpi: int = 96
    line_width: float = 1.4
    fmt: Literal["png", "svg"] = "png"

    @property
    def width_px(self) -> int:
        return int(round(self.height_px * self.aspect))

    @classmethod
    def from_config(
        cls, config: SparklinesConfig, *, kind: SparklineKind | None = None
    ) -> "SparklineStyle":
        return cls(
            kind=kind or config.kind,
            height_px=config.height_px,
            aspect=config.aspect,
            dpi=config.dpi,
            line_width=config.line_width,
            fmt=config.format,
        )


@dataclass(frozen=True)
class SparklineImage:
    data: bytes
    mime_type: str
    width_px: int
    height_px: int

    def data_uri(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


RenderFn = Callable[[Sequence[Point], str], SparklineImage]


def _validated_points(points: Sequence[Point]) -> tuple[np.ndarray, np.ndarray]:
    pairs = np.asarray(list(points), dtype=float).reshape(-1, 2)
    if pairs.shape[0] == 0:
        raise ValueError("cannot render a sparkline with no points")
    if not np.isfinite(pairs).all():
        raise ValueError("sparkline points must be finite")
    xs, ys = pairs[:, 0], pairs[:, 1]
    if (np.diff(xs) <= 0).any():
        raise ValueError("sparkline points must be strictly ordered by x")
    return xs, ys


def _column_width(xs: np.ndarray) -> float:
    if len(xs) < 2:
        return 0.8
    return 0.8 * float(np.diff(xs).min())


def render_sparkline(points: Sequence[Point], style: SparklineStyle) -> SparklineImage:
    """Rasterize an ordered (x, y) series into an axis-free micro chart.

    The output size is fixed by ``style.height_px`` and ``style.aspect``;
    the data range only affects the y scaling inside the frame.
    """
    xs, ys = _validated_points(points)

    # A bare Figure keeps no pyplot state, so renders can run on worker threads.
    figure = Figure(
        figsize=(style.width_px / style.dpi, style.height_px / style.dpi),
        dpi=style.dpi,
    )
    figure.subplots_adjust(left=0.0, right=1.0, bottom=0.0, top=1.0)
    ax = figure.add_subplot(1, 1, 1)
    ax.set_axis_off()

    if style.kind == "column":
        ax.bar(xs, ys, width=_column_width(xs), color=style.color, linewidth=0)
        ax.set_ylim(bottom=0.0, top=max(float(ys.max()), 0.0) * 1.05 or 1.0)
        ax.margins(x=0.02)
    else:
        if len(xs) > 1:
            ax.plot(xs, ys, color=style.color, linewidth=style.line_width, solid_capstyle="round")
        ax.plot(xs[-1:], ys[-1:], marker="o", markersize=style.line_width * 1.6, color=style.color)
        ax.margins(x=0.04, y=0.15)

    buffer = io.BytesIO()
    figure.savefig(buffer, format=style.fmt, dpi=style.dpi, transparent=True)
    return SparklineImage(
        data=buffer.getvalue(),
        mime_type=_MIME_TYPES[style.fmt],
        width_px=style.width_px,
        height_px=style.height_px,
    )


def make_renderer(style: SparklineStyle) -> RenderFn:
    """Bind a base style; the per-category color is supplied at call time."""

    def _render(points: Sequence[Point], color: str) -> SparklineImage:
        return render_sparkline(points, replace(style, color=color))

    return _render
