from __future__ import annotations

from pathlib import Path
from typing import Mapping

import matplotlib.pyplot as plt
import pandas as pd
from matplotlib.ticker import PercentFormatter

from degree_trends.io.schema import CanonicalColumns
from degree_trends.viz.common import save_figure


def plot_category_trends(
    series: pd.DataFrame,
    colors: Mapping[str, str],
    output_path: Path,
    title: str = "Share of bachelor's degrees by field",
) -> Path | None:
    if series.empty:
        return None

    fig, ax = plt.subplots(figsize=(12, 6))
    for category, group in series.groupby(CanonicalColumns.category, sort=True):
        ordered = group.sort_values(CanonicalColumns.period)
        ax.plot(
            ordered[CanonicalColumns.period],
            ordered[CanonicalColumns.value],
            linewidth=1.8,
            color=colors.get(str(category)),
            label=str(category),
        )

    ax.yaxis.set_major_formatter(PercentFormatter(xmax=1.0))
    ax.set_title(title)
    ax.set_xlabel("Year")
    ax.set_ylabel("Share of degrees")
    ax.grid(True, alpha=0.3)
    ax.legend(loc="center left", bbox_to_anchor=(1.0, 0.5), frameon=False, fontsize=9)
    return save_figure(output_path)
