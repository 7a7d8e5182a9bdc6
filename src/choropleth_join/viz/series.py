from __future__ import annotations

import math
from pathlib import Path
from typing import Sequence

import matplotlib.pyplot as plt
from matplotlib.ticker import MaxNLocator

from choropleth_join.models import TimeSeries
from choropleth_join.viz.common import save_figure


def plot_region_sparklines(
    entries: Sequence[tuple[str, TimeSeries | None]],
    output_path: Path,
    *,
    ncols: int = 4,
) -> Path:
    """Small multiples of each region's series, last point marked."""
    count = max(len(entries), 1)
    ncols = max(1, min(ncols, count))
    nrows = math.ceil(count / ncols)
    fig, axes = plt.subplots(
        nrows, ncols, figsize=(2.6 * ncols, 1.6 * nrows), squeeze=False, sharey=False
    )
    flat_axes = axes.ravel()
    for ax, (name, series) in zip(flat_axes, entries):
        ax.set_title(name, fontsize=8)
        ax.tick_params(labelsize=6)
        if series is None:
            ax.text(0.5, 0.5, "No time series", ha="center", va="center", transform=ax.transAxes)
            ax.set_xticks([])
            ax.set_yticks([])
            continue
        ax.plot(series.years, series.values, color="#2171b5", linewidth=1.4)
        last = series.points[-1]
        ax.plot([last.year], [last.value], marker="o", markersize=3, color="#084594")
        ax.xaxis.set_major_locator(MaxNLocator(nbins=5, integer=True))
        ax.yaxis.set_major_locator(MaxNLocator(nbins=4))
    for ax in flat_axes[len(entries):]:
        ax.set_visible(False)
    return save_figure(fig, output_path)
