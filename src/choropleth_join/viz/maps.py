from __future__ import annotations

from pathlib import Path

import geopandas as gpd
import matplotlib.pyplot as plt
from matplotlib.cm import ScalarMappable
from matplotlib.patches import Patch

from choropleth_join.scales import DivergingScale, QuantizeScale, SequentialScale
from choropleth_join.viz.common import BOUNDARY_COLOR, MAP_FIGSIZE, save_figure, strip_map_axes


def _projected(frame: gpd.GeoDataFrame, map_crs: str | None) -> gpd.GeoDataFrame:
    if map_crs and frame.crs is not None:
        return frame.to_crs(map_crs)
    return frame


def _draw(
    frame: gpd.GeoDataFrame,
    color_column: str,
    ax: plt.Axes,
    map_crs: str | None,
    linewidth: float,
) -> None:
    if frame.empty:
        ax.text(0.5, 0.5, "No features", ha="center", va="center", transform=ax.transAxes)
        return
    projected = _projected(frame, map_crs)
    projected.plot(
        ax=ax,
        color=list(projected[color_column]),
        edgecolor=BOUNDARY_COLOR,
        linewidth=linewidth,
    )


def plot_population_map(
    leaves_frame: gpd.GeoDataFrame,
    scale: QuantizeScale,
    output_path: Path,
    *,
    title: str = "Population, first snapshot",
    map_crs: str | None = None,
) -> Path:
    fig, ax = plt.subplots(figsize=MAP_FIGSIZE)
    _draw(leaves_frame, "color_population", ax, map_crs, linewidth=0.2)
    handles = [
        Patch(facecolor=color, edgecolor="none", label=f"{low:,.0f} to {high:,.0f}")
        for color, (low, high) in zip(scale.colors, scale.bucket_edges())
    ]
    ax.legend(handles=handles, loc="lower left", fontsize=7, frameon=False)
    ax.set_title(title)
    strip_map_axes(ax)
    return save_figure(fig, output_path)


def plot_change_map(
    leaves_frame: gpd.GeoDataFrame,
    scale: DivergingScale,
    output_path: Path,
    *,
    title: str = "Population change",
    map_crs: str | None = None,
) -> Path:
    fig, ax = plt.subplots(figsize=MAP_FIGSIZE)
    _draw(leaves_frame, "color_change", ax, map_crs, linewidth=0.2)
    colorbar = fig.colorbar(
        ScalarMappable(norm=scale.norm, cmap=scale.cmap), ax=ax, shrink=0.6, pad=0.02
    )
    colorbar.set_label("Loss  /  No change  /  Gain")
    ax.set_title(title)
    strip_map_axes(ax)
    return save_figure(fig, output_path)


def plot_reference_map(
    regions_frame: gpd.GeoDataFrame,
    scale: SequentialScale,
    year: int,
    output_path: Path,
    *,
    title: str | None = None,
    map_crs: str | None = None,
) -> Path:
    fig, ax = plt.subplots(figsize=MAP_FIGSIZE)
    _draw(regions_frame, "color", ax, map_crs, linewidth=0.6)
    low, high = scale.domain
    colorbar = fig.colorbar(
        ScalarMappable(norm=scale.norm, cmap=scale.cmap), ax=ax, shrink=0.6, pad=0.02
    )
    colorbar.set_label(f"Lower ({low:.3f})  /  Higher ({high:.3f})")
    if regions_frame["reference_value"].isna().any():
        ax.legend(
            handles=[Patch(facecolor=scale.unknown, edgecolor="none", label=f"No {year} data")],
            loc="lower left",
            fontsize=7,
            frameon=False,
        )
    ax.set_title(title or f"{year} value by region")
    strip_map_axes(ax)
    return save_figure(fig, output_path)
