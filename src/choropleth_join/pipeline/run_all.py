from __future__ import annotations

import logging
from pathlib import Path

from choropleth_join.config import AppConfig
from choropleth_join.io.write import write_geojson, write_summary, write_table
from choropleth_join.paths import OutputPaths, build_output_paths
from choropleth_join.pipeline.join import ChoroplethResult, build_choropleth
from choropleth_join.pipeline.load import load_inputs
from choropleth_join.report.render import render_report
from choropleth_join.viz.maps import plot_change_map, plot_population_map, plot_reference_map
from choropleth_join.viz.series import plot_region_sparklines

LOGGER = logging.getLogger(__name__)


def write_outputs(result: ChoroplethResult, paths: OutputPaths, config: AppConfig) -> None:
    fmt = config.outputs.tables_format
    write_table(result.regions_frame, paths.tables / f"regions.{fmt}", fmt=fmt)
    write_table(result.leaves_frame, paths.tables / f"leaves.{fmt}", fmt=fmt)
    write_table(result.series_table(), paths.tables / f"region_series.{fmt}", fmt=fmt)
    write_geojson(result.regions_frame, paths.geo / "regions.geojson")
    write_geojson(result.leaves_frame, paths.geo / "leaves.geojson")
    write_summary(result.summary(), paths.summary / "run_summary.json")


def render_figures(
    result: ChoroplethResult, paths: OutputPaths, config: AppConfig
) -> dict[str, Path]:
    suffix = config.outputs.figures_format
    map_crs = config.outputs.map_crs
    figures: dict[str, Path] = {}
    try:
        figures["population_map"] = plot_population_map(
            result.leaves_frame,
            result.scales.population,
            paths.figures / f"population_map.{suffix}",
            map_crs=map_crs,
        )
        figures["change_map"] = plot_change_map(
            result.leaves_frame,
            result.scales.change,
            paths.figures / f"change_map.{suffix}",
            map_crs=map_crs,
        )
        figures["reference_map"] = plot_reference_map(
            result.regions_frame,
            result.scales.reference,
            result.reference_year,
            paths.figures / f"reference_map.{suffix}",
            map_crs=map_crs,
        )
        figures["region_series"] = plot_region_sparklines(
            [
                (region.display_name, result.region_series.get(region.key))
                for region in result.regions
            ],
            paths.figures / f"region_series.{suffix}",
        )
    except Exception:  # pragma: no cover
        LOGGER.exception("Failed rendering one or more map figures")
    return figures


def run_all(out_dir: Path, config: AppConfig) -> Path:
    """Load both sources, build the joined maps, write outputs and the HTML report."""
    inputs = load_inputs(config)
    result = build_choropleth(inputs.leaf_frame, inputs.table, config)
    paths = build_output_paths(out_dir)
    write_outputs(result, paths, config)
    figures = render_figures(result, paths, config) if config.outputs.render_figures else {}
    return render_report(result=result, out_dir=paths.root, figures=figures)
