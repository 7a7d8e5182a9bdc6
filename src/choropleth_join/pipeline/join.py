from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

import geopandas as gpd
import pandas as pd

from choropleth_join.config import AppConfig
from choropleth_join.geometry.aggregate import (
    aggregate_regions,
    leaves_to_frame,
    regions_by_join_key,
    regions_to_frame,
)
from choropleth_join.io.geometry import leaf_features_from_frame
from choropleth_join.models import LeafFeature, Region, SeriesIndex, TimeSeries
from choropleth_join.preprocess.keys import group_key_string, leaf_name_key
from choropleth_join.scales import MapScales, build_map_scales
from choropleth_join.series.index import build_series_index_from_frame
from choropleth_join.series.resolve import SeriesResolver, value_for_year

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class ChoroplethResult:
    """Everything the renderer needs: coloured leaves, coloured regions, series."""

    leaves: tuple[LeafFeature, ...]
    regions: tuple[Region, ...]
    index: SeriesIndex
    scales: MapScales
    reference_year: int
    leaves_frame: gpd.GeoDataFrame
    regions_frame: gpd.GeoDataFrame
    region_series: Mapping[str, TimeSeries | None]
    region_colors: Mapping[str, str]
    join_key_collisions: int = 0

    def lookup(self, region_key: Any) -> tuple[str, TimeSeries | None] | None:
        """Colour and series for a region key, as a pointer-event handler would ask."""
        key = group_key_string(region_key)
        if key is None or key not in self.region_colors:
            return None
        return self.region_colors[key], self.region_series.get(key)

    def lookup_leaf(self, name: Any) -> tuple[str, str] | None:
        """Population and change colours for a leaf, matched on trimmed lower-case name."""
        key = leaf_name_key(name)
        for feature in self.leaves:
            if leaf_name_key(feature.name) == key:
                return (
                    self.scales.population(feature.population_a),
                    self.scales.change(feature.population_change),
                )
        return None

    def series_table(self) -> pd.DataFrame:
        names = {region.key: region.display_name for region in self.regions}
        records = [
            {"region_key": key, "name": names.get(key), "year": point.year, "value": point.value}
            for key, series in self.region_series.items()
            if series is not None
            for point in series
        ]
        return pd.DataFrame.from_records(
            records, columns=["region_key", "name", "year", "value"]
        )

    def summary(self) -> dict[str, Any]:
        resolved_via = self.regions_frame["resolved_via"]
        return {
            "leaves": len(self.leaves),
            "leaves_without_group_key": int(self.leaves_frame["group_key"].isna().sum()),
            "regions": len(self.regions),
            "rows_read": self.index.rows_read,
            "rows_dropped": self.index.rows_dropped,
            "series_by_id": len(self.index.by_numeric_key),
            "series_by_name": len(self.index.by_normalized_name),
            "regions_resolved_by_id": int((resolved_via == "id").sum()),
            "regions_resolved_by_name": int((resolved_via == "name").sum()),
            "regions_unresolved": int(resolved_via.isna().sum()),
            "join_key_collisions": self.join_key_collisions,
            "reference_year": self.reference_year,
            "regions_with_reference_value": int(
                self.regions_frame["reference_value"].notna().sum()
            ),
            "population_domain": list(self.scales.population.domain),
            "change_domain": list(self.scales.change.domain),
            "reference_domain": list(self.scales.reference.domain),
        }


def build_choropleth(
    leaf_frame: gpd.GeoDataFrame, table: pd.DataFrame, config: AppConfig
) -> ChoroplethResult:
    """Aggregate, index, resolve and colour one snapshot of inputs."""
    leaves = leaf_features_from_frame(leaf_frame, config.columns)
    regions = aggregate_regions(leaves, config.geometry)
    keyed = [region for region in regions if region.join_key is not None]
    join_key_collisions = len(keyed) - len(regions_by_join_key(keyed))
    index = build_series_index_from_frame(table, config.names)
    resolver = SeriesResolver(index=index, names=config.names)
    year = config.scales.reference_year

    region_series: dict[str, TimeSeries | None] = {}
    resolved_via: list[str | None] = []
    reference_values: list[float | None] = []
    for region in regions:
        series, via = resolver.resolve_with_source(region)
        region_series[region.key] = series
        resolved_via.append(via)
        reference_values.append(value_for_year(series, year))

    unresolved = resolved_via.count(None)
    if unresolved:
        LOGGER.info("%d of %d regions have no matching series", unresolved, len(regions))

    scales = build_map_scales(
        population_values=[leaf.population_a for leaf in leaves],
        change_values=[leaf.population_change for leaf in leaves],
        reference_values=[value for value in reference_values if value is not None],
        config=config.scales,
    )

    leaves_frame = leaves_to_frame(leaves, crs=leaf_frame.crs)
    leaves_frame["color_population"] = leaves_frame["population_a"].map(scales.population)
    leaves_frame["color_change"] = leaves_frame["population_change"].map(scales.change)

    regions_frame = regions_to_frame(regions, crs=leaf_frame.crs)
    regions_frame["resolved_via"] = pd.Series(resolved_via, index=regions_frame.index, dtype=object)
    regions_frame["reference_value"] = pd.to_numeric(
        pd.Series(reference_values, index=regions_frame.index, dtype=object), errors="coerce"
    )
    regions_frame["color"] = [scales.reference(value) for value in reference_values]

    return ChoroplethResult(
        leaves=tuple(leaves),
        regions=tuple(regions),
        index=index,
        scales=scales,
        reference_year=year,
        leaves_frame=leaves_frame,
        regions_frame=regions_frame,
        region_series=region_series,
        region_colors=dict(zip(regions_frame["region_key"], regions_frame["color"])),
        join_key_collisions=join_key_collisions,
    )
