"""Dissolve leaf polygons (towns) into regions (counties) sharing a group key.

Aggregation runs in two phases so each half is a pure function of its input:
``group_leaf_features`` buckets leaves by key, then ``build_regions`` merges
each bucket into an immutable ``Region``.

Known simplification: a region's display name comes from the *first* member
of its bucket. Members that disagree on the county name are not reconciled.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Sequence

import geopandas as gpd
import shapely
from shapely.geometry import GeometryCollection, MultiPolygon, Polygon
from shapely.geometry.base import BaseGeometry

from choropleth_join.config import GeometryConfig
from choropleth_join.models import LeafFeature, Region
from choropleth_join.preprocess.keys import coerce_number, group_key_string

LOGGER = logging.getLogger(__name__)


def group_leaf_features(features: Iterable[LeafFeature]) -> dict[str, list[LeafFeature]]:
    """Bucket leaves by the string form of their group key, in first-seen order.

    Leaves without a group key are left out.
    """
    groups: dict[str, list[LeafFeature]] = {}
    excluded = 0
    for feature in features:
        key = group_key_string(feature.group_key)
        if key is None:
            excluded += 1
            continue
        groups.setdefault(key, []).append(feature)
    if excluded:
        LOGGER.info("Excluded %d leaf features without a group key", excluded)
    return groups


def _polygonal_parts(geometry: BaseGeometry) -> list[Polygon]:
    if isinstance(geometry, Polygon):
        return [] if geometry.is_empty else [geometry]
    if isinstance(geometry, (MultiPolygon, GeometryCollection)):
        parts: list[Polygon] = []
        for part in geometry.geoms:
            parts.extend(_polygonal_parts(part))
        return parts
    return []


def merge_geometries(
    geometries: Sequence[BaseGeometry], grid_size: float | None = None
) -> BaseGeometry:
    """Topological union of polygons; shared and near-shared edges dissolve.

    ``grid_size`` snaps vertices to a precision grid first, which lets
    boundaries that differ by less than one cell close up.
    """
    cleaned = [
        geometry if geometry.is_valid else shapely.make_valid(geometry)
        for geometry in geometries
        if geometry is not None and not geometry.is_empty
    ]
    if not cleaned:
        return MultiPolygon()
    merged = shapely.unary_union(cleaned, grid_size=grid_size)
    if isinstance(merged, (Polygon, MultiPolygon)):
        return merged
    # make_valid can leave slivers as lines/points; keep the areal parts only.
    parts = _polygonal_parts(merged)
    if len(parts) == 1:
        return parts[0]
    return MultiPolygon(parts)


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, float) and value != value:
        return False
    return str(value) != ""


def derive_region_name(
    properties: Mapping[str, Any],
    leaf_name: str,
    config: GeometryConfig,
) -> str:
    for field_name in config.region_name_fields:
        value = properties.get(field_name)
        if _present(value):
            return str(value)
    if _present(leaf_name):
        return str(leaf_name)
    return config.fallback_region_name


def build_regions(
    groups: Mapping[str, Sequence[LeafFeature]], config: GeometryConfig
) -> list[Region]:
    regions: list[Region] = []
    for key, members in groups.items():
        if not members:
            continue
        first = members[0]
        regions.append(
            Region(
                key=key,
                join_key=coerce_number(key),
                display_name=derive_region_name(first.properties, first.name, config),
                geometry=merge_geometries(
                    [member.geometry for member in members], grid_size=config.grid_size
                ),
                member_ids=tuple(member.feature_id for member in members),
            )
        )
    return regions


def aggregate_regions(features: Iterable[LeafFeature], config: GeometryConfig) -> list[Region]:
    groups = group_leaf_features(features)
    regions = build_regions(groups, config)
    LOGGER.info("Aggregated %d regions", len(regions))
    return regions


def regions_by_join_key(regions: Iterable[Region]) -> dict[float, Region]:
    """Index regions by numeric join key.

    Distinct key strings that coerce to the same number collide here; the
    region seen last wins.
    """
    lookup: dict[float, Region] = {}
    for region in regions:
        if region.join_key is None:
            continue
        previous = lookup.get(region.join_key)
        if previous is not None:
            LOGGER.warning(
                "Join key %s shared by regions %r and %r; keeping %r",
                region.join_key,
                previous.key,
                region.key,
                region.key,
            )
        lookup[region.join_key] = region
    return lookup


def regions_to_frame(regions: Sequence[Region], crs: Any = None) -> gpd.GeoDataFrame:
    return gpd.GeoDataFrame(
        {
            "region_key": [region.key for region in regions],
            "join_key": [region.join_key for region in regions],
            "name": [region.display_name for region in regions],
            "n_members": [len(region.member_ids) for region in regions],
        },
        geometry=[region.geometry for region in regions],
        crs=crs,
    )


def leaves_to_frame(features: Sequence[LeafFeature], crs: Any = None) -> gpd.GeoDataFrame:
    return gpd.GeoDataFrame(
        {
            "feature_id": [feature.feature_id for feature in features],
            "name": [feature.name for feature in features],
            "group_key": [group_key_string(feature.group_key) for feature in features],
            "population_a": [feature.population_a for feature in features],
            "population_b": [feature.population_b for feature in features],
            "population_change": [feature.population_change for feature in features],
        },
        geometry=[feature.geometry for feature in features],
        crs=crs,
    )
