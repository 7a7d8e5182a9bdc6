from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import geopandas as gpd
import pandas as pd
import pyogrio

from choropleth_join.config import ColumnsConfig, InputConfig
from choropleth_join.models import LeafFeature
from choropleth_join.preprocess.keys import coerce_number

LOGGER = logging.getLogger(__name__)


def list_geometry_layers(path: Path) -> list[str]:
    """Named collections in a TopoJSON/GeoJSON file (one per TopoJSON object)."""
    return [str(row[0]) for row in pyogrio.list_layers(path)]


def load_leaf_frame(
    path: Path | None, layer: str | None = None, crs: str | None = None
) -> gpd.GeoDataFrame:
    if path is None:
        raise ValueError("input.geometry_path is required")
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Geometry source not found: {path}")

    layers = list_geometry_layers(path)
    if not layers:
        raise ValueError(f"Geometry source has no collections: {path}")
    if layer is None:
        layer = layers[0]
    elif layer not in layers:
        raise ValueError(f"Unknown geometry layer {layer!r}; available: {', '.join(layers)}")

    frame = gpd.read_file(path, layer=layer)
    if frame.crs is None and crs:
        frame = frame.set_crs(crs)
    LOGGER.info("Loaded %d geometries from %s (layer=%s)", len(frame), path.name, layer)
    return frame


def load_leaf_frame_from_config(config: InputConfig) -> gpd.GeoDataFrame:
    path = Path(config.geometry_path) if config.geometry_path else None
    return load_leaf_frame(path, layer=config.geometry_layer, crs=config.geometry_crs)


def _clean_value(value: Any) -> Any:
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    if hasattr(value, "item"):
        return value.item()
    return value


def _population(value: Any) -> float:
    return coerce_number(value) or 0.0


def leaf_features_from_frame(
    frame: gpd.GeoDataFrame, columns: ColumnsConfig
) -> list[LeafFeature]:
    """Build LeafFeatures from a loaded frame, skipping rows without a usable polygon."""
    if columns.group_key not in frame.columns:
        LOGGER.warning(
            "Group key column %r missing from geometry properties; no regions will be built",
            columns.group_key,
        )
    geometry_column = frame.geometry.name
    property_columns = [column for column in frame.columns if column != geometry_column]
    use_id_column = bool(columns.leaf_id) and columns.leaf_id in frame.columns

    features: list[LeafFeature] = []
    skipped = 0
    for position, (geometry, record) in enumerate(
        zip(frame.geometry, frame[property_columns].to_dict(orient="records"))
    ):
        if geometry is None or geometry.is_empty:
            skipped += 1
            continue
        properties = {key: _clean_value(value) for key, value in record.items()}
        feature_id = properties.get(columns.leaf_id) if use_id_column else None
        name = properties.get(columns.leaf_name)
        features.append(
            LeafFeature(
                feature_id=str(feature_id if feature_id is not None else position),
                name="" if name is None else str(name),
                group_key=properties.get(columns.group_key),
                population_a=_population(properties.get(columns.population_a)),
                population_b=_population(properties.get(columns.population_b)),
                geometry=geometry,
                properties=properties,
            )
        )
    if skipped:
        LOGGER.info("Skipped %d features with empty geometry", skipped)
    return features
