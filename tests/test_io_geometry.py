from __future__ import annotations

from pathlib import Path

import geopandas as gpd
import pytest
from shapely.geometry import Polygon, box

from choropleth_join.config import ColumnsConfig, InputConfig
from choropleth_join.io.geometry import (
    leaf_features_from_frame,
    list_geometry_layers,
    load_leaf_frame,
    load_leaf_frame_from_config,
)

FIXTURES = Path(__file__).resolve().parent / "fixtures"


def test_list_geometry_layers_reports_topology_objects() -> None:
    assert "towns" in list_geometry_layers(FIXTURES / "towns.topojson")


def test_load_leaf_frame_decodes_shared_arcs() -> None:
    frame = load_leaf_frame(FIXTURES / "towns.topojson", layer="towns")

    assert list(frame["TOWN"]) == ["SPRINGFIELD", "HOLYOKE", "AMHERST", "GOSNOLD"]
    areas = dict(zip(frame["TOWN"], frame.geometry.area))
    assert areas["SPRINGFIELD"] == pytest.approx(1.0)
    assert areas["HOLYOKE"] == pytest.approx(1.0)


def test_load_leaf_frame_rejects_unknown_layer_and_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="Unknown geometry layer"):
        load_leaf_frame(FIXTURES / "towns.topojson", layer="counties")
    with pytest.raises(FileNotFoundError):
        load_leaf_frame(tmp_path / "missing.topojson")
    with pytest.raises(ValueError, match="geometry_path"):
        load_leaf_frame_from_config(InputConfig())


def test_load_leaf_frame_reads_geojson_with_single_layer(tmp_path: Path) -> None:
    path = tmp_path / "towns.geojson"
    gpd.GeoDataFrame(
        {"TOWN": ["A", "B"], "FIPS_STCO": [1, 2]},
        geometry=[box(0, 0, 1, 1), box(1, 0, 2, 1)],
        crs="EPSG:4326",
    ).to_file(path, driver="GeoJSON")

    frame = load_leaf_frame(path)

    assert len(frame) == 2
    assert list(frame["FIPS_STCO"]) == [1, 2]


def test_leaf_features_from_frame_maps_configured_fields() -> None:
    frame = load_leaf_frame(FIXTURES / "towns.topojson", layer="towns")

    leaves = leaf_features_from_frame(frame, ColumnsConfig())

    assert [leaf.name for leaf in leaves] == ["SPRINGFIELD", "HOLYOKE", "AMHERST", "GOSNOLD"]
    assert leaves[0].population_a == 152319.0
    assert leaves[1].population_change == 39880.0 - 44678.0
    assert leaves[3].group_key is None
    assert leaves[0].properties["COUNTY"] == "HAMPDEN"
    assert isinstance(leaves[0].geometry, Polygon)


def test_leaf_features_from_frame_defaults_missing_population_and_skips_empty_geometry() -> None:
    frame = gpd.GeoDataFrame(
        {
            "code": ["t1", "t2", "t3"],
            "TOWN": ["A", "B", "C"],
            "FIPS_STCO": [1, 1, 2],
            "POP1980": ["12", None, "n/a"],
        },
        geometry=[box(0, 0, 1, 1), box(1, 0, 2, 1), Polygon()],
    )

    leaves = leaf_features_from_frame(frame, ColumnsConfig(leaf_id="code"))

    assert [leaf.feature_id for leaf in leaves] == ["t1", "t2"]
    assert [leaf.population_a for leaf in leaves] == [12.0, 0.0]
    assert [leaf.population_b for leaf in leaves] == [0.0, 0.0]


def test_leaf_features_without_group_key_column_have_no_key() -> None:
    frame = gpd.GeoDataFrame({"TOWN": ["A"]}, geometry=[box(0, 0, 1, 1)])

    leaves = leaf_features_from_frame(frame, ColumnsConfig())

    assert leaves[0].group_key is None
    assert leaves[0].feature_id == "0"


def test_load_leaf_frame_assigns_crs_only_when_source_has_none(tmp_path: Path) -> None:
    towns = load_leaf_frame(FIXTURES / "towns.topojson", crs="EPSG:4326")
    from_config = load_leaf_frame_from_config(
        InputConfig(geometry_path=str(FIXTURES / "towns.topojson"))
    )

    assert towns.crs == "EPSG:4326"
    assert from_config.crs == "EPSG:4326"

    path = tmp_path / "projected.geojson"
    gpd.GeoDataFrame(
        {"TOWN": ["A"]}, geometry=[box(0, 0, 1000, 1000)], crs="EPSG:3857"
    ).to_file(path, driver="GeoJSON")
    assert load_leaf_frame(path, crs="EPSG:4326").crs == "EPSG:3857"
