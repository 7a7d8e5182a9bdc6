from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import geopandas as gpd
import pandas as pd

EMPTY_FEATURE_COLLECTION = {"type": "FeatureCollection", "features": []}


def _attribute_frame(df: pd.DataFrame) -> pd.DataFrame:
    if isinstance(df, gpd.GeoDataFrame):
        return pd.DataFrame(df.drop(columns=df.geometry.name))
    return df


def write_table(df: pd.DataFrame, path: Path, fmt: str = "parquet") -> Path:
    """Write attribute columns only; geometry goes through ``write_geojson``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    table = _attribute_frame(df)
    if fmt == "parquet":
        table.to_parquet(path, index=False)
        return path
    if fmt == "csv":
        table.to_csv(path, index=False)
        return path
    raise ValueError(f"Unsupported table format: {fmt}")


def write_geojson(frame: gpd.GeoDataFrame, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.unlink(missing_ok=True)
    if frame.empty:
        path.write_text(json.dumps(EMPTY_FEATURE_COLLECTION), encoding="utf-8")
        return path
    frame.to_file(path, driver="GeoJSON")
    return path


def write_summary(data: dict[str, Any], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, sort_keys=True, default=str), encoding="utf-8")
    return path
