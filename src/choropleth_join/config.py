from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

# ColorBrewer Blues, 7 classes.
BLUES_7 = [
    "#eff3ff",
    "#c6dbef",
    "#9ecae1",
    "#6baed6",
    "#4292c6",
    "#2171b5",
    "#084594",
]


class ColumnsConfig(BaseModel):
    leaf_id: str | None = None
    leaf_name: str = "TOWN"
    group_key: str = "FIPS_STCO"
    population_a: str = "POP1980"
    population_b: str = "POP2010"
    area_name: str = "Geographic Area Name"
    area_id: str = "id"
    value: str = "Estimate!!Gini Index"
    year: str = "year"


class GeometryConfig(BaseModel):
    region_name_fields: list[str] = Field(default_factory=lambda: ["COUNTYNAME", "COUNTY"])
    fallback_region_name: str = "County"
    grid_size: float | None = Field(default=None, gt=0.0)


class NamesConfig(BaseModel):
    region_suffix_pattern: str = r",\s*Massachusetts$"


class ScalesConfig(BaseModel):
    quantize_colors: list[str] = Field(default_factory=lambda: list(BLUES_7), min_length=1)
    diverging_cmap: str = "RdBu"
    sequential_cmap: str = "turbo"
    reference_year: int = 2019
    fallback_domain: tuple[float, float] = (0.0, 1.0)
    unknown_color: str = "#303b78"

    @field_validator("fallback_domain")
    @classmethod
    def _ordered_domain(cls, value: tuple[float, float]) -> tuple[float, float]:
        low, high = value
        if low > high:
            raise ValueError("fallback_domain must be ordered (low, high)")
        return value


class InputConfig(BaseModel):
    geometry_path: str | None = None
    geometry_layer: str | None = None
    # Assigned when the source carries no CRS (GDAL reads TopoJSON without one).
    geometry_crs: str | None = "EPSG:4326"
    table_path: str | None = None


class OutputsConfig(BaseModel):
    tables_format: Literal["parquet", "csv"] = "csv"
    figures_format: str = "png"
    render_figures: bool = True
    # Albers equal-area for the conterminous US.
    map_crs: str | None = "EPSG:5070"


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    columns: ColumnsConfig = Field(default_factory=ColumnsConfig)
    geometry: GeometryConfig = Field(default_factory=GeometryConfig)
    names: NamesConfig = Field(default_factory=NamesConfig)
    scales: ScalesConfig = Field(default_factory=ScalesConfig)
    input: InputConfig = Field(default_factory=InputConfig)
    outputs: OutputsConfig = Field(default_factory=OutputsConfig)


DEFAULT_CONFIG_PATH = Path("configs/default.yaml")


def _resolve_optional_path(path_value: str | None, base_dir: Path) -> str | None:
    if not path_value:
        return None
    candidate = Path(path_value)
    if candidate.is_absolute():
        return str(candidate)
    return str((base_dir / candidate).resolve())


def load_config(path: Path) -> AppConfig:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    config = AppConfig.model_validate(data)
    base_dir = path.resolve().parent

    config.input.geometry_path = _resolve_optional_path(
        config.input.geometry_path or os.getenv("CHOROPLETH_GEOMETRY_PATH"),
        base_dir,
    )
    config.input.table_path = _resolve_optional_path(
        config.input.table_path or os.getenv("CHOROPLETH_TABLE_PATH"),
        base_dir,
    )
    return config
