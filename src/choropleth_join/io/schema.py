from __future__ import annotations

from dataclasses import dataclass

import pandas as pd

from choropleth_join.config import ColumnsConfig


@dataclass(frozen=True)
class CanonicalColumns:
    area_name: str = "area_name"
    area_id: str = "area_id"
    year: str = "year"
    value: str = "value"


def normalize_columns(df: pd.DataFrame, columns: ColumnsConfig) -> pd.DataFrame:
    """Rename table source columns to the canonical names used by the indexer."""
    rename_map = {
        columns.area_name: CanonicalColumns.area_name,
        columns.area_id: CanonicalColumns.area_id,
        columns.year: CanonicalColumns.year,
        columns.value: CanonicalColumns.value,
    }
    missing = [source for source in rename_map if source not in df.columns]
    if missing:
        missing_str = ", ".join(missing)
        raise ValueError(f"Missing required columns in table: {missing_str}")
    renamed = df.rename(columns=rename_map)
    return renamed[list(rename_map.values())]
