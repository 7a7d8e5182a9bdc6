from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from choropleth_join.config import AppConfig
from choropleth_join.io.schema import normalize_columns
from choropleth_join.models import TimeSeriesRow

LOGGER = logging.getLogger(__name__)


def load_table(path: Path) -> pd.DataFrame:
    if path.suffix == ".parquet":
        return pd.read_parquet(path)
    if path.suffix == ".csv":
        # utf-8-sig strips BOM-prefixed headers commonly found in exported CSV files.
        # Cells stay as text; numeric coercion happens per column in the indexer.
        return pd.read_csv(path, encoding="utf-8-sig", dtype=str, keep_default_na=False)
    raise ValueError(f"Unsupported table file type: {path.suffix}")


def load_series_table(path: Path | None, config: AppConfig) -> pd.DataFrame:
    """Load the long-format table and return canonical columns."""
    if path is None:
        raise ValueError("input.table_path is required")
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Table source not found: {path}")
    frame = normalize_columns(df=load_table(path), columns=config.columns)
    LOGGER.info("Loaded %d table rows from %s", len(frame), path.name)
    return frame


def rows_from_frame(frame: pd.DataFrame) -> list[TimeSeriesRow]:
    return [
        TimeSeriesRow(
            area_id=record["area_id"],
            area_name=record["area_name"],
            year=record["year"],
            value=record["value"],
        )
        for record in frame.to_dict(orient="records")
    ]
