from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import geopandas as gpd
import pandas as pd

from choropleth_join.config import AppConfig
from choropleth_join.io.geometry import load_leaf_frame_from_config
from choropleth_join.io.read import load_series_table

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class LoadedInputs:
    leaf_frame: gpd.GeoDataFrame
    table: pd.DataFrame


def load_inputs(config: AppConfig) -> LoadedInputs:
    """Read the geometry and table sources in parallel.

    Both must succeed; the first failure is re-raised and nothing is built.
    """
    table_path = config.input.table_path
    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="load") as executor:
        geometry_future = executor.submit(load_leaf_frame_from_config, config.input)
        table_future = executor.submit(load_series_table, table_path, config)
        try:
            leaf_frame = geometry_future.result()
            table = table_future.result()
        except Exception:
            LOGGER.error("Input load failed; aborting run")
            raise
    return LoadedInputs(leaf_frame=leaf_frame, table=table)
