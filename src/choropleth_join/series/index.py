from __future__ import annotations

import logging
from typing import Iterable

import pandas as pd

from choropleth_join.config import NamesConfig
from choropleth_join.io.schema import CanonicalColumns
from choropleth_join.models import SeriesIndex, SeriesPoint, TimeSeries, TimeSeriesRow
from choropleth_join.preprocess.keys import coerce_number, normalize_area_name

LOGGER = logging.getLogger(__name__)

INDEX_COLUMNS = [
    CanonicalColumns.area_id,
    CanonicalColumns.area_name,
    CanonicalColumns.year,
    CanonicalColumns.value,
]


def _coerced(column: pd.Series) -> pd.Series:
    return pd.to_numeric(column.map(coerce_number), errors="coerce")


def _prepare_rows(frame: pd.DataFrame, config: NamesConfig) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "id_key": _coerced(frame[CanonicalColumns.area_id]),
            "name_key": frame[CanonicalColumns.area_name].map(
                lambda value: normalize_area_name(value, config)
            ),
            "year": _coerced(frame[CanonicalColumns.year]),
            "value": _coerced(frame[CanonicalColumns.value]),
        },
        index=frame.index,
    )


def _group_series(rows: pd.DataFrame, key_column: str) -> dict:
    """Group rows per key (first-seen order) and sort each group once by year.

    The sort is stable, so rows sharing a year keep their arrival order.
    """
    series: dict = {}
    for key, group in rows.groupby(key_column, sort=False):
        ordered = group.sort_values("year", kind="stable")
        if hasattr(key, "item"):
            key = key.item()
        series[key] = TimeSeries(
            points=tuple(
                SeriesPoint(year=float(year), value=float(value))
                for year, value in zip(ordered["year"], ordered["value"])
            )
        )
    return series


def build_series_index_from_frame(frame: pd.DataFrame, config: NamesConfig) -> SeriesIndex:
    """Build the numeric-id and normalized-name indices from a canonical table.

    Rows whose year or value is not a finite number are dropped before grouping.
    A row feeds the id index when its id is numeric and the name index when its
    normalized name is non-empty; the two are independent.
    """
    missing = [column for column in INDEX_COLUMNS if column not in frame.columns]
    if missing:
        raise ValueError(f"Series table missing column: {', '.join(missing)}")

    prepared = _prepare_rows(frame, config)
    valid = prepared[prepared["year"].notna() & prepared["value"].notna()]
    dropped = len(prepared) - len(valid)
    if dropped:
        LOGGER.info("Dropped %d table rows without a numeric year and value", dropped)

    by_numeric_key = _group_series(valid[valid["id_key"].notna()], "id_key")
    by_normalized_name = _group_series(valid[valid["name_key"] != ""], "name_key")
    LOGGER.info(
        "Indexed %d series by id and %d by name",
        len(by_numeric_key),
        len(by_normalized_name),
    )
    return SeriesIndex(
        by_numeric_key=by_numeric_key,
        by_normalized_name=by_normalized_name,
        rows_read=len(prepared),
        rows_dropped=dropped,
    )


def build_series_index(rows: Iterable[TimeSeriesRow], config: NamesConfig) -> SeriesIndex:
    frame = pd.DataFrame(
        [
            {
                CanonicalColumns.area_id: row.area_id,
                CanonicalColumns.area_name: row.area_name,
                CanonicalColumns.year: row.year,
                CanonicalColumns.value: row.value,
            }
            for row in rows
        ],
        columns=INDEX_COLUMNS,
    )
    return build_series_index_from_frame(frame, config)
