from __future__ import annotations

import pandas as pd
import pytest

from choropleth_join.config import NamesConfig
from choropleth_join.models import TimeSeries, TimeSeriesRow
from choropleth_join.series.index import build_series_index, build_series_index_from_frame


def _hampden_rows() -> list[TimeSeriesRow]:
    return [
        TimeSeriesRow(25013, "Hampden County, Massachusetts", 2019, 0.47),
        TimeSeriesRow(25013, "Hampden County, Massachusetts", 2018, 0.46),
    ]


def test_build_series_index_sorts_by_year_and_fills_both_indices() -> None:
    index = build_series_index(_hampden_rows(), NamesConfig())

    assert index.by_numeric_key[25013].as_pairs() == [(2018.0, 0.46), (2019.0, 0.47)]
    assert index.by_normalized_name["hampden county"].as_pairs() == [
        (2018.0, 0.46),
        (2019.0, 0.47),
    ]
    assert index.rows_read == 2
    assert index.rows_dropped == 0


def test_rows_without_finite_year_or_value_are_dropped_entirely() -> None:
    rows = [
        TimeSeriesRow("25013", "Hampden County, Massachusetts", "2019", "0.47"),
        TimeSeriesRow("25013", "Hampden County, Massachusetts", "", "0.50"),
        TimeSeriesRow("25013", "Hampden County, Massachusetts", "2017", ""),
        TimeSeriesRow("25015", "Hampshire County, Massachusetts", "n/a", "0.44"),
        TimeSeriesRow("25015", "Hampshire County, Massachusetts", "2019", "inf"),
    ]

    index = build_series_index(rows, NamesConfig())

    assert index.by_numeric_key[25013].as_pairs() == [(2019.0, 0.47)]
    assert 25015 not in index.by_numeric_key
    assert "hampshire county" not in index.by_normalized_name
    assert index.rows_dropped == 4


def test_id_and_name_indices_are_filled_independently() -> None:
    rows = [
        TimeSeriesRow("", "Berkshire County, Massachusetts", 2019, 0.45),
        TimeSeriesRow(25027, "", 2019, 0.48),
        TimeSeriesRow(None, None, 2019, 0.50),
    ]

    index = build_series_index(rows, NamesConfig())

    assert list(index.by_numeric_key) == [25027]
    assert list(index.by_normalized_name) == ["berkshire county"]
    assert index.rows_dropped == 0


def test_duplicate_years_are_kept_in_arrival_order() -> None:
    rows = [
        TimeSeriesRow(1, "A", 2019, 1.0),
        TimeSeriesRow(1, "A", 2018, 5.0),
        TimeSeriesRow(1, "A", 2019, 2.0),
    ]

    series = build_series_index(rows, NamesConfig()).by_numeric_key[1]

    assert series.as_pairs() == [(2018.0, 5.0), (2019.0, 1.0), (2019.0, 2.0)]


def test_both_indices_hold_identical_content_for_the_same_entity() -> None:
    rows = [
        TimeSeriesRow(25013, "Hampden County, Massachusetts", year, value)
        for year, value in [(2015, 0.45), (2012, 0.44), (2019, 0.47)]
    ]
    index = build_series_index(rows, NamesConfig())

    assert index.by_numeric_key[25013] == index.by_normalized_name["hampden county"]


def test_index_build_is_idempotent_and_read_only() -> None:
    first = build_series_index(_hampden_rows(), NamesConfig())
    second = build_series_index(_hampden_rows(), NamesConfig())

    assert dict(first.by_numeric_key) == dict(second.by_numeric_key)
    assert dict(first.by_normalized_name) == dict(second.by_normalized_name)
    with pytest.raises(TypeError):
        first.by_numeric_key[1] = first.by_numeric_key[25013]  # type: ignore[index]


def test_build_series_index_from_frame_reads_text_cells() -> None:
    frame = pd.DataFrame(
        {
            "area_id": ["25013", "25013", "x"],
            "area_name": ["Hampden County, Massachusetts"] * 2 + ["Franklin County, Massachusetts"],
            "year": ["2019", "2018", "2019"],
            "value": ["0.47", "0.46", "0.43"],
        }
    )

    index = build_series_index_from_frame(frame, NamesConfig())

    assert index.by_numeric_key[25013].values == [0.46, 0.47]
    assert index.by_normalized_name["franklin county"].years == [2019.0]
    assert list(index.by_numeric_key) == [25013]


def test_build_series_index_from_frame_requires_canonical_columns() -> None:
    frame = pd.DataFrame({"area_id": [1], "year": [2019], "value": [0.4]})

    with pytest.raises(ValueError, match="area_name"):
        build_series_index_from_frame(frame, NamesConfig())


def test_empty_time_series_is_rejected() -> None:
    with pytest.raises(ValueError):
        TimeSeries(points=())
