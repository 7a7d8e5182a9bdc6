from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from choropleth_join.config import NamesConfig
from choropleth_join.models import Region, SeriesIndex, TimeSeries
from choropleth_join.preprocess.keys import normalize_area_name

ResolvedVia = Literal["id", "name"]


def value_for_year(series: TimeSeries | None, year: float) -> float | None:
    """Exact-year lookup; the first point wins when a year repeats."""
    if series is None:
        return None
    for point in series:
        if point.year == year:
            return point.value
    return None


@dataclass(frozen=True)
class SeriesResolver:
    """Bind regions to series: numeric join key first, normalized name second."""

    index: SeriesIndex
    names: NamesConfig

    def resolve_with_source(self, region: Region) -> tuple[TimeSeries | None, ResolvedVia | None]:
        if region.join_key is not None:
            series = self.index.by_numeric_key.get(region.join_key)
            if series is not None:
                return series, "id"
        name_key = normalize_area_name(region.display_name, self.names)
        if name_key:
            series = self.index.by_normalized_name.get(name_key)
            if series is not None:
                return series, "name"
        return None, None

    def resolve(self, region: Region) -> TimeSeries | None:
        return self.resolve_with_source(region)[0]

    def resolve_value(self, region: Region, year: float) -> float | None:
        return value_for_year(self.resolve(region), year)
