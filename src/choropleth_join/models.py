from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterator, Mapping

from shapely.geometry.base import BaseGeometry


def _frozen_mapping(value: Mapping[Any, Any]) -> Mapping[Any, Any]:
    if isinstance(value, MappingProxyType):
        return value
    return MappingProxyType(dict(value))


@dataclass(frozen=True)
class LeafFeature:
    """Smallest mapped unit (a town) with its own polygon and attributes."""

    feature_id: str
    name: str
    group_key: Any
    population_a: float
    population_b: float
    geometry: BaseGeometry
    properties: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "properties", _frozen_mapping(self.properties))

    @property
    def population_change(self) -> float:
        return self.population_b - self.population_a


@dataclass(frozen=True)
class Region:
    """Merged polygon for every leaf sharing one group key."""

    key: str
    join_key: float | None
    display_name: str
    geometry: BaseGeometry
    member_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class TimeSeriesRow:
    area_id: Any
    area_name: Any
    year: Any
    value: Any


@dataclass(frozen=True)
class SeriesPoint:
    year: float
    value: float


@dataclass(frozen=True)
class TimeSeries:
    """Observations for one entity, ascending by year.

    Duplicate years are kept in arrival order.
    """

    points: tuple[SeriesPoint, ...]

    def __post_init__(self) -> None:
        if not self.points:
            raise ValueError("TimeSeries requires at least one point")

    def __iter__(self) -> Iterator[SeriesPoint]:
        return iter(self.points)

    def __len__(self) -> int:
        return len(self.points)

    @property
    def years(self) -> list[float]:
        return [point.year for point in self.points]

    @property
    def values(self) -> list[float]:
        return [point.value for point in self.points]

    def as_pairs(self) -> list[tuple[float, float]]:
        return [(point.year, point.value) for point in self.points]


@dataclass(frozen=True)
class SeriesIndex:
    by_numeric_key: Mapping[float, TimeSeries]
    by_normalized_name: Mapping[str, TimeSeries]
    rows_read: int = 0
    rows_dropped: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "by_numeric_key", _frozen_mapping(self.by_numeric_key))
        object.__setattr__(self, "by_normalized_name", _frozen_mapping(self.by_normalized_name))
