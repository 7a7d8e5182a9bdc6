"""Value-to-colour scales for the three map styles.

Each scale fixes its domain when built and is a plain callable afterwards.
Non-finite or missing input maps to the scale's ``unknown`` colour.
"""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field
from typing import Any, Iterable

import numpy as np
import pandas as pd
from matplotlib import colormaps
from matplotlib.colors import Colormap, Normalize, TwoSlopeNorm, to_hex

from choropleth_join.config import BLUES_7, ScalesConfig
from choropleth_join.preprocess.keys import coerce_number

DEFAULT_UNKNOWN_COLOR = "#303b78"
DEFAULT_FALLBACK_DOMAIN = (0.0, 1.0)


def finite_values(values: Iterable[Any]) -> np.ndarray:
    array = pd.to_numeric(pd.Series(list(values), dtype=object), errors="coerce").to_numpy(
        dtype=float
    )
    return array[np.isfinite(array)]


def extent(
    values: Iterable[Any], fallback: tuple[float, float] = DEFAULT_FALLBACK_DOMAIN
) -> tuple[float, float]:
    finite = finite_values(values)
    if finite.size == 0:
        return (float(fallback[0]), float(fallback[1]))
    return (float(finite.min()), float(finite.max()))


@dataclass(frozen=True)
class QuantizeScale:
    """Equal-width buckets over ``domain``, one colour each; clamps outside."""

    domain: tuple[float, float]
    colors: tuple[str, ...] = tuple(BLUES_7)
    unknown: str = DEFAULT_UNKNOWN_COLOR
    thresholds: tuple[float, ...] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.colors:
            raise ValueError("QuantizeScale needs at least one colour")
        low, high = self.domain
        count = len(self.colors)
        thresholds = tuple(
            float(edge) for edge in np.linspace(low, high, count + 1)[1:-1]
        )
        object.__setattr__(self, "colors", tuple(self.colors))
        object.__setattr__(self, "thresholds", thresholds)

    @classmethod
    def from_values(
        cls,
        values: Iterable[Any],
        colors: Iterable[str] = BLUES_7,
        *,
        fallback_domain: tuple[float, float] = DEFAULT_FALLBACK_DOMAIN,
        unknown: str = DEFAULT_UNKNOWN_COLOR,
    ) -> QuantizeScale:
        return cls(domain=extent(values, fallback_domain), colors=tuple(colors), unknown=unknown)

    def bucket(self, value: Any) -> int | None:
        number = coerce_number(value)
        if number is None:
            return None
        return bisect_right(self.thresholds, number)

    def __call__(self, value: Any) -> str:
        index = self.bucket(value)
        if index is None:
            return self.unknown
        return self.colors[index]

    def bucket_edges(self) -> list[tuple[float, float]]:
        low, high = self.domain
        edges = [low, *self.thresholds, high]
        return list(zip(edges[:-1], edges[1:]))


@dataclass(frozen=True)
class _ContinuousScale:
    cmap_name: str = "viridis"
    unknown: str = DEFAULT_UNKNOWN_COLOR
    norm: Normalize = field(init=False, repr=False, compare=False)
    cmap: Colormap = field(init=False, repr=False, compare=False)

    def _build_norm(self) -> Normalize:
        raise NotImplementedError

    def __post_init__(self) -> None:
        object.__setattr__(self, "cmap", colormaps[self.cmap_name])
        object.__setattr__(self, "norm", self._build_norm())

    def position(self, value: Any) -> float | None:
        number = coerce_number(value)
        if number is None:
            return None
        return float(np.clip(self.norm(number), 0.0, 1.0))

    def __call__(self, value: Any) -> str:
        position = self.position(value)
        if position is None:
            return self.unknown
        return to_hex(self.cmap(position))


@dataclass(frozen=True)
class DivergingScale(_ContinuousScale):
    """Symmetric domain ``[-M, 0, M]`` around the colormap midpoint."""

    max_abs: float = 1.0

    def _build_norm(self) -> Normalize:
        return TwoSlopeNorm(vmin=-self.max_abs, vcenter=0.0, vmax=self.max_abs)

    @property
    def domain(self) -> tuple[float, float, float]:
        return (-self.max_abs, 0.0, self.max_abs)

    @classmethod
    def from_values(
        cls,
        values: Iterable[Any],
        cmap: str = "RdBu",
        *,
        unknown: str = DEFAULT_UNKNOWN_COLOR,
    ) -> DivergingScale:
        finite = finite_values(values)
        max_abs = float(np.abs(finite).max()) if finite.size else 0.0
        # An all-zero or empty set would give a zero-width domain.
        return cls(cmap_name=cmap, unknown=unknown, max_abs=max_abs or 1.0)


@dataclass(frozen=True)
class SequentialScale(_ContinuousScale):
    """Continuous ``[min, max]`` mapping; clamps outside the domain."""

    domain: tuple[float, float] = DEFAULT_FALLBACK_DOMAIN

    def _build_norm(self) -> Normalize:
        low, high = self.domain
        return Normalize(vmin=low, vmax=high, clip=True)

    def position(self, value: Any) -> float | None:
        low, high = self.domain
        if low != high:
            return super().position(value)
        # Zero-width domain (one observed value): every finite value sits at the midpoint.
        return None if coerce_number(value) is None else 0.5

    @classmethod
    def from_values(
        cls,
        values: Iterable[Any],
        cmap: str = "turbo",
        *,
        fallback_domain: tuple[float, float] = DEFAULT_FALLBACK_DOMAIN,
        unknown: str = DEFAULT_UNKNOWN_COLOR,
    ) -> SequentialScale:
        return cls(cmap_name=cmap, unknown=unknown, domain=extent(values, fallback_domain))


@dataclass(frozen=True)
class MapScales:
    population: QuantizeScale
    change: DivergingScale
    reference: SequentialScale


def build_map_scales(
    population_values: Iterable[Any],
    change_values: Iterable[Any],
    reference_values: Iterable[Any],
    config: ScalesConfig,
) -> MapScales:
    return MapScales(
        population=QuantizeScale.from_values(
            population_values,
            config.quantize_colors,
            fallback_domain=config.fallback_domain,
            unknown=config.unknown_color,
        ),
        change=DivergingScale.from_values(
            change_values, config.diverging_cmap, unknown=config.unknown_color
        ),
        reference=SequentialScale.from_values(
            reference_values,
            config.sequential_cmap,
            fallback_domain=config.fallback_domain,
            unknown=config.unknown_color,
        ),
    )
