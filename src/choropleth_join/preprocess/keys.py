from __future__ import annotations

import math
import re
from functools import lru_cache
from typing import Any

import pandas as pd

from choropleth_join.config import NamesConfig

WHITESPACE_RE = re.compile(r"\s+")


@lru_cache(maxsize=8)
def _suffix_regex(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern, flags=re.IGNORECASE)


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    return pd.api.types.is_scalar(value) and bool(pd.isna(value))


def coerce_number(value: Any) -> float | None:
    """Return ``value`` as a finite float, or None when it is blank or not numeric."""
    if _is_missing(value) or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def group_key_string(value: Any) -> str | None:
    """String form used to bucket leaves; integral floats drop their ``.0``."""
    if _is_missing(value):
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def strip_region_suffix(value: Any, config: NamesConfig) -> str:
    if _is_missing(value):
        return ""
    text = WHITESPACE_RE.sub(" ", str(value)).strip()
    text = _suffix_regex(config.region_suffix_pattern).sub("", text)
    return text.strip()


def normalize_area_name(value: Any, config: NamesConfig) -> str:
    """Join key for area names: suffix stripped, trimmed, lower-cased."""
    return strip_region_suffix(value, config).lower()


def leaf_name_key(value: Any) -> str:
    if _is_missing(value):
        return ""
    return str(value).strip().lower()
