from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Tuple

# Deployment-specific column conventions. Each list may be overridden with a
# comma-separated env var, e.g. MAPPER_LAT_EXACT="Latitude N,Lat (deg)".

DEFAULT_LAT_EXACT: Tuple[str, ...] = ("Latitude N",)
DEFAULT_LNG_EXACT: Tuple[str, ...] = ("Longitude E",)
DEFAULT_LAT_CONTAINS: Tuple[str, ...] = ("latitude",)
DEFAULT_LAT_EQUALS: Tuple[str, ...] = ("lat",)
DEFAULT_LNG_CONTAINS: Tuple[str, ...] = ("longitude",)
DEFAULT_LNG_EQUALS: Tuple[str, ...] = ("long", "lng")
DEFAULT_SYNONYMS: Tuple[str, ...] = ("lat", "gps", "y", "x", "long", "coordinates")
DEFAULT_SAMPLE_ROWS = 3
MAX_SAMPLE_ROWS = 5


@dataclass(frozen=True)
class MapperConfig:
    lat_exact: Tuple[str, ...] = DEFAULT_LAT_EXACT
    lng_exact: Tuple[str, ...] = DEFAULT_LNG_EXACT
    lat_contains: Tuple[str, ...] = DEFAULT_LAT_CONTAINS
    lat_equals: Tuple[str, ...] = DEFAULT_LAT_EQUALS
    lng_contains: Tuple[str, ...] = DEFAULT_LNG_CONTAINS
    lng_equals: Tuple[str, ...] = DEFAULT_LNG_EQUALS
    synonyms: Tuple[str, ...] = field(default=DEFAULT_SYNONYMS)
    sample_rows: int = DEFAULT_SAMPLE_ROWS

    def __post_init__(self) -> None:
        clamped = max(1, min(MAX_SAMPLE_ROWS, int(self.sample_rows)))
        object.__setattr__(self, "sample_rows", clamped)


def _env_list(key: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    raw = os.getenv(key)
    if raw is None:
        return default
    items = tuple(p.strip() for p in raw.split(",") if p.strip())
    return items or default


def _env_int(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def load_mapper_config() -> MapperConfig:
    return MapperConfig(
        lat_exact=_env_list("MAPPER_LAT_EXACT", DEFAULT_LAT_EXACT),
        lng_exact=_env_list("MAPPER_LNG_EXACT", DEFAULT_LNG_EXACT),
        lat_contains=_env_list("MAPPER_LAT_CONTAINS", DEFAULT_LAT_CONTAINS),
        lat_equals=_env_list("MAPPER_LAT_EQUALS", DEFAULT_LAT_EQUALS),
        lng_contains=_env_list("MAPPER_LNG_CONTAINS", DEFAULT_LNG_CONTAINS),
        lng_equals=_env_list("MAPPER_LNG_EQUALS", DEFAULT_LNG_EQUALS),
        synonyms=_env_list("MAPPER_SYNONYMS", DEFAULT_SYNONYMS),
        sample_rows=_env_int("ORACLE_SAMPLE_ROWS", DEFAULT_SAMPLE_ROWS),
    )


__all__ = ["MapperConfig", "load_mapper_config", "MAX_SAMPLE_ROWS"]
