from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, Optional, Sequence, Tuple

from app.schemas import ColumnMapping
from geo.config import MapperConfig, load_mapper_config
from suggest.llm_fallback import LLMProvider, suggest_columns

logger = logging.getLogger(__name__)

MappingSource = str  # "oracle" | "heuristic" | "empty"


def _first(headers: Sequence[str], pred: Callable[[str], bool]) -> Optional[str]:
    for h in headers:
        if pred(h):
            return h
    return None


def _lowered(names: Iterable[str]) -> Tuple[str, ...]:
    return tuple(n.lower() for n in names)


def pick_lat_column(headers: Sequence[str], config: MapperConfig) -> str:
    exact = _lowered(config.lat_exact)
    contains = _lowered(config.lat_contains)
    equals = _lowered(config.lat_equals)
    return (
        _first(headers, lambda h: h.lower() in exact)
        or _first(headers, lambda h: any(c in h.lower() for c in contains))
        or _first(headers, lambda h: h.lower() in equals)
        or headers[0]
    )


def pick_lng_column(headers: Sequence[str], config: MapperConfig) -> str:
    exact = _lowered(config.lng_exact)
    contains = _lowered(config.lng_contains)
    equals = _lowered(config.lng_equals)
    return (
        _first(headers, lambda h: h.lower() in exact)
        or _first(headers, lambda h: any(c in h.lower() for c in contains) or h.lower() in equals)
        or (headers[1] if len(headers) > 1 else headers[0])
    )


def heuristic_columns(headers: Sequence[str], config: Optional[MapperConfig] = None) -> ColumnMapping:
    """Deterministic name matching; degenerates to headers[0]/headers[1]."""
    if not headers:
        return ColumnMapping(lat_column="", lng_column="")
    cfg = config or load_mapper_config()
    return ColumnMapping(lat_column=pick_lat_column(headers, cfg), lng_column=pick_lng_column(headers, cfg))


def resolve_columns(
    headers: Sequence[str],
    sample_rows: Sequence[Dict[str, Any]],
    provider: Optional[LLMProvider] = None,
    config: Optional[MapperConfig] = None,
) -> Tuple[ColumnMapping, MappingSource]:
    """Oracle first (if configured and trustworthy), heuristics otherwise."""
    headers = list(headers)
    if not headers:
        return ColumnMapping(lat_column="", lng_column=""), "empty"
    cfg = config or load_mapper_config()
    if provider is not None:
        suggested = suggest_columns(headers, sample_rows, provider, cfg)
        if suggested is not None:
            return suggested, "oracle"
    mapping = heuristic_columns(headers, cfg)
    logger.debug("heuristic column mapping: lat=%s lng=%s", mapping.lat_column, mapping.lng_column)
    return mapping, "heuristic"


def identify_columns(
    headers: Sequence[str],
    sample_rows: Sequence[Dict[str, Any]],
    provider: Optional[LLMProvider] = None,
    config: Optional[MapperConfig] = None,
) -> ColumnMapping:
    mapping, _source = resolve_columns(headers, sample_rows, provider=provider, config=config)
    return mapping


__all__ = [
    "heuristic_columns",
    "resolve_columns",
    "identify_columns",
    "pick_lat_column",
    "pick_lng_column",
]
