from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence

from app.schemas import ColumnMapping
from geo.config import MapperConfig

logger = logging.getLogger(__name__)


class LLMProvider(Protocol):
    def infer(self, prompt: str) -> dict:
        ...


PROMPT_TEMPLATE = (
    "Analyze the following spreadsheet headers and sample data.\n"
    "Identify which column(s) contain latitude and longitude coordinates.\n\n"
    "Headers: {headers}\n"
    "Sample Data (first {n} rows): {sample}\n\n"
    "Rules:\n"
    "1. Prefer {preferred} exactly if they are in the headers list.\n"
    "2. Otherwise look for common names such as: {synonyms}.\n"
    "3. If a single column holds combined coordinates (e.g. \"35.8, 14.4\"), use it for both.\n"
    "4. Return the exact header names as they appear in the headers list.\n\n"
    "Return STRICT JSON: {{\"latColumn\": \"<header>\", \"lngColumn\": \"<header>\"}}\n"
)


def _preferred_names(config: MapperConfig) -> str:
    lat = " / ".join(f'"{n}"' for n in config.lat_exact) or "(none)"
    lng = " / ".join(f'"{n}"' for n in config.lng_exact) or "(none)"
    return f"{lat} for latitude and {lng} for longitude"


def build_prompt(headers: Sequence[str], sample_rows: Sequence[Dict[str, Any]], config: MapperConfig) -> str:
    sample = list(sample_rows[: config.sample_rows])
    return PROMPT_TEMPLATE.format(
        headers=", ".join(headers),
        n=len(sample),
        sample=json.dumps(sample, ensure_ascii=False, default=str),
        preferred=_preferred_names(config),
        synonyms=", ".join(config.synonyms),
    )


def _pick(raw: Dict[str, Any], *keys: str) -> Any:
    for k in keys:
        if k in raw:
            return raw[k]
    return None


def validate_suggestion(raw: Any, headers: Sequence[str]) -> Optional[ColumnMapping]:
    """Accept an oracle answer only if both names are literally present in headers."""
    if not isinstance(raw, dict):
        return None
    lat = _pick(raw, "latColumn", "lat_column")
    lng = _pick(raw, "lngColumn", "lng_column")
    if not isinstance(lat, str) or not isinstance(lng, str) or not lat or not lng:
        return None
    known = set(headers)
    if lat not in known or lng not in known:
        return None
    return ColumnMapping(lat_column=lat, lng_column=lng)


def suggest_columns(
    headers: Sequence[str],
    sample_rows: Sequence[Dict[str, Any]],
    provider: LLMProvider,
    config: MapperConfig,
) -> Optional[ColumnMapping]:
    """Ask the provider for a mapping; None on any failure so the caller falls back."""
    prompt = build_prompt(headers, sample_rows, config)
    try:
        raw = provider.infer(prompt)
    except Exception as e:
        # Provider failures (network, auth, timeout, bad deployment) never reach the caller
        logger.warning("column oracle failed, using heuristics: %s", e)
        return None
    mapping = validate_suggestion(raw, headers)
    if mapping is None:
        logger.info("column oracle returned an unusable answer: %r", raw)
    return mapping


def sample_for_cache(headers: Sequence[str], sample_rows: Sequence[Dict[str, Any]], config: MapperConfig) -> List[Any]:
    """The exact inputs that shape the prompt, for use as a cache key."""
    return [list(headers), list(sample_rows[: config.sample_rows])]


__all__ = [
    "LLMProvider",
    "PROMPT_TEMPLATE",
    "build_prompt",
    "validate_suggestion",
    "suggest_columns",
    "sample_for_cache",
]
