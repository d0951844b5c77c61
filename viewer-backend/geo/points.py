from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from app.schemas import ColumnMapping, PlotPoint
from geo.cells import Row, cell_text
from geo.normalizer import normalize

logger = logging.getLogger(__name__)

LAT_RANGE = (-90.0, 90.0)
LNG_RANGE = (-180.0, 180.0)

_COMBINED_SPLIT_RE = re.compile(r"[,;\s]+")

# Drop reasons
EMPTY = "empty"
UNPARSABLE = "unparsable"
OUT_OF_RANGE = "out_of_range"
NULL_ISLAND = "null_island"
DROP_REASONS = (EMPTY, UNPARSABLE, OUT_OF_RANGE, NULL_ISLAND)


@dataclass(frozen=True)
class PointOutcome:
    point: Optional[PlotPoint]
    reason: Optional[str] = None  # None when the row produced a point


def split_combined(text: str) -> List[str]:
    """Split a 'lat, lng' style cell on runs of comma/semicolon/whitespace."""
    return [p for p in _COMBINED_SPLIT_RE.split(text) if p]


def _raw_pair(row: Row, mapping: ColumnMapping) -> Optional[Tuple[object, object]]:
    if mapping.is_combined:
        parts = split_combined(cell_text(row.get(mapping.lat_column)))
        if len(parts) < 2:
            return None
        return parts[0], parts[1]
    return row.get(mapping.lat_column), row.get(mapping.lng_column)


def _is_blank(value: object) -> bool:
    return value is None or cell_text(value).strip() == ""


def in_range(lat: float, lng: float) -> bool:
    return LAT_RANGE[0] <= lat <= LAT_RANGE[1] and LNG_RANGE[0] <= lng <= LNG_RANGE[1]


def classify_row(row: Row, mapping: ColumnMapping) -> PointOutcome:
    """Turn one row into a PlotPoint, or say why it cannot be plotted."""
    pair = _raw_pair(row, mapping)
    if pair is None:
        cell = row.get(mapping.lat_column)
        return PointOutcome(None, EMPTY if _is_blank(cell) else UNPARSABLE)
    raw_lat, raw_lng = pair
    if _is_blank(raw_lat) and _is_blank(raw_lng):
        return PointOutcome(None, EMPTY)

    lat = normalize(raw_lat)
    lng = normalize(raw_lng)
    if lat is None or lng is None:
        return PointOutcome(None, UNPARSABLE)
    if not in_range(lat, lng):
        return PointOutcome(None, OUT_OF_RANGE)
    if lat == 0 and lng == 0:
        return PointOutcome(None, NULL_ISLAND)
    return PointOutcome(PlotPoint(lat=lat, lng=lng, source_row=dict(row)))


def mapping_usable(mapping: Optional[ColumnMapping], headers: Optional[Sequence[str]] = None) -> bool:
    if mapping is None or mapping.is_empty:
        return False
    if headers is not None:
        known = set(headers)
        if mapping.lat_column not in known or mapping.lng_column not in known:
            logger.info(
                "mapping references missing header(s): lat=%s lng=%s",
                mapping.lat_column,
                mapping.lng_column,
            )
            return False
    return True


def build_points(
    rows: Iterable[Row],
    mapping: Optional[ColumnMapping],
    headers: Optional[Sequence[str]] = None,
) -> List[PlotPoint]:
    """Build the plottable points for rows under mapping.

    Rows that do not yield a valid, non-(0,0) coordinate pair are skipped
    silently; spreadsheet noise is expected, not an error. Output keeps input
    order and is rebuilt from scratch on every call.
    """
    if not mapping_usable(mapping, headers):
        return []
    assert mapping is not None
    points: List[PlotPoint] = []
    dropped: Counter = Counter()
    for row in rows:
        outcome = classify_row(row, mapping)
        if outcome.point is not None:
            points.append(outcome.point)
        else:
            dropped[outcome.reason] += 1
    if dropped:
        logger.debug("skipped %d row(s): %s", sum(dropped.values()), dict(dropped))
    return points


__all__ = [
    "PointOutcome",
    "DROP_REASONS",
    "split_combined",
    "classify_row",
    "mapping_usable",
    "build_points",
    "in_range",
]
