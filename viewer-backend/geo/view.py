from __future__ import annotations

import os
import re
from typing import Collection, Iterable, List, Optional, Sequence, Tuple

from app.schemas import PlotPoint, StyleRule
from geo.cells import Row, cell_text, find_key

DEFAULT_COLOR = "#CC0000"
SELECTED_COLOR = "#000000"
UNKNOWN_CATEGORY = "Unknown"
DEFAULT_TITLE = "Location Details"

FILTER_KEYWORDS: Tuple[str, ...] = ("type", "installation type", "category", "status", "installation")
DEFAULT_LABEL_FIELD = "Latento"

_NUMERIC_PART_RE = re.compile(r"[^0-9.\-]")
_LEADING_NUMBER_RE = re.compile(r"^-?(?:\d+(?:\.\d*)?|\.\d+)")


def filter_keywords_from_env() -> Tuple[str, ...]:
    raw = os.getenv("FILTER_KEYWORDS")
    if not raw:
        return FILTER_KEYWORDS
    items = tuple(p.strip().lower() for p in raw.split(",") if p.strip())
    return items or FILTER_KEYWORDS


def label_field_from_env() -> str:
    return os.getenv("LABEL_FIELD", DEFAULT_LABEL_FIELD) or DEFAULT_LABEL_FIELD


def detect_filter_column(headers: Sequence[str], keywords: Sequence[str] = FILTER_KEYWORDS) -> Optional[str]:
    for h in headers:
        low = h.lower()
        if any(k in low for k in keywords):
            return h
    return None


def category_of(row: Row, column: str) -> str:
    text = cell_text(row.get(column))
    return text if text else UNKNOWN_CATEGORY


def category_values(rows: Iterable[Row], column: Optional[str]) -> List[str]:
    """Sorted distinct categories for the filter chips; empty cells read as 'Unknown'."""
    if not column:
        return []
    values = {category_of(r, column) for r in rows}
    return sorted(v for v in values if v.strip())


def filter_points(
    points: Sequence[PlotPoint],
    column: Optional[str],
    selected: Collection[str],
) -> List[PlotPoint]:
    """Derived view over points; the input list is never modified."""
    if not column:
        return list(points)
    chosen = set(selected)
    return [p for p in points if category_of(p.source_row, column) in chosen]


def marker_color(point: PlotPoint, rule: Optional[StyleRule], selected: Optional[PlotPoint] = None) -> str:
    if selected is not None and selected == point:
        return SELECTED_COLOR
    if rule is None or not rule.column:
        return DEFAULT_COLOR
    return rule.color_map.get(cell_text(point.source_row.get(rule.column)), DEFAULT_COLOR)


def point_title(row: Row) -> str:
    key = find_key(row, "project")
    if key is not None:
        return cell_text(row[key])
    for value in row.values():
        return cell_text(value)
    return DEFAULT_TITLE


def label_value(row: Row, label_field: str = DEFAULT_LABEL_FIELD) -> str:
    key = find_key(row, label_field)
    return cell_text(row[key]) if key is not None else ""


def _numeric_part(text: str) -> Optional[float]:
    m = _LEADING_NUMBER_RE.match(_NUMERIC_PART_RE.sub("", text))
    return float(m.group(0)) if m else None


def cluster_label(points: Sequence[PlotPoint], label_field: str = DEFAULT_LABEL_FIELD) -> str:
    """Text shown on a cluster bubble.

    Sum of the numeric label field across the clustered points; integral sums
    print without decimals, others with one. Falls back to the point count when
    no point carries a numeric label.
    """
    total = 0.0
    has_numeric = False
    for p in points:
        text = label_value(p.source_row, label_field)
        if not text:
            continue
        num = _numeric_part(text)
        if num is not None:
            total += num
            has_numeric = True
    if not has_numeric:
        return str(len(points))
    if total.is_integer():
        return str(int(total))
    return f"{total:.1f}"


__all__ = [
    "DEFAULT_COLOR",
    "SELECTED_COLOR",
    "FILTER_KEYWORDS",
    "detect_filter_column",
    "category_values",
    "filter_points",
    "marker_color",
    "point_title",
    "label_value",
    "cluster_label",
    "filter_keywords_from_env",
    "label_field_from_env",
]
