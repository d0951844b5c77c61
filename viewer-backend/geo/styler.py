from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence

from app.schemas import StyleRule
from geo.cells import Row, cell_text

DEFAULT_PALETTE: List[str] = [
    "#CC0000", "#000000", "#444444", "#777777", "#999999",
    "#BB0000", "#222222", "#660000", "#333333", "#AA0000",
]


def distinct_values(rows: Iterable[Row], column: str) -> List[str]:
    # dict keeps insertion order: first appearance wins, no sorting
    return list(dict.fromkeys(cell_text(r.get(column)) for r in rows))


def apply_style(
    rows: Iterable[Row],
    column: Optional[str],
    palette: Sequence[str] = DEFAULT_PALETTE,
) -> Optional[StyleRule]:
    """Assign palette colors to the distinct values of column.

    Colors follow first-appearance order and cycle when values outnumber the
    palette. An empty column clears styling (returns None). Always recomputed
    from the rows given; nothing carries over from earlier calls.
    """
    if not column:
        return None
    if not palette:
        raise ValueError("palette must contain at least one color")
    color_map: Dict[str, str] = {}
    for idx, value in enumerate(distinct_values(rows, column)):
        color_map[value] = palette[idx % len(palette)]
    return StyleRule(column=column, color_map=color_map)


__all__ = ["DEFAULT_PALETTE", "apply_style", "distinct_values"]
