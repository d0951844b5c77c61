from __future__ import annotations

import math
from typing import Any, Dict, Optional, Union

CellValue = Union[str, int, float, None]
Row = Dict[str, CellValue]


def cell_text(value: Any) -> str:
    """Render a cell the way the spreadsheet export prints it.

    None -> "", integral floats lose their trailing ".0", everything else via str().
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def find_key(row: Row, name: str) -> Optional[str]:
    """Case-insensitive key lookup; returns the key as stored in the row."""
    target = name.lower()
    for k in row.keys():
        if k.lower() == target:
            return k
    return None


__all__ = ["CellValue", "Row", "cell_text", "find_key"]
