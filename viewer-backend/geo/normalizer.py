from __future__ import annotations

import math
import re
from decimal import Decimal
from typing import Any, Optional

NULL_MARKERS = {"NULL", "UNDEFINED", "NONE", "NAN"}
_POSITIVE_DIRECTIONS = {"N", "E"}

_STRIP_RE = re.compile(r"[^0-9.\-]")
# Longest leading decimal literal, same prefix rule as a JS parseFloat on digit/dot/minus text
_LEADING_NUMBER_RE = re.compile(r"^-?(?:\d+(?:\.\d*)?|\.\d+)")


def _as_text(raw: Any) -> Optional[str]:
    if raw is None:
        return None
    if isinstance(raw, bool):
        return str(raw)
    if isinstance(raw, int):
        return str(raw)
    if isinstance(raw, float):
        if not math.isfinite(raw):
            return None
        # fixed-point so that 1e-05 does not leak an exponent marker into the token
        return format(Decimal(repr(raw)), "f")
    return str(raw)


def _parse_leading_float(text: str) -> Optional[float]:
    m = _LEADING_NUMBER_RE.match(text)
    if not m:
        return None
    value = float(m.group(0))
    if not math.isfinite(value):
        return None
    return value


def normalize(raw: Any) -> Optional[float]:
    """Parse one raw coordinate token into signed decimal degrees, or None.

    Steps, in order:
    1. trim; empty or a null marker ("null", "undefined", ...) -> None
    2. sign: negative if the token contains S or W anywhere, or starts with '-'
       and carries no N/E direction letter
    3. a single comma with no period is the decimal separator ("48,85" -> 48.85);
       several commas with no period are ambiguous grouping -> None
    4. drop everything except digits, '.' and '-'
    5. parse the leading decimal literal
    6. apply the sign from step 2 to the magnitude

    Compatibility constraint: the sign rules are lexical. Any S or W anywhere in
    the token (not only a trailing hemisphere letter) forces a negative result,
    and an N or E anywhere overrides a literal leading minus ("-12.5 N" -> 12.5).
    Existing spreadsheets rely on this exact behaviour, so it must not be
    tightened into suffix-aware GPS parsing.
    """
    text = _as_text(raw)
    if text is None:
        return None
    trimmed = text.strip()
    if not trimmed or trimmed.upper() in NULL_MARKERS:
        return None

    s = trimmed.upper()
    literal_minus = trimmed.startswith("-") and not (_POSITIVE_DIRECTIONS & set(s))
    negative = "S" in s or "W" in s or literal_minus

    if "." not in s:
        commas = s.count(",")
        if commas == 1:
            s = s.replace(",", ".")
        elif commas > 1:
            return None

    cleaned = _STRIP_RE.sub("", s)
    value = _parse_leading_float(cleaned)
    if value is None:
        return None
    return -abs(value) if negative else abs(value)


__all__ = ["normalize", "NULL_MARKERS"]
