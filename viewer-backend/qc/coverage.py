from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Iterable, Optional, Sequence

from app.schemas import ColumnMapping
from geo.cells import Row
from geo.points import classify_row, mapping_usable


@dataclass
class CoverageReport:
    total: int = 0
    plotted: int = 0
    empty: int = 0
    unparsable: int = 0
    out_of_range: int = 0
    null_island: int = 0
    unmapped: int = 0

    @property
    def dropped(self) -> int:
        return self.total - self.plotted

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


def coverage_report(
    rows: Iterable[Row],
    mapping: Optional[ColumnMapping],
    headers: Optional[Sequence[str]] = None,
) -> CoverageReport:
    """Tally how many rows the point builder keeps, and why the rest are dropped.

    With no usable mapping (none chosen, or a column missing from `headers`)
    every row lands in `unmapped`; the point builder returns nothing then either.
    """
    report = CoverageReport()
    usable = mapping_usable(mapping, headers)
    for row in rows:
        report.total += 1
        if not usable:
            report.unmapped += 1
            continue
        outcome = classify_row(row, mapping)  # type: ignore[arg-type]
        if outcome.point is not None:
            report.plotted += 1
        else:
            setattr(report, outcome.reason, getattr(report, outcome.reason) + 1)  # type: ignore[arg-type]
    return report


__all__ = ["CoverageReport", "coverage_report"]
