"""Coordinate inference and normalization for spreadsheet rows.

Modules:
 - cells: spreadsheet-style stringification of cell values
 - normalizer: raw coordinate text -> signed decimal degrees
 - config: column-matching sentinels and synonyms (env-overridable)
 - mapper: latitude/longitude column identification (oracle, then heuristic)
 - points: row -> validated PlotPoint building
 - styler: categorical value -> color rules
 - view: filter/cluster/color helpers for the map layer
"""

__all__ = [
    "cells",
    "normalizer",
    "config",
    "mapper",
    "points",
    "styler",
    "view",
]
