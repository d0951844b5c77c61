from __future__ import annotations

from typing import Any, Dict, List, Optional, Literal
from pydantic import AliasChoices, BaseModel, Field, ConfigDict, model_validator


class ColumnMapping(BaseModel):
    """Pair of header names sourcing latitude and longitude (may be the same column)."""

    lat_column: str = Field(
        default="",
        validation_alias=AliasChoices("lat_column", "latColumn"),
        description="Header holding latitude (or combined 'lat, lng' text)",
    )
    lng_column: str = Field(
        default="",
        validation_alias=AliasChoices("lng_column", "lngColumn"),
        description="Header holding longitude (or combined 'lat, lng' text)",
    )

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={"example": {"lat_column": "Latitude N", "lng_column": "Longitude E"}},
    )

    @property
    def is_empty(self) -> bool:
        return not self.lat_column or not self.lng_column

    @property
    def is_combined(self) -> bool:
        return bool(self.lat_column) and self.lat_column == self.lng_column

    def swapped(self) -> "ColumnMapping":
        return ColumnMapping(lat_column=self.lng_column, lng_column=self.lat_column)


class PlotPoint(BaseModel):
    """A validated geographic point plus the spreadsheet row it came from."""

    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)
    source_row: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _reject_null_island(self) -> "PlotPoint":
        # (0, 0) is how empty cells come out of the export, not a real location
        if self.lat == 0 and self.lng == 0:
            raise ValueError("(0, 0) is treated as missing data")
        return self


class StyleRule(BaseModel):
    column: str
    type: Literal["categorical"] = "categorical"
    color_map: Dict[str, str] = Field(
        default_factory=dict, description="Observed value -> color, in first-appearance order"
    )


class CoverageOut(BaseModel):
    total: int = 0
    plotted: int = 0
    empty: int = 0
    unparsable: int = 0
    out_of_range: int = 0
    null_island: int = 0
    unmapped: int = 0


class ColumnsResponse(BaseModel):
    mapping: ColumnMapping
    source: Literal["oracle", "heuristic", "empty"]


class PointsResponse(BaseModel):
    points: List[PlotPoint] = Field(default_factory=list)
    coverage: CoverageOut


class StyleResponse(BaseModel):
    rule: Optional[StyleRule] = None


class ViewPoint(BaseModel):
    lat: float
    lng: float
    color: str
    title: str
    selected: bool = False
    source_row: Dict[str, Any] = Field(default_factory=dict)


class ViewResponse(BaseModel):
    points: List[ViewPoint] = Field(default_factory=list)
    cluster_label: str


class LoadResponse(BaseModel):
    headers: List[str]
    rows: List[Dict[str, Any]]
    mapping: ColumnMapping
    mapping_source: Literal["oracle", "heuristic", "empty"]
    points: List[PlotPoint] = Field(default_factory=list)
    filter_column: Optional[str] = None
    categories: List[str] = Field(default_factory=list)
    coverage: CoverageOut
