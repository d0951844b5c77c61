from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
import logging
import os
from typing import Any, Dict, List, Optional, Tuple
from pydantic import BaseModel, Field, field_validator

from app.cache import cache_key
from app.schemas import (
    ColumnMapping,
    ColumnsResponse,
    CoverageOut,
    LoadResponse,
    PlotPoint,
    PointsResponse,
    StyleResponse,
    StyleRule,
    ViewPoint,
    ViewResponse,
)
from geo.config import load_mapper_config
from geo.mapper import resolve_columns
from geo.normalizer import normalize
from geo.points import build_points
from geo.styler import DEFAULT_PALETTE, apply_style
from geo.view import (
    category_values,
    cluster_label,
    detect_filter_column,
    filter_keywords_from_env,
    filter_points,
    label_field_from_env,
    marker_color,
    point_title,
)
from qc.coverage import coverage_report
from sheets.sheet_io import SheetFetchError, fetch_sheet
from suggest.llm_fallback import LLMProvider, sample_for_cache, validate_suggestion

logger = logging.getLogger(__name__)

router = APIRouter()

Row = Dict[str, Any]


def get_llm_provider(request: Request) -> Optional[LLMProvider]:
    # Apps/tests inject a provider via app.state.llm_provider; absent means heuristics-only
    return getattr(request.app.state, "llm_provider", None)


async def _columns_for(
    request: Request,
    headers: List[str],
    sample_rows: List[Row],
    provider: Optional[LLMProvider],
) -> Tuple[ColumnMapping, str]:
    """resolve_columns with the oracle answer cached per (headers, sample)."""
    config = load_mapper_config()
    cache = getattr(request.app.state, "cache", None)
    key = None
    if provider is not None and cache is not None and headers:
        key = cache_key("columns", sample_for_cache(headers, sample_rows, config))
        cached = await cache.get_json(key)
        mapping = validate_suggestion(cached, headers) if cached else None
        if mapping is not None:
            return mapping, "oracle"

    # Oracle call is a blocking HTTP request; keep it off the event loop
    mapping, source = await run_in_threadpool(resolve_columns, headers, sample_rows, provider, config)
    if source == "oracle" and key is not None:
        await cache.set_json(key, {"latColumn": mapping.lat_column, "lngColumn": mapping.lng_column})
    return mapping, source


class LoadRequest(BaseModel):
    url: Optional[str] = None
    use_llm: bool = True


@router.post("/sheet/load", response_model=LoadResponse)
async def load_sheet(
    req: LoadRequest,
    request: Request,
    provider: Optional[LLMProvider] = Depends(get_llm_provider),
) -> LoadResponse:
    """Fetch a sheet, pick the coordinate columns and build the point list.

    Only fetch failures surface as errors (502, or 422 for an empty sheet);
    everything downstream degrades to fewer points.
    """
    url = req.url or os.getenv("SHEET_URL")
    if not url:
        raise HTTPException(status_code=400, detail="No sheet URL provided and SHEET_URL is not set")
    try:
        headers, rows = await fetch_sheet(url)
    except SheetFetchError as e:
        raise HTTPException(status_code=422 if e.empty else 502, detail=str(e))

    mapping, source = await _columns_for(request, headers, rows, provider if req.use_llm else None)
    points = build_points(rows, mapping, headers=headers)
    coverage = coverage_report(rows, mapping, headers=headers)
    filter_column = detect_filter_column(headers, filter_keywords_from_env())
    logger.info(
        "sheet loaded",
        extra={"rows": len(rows), "points": len(points), "source": source},
    )
    return LoadResponse(
        headers=headers,
        rows=rows,
        mapping=mapping,
        mapping_source=source,
        points=points,
        filter_column=filter_column,
        categories=category_values(rows, filter_column),
        coverage=CoverageOut(**coverage.as_dict()),
    )


class ColumnsRequest(BaseModel):
    headers: List[str]
    sample_rows: List[Row] = Field(default_factory=list)
    use_llm: bool = True


@router.post("/sheet/columns", response_model=ColumnsResponse)
async def identify(
    req: ColumnsRequest,
    request: Request,
    provider: Optional[LLMProvider] = Depends(get_llm_provider),
) -> ColumnsResponse:
    mapping, source = await _columns_for(request, req.headers, req.sample_rows, provider if req.use_llm else None)
    return ColumnsResponse(mapping=mapping, source=source)


class PointsRequest(BaseModel):
    rows: List[Row]
    mapping: Optional[ColumnMapping] = None
    headers: Optional[List[str]] = None


@router.post("/sheet/points", response_model=PointsResponse)
async def points(req: PointsRequest) -> PointsResponse:
    """Rebuild points after a manual mapping change or an axis swap."""
    pts = build_points(req.rows, req.mapping, headers=req.headers)
    coverage = coverage_report(req.rows, req.mapping, headers=req.headers)
    return PointsResponse(points=pts, coverage=CoverageOut(**coverage.as_dict()))


class StyleRequest(BaseModel):
    rows: List[Row]
    column: Optional[str] = None
    palette: List[str] = Field(default_factory=lambda: list(DEFAULT_PALETTE))

    @field_validator("palette")
    @classmethod
    def _non_empty_palette(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("'palette' must contain at least one color")
        return v


@router.post("/sheet/style", response_model=StyleResponse)
async def style(req: StyleRequest) -> StyleResponse:
    return StyleResponse(rule=apply_style(req.rows, req.column, req.palette))


class ViewRequest(BaseModel):
    points: List[PlotPoint]
    rule: Optional[StyleRule] = None
    filter_column: Optional[str] = None
    selected_filters: Optional[List[str]] = None
    selected: Optional[PlotPoint] = None
    label_field: Optional[str] = None


@router.post("/sheet/view", response_model=ViewResponse)
async def view(req: ViewRequest) -> ViewResponse:
    """Derived map view: category filter, per-point color and cluster label."""
    visible = req.points
    if req.filter_column and req.selected_filters is not None:
        visible = filter_points(req.points, req.filter_column, req.selected_filters)
    out = [
        ViewPoint(
            lat=p.lat,
            lng=p.lng,
            color=marker_color(p, req.rule, req.selected),
            title=point_title(p.source_row),
            selected=req.selected is not None and req.selected == p,
            source_row=p.source_row,
        )
        for p in visible
    ]
    label_field = req.label_field or label_field_from_env()
    return ViewResponse(points=out, cluster_label=cluster_label(visible, label_field))


class NormalizeRequest(BaseModel):
    value: Any = None


@router.post("/normalize")
async def normalize_value(req: NormalizeRequest):
    return {"value": normalize(req.value)}
