"""
Location API routes.

Parse coordinates out of text lines and search for places.
"""
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from domain.models import BoundingBox
from services.geo_links import splice_geo_link
from services.geosearch import GeoSearcher
from services.url_rules import rules_to_config
from settings import settings

router = APIRouter()

_default_searcher: Optional[GeoSearcher] = None


def get_default_searcher() -> GeoSearcher:
    global _default_searcher
    if _default_searcher is None:
        _default_searcher = GeoSearcher(settings.search_config())
    return _default_searcher


class LineRequest(BaseModel):
    line: str


class SearchResultResponse(BaseModel):
    name: str
    lat: float
    lng: float
    result_type: str


class ParseResponse(BaseModel):
    matched: bool
    lat: float | None = None
    lng: float | None = None
    index: int | None = None
    match_length: int | None = None
    rule_name: str | None = None
    label: str | None = None


class ConvertResponse(BaseModel):
    changed: bool
    line: str
    cursor: int | None = None


class RuleResponse(BaseModel):
    name: str
    regExp: str
    ruleType: str | None = None
    contentParsingRegExp: str | None = None
    contentType: str | None = None
    preset: bool = False


@router.get("/search", response_model=List[SearchResultResponse])
async def search_locations(
    q: str = Query(..., min_length=1),
    south: float | None = None,
    west: float | None = None,
    north: float | None = None,
    east: float | None = None,
):
    """Search a free-text query; the bounding box is used only when fully given."""
    bounds = (south, west, north, east)
    area = None
    if all(v is not None for v in bounds):
        area = BoundingBox(south=south, west=west, north=north, east=east)
    elif any(v is not None for v in bounds):
        raise HTTPException(status_code=422, detail="Bounding box needs south, west, north and east")

    results = await get_default_searcher().search(q, area)
    return [
        SearchResultResponse(
            name=r.label,
            lat=r.coordinate.latitude,
            lng=r.coordinate.longitude,
            result_type=r.kind.value,
        )
        for r in results
    ]


@router.post("/parse", response_model=ParseResponse)
async def parse_line(request: LineRequest):
    """Find the first coordinate in a text line, following links when a rule asks for it."""
    result = await get_default_searcher().parse_link(request.line)
    if result is None:
        return ParseResponse(matched=False)
    return ParseResponse(
        matched=True,
        lat=result.coordinate.latitude,
        lng=result.coordinate.longitude,
        index=result.source_index,
        match_length=result.match_length,
        rule_name=result.rule_name,
        label=result.label,
    )


@router.post("/convert", response_model=ConvertResponse)
async def convert_line(request: LineRequest):
    """Replace the first recognized coordinate or link in a line with a geo link."""
    result = await get_default_searcher().parse_link(request.line)
    if result is None:
        return ConvertResponse(changed=False, line=request.line)
    new_line, cursor = splice_geo_link(request.line, result)
    return ConvertResponse(changed=True, line=new_line, cursor=cursor)


@router.get("/rules", response_model=List[RuleResponse])
async def list_rules():
    return [RuleResponse(**record) for record in rules_to_config(get_default_searcher().config.rules)]
