"""Parsing helpers for latitude/longitude pairs captured from text."""
from __future__ import annotations

from typing import Optional

from domain.models import CoordinateOrder, ContentType, GeoCoordinate


def _to_float(value: Optional[str]) -> float:
    if value is None:
        raise ValueError("Coordinate value is required.")
    text = str(value).strip()
    if not text:
        raise ValueError("Coordinate value is required.")
    return float(text)


def parse_coordinate_pair(
    first: Optional[str],
    second: Optional[str],
    order: CoordinateOrder,
) -> Optional[GeoCoordinate]:
    """Build a GeoCoordinate from two captured groups.

    Returns None when either value is not a number or the pair falls outside
    the valid latitude/longitude ranges. Values are never clamped.
    """
    try:
        a = _to_float(first)
        b = _to_float(second)
    except ValueError:
        return None

    if order == CoordinateOrder.LAT_FIRST:
        lat, lng = a, b
    else:
        lat, lng = b, a

    if not GeoCoordinate.is_valid(lat, lng):
        return None
    return GeoCoordinate(latitude=lat, longitude=lng)


def order_for_content(content_type: ContentType) -> Optional[CoordinateOrder]:
    """Map a fetched-content type to a coordinate order (None for place names)."""
    if content_type == ContentType.LAT_LNG:
        return CoordinateOrder.LAT_FIRST
    if content_type == ContentType.LNG_LAT:
        return CoordinateOrder.LNG_FIRST
    return None
