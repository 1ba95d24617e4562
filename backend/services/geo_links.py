"""Helpers for callers that edit text: turn a match into an inline geo link."""
from __future__ import annotations

from typing import Tuple

from domain.models import GeoCoordinate, MatchResult


def format_geo_link(coordinate: GeoCoordinate) -> str:
    return f"[](geo:{coordinate.latitude},{coordinate.longitude})"


def splice_geo_link(line: str, match: MatchResult) -> Tuple[str, int]:
    """Replace the matched span of ``line`` with a geo link.

    Returns the new line and the cursor position, placed just after the
    opening bracket so a link name can be typed right away.
    """
    start, end = match.span
    link = format_geo_link(match.coordinate)
    return line[:start] + link + line[end:], start + 1
