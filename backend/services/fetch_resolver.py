"""Resolve links matched by fetch rules into coordinates.

The fetched page is searched with the rule's content pattern. The result
always points at the span of the link in the user's text, never at an
offset inside the fetched document.
"""
from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

from domain.errors import TransportError
from domain.models import (
    ContentType,
    GeoCoordinate,
    MatchResult,
    Pending,
    PendingFetch,
    Resolved,
)
from services import http_client
from services.coordinates import order_for_content, parse_coordinate_pair
from services.rule_matcher import RuleMatcher

logger = logging.getLogger(__name__)

GetText = Callable[[str], Awaitable[str]]
PlaceResolver = Callable[[str], Awaitable[Optional[GeoCoordinate]]]


class FetchResolver:
    def __init__(
        self,
        get_text: Optional[GetText] = None,
        place_resolver: Optional[PlaceResolver] = None,
    ):
        self.get_text = get_text or http_client.get_text
        self.place_resolver = place_resolver

    async def resolve(self, pending: PendingFetch) -> Optional[MatchResult]:
        """Fetch ``pending.url`` and extract a coordinate from the body.

        Returns None when the link cannot be fetched or the content does not
        contain anything usable.
        """
        rule = pending.rule
        try:
            content = await self.get_text(pending.url)
        except TransportError as exc:
            logger.warning("Fetching %s for rule %s failed: %s", pending.url, rule.name, exc)
            return None
        logger.debug("Fetch result for URL %s: %s", pending.url, content)

        content_match = rule.content_pattern.search(content) if rule.content_pattern else None
        if not content_match:
            return None

        coordinate: Optional[GeoCoordinate] = None
        label: Optional[str] = None
        order = order_for_content(rule.content_type)
        if order is not None:
            coordinate = parse_coordinate_pair(content_match.group(1), content_match.group(2), order)
        elif rule.content_type == ContentType.PLACE_NAME:
            label = content_match.group(1)
            coordinate = await self._resolve_place(label)

        if coordinate is None:
            return None
        return MatchResult(
            coordinate=coordinate,
            source_index=pending.match_index,
            match_length=pending.match_length,
            rule_name=rule.name,
            label=label,
        )

    async def _resolve_place(self, place_name: Optional[str]) -> Optional[GeoCoordinate]:
        if not place_name or self.place_resolver is None:
            return None
        logger.debug("Place search for fetched name: %s", place_name)
        return await self.place_resolver(place_name)

    async def resolve_line(self, line: str, matcher: RuleMatcher) -> Optional[MatchResult]:
        """Match ``line`` and, if needed, resolve the pending fetch."""
        found = matcher.match(line)
        if isinstance(found, Resolved):
            return found.result
        if isinstance(found, Pending):
            return await self.resolve(found.fetch)
        return None
