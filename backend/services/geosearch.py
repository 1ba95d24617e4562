"""
Free-text location search.

A query is interpreted two ways at once: as a link or coordinate string
(through the URL parsing rules) and as a place name sent to the configured
search provider chain. Results are always ordered parsed link first, then
provider results in chain order, each provider keeping its own ranking.
A failing source contributes nothing; it never fails the whole search.
"""
from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Sequence

from domain.errors import ProviderError, TransportError
from domain.models import (
    BoundingBox,
    GeoCoordinate,
    MatchResult,
    Pending,
    ProviderHit,
    Resolved,
    SearchResult,
    SearchResultKind,
)
from services.cn_providers import AmapProvider, BaiduProvider
from services.fetch_resolver import FetchResolver, GetText
from services.rule_matcher import RuleMatcher
from services.search_providers import (
    GetJson,
    GoogleGeocodingProvider,
    GooglePlacesProvider,
    OpenStreetMapProvider,
    SearchProvider,
)
from settings import SearchConfig

logger = logging.getLogger(__name__)


class ProviderStage(ABC):
    """One step of the provider chain. ``run`` never raises for provider trouble."""

    def __init__(self, max_results: int):
        self.max_results = max_results

    @abstractmethod
    async def run(self, query: str, bias: Optional[GeoCoordinate]) -> List[ProviderHit]:
        raise NotImplementedError


class SingleProviderStage(ProviderStage):
    def __init__(self, provider: SearchProvider, max_results: int):
        super().__init__(max_results)
        self.provider = provider

    async def run(self, query: str, bias: Optional[GeoCoordinate]) -> List[ProviderHit]:
        try:
            hits = await self.provider.search(query, bias)
        except (TransportError, ProviderError) as exc:
            logger.warning("%s search failed for %r: %s", self.provider.name, query, exc)
            return []
        except Exception:
            logger.exception("%s search crashed for %r", self.provider.name, query)
            return []
        return list(hits)[: self.max_results]


class FallbackPair(ProviderStage):
    """Ask ``primary`` first and ``secondary`` only if primary reports an error.

    Transport failures do not trigger the fallback, and neither does an empty
    but successful answer.
    """

    def __init__(self, primary: SearchProvider, secondary: SearchProvider, max_results: int):
        super().__init__(max_results)
        self.primary = primary
        self.secondary = secondary

    async def _call(self, provider: SearchProvider, query: str, bias: Optional[GeoCoordinate]):
        try:
            return await provider.search(query, bias)
        except TransportError as exc:
            logger.warning("%s search failed for %r: %s", provider.name, query, exc)
            return []

    async def run(self, query: str, bias: Optional[GeoCoordinate]) -> List[ProviderHit]:
        try:
            hits = await self._call(self.primary, query, bias)
        except ProviderError as exc:
            logger.info("%s reported %s, falling back to %s", self.primary.name, exc.code, self.secondary.name)
            try:
                hits = await self._call(self.secondary, query, bias)
            except ProviderError as exc2:
                logger.warning("%s search failed for %r: %s", self.secondary.name, query, exc2)
                return []
            except Exception:
                logger.exception("%s search crashed for %r", self.secondary.name, query)
                return []
        except Exception:
            logger.exception("%s search crashed for %r", self.primary.name, query)
            return []
        return list(hits)[: self.max_results]


def _cn_keys(config: SearchConfig) -> tuple[str, str]:
    amap_key = config.amap_api_key
    baidu_key = config.baidu_api_key
    if not (amap_key or baidu_key) and config.geocoding_api_key:
        # Legacy combined form: "amapKey,baiduKey"
        parts = [p.strip() for p in config.geocoding_api_key.split(",")]
        amap_key = parts[0]
        baidu_key = parts[1] if len(parts) > 1 else ""
    return amap_key, baidu_key


def build_provider_chain(config: SearchConfig, get_json: Optional[GetJson] = None) -> tuple:
    """Select the provider stages for ``config``; done once per searcher."""
    provider = config.search_provider
    limit = config.max_suggestions

    if provider == "google" and config.use_google_places and config.geocoding_api_key:
        stages = (SingleProviderStage(GooglePlacesProvider(config.geocoding_api_key, get_json), limit),)
    elif provider in ("cn", "cnmap") and config.use_cn_places:
        amap_key, baidu_key = _cn_keys(config)
        amap = AmapProvider(amap_key, get_json) if amap_key else None
        baidu = BaiduProvider(baidu_key, config.baidu_secret_key, get_json) if baidu_key else None
        if amap and baidu:
            stages = (FallbackPair(amap, baidu, limit),)
        elif amap or baidu:
            stages = (SingleProviderStage(amap or baidu, limit),)
        else:
            logger.warning("CN place search enabled but no Amap/Baidu key configured")
            stages = ()
    elif provider == "google" and config.geocoding_api_key:
        stages = (SingleProviderStage(GoogleGeocodingProvider(config.geocoding_api_key, get_json), limit),)
    else:
        if provider != "osm":
            logger.warning("Search provider %r is not usable as configured; using OpenStreetMap", provider)
        stages = (SingleProviderStage(OpenStreetMapProvider(get_json=get_json), limit),)

    logger.debug("Search provider chain: %s", [type(s).__name__ for s in stages])
    return stages


def parsed_link_label(result: MatchResult) -> str:
    coord = result.coordinate
    return f"Parsed from {result.rule_name}: {coord.latitude}, {coord.longitude}"


class GeoSearcher:
    """Combine parsed-link interpretation and provider search for one query at a time."""

    def __init__(
        self,
        config: SearchConfig,
        get_text: Optional[GetText] = None,
        get_json: Optional[GetJson] = None,
        stages: Optional[Sequence[ProviderStage]] = None,
    ):
        self.config = config
        self.matcher = RuleMatcher(config.rules)
        self.stages = tuple(stages) if stages is not None else build_provider_chain(config, get_json)
        self.fetch_resolver = FetchResolver(get_text, place_resolver=self.resolve_place_name)

    async def parse_link(self, query: str) -> Optional[MatchResult]:
        """Interpret ``query`` with the URL parsing rules, fetching if needed."""
        found = self.matcher.match(query)
        if isinstance(found, Resolved):
            return found.result
        if isinstance(found, Pending):
            try:
                return await self.fetch_resolver.resolve(found.fetch)
            except Exception:
                logger.exception("Resolving %s failed", found.fetch.url)
        return None

    async def place_search(self, query: str, bias: Optional[GeoCoordinate] = None) -> List[ProviderHit]:
        hits: List[ProviderHit] = []
        for stage in self.stages:
            hits.extend(await stage.run(query, bias))
        return hits

    async def resolve_place_name(self, name: str) -> Optional[GeoCoordinate]:
        """Best provider match for a place name found inside a fetched page."""
        hits = await self.place_search(name)
        return hits[0].to_coordinate() if hits else None

    async def search(self, query: str, area: Optional[BoundingBox] = None) -> List[SearchResult]:
        bias = area.center() if area is not None and self.config.locality_bias else None
        parsed, hits = await asyncio.gather(self.parse_link(query), self.place_search(query, bias))
        return merge_results(parsed, hits)


def merge_results(parsed: Optional[MatchResult], hits: Iterable[ProviderHit]) -> List[SearchResult]:
    """Parsed link first, then provider hits in their given order. No deduplication."""
    results: List[SearchResult] = []
    if parsed is not None:
        results.append(
            SearchResult(
                label=parsed_link_label(parsed),
                coordinate=parsed.coordinate,
                kind=SearchResultKind.PARSED_LINK,
            )
        )
    for hit in hits:
        results.append(
            SearchResult(
                label=hit.name,
                coordinate=hit.to_coordinate(),
                kind=SearchResultKind.PROVIDER_SEARCH,
            )
        )
    return results
