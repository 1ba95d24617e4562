"""
Place search providers.

Every provider exposes the same capability::

    await provider.search(query, bias) -> List[ProviderHit]

and raises ProviderError when the service answers with a structured error
(quota, bad key, invalid request) or TransportError when it cannot be reached.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from domain.errors import ProviderError
from domain.models import GeoCoordinate, ProviderHit
from services import http_client

logger = logging.getLogger(__name__)

GetJson = Callable[..., Awaitable[Any]]

NOMINATIM_SEARCH_URL = "https://nominatim.openstreetmap.org/search"
GOOGLE_GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
GOOGLE_PLACES_URL = "https://maps.googleapis.com/maps/api/place/textsearch/json"

_GOOGLE_OK_STATUSES = {"OK", "ZERO_RESULTS"}


def _to_hit(name: Any, lat: Any, lng: Any) -> Optional[ProviderHit]:
    """Build a hit from loosely typed provider values, or None if unusable."""
    try:
        lat_f = float(lat)
        lng_f = float(lng)
    except (TypeError, ValueError):
        return None
    if not GeoCoordinate.is_valid(lat_f, lng_f):
        return None
    return ProviderHit(name=str(name or ""), lat=lat_f, lng=lng_f)


def _collect(hits: Iterable[Optional[ProviderHit]]) -> List[ProviderHit]:
    return [hit for hit in hits if hit is not None]


class SearchProvider(ABC):
    """Capability interface for a place search service."""

    name: str = "provider"

    def __init__(self, get_json: Optional[GetJson] = None):
        self.get_json = get_json or http_client.get_json

    @abstractmethod
    async def search(self, query: str, bias: Optional[GeoCoordinate] = None) -> List[ProviderHit]:
        raise NotImplementedError


class OpenStreetMapProvider(SearchProvider):
    """Nominatim free-text search. Does not support a locality hint."""

    name = "osm"

    def __init__(self, base_url: str = NOMINATIM_SEARCH_URL, get_json: Optional[GetJson] = None):
        super().__init__(get_json)
        self.base_url = base_url

    async def search(self, query: str, bias: Optional[GeoCoordinate] = None) -> List[ProviderHit]:
        data = await self.get_json(self.base_url, {"format": "json", "q": query})
        if isinstance(data, dict) and data.get("error"):
            error = data["error"]
            code = error.get("message") if isinstance(error, dict) else str(error)
            raise ProviderError(self.name, code or "error")
        if not isinstance(data, list):
            return []
        return _collect(
            _to_hit(item.get("display_name"), item.get("lat"), item.get("lon"))
            for item in data
            if isinstance(item, dict)
        )


class _GoogleProvider(SearchProvider):
    url: str = ""

    def __init__(self, api_key: str, get_json: Optional[GetJson] = None):
        super().__init__(get_json)
        self.api_key = api_key

    def _params(self, query: str, bias: Optional[GeoCoordinate]) -> Dict[str, str]:
        raise NotImplementedError

    def _label(self, item: Dict[str, Any]) -> str:
        raise NotImplementedError

    async def search(self, query: str, bias: Optional[GeoCoordinate] = None) -> List[ProviderHit]:
        data = await self.get_json(self.url, self._params(query, bias))
        if not isinstance(data, dict):
            return []
        status = data.get("status")
        if status and status not in _GOOGLE_OK_STATUSES:
            raise ProviderError(self.name, data.get("error_message") or status)

        hits: List[Optional[ProviderHit]] = []
        for item in data.get("results") or []:
            location = (item.get("geometry") or {}).get("location") or {}
            hits.append(_to_hit(self._label(item), location.get("lat"), location.get("lng")))
        return _collect(hits)


class GoogleGeocodingProvider(_GoogleProvider):
    """Google Geocoding API; used when Google is selected without Places."""

    name = "google"
    url = GOOGLE_GEOCODE_URL

    def _params(self, query: str, bias: Optional[GeoCoordinate]) -> Dict[str, str]:
        return {"address": query, "key": self.api_key}

    def _label(self, item: Dict[str, Any]) -> str:
        return item.get("formatted_address") or ""


class GooglePlacesProvider(_GoogleProvider):
    """Google Places text search, optionally biased towards a location."""

    name = "google-places"
    url = GOOGLE_PLACES_URL

    def _params(self, query: str, bias: Optional[GeoCoordinate]) -> Dict[str, str]:
        params = {"query": query, "key": self.api_key}
        if bias is not None:
            params["location"] = f"{bias.latitude},{bias.longitude}"
        return params

    def _label(self, item: Dict[str, Any]) -> str:
        return f"{item.get('name')} ({item.get('formatted_address')})"
