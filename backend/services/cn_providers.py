"""
Place search against the Amap (Gaode) and Baidu web APIs.

Both report errors in the JSON body rather than with HTTP status codes, which
is what lets the searcher fall back from one to the other.
"""
from __future__ import annotations

import hashlib
import time
from typing import Callable, List, Optional
from urllib.parse import quote, quote_plus, urlencode

from domain.errors import ProviderError
from domain.models import GeoCoordinate, ProviderHit
from services.search_providers import GetJson, SearchProvider, _collect, _to_hit


AMAP_PLACE_TEXT_URL = "https://restapi.amap.com/v5/place/text"
BAIDU_HOST = "https://api.map.baidu.com"
BAIDU_PLACE_SEARCH_URI = "/place/v2/search"


class AmapProvider(SearchProvider):
    name = "amap"

    def __init__(self, api_key: str, get_json: Optional[GetJson] = None):
        super().__init__(get_json)
        self.api_key = api_key

    async def search(self, query: str, bias: Optional[GeoCoordinate] = None) -> List[ProviderHit]:
        data = await self.get_json(AMAP_PLACE_TEXT_URL, {"keywords": query, "key": self.api_key})
        if not isinstance(data, dict):
            return []
        info = data.get("info")
        if info != "OK":
            raise ProviderError(self.name, str(info))
        if str(data.get("status")) != "1":
            return []

        hits: List[Optional[ProviderHit]] = []
        for poi in data.get("pois") or []:
            # Amap locations are "lng,lat"
            parts = str(poi.get("location") or "").split(",")
            if len(parts) < 2:
                continue
            hits.append(_to_hit(poi.get("name"), parts[1], parts[0]))
        return _collect(hits)


def sign_baidu_query(uri: str, params: List[tuple], secret_key: str) -> str:
    """Return ``uri?query&sn=...`` signed with Baidu's SN scheme.

    Each value is percent-encoded on its own, so the string that gets signed
    is exactly the one sent. The signature is the MD5 of that path and query
    followed by the secret key, itself url-encoded.
    """
    query_str = uri + "?" + "&".join(f"{k}={quote(str(v), safe='')}" for k, v in params)
    sn = hashlib.md5(quote_plus(query_str + secret_key).encode("utf-8")).hexdigest()
    return f"{query_str}&sn={sn}"


class BaiduProvider(SearchProvider):
    name = "baidu"

    def __init__(
        self,
        api_key: str,
        secret_key: Optional[str] = None,
        get_json: Optional[GetJson] = None,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(get_json)
        self.api_key = api_key
        self.secret_key = secret_key
        self.clock = clock

    def build_url(self, query: str) -> str:
        params = [
            ("query", query),
            ("ak", self.api_key),
            ("region", "全国"),
            ("output", "json"),
            ("extensions_adcode", "false"),
            ("ret_coordtype", "gcj02ll"),
            ("coord_type", "2"),
            ("photo_show", "false"),
        ]
        if not self.secret_key:
            return f"{BAIDU_HOST}{BAIDU_PLACE_SEARCH_URI}?{urlencode(params)}"
        params.append(("timestamp", str(int(self.clock() * 1000))))
        return BAIDU_HOST + sign_baidu_query(BAIDU_PLACE_SEARCH_URI, params, self.secret_key)

    async def search(self, query: str, bias: Optional[GeoCoordinate] = None) -> List[ProviderHit]:
        data = await self.get_json(self.build_url(query))
        if not isinstance(data, dict):
            return []
        message = data.get("message")
        if message != "ok":
            raise ProviderError(self.name, str(message))
        if data.get("status") != 0:
            return []

        hits: List[Optional[ProviderHit]] = []
        for result in data.get("results") or []:
            location = result.get("location")
            if not location:
                continue
            hits.append(_to_hit(result.get("name"), location.get("lat"), location.get("lng")))
        return _collect(hits)
