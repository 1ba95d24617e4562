import asyncio
import hashlib
from urllib.parse import parse_qs, quote_plus, urlparse

import pytest

from domain.errors import ProviderError, TransportError
from domain.models import GeoCoordinate, ProviderHit
from services.cn_providers import AmapProvider, BaiduProvider, sign_baidu_query
from services.search_providers import (
    GoogleGeocodingProvider,
    GooglePlacesProvider,
    OpenStreetMapProvider,
)


class FakeJson:
    def __init__(self, payload):
        self.payload = payload
        self.calls = []

    async def __call__(self, url, params=None):
        self.calls.append((url, params))
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


def test_osm_search_parses_hits_and_drops_bad_ones():
    fake = FakeJson(
        [
            {"display_name": "Paris, Île-de-France, France", "lat": "48.8566", "lon": "2.3522"},
            {"display_name": "Broken", "lat": "north", "lon": "2.0"},
            {"display_name": "Paris, Texas", "lat": "33.66", "lon": "-95.55"},
        ]
    )
    hits = asyncio.run(OpenStreetMapProvider(get_json=fake).search("Paris", GeoCoordinate(1.0, 2.0)))
    assert hits == [
        ProviderHit("Paris, Île-de-France, France", 48.8566, 2.3522),
        ProviderHit("Paris, Texas", 33.66, -95.55),
    ]
    url, params = fake.calls[0]
    assert url.endswith("/search")
    assert params == {"format": "json", "q": "Paris"}


def test_osm_error_payload_raises_provider_error():
    fake = FakeJson({"error": {"code": 400, "message": "Nothing to search for"}})
    with pytest.raises(ProviderError) as excinfo:
        asyncio.run(OpenStreetMapProvider(get_json=fake).search(""))
    assert excinfo.value.code == "Nothing to search for"


def test_transport_error_propagates_from_provider():
    fake = FakeJson(TransportError("timeout"))
    with pytest.raises(TransportError):
        asyncio.run(OpenStreetMapProvider(get_json=fake).search("Paris"))


def test_google_geocoding():
    fake = FakeJson(
        {
            "status": "OK",
            "results": [
                {
                    "formatted_address": "Berlin, Germany",
                    "geometry": {"location": {"lat": 52.52, "lng": 13.405}},
                }
            ],
        }
    )
    hits = asyncio.run(GoogleGeocodingProvider("key-1", get_json=fake).search("Berlin"))
    assert hits == [ProviderHit("Berlin, Germany", 52.52, 13.405)]
    assert fake.calls[0][1] == {"address": "Berlin", "key": "key-1"}


def test_google_zero_results_is_not_an_error():
    fake = FakeJson({"status": "ZERO_RESULTS", "results": []})
    assert asyncio.run(GoogleGeocodingProvider("k", get_json=fake).search("zzz")) == []


def test_google_error_status_raises():
    fake = FakeJson({"status": "REQUEST_DENIED", "error_message": "The provided API key is invalid."})
    with pytest.raises(ProviderError) as excinfo:
        asyncio.run(GooglePlacesProvider("bad", get_json=fake).search("cafe"))
    assert excinfo.value.code == "The provided API key is invalid."
    assert excinfo.value.provider == "google-places"


def test_google_places_forwards_bias_and_formats_label():
    fake = FakeJson(
        {
            "status": "OK",
            "results": [
                {
                    "name": "Louvre",
                    "formatted_address": "Rue de Rivoli, Paris",
                    "geometry": {"location": {"lat": 48.8606, "lng": 2.3376}},
                },
                {"name": "No geometry", "formatted_address": "?"},
            ],
        }
    )
    hits = asyncio.run(GooglePlacesProvider("k", get_json=fake).search("louvre", GeoCoordinate(48.0, 2.5)))
    assert hits == [ProviderHit("Louvre (Rue de Rivoli, Paris)", 48.8606, 2.3376)]
    assert fake.calls[0][1] == {"query": "louvre", "key": "k", "location": "48.0,2.5"}


def test_google_places_without_bias_has_no_location():
    fake = FakeJson({"status": "OK", "results": []})
    asyncio.run(GooglePlacesProvider("k", get_json=fake).search("louvre"))
    assert "location" not in fake.calls[0][1]


def test_amap_parses_lng_lat_locations():
    fake = FakeJson(
        {
            "status": "1",
            "info": "OK",
            "pois": [
                {"name": "天安门", "location": "116.397455,39.909187"},
                {"name": "No location", "location": ""},
            ],
        }
    )
    hits = asyncio.run(AmapProvider("amap-key", get_json=fake).search("天安门"))
    assert hits == [ProviderHit("天安门", 39.909187, 116.397455)]
    assert fake.calls[0][1] == {"keywords": "天安门", "key": "amap-key"}


def test_amap_error_info_raises():
    fake = FakeJson({"status": "0", "info": "DAILY_QUERY_OVER_LIMIT", "infocode": "10003"})
    with pytest.raises(ProviderError) as excinfo:
        asyncio.run(AmapProvider("k", get_json=fake).search("x"))
    assert excinfo.value.code == "DAILY_QUERY_OVER_LIMIT"


def test_baidu_parses_results():
    fake = FakeJson(
        {
            "status": 0,
            "message": "ok",
            "results": [
                {"name": "故宫博物院", "location": {"lat": 39.924091, "lng": 116.403414}},
                {"name": "No location"},
            ],
        }
    )
    hits = asyncio.run(BaiduProvider("ak", get_json=fake).search("故宫"))
    assert hits == [ProviderHit("故宫博物院", 39.924091, 116.403414)]
    url, params = fake.calls[0]
    assert params is None
    query = parse_qs(urlparse(url).query)
    assert query["query"] == ["故宫"]
    assert query["ak"] == ["ak"]
    assert query["region"] == ["全国"]
    assert "sn" not in query


def test_baidu_error_message_raises():
    fake = FakeJson({"status": 240, "message": "APP 服务被禁用"})
    with pytest.raises(ProviderError) as excinfo:
        asyncio.run(BaiduProvider("ak", get_json=fake).search("x"))
    assert excinfo.value.code == "APP 服务被禁用"


def test_baidu_signed_url_includes_timestamp_and_sn():
    provider = BaiduProvider("ak", secret_key="sk", clock=lambda: 1700000000.0)
    url = provider.build_url("故宫")
    parsed = urlparse(url)
    assert parsed.path == "/place/v2/search"
    query = parse_qs(parsed.query)
    assert query["timestamp"] == ["1700000000000"]
    assert len(query["sn"][0]) == 32
    # The signature is the last parameter and depends on the secret
    assert parsed.query.rsplit("&", 1)[1].startswith("sn=")
    other = BaiduProvider("ak", secret_key="other", clock=lambda: 1700000000.0).build_url("故宫")
    assert parse_qs(urlparse(other).query)["sn"] != query["sn"]


def test_sign_baidu_query_is_deterministic():
    params = [("query", "a b"), ("ak", "k")]
    assert sign_baidu_query("/place/v2/search", params, "sk") == sign_baidu_query(
        "/place/v2/search", params, "sk"
    )


@pytest.mark.parametrize("query", ["Tom & Jerry", "C++ cafe", "a=b#c"])
def test_baidu_signed_url_keeps_reserved_characters_in_query(query):
    url = BaiduProvider("ak", secret_key="sk", clock=lambda: 1700000000.0).build_url(query)
    params = parse_qs(urlparse(url).query)
    assert params["query"] == [query]
    assert params["ak"] == ["ak"]


def test_baidu_signature_covers_the_query_that_is_sent():
    url = BaiduProvider("ak", secret_key="sk", clock=lambda: 1700000000.0).build_url("Tom & Jerry")
    parsed = urlparse(url)
    signed_part, sn = parsed.query.rsplit("&sn=", 1)
    expected = hashlib.md5(quote_plus(f"{parsed.path}?{signed_part}sk").encode("utf-8")).hexdigest()
    assert sn == expected
