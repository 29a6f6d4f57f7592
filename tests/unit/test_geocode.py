import httpx
import pytest

from impactsim.cache import TTLCache
from impactsim.errors import UpstreamUnavailable
from impactsim.geocode import (
    ReverseGeocoder,
    format_coordinates,
    place_name_from_payload,
    place_name_or_coordinates,
)

URL = "https://geo.test/reverse"


def geocoder_for(handler):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return ReverseGeocoder(url=URL, user_agent="ImpactSimTest/0.1", timeout_s=1.0, client=client)


def test_format_coordinates():
    assert format_coordinates(-33.8688, 151.2093) == "33.87°S, 151.21°E"
    assert format_coordinates(40.7128, -74.006) == "40.71°N, 74.01°W"


@pytest.mark.parametrize("address,expected", [
    ({"ocean": "Atlantic Ocean", "country": "Nowhere"}, "Atlantic Ocean"),
    ({"body_of_water": "Lake Geneva", "city": "Geneva"}, "Lake Geneva"),
    ({"city": "Paris", "country": "France"}, "Paris, France"),
    ({"village": "Tiny"}, "Tiny"),
    ({"state": "Texas", "country": "United States"}, "Texas, United States"),
    ({"country": "Chad"}, "Chad"),
    ({}, "1.00°N, 2.00°E"),
])
def test_place_name_preference(address, expected):
    assert place_name_from_payload({"address": address}, 1.0, 2.0) == expected


def test_payload_without_address_gives_coordinates():
    assert place_name_from_payload({"error": "Unable to geocode"}, 1.0, 2.0) == "1.00°N, 2.00°E"
    assert place_name_from_payload([], 1.0, 2.0) == "1.00°N, 2.00°E"


def test_lookup_sends_nominatim_params_and_user_agent():
    seen = {}

    def handler(request: httpx.Request):
        seen["params"] = dict(request.url.params)
        seen["ua"] = request.headers.get("user-agent")
        return httpx.Response(200, json={"address": {"city": "Osaka", "country": "Japan"}})

    assert geocoder_for(handler).lookup_place_name(34.69, 135.50) == "Osaka, Japan"
    assert seen["params"]["format"] == "json"
    assert seen["params"]["zoom"] == "10"
    assert seen["params"]["accept-language"] == "en"
    assert seen["ua"] == "ImpactSimTest/0.1"


def test_http_error_is_upstream_unavailable():
    geocoder = geocoder_for(lambda request: httpx.Response(503, text="busy"))
    with pytest.raises(UpstreamUnavailable):
        geocoder.lookup_place_name(0, 0)


def test_timeout_is_upstream_unavailable():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(UpstreamUnavailable):
        geocoder_for(handler).lookup_place_name(0, 0)


def test_invalid_url_is_upstream_unavailable():
    def handler(request):
        raise httpx.InvalidURL("Invalid port: 'notaport'")

    with pytest.raises(UpstreamUnavailable):
        geocoder_for(handler).lookup_place_name(0, 0)


def test_non_json_body_is_upstream_unavailable():
    geocoder = geocoder_for(lambda request: httpx.Response(200, text="<html>"))
    with pytest.raises(UpstreamUnavailable):
        geocoder.lookup_place_name(0, 0)


def test_fallback_to_coordinates_is_not_cached():
    calls = []

    def handler(request):
        calls.append(1)
        return httpx.Response(500)

    cache = TTLCache(ttl_seconds=60)
    geocoder = geocoder_for(handler)
    assert place_name_or_coordinates(geocoder, 10, -20, cache=cache) == "10.00°N, 20.00°W"
    assert place_name_or_coordinates(geocoder, 10, -20, cache=cache) == "10.00°N, 20.00°W"
    assert len(calls) == 2
    assert len(cache) == 0


def test_successful_names_are_cached():
    calls = []

    def handler(request):
        calls.append(1)
        return httpx.Response(200, json={"address": {"sea": "Coral Sea"}})

    cache = TTLCache(ttl_seconds=60)
    geocoder = geocoder_for(handler)
    assert place_name_or_coordinates(geocoder, -15.001, 155.0, cache=cache) == "Coral Sea"
    assert place_name_or_coordinates(geocoder, -15.002, 155.0, cache=cache) == "Coral Sea"
    assert len(calls) == 1


def test_no_geocoder_gives_coordinates():
    assert place_name_or_coordinates(None, 0, 0) == "0.00°N, 0.00°E"
