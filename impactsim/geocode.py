from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from .cache import TTLCache, coordinate_key
from .config import NOMINATIM_REVERSE_URL
from .errors import UpstreamUnavailable

logger = logging.getLogger(__name__)

# water bodies first so ocean impacts aren't named after the nearest coast town
WATER_KEYS = ("body_of_water", "ocean", "sea")
SETTLEMENT_KEYS = ("city", "town", "village", "state")


def format_coordinates(lat: float, lon: float) -> str:
    ns = "N" if lat >= 0 else "S"
    ew = "E" if lon >= 0 else "W"
    return f"{abs(lat):.2f}°{ns}, {abs(lon):.2f}°{ew}"


def place_name_from_payload(payload: Any, lat: float, lon: float) -> str:
    """Pick a display name out of a Nominatim reverse payload."""
    address = payload.get("address") if isinstance(payload, dict) else None
    if not isinstance(address, dict) or not address:
        return format_coordinates(lat, lon)
    for key in WATER_KEYS:
        if address.get(key):
            return str(address[key])
    country = address.get("country") or ""
    for key in SETTLEMENT_KEYS:
        if address.get(key):
            return f"{address[key]}, {country}".strip().rstrip(",")
    if country:
        return str(country)
    return format_coordinates(lat, lon)


class ReverseGeocoder:
    def __init__(self, url: str = NOMINATIM_REVERSE_URL, user_agent: str = "ImpactSim/1.0",
                 timeout_s: float = 5.0, client: Optional[httpx.Client] = None):
        self.url = url
        self.user_agent = user_agent
        self.timeout_s = timeout_s
        self._client = client or httpx.Client(timeout=timeout_s)
        self._owns_client = client is None

    def lookup_place_name(self, lat: float, lon: float) -> str:
        params: Dict[str, Any] = {
            "format": "json",
            "lat": lat,
            "lon": lon,
            "zoom": 10,
            "addressdetails": 1,
            "accept-language": "en",
        }
        logger.debug("[geocode] GET %s lat=%s lon=%s", self.url, lat, lon)
        try:
            r = self._client.get(self.url, params=params,
                                 headers={"User-Agent": self.user_agent},
                                 timeout=self.timeout_s)
            r.raise_for_status()
            data = r.json()
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            raise UpstreamUnavailable(f"reverse geocoding failed for ({lat}, {lon}): {e}") from e
        return place_name_from_payload(data, lat, lon)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


def place_name_or_coordinates(geocoder: Optional[ReverseGeocoder], lat: float, lon: float,
                              cache: Optional[TTLCache] = None, precision: int = 2) -> str:
    """Place name for the response; a coordinate string whenever the lookup can't answer."""
    if geocoder is None:
        return format_coordinates(lat, lon)
    key = coordinate_key(lat, lon, precision)
    if cache is not None:
        cached = cache.get(key)
        if cached is not None:
            return cached
    try:
        name = geocoder.lookup_place_name(lat, lon)
    except UpstreamUnavailable as e:
        logger.warning("[geocode.fallback] lat=%s lon=%s error=%s", lat, lon, e)
        return format_coordinates(lat, lon)
    if cache is not None:
        cache.set(key, name)
    return name
