import logging

import requests
from requests import RequestException
from django.conf import settings

logger = logging.getLogger(__name__)


class GoogleMapsError(Exception):
    pass


def _conf(key, default=None):
    return getattr(settings, "GOOGLE_MAPS", {}).get(key, default)


def _get(url, params) -> dict:
    api_key = _conf("API_KEY")
    if not api_key:
        logger.error("GOOGLE_MAPS API_KEY is not configured")
        raise GoogleMapsError("Maps API key is not configured")
    try:
        resp = requests.get(url, params={**params, "key": api_key}, timeout=_conf("TIMEOUT", 10))
    except RequestException as e:
        raise GoogleMapsError(f"Maps request failed: {e}")
    if resp.status_code != 200:
        raise GoogleMapsError(f"Maps request failed: HTTP {resp.status_code}")
    try:
        return resp.json()
    except ValueError:
        raise GoogleMapsError("Maps response is not JSON")


def _component(components, kind):
    for comp in components:
        if kind in comp.get("types", []):
            return comp.get("long_name")
    return None


def geocode(address: str) -> dict:
    """Resolve an address to ``{"lat", "lng", "city", "state"}``."""
    data = _get(_conf("GEOCODE_URL"), {"address": address})
    if data.get("status") != "OK" or not data.get("results"):
        raise GoogleMapsError(f"Geocoding failed: {data.get('status')}")

    result = data["results"][0]
    location = result["geometry"]["location"]
    components = result.get("address_components", [])
    return {
        "lat": location["lat"],
        "lng": location["lng"],
        "city": _component(components, "administrative_area_level_2")
        or _component(components, "locality")
        or "Unknown City",
        "state": _component(components, "administrative_area_level_1") or "Unknown State",
    }


def driving_distance(origin: str, destination: str) -> dict:
    """Return ``{"meters": int, "duration": str}`` for one origin/destination pair."""
    data = _get(
        _conf("DISTANCE_MATRIX_URL"),
        {"origins": origin, "destinations": destination, "mode": "driving", "units": "metric"},
    )
    if data.get("status") != "OK":
        raise GoogleMapsError(f"Distance matrix failed: {data.get('status')}")
    try:
        element = data["rows"][0]["elements"][0]
    except (KeyError, IndexError):
        raise GoogleMapsError("Distance matrix returned no elements")
    if element.get("status") != "OK":
        raise GoogleMapsError(f"No route: {element.get('status')}")
    return {
        "meters": element["distance"]["value"],
        "duration": element.get("duration", {}).get("text", ""),
    }
