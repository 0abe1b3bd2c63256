import logging

from django.conf import settings

from .integrations.google_maps import GoogleMapsError, driving_distance, geocode
from .models import AllowedCity

logger = logging.getLogger(__name__)


class ServiceabilityError(Exception):
    pass


def max_distance_km() -> int:
    return getattr(settings, "SERVICEABLE_MAX_DISTANCE_KM", 50)


def check_distance(pincode: str) -> dict:
    """Measure the driving distance from ``pincode`` to every active city.

    Cities whose lookup fails are skipped. Raises ServiceabilityError when
    the pincode cannot be located or no distance could be computed.
    """
    cities = list(AllowedCity.objects.filter(is_allowed=True).order_by("city_name"))
    if not cities:
        raise ServiceabilityError("No serviceable cities configured")

    try:
        location = geocode(f"{pincode},India")
    except GoogleMapsError as e:
        logger.warning("Geocoding %s failed: %s", pincode, e)
        raise ServiceabilityError("Unable to find location for the provided pincode")

    origin = f"{location['lat']},{location['lng']}"
    distances = []
    for city in cities:
        try:
            route = driving_distance(origin, city.coordinates)
        except GoogleMapsError as e:
            logger.warning("Distance %s -> %s failed: %s", pincode, city.city_name, e)
            continue
        distances.append({
            "city": city.city_name,
            "distanceKm": round(route["meters"] / 1000),
            "duration": route["duration"],
        })

    if not distances:
        raise ServiceabilityError("Unable to calculate distance to service areas")

    nearest = min(distances, key=lambda d: d["distanceKm"])
    return {
        "success": True,
        "isAllowed": nearest["distanceKm"] <= max_distance_km(),
        "minDistance": nearest["distanceKm"],
        "nearestCity": nearest["city"],
        "city": location["city"],
        "state": location["state"],
        "coordinates": origin,
        "distances": distances,
    }
