import logging
import re

from django.db import DatabaseError
from django.http import JsonResponse
from django.views.decorators.http import require_GET

from .models import AllowedCity
from .services import ServiceabilityError, check_distance

logger = logging.getLogger(__name__)

PINCODE_RE = re.compile(r"^\d{6}$")


@require_GET
def distance_check(request):
    pincode = (request.GET.get("pincode") or "").strip()
    if not PINCODE_RE.match(pincode):
        return JsonResponse({"success": False, "error": "Valid 6-digit pincode is required"}, status=400)

    try:
        return JsonResponse(check_distance(pincode))
    except ServiceabilityError as e:
        return JsonResponse({"success": False, "error": str(e)}, status=500)


@require_GET
def allowed_cities(request):
    try:
        cities = list(
            AllowedCity.objects.filter(is_allowed=True)
            .order_by("city_name")
            .values("city_name", "coordinates")
        )
    except DatabaseError:
        logger.exception("Could not load allowed cities")
        return JsonResponse({"success": False, "error": "Unable to fetch cities"}, status=500)
    return JsonResponse({"success": True, "cities": cities, "count": len(cities)})
