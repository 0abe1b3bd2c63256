from unittest.mock import patch

from django.conf import settings
from django.contrib.staticfiles import finders
from django.test import TestCase, override_settings
from django.urls import reverse

from .integrations import google_maps
from .integrations.google_maps import GoogleMapsError
from .models import AllowedCity


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def json(self):
        return self._payload


PUNE_GEOCODE = {
    "status": "OK",
    "results": [{
        "geometry": {"location": {"lat": 18.5590, "lng": 73.7868}},
        "address_components": [
            {"long_name": "Baner", "types": ["sublocality"]},
            {"long_name": "Pune", "types": ["locality", "political"]},
            {"long_name": "Pune District", "types": ["administrative_area_level_2"]},
            {"long_name": "Maharashtra", "types": ["administrative_area_level_1"]},
        ],
    }],
}


class SeedDataTests(TestCase):
    def test_cities_seeded(self):
        self.assertEqual(
            list(AllowedCity.objects.values_list("city_name", flat=True)),
            ["Mumbai", "Pimpri-Chinchwad", "Pune"],
        )
        self.assertEqual(AllowedCity.objects.get(city_name="Pune").coordinates, "18.5204,73.8567")


class GoogleMapsClientTests(TestCase):
    def test_geocode_prefers_district_for_city(self):
        with patch("serviceability.integrations.google_maps.requests.get",
                   return_value=FakeResponse(PUNE_GEOCODE)) as get:
            loc = google_maps.geocode("411045,India")
        self.assertEqual(loc, {"lat": 18.5590, "lng": 73.7868, "city": "Pune District", "state": "Maharashtra"})
        self.assertEqual(get.call_args.kwargs["params"]["address"], "411045,India")
        self.assertEqual(get.call_args.kwargs["params"]["key"], "test-maps-key")

    def test_geocode_defaults(self):
        payload = {"status": "OK", "results": [{"geometry": {"location": {"lat": 1, "lng": 2}}}]}
        with patch("serviceability.integrations.google_maps.requests.get", return_value=FakeResponse(payload)):
            loc = google_maps.geocode("999999,India")
        self.assertEqual((loc["city"], loc["state"]), ("Unknown City", "Unknown State"))

    def test_geocode_zero_results(self):
        with patch("serviceability.integrations.google_maps.requests.get",
                   return_value=FakeResponse({"status": "ZERO_RESULTS", "results": []})):
            with self.assertRaises(GoogleMapsError):
                google_maps.geocode("000000,India")

    def test_driving_distance(self):
        payload = {
            "status": "OK",
            "rows": [{"elements": [{"status": "OK", "distance": {"value": 12499}, "duration": {"text": "25 mins"}}]}],
        }
        with patch("serviceability.integrations.google_maps.requests.get", return_value=FakeResponse(payload)) as get:
            route = google_maps.driving_distance("18.5,73.7", "18.5204,73.8567")
        self.assertEqual(route, {"meters": 12499, "duration": "25 mins"})
        self.assertEqual(get.call_args.kwargs["params"]["mode"], "driving")

    def test_no_route(self):
        payload = {"status": "OK", "rows": [{"elements": [{"status": "ZERO_RESULTS"}]}]}
        with patch("serviceability.integrations.google_maps.requests.get", return_value=FakeResponse(payload)):
            with self.assertRaises(GoogleMapsError):
                google_maps.driving_distance("0,0", "1,1")


def _routes(table):
    def fake(origin, destination):
        value = table[destination]
        if isinstance(value, Exception):
            raise value
        return {"meters": value, "duration": "1 hour"}
    return fake


class DistanceCheckViewTests(TestCase):
    url = "/api/distance-check"
    location = {"lat": 18.559, "lng": 73.7868, "city": "Pune District", "state": "Maharashtra"}

    def _get(self, routes, pincode="411045"):
        with patch("serviceability.services.geocode", return_value=self.location), \
                patch("serviceability.services.driving_distance", side_effect=_routes(routes)):
            return self.client.get(self.url, {"pincode": pincode})

    def test_within_range(self):
        resp = self._get({
            "19.0760,72.8777": 152400,
            "18.5204,73.8567": 9600,
            "18.6298,73.7997": 12700,
        })
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertTrue(body["success"])
        self.assertTrue(body["isAllowed"])
        self.assertEqual(body["minDistance"], 10)
        self.assertEqual(body["nearestCity"], "Pune")
        self.assertEqual(body["city"], "Pune District")
        self.assertEqual(body["coordinates"], "18.559,73.7868")
        self.assertEqual(len(body["distances"]), 3)

    def test_boundary_is_inclusive(self):
        routes = {"19.0760,72.8777": 50400, "18.5204,73.8567": 80000, "18.6298,73.7997": 90000}
        body = self._get(routes).json()
        self.assertEqual(body["minDistance"], 50)
        self.assertTrue(body["isAllowed"])

    def test_out_of_range(self):
        routes = {"19.0760,72.8777": 51000, "18.5204,73.8567": 80000, "18.6298,73.7997": 90000}
        body = self._get(routes).json()
        self.assertEqual(body["minDistance"], 51)
        self.assertFalse(body["isAllowed"])
        self.assertEqual(body["nearestCity"], "Mumbai")

    def test_failed_city_lookups_are_skipped(self):
        routes = {
            "19.0760,72.8777": GoogleMapsError("no route"),
            "18.5204,73.8567": 30000,
            "18.6298,73.7997": GoogleMapsError("no route"),
        }
        with self.assertLogs("serviceability.services", level="WARNING"):
            body = self._get(routes).json()
        self.assertEqual([d["city"] for d in body["distances"]], ["Pune"])

    def test_all_lookups_failed(self):
        routes = {k: GoogleMapsError("x") for k in ("19.0760,72.8777", "18.5204,73.8567", "18.6298,73.7997")}
        with self.assertLogs("serviceability.services", level="WARNING"):
            resp = self._get(routes)
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json(), {"success": False, "error": "Unable to calculate distance to service areas"})

    def test_unknown_pincode(self):
        with patch("serviceability.services.geocode", side_effect=GoogleMapsError("ZERO_RESULTS")):
            with self.assertLogs("serviceability.services", level="WARNING"):
                resp = self.client.get(self.url, {"pincode": "999999"})
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json()["error"], "Unable to find location for the provided pincode")

    def test_missing_api_key_is_json_error(self):
        with override_settings(GOOGLE_MAPS={**settings.GOOGLE_MAPS, "API_KEY": ""}):
            with patch("serviceability.integrations.google_maps.requests.get") as get:
                with self.assertLogs("serviceability.integrations.google_maps", level="ERROR"):
                    resp = self.client.get(self.url, {"pincode": "411045"})
        get.assert_not_called()
        self.assertEqual(resp.status_code, 500)
        self.assertFalse(resp.json()["success"])

    def test_invalid_pincode(self):
        for value in ("", "4110", "41100A", "4110451"):
            with self.subTest(value=value):
                resp = self.client.get(self.url, {"pincode": value})
                self.assertEqual(resp.status_code, 400)
                self.assertEqual(resp.json()["error"], "Valid 6-digit pincode is required")

    def test_no_active_cities(self):
        AllowedCity.objects.update(is_allowed=False)
        resp = self._get({})
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json()["error"], "No serviceable cities configured")

    @override_settings(SERVICEABLE_MAX_DISTANCE_KM=100)
    def test_threshold_is_configurable(self):
        routes = {"19.0760,72.8777": 99000, "18.5204,73.8567": 120000, "18.6298,73.7997": 130000}
        self.assertTrue(self._get(routes).json()["isAllowed"])

    def test_post_not_allowed(self):
        self.assertEqual(self.client.post(self.url, {"pincode": "411045"}).status_code, 405)

    def test_php_alias(self):
        resp = self.client.get("/api/distance-check.php", {"pincode": "12"})
        self.assertEqual(resp.status_code, 400)


class AllowedCitiesViewTests(TestCase):
    def test_lists_active_cities_by_name(self):
        AllowedCity.objects.create(city_name="Aurangabad", coordinates="19.8762,75.3433", is_allowed=False)
        resp = self.client.get(reverse("serviceability:allowed_cities"))
        body = resp.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["count"], 3)
        self.assertEqual(body["cities"][0], {"city_name": "Mumbai", "coordinates": "19.0760,72.8777"})

    def test_php_path(self):
        self.assertEqual(self.client.get("/api/get-allowed-cities.php").json()["count"], 3)


class DistanceCheckScriptTests(TestCase):
    def test_script_caches_by_rounded_coordinates(self):
        path = finders.find("serviceability/distance-check.js")
        self.assertIsNotNone(path)
        with open(path, encoding="utf-8") as fh:
            source = fh.read()
        self.assertIn('"pincodeDistanceCache"', source)
        self.assertIn("24 * 60 * 60 * 1000", source)
        self.assertIn("toFixed(2)", source)
        self.assertIn("coordinateKey(result.coordinates)", source)
        self.assertIn("entry.ref ? getCached(entry.ref)", source)
