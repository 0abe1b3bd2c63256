from django.urls import path
from . import views
app_name = "serviceability"
urlpatterns = [
    path("api/distance-check", views.distance_check, name="distance_check"),
    path("api/distance-check.php", views.distance_check),
    path("api/get-allowed-cities", views.allowed_cities, name="allowed_cities"),
    path("api/get-allowed-cities.php", views.allowed_cities),
]
