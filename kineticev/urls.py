from django.contrib import admin
from django.urls import include, path

from . import views

urlpatterns = [
    path("", views.home_view, name="home"),
    path("admin/", admin.site.urls),
    path("", include("bookings.urls")),
    path("", include("payments.urls")),
    path("", include("serviceability.urls")),
    path("", include("verification.urls")),
    path("", include("leads.urls")),
]

handler404 = "kineticev.views.error_404_view"
