from django.urls import path
from . import views
app_name = "payments"
urlpatterns = [
    path("api/check-status", views.check_status, name="check_status"),
    path("api/check-status.php", views.check_status),
]
