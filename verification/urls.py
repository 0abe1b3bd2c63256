from django.urls import path
from . import views
app_name = "verification"
urlpatterns = [
    path("api/generate-otp", views.generate_otp, name="generate_otp"),
    path("api/generate-otp.php", views.generate_otp),
    path("api/verify-otp", views.verify_otp_view, name="verify_otp"),
    path("api/verify-otp.php", views.verify_otp_view),
]
