from django.urls import path
from . import views
app_name = "leads"
urlpatterns = [
    path("api/submit-test-drive", views.submit_test_drive, name="submit_test_drive"),
    path("api/submit-test-drive.php", views.submit_test_drive),
    path("api/save-contact", views.save_contact, name="save_contact"),
    path("api/save-contact.php", views.save_contact),
]
