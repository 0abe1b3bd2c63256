from django.urls import path
from . import views
app_name = "bookings"
urlpatterns = [
    path("book-now", views.book_now, name="book_now"),
    path("api/process-payment", views.process_payment, name="process_payment"),
    path("api/process-payment.php", views.process_payment),
    path("thank-you", views.thank_you, name="thank_you"),
]
