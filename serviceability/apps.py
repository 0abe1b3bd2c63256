from django.apps import AppConfig


class ServiceabilityConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "serviceability"
