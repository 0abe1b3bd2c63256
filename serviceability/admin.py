from django.contrib import admin
from .models import AllowedCity

@admin.register(AllowedCity)
class AllowedCityAdmin(admin.ModelAdmin):
    list_display = ("city_name", "coordinates", "is_allowed", "max_distance_km", "updated_at")
    search_fields = ("city_name",)
    list_filter = ("is_allowed",)
    readonly_fields = ("created_at", "updated_at")
