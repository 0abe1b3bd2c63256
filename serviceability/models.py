from django.db import models


class AllowedCity(models.Model):
    city_name = models.CharField(max_length=100, unique=True)
    coordinates = models.CharField(max_length=50, help_text="lat,lng")
    is_allowed = models.BooleanField(default=True, db_index=True)
    description = models.TextField(blank=True, default="")
    max_distance_km = models.PositiveIntegerField(default=50)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["city_name"]
        verbose_name_plural = "allowed cities"

    def __str__(self):
        return self.city_name
