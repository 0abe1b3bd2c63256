from django.db import migrations

CITIES = [
    ("Mumbai", "19.0760,72.8777", "Mumbai metropolitan region"),
    ("Pune", "18.5204,73.8567", "Pune city"),
    ("Pimpri-Chinchwad", "18.6298,73.7997", "Pimpri-Chinchwad industrial area"),
]


def seed(apps, schema_editor):
    AllowedCity = apps.get_model("serviceability", "AllowedCity")
    for name, coords, description in CITIES:
        AllowedCity.objects.get_or_create(
            city_name=name,
            defaults={"coordinates": coords, "description": description, "is_allowed": True},
        )


def unseed(apps, schema_editor):
    AllowedCity = apps.get_model("serviceability", "AllowedCity")
    AllowedCity.objects.filter(city_name__in=[c[0] for c in CITIES]).delete()


class Migration(migrations.Migration):

    dependencies = [
        ('serviceability', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(seed, unseed),
    ]
