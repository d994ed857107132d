from django.apps import AppConfig


class RealEstateConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "realestate"
    verbose_name = "Liegenschaftsverwaltung"
