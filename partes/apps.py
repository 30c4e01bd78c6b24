from django.apps import AppConfig


class PartesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "partes"
    verbose_name = "Partes de trabajo"
