from django.apps import AppConfig


class FichajesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "fichajes"
    verbose_name = "Fichajes"
