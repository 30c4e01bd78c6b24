from django.apps import AppConfig
from django.conf import settings


class CoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "core"
    verbose_name = "Núcleo"

    # Se construye una sola vez; las vistas lo reciben en request.store
    store = None

    def ready(self):
        from .store import construir_store

        self.store = construir_store(settings.DATA_BACKEND)
        if self.store.nombre == "memoria" and settings.SEED_DEMO:
            from .demo import cargar_datos_demo
            cargar_datos_demo(self.store)
