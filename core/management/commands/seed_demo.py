from django.core.management.base import BaseCommand, CommandError

from core.demo import cargar_datos_demo
from core.store import store_activo


class Command(BaseCommand):
    help = "Carga los datos de demostración (usuarios, clientes, materiales...) en la base de datos."

    def handle(self, *args, **opts):
        store = store_activo()
        if store.nombre == "memoria":
            raise CommandError("Con DATA_BACKEND=memory los datos de demostración se cargan solos al arrancar.")
        if cargar_datos_demo(store):
            self.stdout.write(self.style.SUCCESS("Datos de demostración cargados."))
        else:
            self.stdout.write("La base de datos ya tenía usuarios: no se ha cargado nada.")
