from django.core.management.base import BaseCommand, CommandError

from core.roles import Rol
from core.store import store_activo
from personal.services import UsuarioRepositorio


class Command(BaseCommand):
    help = "Asigna un rol a un usuario. Ej: python manage.py set_role juan.perez@cmghidraulica.com jefe_taller"

    def add_arguments(self, parser):
        parser.add_argument("email")
        parser.add_argument("rol", choices=Rol.values)

    def handle(self, *args, **opts):
        store = store_activo()
        if store.nombre == "memoria":
            self.stderr.write(self.style.WARNING("DATA_BACKEND=memory: el cambio se pierde al terminar el comando."))
        repo = UsuarioRepositorio(store)
        usuario = repo.por_email(opts["email"])
        if usuario is None:
            raise CommandError("Usuario no existe")
        res = repo.actualizar(usuario["id"], {"rol": opts["rol"]})
        if not res.ok:
            raise CommandError(res.error.message)
        self.stdout.write(self.style.SUCCESS(f"Rol {opts['rol']} asignado a {usuario['email']}"))
