from django.core.management.base import BaseCommand, CommandError

from core.exceptions import DominioError
from core.roles import Rol
from core.store import store_activo
from personal.services import crear_usuario


class Command(BaseCommand):
    help = "Crea un usuario administrador. Ej: python manage.py crear_admin admin@empresa.com Carlos secreto123"

    def add_arguments(self, parser):
        parser.add_argument("email")
        parser.add_argument("nombre")
        parser.add_argument("password")

    def handle(self, *args, **opts):
        try:
            usuario = crear_usuario(
                store_activo(),
                {"email": opts["email"], "nombre": opts["nombre"], "rol": Rol.ADMIN},
                opts["password"],
            )
        except DominioError as e:
            raise CommandError(e.message)
        self.stdout.write(self.style.SUCCESS(f"Administrador {usuario['email']} creado"))
