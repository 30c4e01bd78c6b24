from datetime import date

from django.test import SimpleTestCase, TestCase
from django.urls import reverse

from core.exceptions import Duplicado, ValidacionError
from core.roles import Rol
from core.store import MemoryStore
from core.tests import BaseVistasTestCase
from fichajes.services import registrar_fichaje

from .models import EstadoSolicitud, TipoAusencia
from .services import (
    UsuarioRepositorio,
    alternar_activo,
    aprobar_solicitud,
    autenticar,
    calcular_dias,
    cambiar_password,
    crear_usuario,
    eliminar_usuario,
    rechazar_solicitud,
    solicitar_vacaciones,
    solicitudes_visibles,
)


class CalcularDiasTests(SimpleTestCase):
    def test_ambos_extremos_incluidos(self):
        self.assertEqual(calcular_dias(date(2025, 8, 1), date(2025, 8, 15)), 15)

    def test_un_solo_dia(self):
        self.assertEqual(calcular_dias("2025-08-01", "2025-08-01"), 1)

    def test_cruza_fin_de_mes(self):
        self.assertEqual(calcular_dias("2025-02-27", "2025-03-02"), 4)

    def test_fin_anterior_al_inicio(self):
        with self.assertRaises(ValidacionError):
            calcular_dias("2025-08-10", "2025-08-01")

    def test_fecha_invalida(self):
        with self.assertRaises(ValidacionError):
            calcular_dias("mañana", "2025-08-01")


class BasePersonalTestCase(TestCase):
    def setUp(self):
        self.store = MemoryStore()
        self.admin = crear_usuario(self.store, {
            "email": "Admin@Taller.es", "nombre": "Carlos", "rol": Rol.ADMIN,
        }, "clave-admin-1")
        self.tecnico = crear_usuario(self.store, {
            "email": "juan@taller.es", "nombre": "Juan", "apellidos": "Pérez", "rol": Rol.TECNICO,
        }, "clave-juan-1")


class UsuariosTests(BasePersonalTestCase):
    def test_email_se_guarda_en_minusculas_y_password_cifrada(self):
        self.assertEqual(self.admin["email"], "admin@taller.es")
        self.assertNotEqual(self.admin["password"], "clave-admin-1")

    def test_autenticar(self):
        self.assertEqual(autenticar(self.store, "ADMIN@taller.es ", "clave-admin-1")["id"], self.admin["id"])
        self.assertIsNone(autenticar(self.store, "admin@taller.es", "otra"))
        self.assertIsNone(autenticar(self.store, "nadie@taller.es", "clave-admin-1"))

    def test_inactivo_no_se_autentica(self):
        alternar_activo(self.store, self.tecnico["id"], por=self.admin)
        self.assertIsNone(autenticar(self.store, "juan@taller.es", "clave-juan-1"))

    def test_no_se_puede_desactivar_a_si_mismo(self):
        with self.assertRaises(ValidacionError):
            alternar_activo(self.store, self.admin["id"], por=self.admin)

    def test_email_duplicado(self):
        with self.assertRaises(Duplicado):
            crear_usuario(self.store, {"email": "JUAN@taller.es", "nombre": "Otro"}, "clave-otro-1")

    def test_password_obligatoria(self):
        with self.assertRaises(ValidacionError):
            crear_usuario(self.store, {"email": "nuevo@taller.es", "nombre": "Nuevo"}, "")

    def test_password_pasa_los_validadores_de_django(self):
        """
        Corta, solo numérica o demasiado común: se rechaza al dar de alta.
        """
        for password in ("corta", "12345678", "password"):
            with self.assertRaises(ValidacionError):
                crear_usuario(self.store, {"email": "nuevo@taller.es", "nombre": "Nuevo"}, password)
        self.assertIsNone(UsuarioRepositorio(self.store).por_email("nuevo@taller.es"))

    def test_cambiar_password(self):
        with self.assertRaises(ValidacionError):
            cambiar_password(self.store, self.tecnico["id"], "corta")
        with self.assertRaises(ValidacionError):
            cambiar_password(self.store, self.tecnico["id"], "98765432")
        cambiar_password(self.store, self.tecnico["id"], "otra-clave-larga", por=self.admin)
        self.assertIsNotNone(autenticar(self.store, "juan@taller.es", "otra-clave-larga"))
        self.assertIsNone(autenticar(self.store, "juan@taller.es", "clave-juan-1"))

    def test_eliminar_usuario(self):
        with self.assertRaises(ValidacionError):
            eliminar_usuario(self.store, self.admin["id"], por=self.admin)
        eliminar_usuario(self.store, self.tecnico["id"], por=self.admin)
        self.assertIsNone(UsuarioRepositorio(self.store).por_email("juan@taller.es"))

    def test_no_se_elimina_un_usuario_con_fichajes(self):
        registrar_fichaje(self.store, self.tecnico["id"], "entrada")
        with self.assertRaises(ValidacionError):
            eliminar_usuario(self.store, self.tecnico["id"], por=self.admin)
        self.assertIsNotNone(UsuarioRepositorio(self.store).por_email("juan@taller.es"))

    def test_activos_por_rol(self):
        tecnicos = UsuarioRepositorio(self.store).activos(Rol.TECNICO)
        self.assertEqual([u["email"] for u in tecnicos], ["juan@taller.es"])


class VacacionesTests(BasePersonalTestCase):
    def setUp(self):
        super().setUp()
        self.solicitud = solicitar_vacaciones(
            self.store, self.tecnico, "2025-08-01", "2025-08-15", TipoAusencia.VACACIONES, "Verano",
        )

    def test_solicitud_pendiente_con_dias(self):
        self.assertEqual(self.solicitud["estado"], EstadoSolicitud.PENDIENTE)
        self.assertEqual(self.solicitud["dias_solicitados"], 15)

    def test_aprobar(self):
        s = aprobar_solicitud(self.store, self.solicitud["id"], self.admin, "Disfruta")
        self.assertEqual(s["estado"], EstadoSolicitud.APROBADA)
        self.assertEqual(s["aprobado_por_id"], self.admin["id"])
        self.assertIsNotNone(s["fecha_aprobacion"])
        self.assertEqual(s["comentario_admin"], "Disfruta")

    def test_rechazar(self):
        s = rechazar_solicitud(self.store, self.solicitud["id"], self.admin)
        self.assertEqual(s["estado"], EstadoSolicitud.RECHAZADA)

    def test_no_se_resuelve_dos_veces(self):
        aprobar_solicitud(self.store, self.solicitud["id"], self.admin)
        with self.assertRaises(ValidacionError):
            rechazar_solicitud(self.store, self.solicitud["id"], self.admin)

    def test_tecnico_solo_ve_las_suyas(self):
        solicitar_vacaciones(self.store, self.admin, "2025-09-01", "2025-09-02", TipoAusencia.PERMISO)
        self.assertEqual(len(solicitudes_visibles(self.store, self.tecnico)), 1)
        self.assertEqual(len(solicitudes_visibles(self.store, self.admin)), 2)
        self.assertEqual(len(solicitudes_visibles(self.store, self.admin, estado=EstadoSolicitud.APROBADA)), 0)


class PersonalVistasTests(BaseVistasTestCase):
    def test_lista_solo_para_gestion(self):
        self.entrar(self.tecnico)
        self.assertRedirects(self.client.get(reverse("personal_lista")), reverse("home"))
        self.entrar(self.admin)
        resp = self.client.get(reverse("personal_lista"))
        self.assertContains(resp, "tecnico@taller.es")

    def test_alta_de_usuario(self):
        self.entrar(self.admin)
        resp = self.client.post(reverse("personal_nuevo"), {
            "nombre": "María", "email": "maria@taller.es", "rol": Rol.TECNICO, "password": "clave-maria-1",
        })
        self.assertRedirects(resp, reverse("personal_lista"))
        self.assertIsNotNone(UsuarioRepositorio(self.store).por_email("maria@taller.es"))

    def test_eliminar_solo_admin(self):
        otro = self.crear_usuario("otro@taller.es", Rol.TECNICO)
        self.entrar(self.tecnico)
        resp = self.client.post(reverse("personal_eliminar", args=[otro["id"]]))
        self.assertRedirects(resp, reverse("home"))
        self.entrar(self.admin)
        resp = self.client.post(reverse("personal_eliminar", args=[otro["id"]]))
        self.assertRedirects(resp, reverse("personal_lista"))
        self.assertIsNone(UsuarioRepositorio(self.store).por_email("otro@taller.es"))

    def test_solicitar_y_aprobar_vacaciones(self):
        self.entrar(self.tecnico)
        resp = self.client.post(reverse("vacaciones"), {
            "fecha_inicio": "2025-08-01", "fecha_fin": "2025-08-05", "tipo": TipoAusencia.VACACIONES,
        })
        self.assertRedirects(resp, reverse("vacaciones"))
        solicitud = solicitudes_visibles(self.store, self.tecnico)[0]
        self.assertEqual(solicitud["dias_solicitados"], 5)

        # un técnico no puede aprobar
        resp = self.client.post(reverse("vacaciones_aprobar", args=[solicitud["id"]]))
        self.assertRedirects(resp, reverse("home"))

        self.entrar(self.admin)
        resp = self.client.post(reverse("vacaciones_aprobar", args=[solicitud["id"]]), {"comentario": "OK"})
        self.assertRedirects(resp, reverse("vacaciones"))
        solicitud = solicitudes_visibles(self.store, self.tecnico)[0]
        self.assertEqual(solicitud["estado"], EstadoSolicitud.APROBADA)
