from datetime import date, timedelta
from unittest import mock

from django.apps import apps
from django.contrib.auth.hashers import make_password
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from core.auth import SESSION_KEY
from core.exceptions import Duplicado, NoEncontrado, ReferenciaInvalida, ValidacionError
from core.models import AuditLog
from core.permisos import Capacidad, POLITICA, puede, puede_gestionar_clientes, usuario_puede
from core.roles import Rol
from core.store import MemoryStore, OrmStore, Repositorio, construir_store


class PermisosTests(TestCase):
    def test_admin_tiene_todas_las_capacidades(self):
        for cap in Capacidad:
            self.assertTrue(puede(Rol.ADMIN, cap), cap)

    def test_rol_desconocido_no_puede_nada(self):
        for cap in Capacidad:
            self.assertFalse(puede("becario", cap))
            self.assertFalse(puede("", cap))
            self.assertFalse(puede(None, cap))

    def test_tecnico_no_gestiona_clientes_ni_ve_todos_los_partes(self):
        self.assertFalse(puede(Rol.TECNICO, Capacidad.GESTIONAR_CLIENTES))
        self.assertFalse(puede(Rol.TECNICO, Capacidad.VER_TODOS_PARTES))
        self.assertFalse(puede(Rol.TECNICO, Capacidad.APROBAR_VACACIONES))
        self.assertTrue(puede(Rol.TECNICO, Capacidad.VER_AGENDA))

    def test_puede_gestionar_clientes(self):
        self.assertFalse(puede_gestionar_clientes(Rol.TECNICO))
        self.assertTrue(puede_gestionar_clientes(Rol.ADMIN))

    def test_jefe_de_taller_aprueba_vacaciones(self):
        self.assertTrue(puede(Rol.JEFE_TALLER, Capacidad.APROBAR_VACACIONES))
        self.assertTrue(puede(Rol.JEFE_TALLER, Capacidad.VER_TODOS_FICHAJES))

    def test_todas_las_capacidades_estan_en_la_politica(self):
        self.assertEqual(set(POLITICA), set(Capacidad))

    def test_usuario_inactivo_no_puede(self):
        usuario = {"id": "x", "rol": Rol.ADMIN, "activo": False}
        self.assertFalse(usuario_puede(usuario, Capacidad.VER_CLIENTES))
        self.assertFalse(usuario_puede(None, Capacidad.VER_CLIENTES))


class StoreContratoMixin:
    """Mismas pruebas para los dos backends; cada subclase define `crear_store`."""

    def crear_store(self):
        raise NotImplementedError

    def setUp(self):
        self.store = self.crear_store()

    def _usuario(self, email="tecnico@taller.es", **extra):
        datos = {"email": email, "nombre": "Juan", "apellidos": "Pérez", "rol": Rol.TECNICO}
        datos.update(extra)
        return self.store.crear("usuarios", datos).unwrap()

    def test_crear_rellena_id_fechas_y_valores_por_defecto(self):
        u = self._usuario()
        self.assertTrue(u["id"])
        self.assertIsNotNone(u["created_at"])
        self.assertEqual(u["created_at"], u["updated_at"])
        self.assertTrue(u["activo"])
        self.assertEqual(u["telefono"], "")

    def test_obtener_devuelve_lo_creado(self):
        datos = {
            "email": "tecnico@taller.es", "nombre": "Juan", "apellidos": "Pérez", "rol": Rol.TECNICO,
            "telefono": "600111222", "fecha_alta": date(2024, 3, 1), "activo": False,
        }
        creado = self.store.crear("usuarios", datos).unwrap()
        res = self.store.obtener("usuarios", creado["id"])
        self.assertTrue(res.ok)
        self.assertEqual(res.data, creado)
        for campo, valor in datos.items():
            self.assertEqual(res.data[campo], valor, campo)
        self.assertTrue({"id", "created_at", "updated_at"} <= set(res.data))

    def test_obtener_inexistente_devuelve_error(self):
        res = self.store.obtener("usuarios", "00000000-0000-0000-0000-000000000000")
        self.assertFalse(res.ok)
        self.assertEqual(res.error.code, "not_found")
        with self.assertRaises(NoEncontrado):
            res.unwrap()

    def test_actualizacion_parcial_refresca_updated_at(self):
        u = self._usuario()
        despues = u["updated_at"] + timedelta(minutes=5)
        with mock.patch("core.store.timezone.now", return_value=despues):
            nuevo = self.store.actualizar("usuarios", u["id"], {"telefono": "600111222"}).unwrap()
        self.assertEqual(nuevo["telefono"], "600111222")
        self.assertEqual(nuevo["nombre"], "Juan")
        self.assertEqual(nuevo["updated_at"], despues)
        self.assertEqual(nuevo["created_at"], u["created_at"])

    def test_actualizar_no_toca_id_ni_created_at(self):
        u = self._usuario()
        nuevo = self.store.actualizar("usuarios", u["id"], {
            "id": "11111111-1111-1111-1111-111111111111",
            "created_at": timezone.now() - timedelta(days=30),
        }).unwrap()
        self.assertEqual(nuevo["id"], u["id"])
        self.assertEqual(nuevo["created_at"], u["created_at"])

    def test_eliminar_inexistente_no_modifica_nada(self):
        self._usuario()
        res = self.store.eliminar("usuarios", "00000000-0000-0000-0000-000000000000")
        self.assertEqual(res.error.code, "not_found")
        self.assertEqual(len(self.store.listar("usuarios").unwrap()), 1)

    def test_email_duplicado(self):
        self._usuario()
        res = self.store.crear("usuarios", {"email": "tecnico@taller.es", "nombre": "Otro"})
        self.assertEqual(res.error.code, "duplicate")
        with self.assertRaises(Duplicado):
            res.unwrap()

    def test_campo_obligatorio(self):
        with self.assertRaises(ValidacionError):
            self.store.crear("fichajes", {"tipo": "entrada"}).unwrap()

    def test_referencia_inexistente(self):
        with self.assertRaises(ReferenciaInvalida):
            self.store.crear("vehiculos", {
                "cliente_id": "00000000-0000-0000-0000-000000000000",
                "matricula": "1234ABC",
            }).unwrap()

    def test_listar_con_filtros_y_orden(self):
        self._usuario("b@taller.es", nombre="Beatriz")
        self._usuario("a@taller.es", nombre="Andrés", rol=Rol.ADMIN)
        self._usuario("c@taller.es", nombre="Carmen")
        tecnicos = self.store.listar("usuarios", {"rol": Rol.TECNICO}, "nombre").unwrap()
        self.assertEqual([u["nombre"] for u in tecnicos], ["Beatriz", "Carmen"])
        todos = Repositorio(self.store, "usuarios").listar(orden="-nombre").unwrap()
        self.assertEqual(todos[0]["nombre"], "Carmen")

    def test_borrar_cliente_borra_vehiculos_y_desvincula_partes(self):
        u = self._usuario()
        cliente = self.store.crear("clientes", {"nombre": "Transportes García"}).unwrap()
        vehiculo = self.store.crear("vehiculos", {"cliente_id": cliente["id"], "matricula": "1234ABC"}).unwrap()
        parte = self.store.crear("partes_trabajo", {
            "numero_parte": "PT-2025-001",
            "cliente_id": cliente["id"],
            "cliente_nombre": cliente["nombre"],
            "creado_por_id": u["id"],
            "descripcion": "Revisión",
        }).unwrap()

        self.store.eliminar("clientes", cliente["id"]).unwrap()

        self.assertFalse(self.store.obtener("vehiculos", vehiculo["id"]).ok)
        parte = self.store.obtener("partes_trabajo", parte["id"]).unwrap()
        self.assertIsNone(parte["cliente_id"])
        self.assertIsNone(parte["vehiculo_id"])
        self.assertEqual(parte["cliente_nombre"], "Transportes García")

    def test_los_registros_devueltos_son_copias(self):
        u = self._usuario()
        u["nombre"] = "Cambiado"
        self.assertEqual(self.store.obtener("usuarios", u["id"]).unwrap()["nombre"], "Juan")


class MemoryStoreTests(StoreContratoMixin, TestCase):
    def crear_store(self):
        return MemoryStore()


class OrmStoreTests(StoreContratoMixin, TestCase):
    def crear_store(self):
        return OrmStore()

    def test_probar_conexion(self):
        self.assertTrue(self.store.probar_conexion().ok)


class ConstruirStoreTests(TestCase):
    def test_backend_desconocido(self):
        from django.core.exceptions import ImproperlyConfigured

        with self.assertRaises(ImproperlyConfigured):
            construir_store("redis")

    def test_backends_validos(self):
        self.assertIsInstance(construir_store("memory"), MemoryStore)
        self.assertIsInstance(construir_store("orm"), OrmStore)


class BaseVistasTestCase(TestCase):
    """Store en memoria vacío y un usuario por rol."""

    password = "clave-segura-1"

    def setUp(self):
        config = apps.get_app_config("core")
        anterior = config.store
        config.store = self.store = MemoryStore()
        self.addCleanup(setattr, config, "store", anterior)

        self.admin = self.crear_usuario("admin@taller.es", Rol.ADMIN, "Carlos")
        self.tecnico = self.crear_usuario("tecnico@taller.es", Rol.TECNICO, "Juan")

    def crear_usuario(self, email, rol, nombre="Usuario", activo=True):
        return self.store.crear("usuarios", {
            "email": email,
            "nombre": nombre,
            "rol": rol,
            "activo": activo,
            "password": make_password(self.password),
        }).unwrap()

    def entrar(self, usuario):
        session = self.client.session
        session[SESSION_KEY] = usuario["id"]
        session.save()


class SesionTests(BaseVistasTestCase):
    def test_login_correcto(self):
        resp = self.client.post(reverse("login"), {"email": "ADMIN@taller.es", "password": self.password})
        self.assertRedirects(resp, reverse("home"))
        self.assertEqual(self.client.session[SESSION_KEY], self.admin["id"])
        self.assertTrue(AuditLog.objects.filter(app="CORE", action="LOGIN").exists())

    def test_login_con_password_erronea(self):
        resp = self.client.post(reverse("login"), {"email": "admin@taller.es", "password": "otra"})
        self.assertEqual(resp.status_code, 200)
        self.assertNotIn(SESSION_KEY, self.client.session)

    def test_usuario_inactivo_no_entra(self):
        self.crear_usuario("baja@taller.es", Rol.ADMIN, activo=False)
        self.client.post(reverse("login"), {"email": "baja@taller.es", "password": self.password})
        self.assertNotIn(SESSION_KEY, self.client.session)

    def test_anonimo_va_al_login(self):
        resp = self.client.get(reverse("home"))
        self.assertEqual(resp.status_code, 302)
        self.assertIn(reverse("login"), resp["Location"])

    def test_logout(self):
        self.entrar(self.admin)
        resp = self.client.post(reverse("logout"))
        self.assertRedirects(resp, reverse("login"))
        self.assertNotIn(SESSION_KEY, self.client.session)

    def test_sesion_de_usuario_desactivado_se_invalida(self):
        self.entrar(self.tecnico)
        self.store.actualizar("usuarios", self.tecnico["id"], {"activo": False}).unwrap()
        resp = self.client.get(reverse("home"))
        self.assertEqual(resp.status_code, 302)
        self.assertIn(reverse("login"), resp["Location"])

    def test_home(self):
        self.entrar(self.admin)
        resp = self.client.get(reverse("home"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp["Cache-Control"], "no-store, no-cache, must-revalidate, max-age=0")


class PermisosVistasTests(BaseVistasTestCase):
    def test_tecnico_sin_permiso_vuelve_a_inicio(self):
        self.entrar(self.tecnico)
        resp = self.client.get(reverse("core_ajustes"))
        self.assertRedirects(resp, reverse("home"))

    def test_admin_ve_ajustes_y_logs(self):
        self.entrar(self.admin)
        self.assertEqual(self.client.get(reverse("core_ajustes")).status_code, 200)
        self.assertEqual(self.client.get(reverse("core_logs")).status_code, 200)


class HealthcheckTests(BaseVistasTestCase):
    def test_ok(self):
        resp = self.client.get(reverse("healthcheck"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.content, b"OK")
