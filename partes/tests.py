from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal

from django.test import TestCase
from django.urls import reverse

from core.exceptions import TransicionInvalida, ValidacionError
from core.roles import Rol
from core.store import MemoryStore
from core.tests import BaseVistasTestCase
from fichajes.services import FichajeRepositorio, registrar_fichaje

from .models import EstadoParte
from .services import (
    MaterialUsadoRepositorio,
    ParteRepositorio,
    actualizar_horas_facturables,
    actualizar_parte,
    agregar_material,
    cancelar_parte,
    cerrar_parte,
    crear_parte,
    estado_fichaje,
    generar_numero_parte,
    iniciar_trabajo,
    partes_visibles,
    quitar_material,
    registrar_salida,
    validar_transicion,
)


class BaseParteTestCase(TestCase):
    def setUp(self):
        self.store = MemoryStore()
        self.tecnico = self.store.crear("usuarios", {
            "email": "juan@taller.es", "nombre": "Juan", "rol": Rol.TECNICO,
        }).unwrap()
        self.recepcion = self.store.crear("usuarios", {
            "email": "laura@taller.es", "nombre": "Laura", "rol": Rol.RECEPCION,
        }).unwrap()
        self.cliente = self.store.crear("clientes", {"nombre": "Transportes García", "cif": "B12345678"}).unwrap()
        self.vehiculo = self.store.crear("vehiculos", {
            "cliente_id": self.cliente["id"], "matricula": "1234ABC", "marca": "Volvo", "modelo": "FH",
        }).unwrap()
        self.material = self.store.crear("materiales", {
            "codigo": "HID-001", "nombre": "Aceite hidráulico", "stock_actual": 10, "stock_minimo": 2,
            "precio_unitario": "4.50", "unidad": "lt",
        }).unwrap()
        self.parte = crear_parte(self.store, {
            "cliente_id": self.cliente["id"],
            "vehiculo_id": self.vehiculo["id"],
            "tecnico_asignado_id": self.tecnico["id"],
            "descripcion": "Fuga en cilindro de volteo",
        }, self.recepcion)

    def fichar(self, tipo, hora, usuario=None):
        momento = datetime(2025, 3, 10, hora, tzinfo=dt_timezone.utc)
        return registrar_fichaje(self.store, (usuario or self.tecnico)["id"], tipo, parte_id=self.parte["id"], momento=momento)


class CrearParteTests(BaseParteTestCase):
    def test_alta_copia_datos_de_cliente_y_vehiculo(self):
        self.assertEqual(self.parte["estado"], EstadoParte.PENDIENTE)
        self.assertEqual(self.parte["cliente_nombre"], "Transportes García")
        self.assertEqual(self.parte["vehiculo_matricula"], "1234ABC")
        self.assertEqual(self.parte["vehiculo_marca"], "Volvo")
        self.assertEqual(self.parte["creado_por_id"], self.recepcion["id"])
        self.assertEqual(self.parte["horas_reales"], 0)

    def test_numero_parte_correlativo(self):
        otro = crear_parte(self.store, {"cliente_nombre": "Particular", "descripcion": "Revisión"}, self.recepcion)
        anio = self.parte["created_at"].year
        self.assertTrue(self.parte["numero_parte"].startswith(f"PT-{anio}-"))
        self.assertNotEqual(otro["numero_parte"], self.parte["numero_parte"])

    def test_generar_numero_parte_salta_los_usados(self):
        ahora = datetime(2030, 1, 1, tzinfo=dt_timezone.utc)
        self.assertEqual(generar_numero_parte(self.store, "OT", ahora), "OT-2030-001")
        self.store.crear("partes_trabajo", {"numero_parte": "OT-2030-002", "descripcion": "x"}).unwrap()
        # uno ya existente: el siguiente sería 002, que está ocupado
        self.assertEqual(generar_numero_parte(self.store, "OT", ahora), "OT-2030-003")

    def test_descripcion_obligatoria(self):
        with self.assertRaises(ValidacionError):
            crear_parte(self.store, {"cliente_nombre": "Particular", "descripcion": "  "}, self.recepcion)

    def test_cliente_obligatorio(self):
        with self.assertRaises(ValidacionError):
            crear_parte(self.store, {"descripcion": "Revisión"}, self.recepcion)

    def test_editar_no_toca_estado_ni_numero(self):
        parte = actualizar_parte(self.store, self.parte["id"], {
            "cliente_nombre": "Otro", "descripcion": "Cambio de latiguillos",
            "estado": EstadoParte.COMPLETADO, "numero_parte": "X-1",
        }, self.recepcion)
        self.assertEqual(parte["descripcion"], "Cambio de latiguillos")
        self.assertEqual(parte["estado"], EstadoParte.PENDIENTE)
        self.assertEqual(parte["numero_parte"], self.parte["numero_parte"])


class CicloDeVidaTests(BaseParteTestCase):
    def test_transiciones(self):
        self.assertTrue(validar_transicion(EstadoParte.PENDIENTE, EstadoParte.EN_PROGRESO))
        self.assertTrue(validar_transicion(EstadoParte.EN_PROGRESO, EstadoParte.COMPLETADO))
        self.assertFalse(validar_transicion(EstadoParte.PENDIENTE, EstadoParte.COMPLETADO))
        self.assertFalse(validar_transicion(EstadoParte.COMPLETADO, EstadoParte.EN_PROGRESO))
        self.assertFalse(validar_transicion(EstadoParte.CANCELADO, EstadoParte.PENDIENTE))

    def test_fichar_entrada_inicia_el_parte(self):
        iniciar_trabajo(self.store, self.parte["id"], self.tecnico)
        parte = ParteRepositorio(self.store).obtener(self.parte["id"]).unwrap()
        self.assertEqual(parte["estado"], EstadoParte.EN_PROGRESO)
        self.assertIsNotNone(parte["fecha_inicio"])
        self.assertIsNotNone(estado_fichaje(self.store, self.parte["id"], self.tecnico["id"]))

    def test_no_se_ficha_dos_veces(self):
        iniciar_trabajo(self.store, self.parte["id"], self.tecnico)
        with self.assertRaises(ValidacionError):
            iniciar_trabajo(self.store, self.parte["id"], self.tecnico)

    def test_no_se_ficha_en_dos_partes_a_la_vez(self):
        otro = crear_parte(self.store, {"cliente_nombre": "Particular", "descripcion": "Revisión"}, self.recepcion)
        iniciar_trabajo(self.store, self.parte["id"], self.tecnico)
        with self.assertRaises(ValidacionError):
            iniciar_trabajo(self.store, otro["id"], self.tecnico)

    def test_salida_sin_entrada(self):
        with self.assertRaises(ValidacionError):
            registrar_salida(self.store, self.parte["id"], self.tecnico)

    def test_salida_recalcula_horas(self):
        iniciar_trabajo(self.store, self.parte["id"], self.tecnico)
        registrar_salida(self.store, self.parte["id"], self.tecnico)
        parte = ParteRepositorio(self.store).obtener(self.parte["id"]).unwrap()
        self.assertIsNotNone(parte["horas_reales"])
        self.assertEqual(len(FichajeRepositorio(self.store).de_parte(self.parte["id"])), 2)

    def test_cerrar_exige_trabajo_realizado(self):
        iniciar_trabajo(self.store, self.parte["id"], self.tecnico)
        with self.assertRaises(ValidacionError):
            cerrar_parte(self.store, self.parte["id"], self.tecnico, "   ")

    def test_cerrar_parte_pendiente_es_transicion_invalida(self):
        with self.assertRaises(TransicionInvalida):
            cerrar_parte(self.store, self.parte["id"], self.tecnico, "Cambiado retén")

    def test_cerrar_suma_horas_de_todos_los_tecnicos(self):
        """
        Juan 09-12 y María 10-11: 4h reales, que pasan a facturables.
        """
        maria = self.store.crear("usuarios", {"email": "maria@taller.es", "nombre": "María"}).unwrap()
        self.store.actualizar("partes_trabajo", self.parte["id"], {"estado": EstadoParte.EN_PROGRESO}).unwrap()
        self.fichar("entrada", 9)
        self.fichar("salida", 12)
        self.fichar("entrada", 10, maria)
        self.fichar("salida", 11, maria)

        parte = cerrar_parte(self.store, self.parte["id"], self.tecnico, "Cambiado retén", "Pedro García", "12345678Z")

        self.assertEqual(parte["estado"], EstadoParte.COMPLETADO)
        self.assertEqual(parte["horas_reales"], 4.0)
        self.assertEqual(parte["horas_facturables"], 4.0)
        self.assertEqual(parte["firma_cliente"], "Pedro García")
        self.assertIsNotNone(parte["fecha_fin"])

    def test_cerrar_ficha_la_salida_pendiente(self):
        iniciar_trabajo(self.store, self.parte["id"], self.tecnico)
        cerrar_parte(self.store, self.parte["id"], self.tecnico, "Revisado")
        self.assertIsNone(estado_fichaje(self.store, self.parte["id"], self.tecnico["id"]))

    def test_cerrar_ficha_la_salida_de_todos_los_tecnicos(self):
        """
        Si otro técnico sigue dentro al cerrar, también se le ficha la salida
        y puede empezar otro parte.
        """
        maria = self.store.crear("usuarios", {"email": "maria@taller.es", "nombre": "María"}).unwrap()
        iniciar_trabajo(self.store, self.parte["id"], self.tecnico)
        iniciar_trabajo(self.store, self.parte["id"], maria)

        cerrar_parte(self.store, self.parte["id"], self.tecnico, "Revisado")

        self.assertIsNone(estado_fichaje(self.store, self.parte["id"], maria["id"]))
        otro = crear_parte(self.store, {"cliente_nombre": "Particular", "descripcion": "Revisión"}, self.recepcion)
        iniciar_trabajo(self.store, otro["id"], maria)
        self.assertIsNotNone(estado_fichaje(self.store, otro["id"], maria["id"]))

    def test_cancelar_ficha_las_salidas_pendientes(self):
        iniciar_trabajo(self.store, self.parte["id"], self.tecnico)
        cancelar_parte(self.store, self.parte["id"], self.recepcion, "Cliente no autoriza")
        self.assertIsNone(estado_fichaje(self.store, self.parte["id"], self.tecnico["id"]))
        self.assertEqual(len(FichajeRepositorio(self.store).de_parte(self.parte["id"])), 2)

    def test_cerrar_respeta_horas_facturables_ya_fijadas(self):
        actualizar_horas_facturables(self.store, self.parte["id"], 2.5)
        self.store.actualizar("partes_trabajo", self.parte["id"], {"estado": EstadoParte.EN_PROGRESO}).unwrap()
        self.fichar("entrada", 9)
        self.fichar("salida", 10)
        parte = cerrar_parte(self.store, self.parte["id"], self.tecnico, "Revisado")
        self.assertEqual(parte["horas_reales"], 1.0)
        self.assertEqual(parte["horas_facturables"], 2.5)

    def test_parte_cerrado_no_admite_cambios(self):
        cancelar_parte(self.store, self.parte["id"], self.recepcion, "Cliente no se presenta")
        with self.assertRaises(TransicionInvalida):
            iniciar_trabajo(self.store, self.parte["id"], self.tecnico)
        with self.assertRaises(TransicionInvalida):
            cancelar_parte(self.store, self.parte["id"], self.recepcion)
        with self.assertRaises(ValidacionError):
            actualizar_parte(self.store, self.parte["id"], {"cliente_nombre": "X", "descripcion": "Y"})

    def test_cancelar_anota_el_motivo(self):
        parte = cancelar_parte(self.store, self.parte["id"], self.recepcion, "Duplicado")
        self.assertEqual(parte["estado"], EstadoParte.CANCELADO)
        self.assertIn("Cancelado: Duplicado", parte["observaciones"])

    def test_horas_facturables_negativas(self):
        with self.assertRaises(ValidacionError):
            actualizar_horas_facturables(self.store, self.parte["id"], -1)


class VisibilidadTests(BaseParteTestCase):
    def test_tecnico_ve_solo_sus_partes(self):
        crear_parte(self.store, {"cliente_nombre": "Particular", "descripcion": "Revisión"}, self.recepcion)
        self.assertEqual(len(partes_visibles(self.store, self.tecnico)), 1)
        self.assertEqual(len(partes_visibles(self.store, self.recepcion)), 2)

    def test_busqueda(self):
        self.assertEqual(len(partes_visibles(self.store, self.recepcion, q="1234abc")), 1)
        self.assertEqual(len(partes_visibles(self.store, self.recepcion, q="nada")), 0)


class MaterialesTests(BaseParteTestCase):
    def test_material_de_catalogo_descuenta_stock(self):
        usado = agregar_material(self.store, self.parte["id"], {"material_id": self.material["id"], "cantidad": 3})
        self.assertEqual(usado["codigo"], "HID-001")
        self.assertEqual(usado["precio_unitario"], Decimal("4.50"))
        material = self.store.obtener("materiales", self.material["id"]).unwrap()
        self.assertEqual(material["stock_actual"], Decimal("7"))

    def test_stock_insuficiente(self):
        with self.assertRaises(ValidacionError):
            agregar_material(self.store, self.parte["id"], {"material_id": self.material["id"], "cantidad": 11})
        material = self.store.obtener("materiales", self.material["id"]).unwrap()
        self.assertEqual(material["stock_actual"], Decimal("10"))

    def test_quitar_material_devuelve_stock(self):
        usado = agregar_material(self.store, self.parte["id"], {"material_id": self.material["id"], "cantidad": 4})
        quitar_material(self.store, self.parte["id"], usado["id"])
        material = self.store.obtener("materiales", self.material["id"]).unwrap()
        self.assertEqual(material["stock_actual"], Decimal("10"))

    def test_no_se_quita_material_de_otro_parte(self):
        otro = crear_parte(self.store, {"cliente_nombre": "Particular", "descripcion": "Revisión"}, self.recepcion)
        usado = agregar_material(self.store, otro["id"], {"material_id": self.material["id"], "cantidad": 2})
        with self.assertRaises(ValidacionError):
            quitar_material(self.store, self.parte["id"], usado["id"])
        self.assertEqual(len(MaterialUsadoRepositorio(self.store).de_parte(otro["id"])), 1)

    def test_no_se_quita_material_de_un_parte_cerrado(self):
        usado = agregar_material(self.store, self.parte["id"], {"material_id": self.material["id"], "cantidad": 2})
        cancelar_parte(self.store, self.parte["id"], self.recepcion)
        with self.assertRaises(ValidacionError):
            quitar_material(self.store, self.parte["id"], usado["id"])
        material = self.store.obtener("materiales", self.material["id"]).unwrap()
        self.assertEqual(material["stock_actual"], Decimal("8"))

    def test_material_libre_exige_descripcion(self):
        with self.assertRaises(ValidacionError):
            agregar_material(self.store, self.parte["id"], {"cantidad": 1})
        usado = agregar_material(self.store, self.parte["id"], {"descripcion": "Tornillería", "cantidad": 1})
        self.assertIsNone(usado["material_id"])

    def test_cantidad_positiva(self):
        with self.assertRaises(ValidacionError):
            agregar_material(self.store, self.parte["id"], {"descripcion": "Tornillería", "cantidad": 0})


class PartesVistasTests(BaseVistasTestCase):
    def setUp(self):
        super().setUp()
        self.parte = crear_parte(self.store, {
            "cliente_nombre": "Particular",
            "descripcion": "Revisión general",
            "tecnico_asignado_id": self.tecnico["id"],
        }, self.admin)

    def test_lista_y_detalle(self):
        self.entrar(self.tecnico)
        self.assertEqual(self.client.get(reverse("parte_lista")).status_code, 200)
        resp = self.client.get(reverse("parte_detalle", args=[self.parte["id"]]))
        self.assertContains(resp, self.parte["numero_parte"])

    def test_parte_ajeno_da_404(self):
        otro = self.crear_usuario("otro@taller.es", Rol.TECNICO)
        self.entrar(otro)
        resp = self.client.get(reverse("parte_detalle", args=[self.parte["id"]]))
        self.assertEqual(resp.status_code, 404)

    def test_nuevo_parte(self):
        self.entrar(self.admin)
        resp = self.client.post(reverse("parte_nuevo"), {
            "cliente_nombre": "Grúas Levante",
            "descripcion": "Cambio de bomba",
            "prioridad": "media",
        })
        self.assertEqual(resp.status_code, 302)
        self.assertEqual(len(ParteRepositorio(self.store).listar().unwrap()), 2)

    def test_tecnico_no_crea_partes(self):
        self.entrar(self.tecnico)
        resp = self.client.get(reverse("parte_nuevo"))
        self.assertRedirects(resp, reverse("home"))

    def test_fichar_y_cerrar(self):
        self.entrar(self.tecnico)
        url = reverse("parte_detalle", args=[self.parte["id"]])
        resp = self.client.post(reverse("parte_fichar", args=[self.parte["id"]]), {"accion": "entrada"})
        self.assertRedirects(resp, url)
        resp = self.client.post(reverse("parte_cerrar", args=[self.parte["id"]]), {"trabajo_realizado": "Hecho"})
        self.assertRedirects(resp, url)
        parte = ParteRepositorio(self.store).obtener(self.parte["id"]).unwrap()
        self.assertEqual(parte["estado"], EstadoParte.COMPLETADO)

    def test_quitar_material_de_un_parte_ajeno(self):
        ajeno = crear_parte(self.store, {"cliente_nombre": "Grúas Levante", "descripcion": "Bomba"}, self.admin)
        usado = agregar_material(self.store, ajeno["id"], {"descripcion": "Tornillería", "cantidad": 1})
        self.entrar(self.tecnico)
        resp = self.client.post(reverse("parte_material_quitar", args=[self.parte["id"], usado["id"]]))
        self.assertRedirects(resp, reverse("parte_detalle", args=[self.parte["id"]]))
        self.assertEqual(len(MaterialUsadoRepositorio(self.store).de_parte(ajeno["id"])), 1)

    def test_pdf(self):
        self.entrar(self.admin)
        resp = self.client.get(reverse("parte_pdf", args=[self.parte["id"]]))
        self.assertEqual(resp["Content-Type"], "application/pdf")
        self.assertTrue(resp.content.startswith(b"%PDF"))
