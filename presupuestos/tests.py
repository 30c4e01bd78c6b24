from decimal import Decimal

from django.test import SimpleTestCase, TestCase
from django.urls import reverse

from core.exceptions import TransicionInvalida, ValidacionError
from core.roles import Rol
from core.store import MemoryStore
from core.tests import BaseVistasTestCase
from partes.models import EstadoParte

from .models import EstadoPresupuesto
from .services import (
    ConceptoRepositorio,
    PresupuestoRepositorio,
    calcular_totales,
    cambiar_estado_presupuesto,
    crear_parte_desde_presupuesto,
    crear_presupuesto,
    limpiar_conceptos,
    listar_presupuestos,
)

CONCEPTOS = [
    {"descripcion": "Sustitución bomba hidráulica", "cantidad": "1", "precio_unitario": "850"},
    {"descripcion": "Mano de obra", "cantidad": "4", "precio_unitario": "45.50"},
]


class TotalesTests(SimpleTestCase):
    def test_subtotal_iva_y_total(self):
        totales = calcular_totales(limpiar_conceptos(CONCEPTOS))
        self.assertEqual(totales["subtotal"], Decimal("1032.00"))
        self.assertEqual(totales["iva"], Decimal("216.72"))
        self.assertEqual(totales["total"], Decimal("1248.72"))

    def test_iva_configurable(self):
        totales = calcular_totales(limpiar_conceptos(CONCEPTOS), Decimal("10"))
        self.assertEqual(totales["iva"], Decimal("103.20"))
        self.assertEqual(totales["total"], Decimal("1135.20"))

    def test_lineas_vacias_se_ignoran(self):
        lineas = limpiar_conceptos(CONCEPTOS + [{"descripcion": "  ", "cantidad": "3", "precio_unitario": "10"}])
        self.assertEqual(len(lineas), 2)

    def test_sin_conceptos(self):
        with self.assertRaises(ValidacionError):
            limpiar_conceptos([{"descripcion": "", "cantidad": 1, "precio_unitario": 0}])

    def test_cantidad_y_precio(self):
        with self.assertRaises(ValidacionError):
            limpiar_conceptos([{"descripcion": "Filtro", "cantidad": "0", "precio_unitario": "5"}])
        with self.assertRaises(ValidacionError):
            limpiar_conceptos([{"descripcion": "Filtro", "cantidad": "1", "precio_unitario": "-5"}])
        with self.assertRaises(ValidacionError):
            limpiar_conceptos([{"descripcion": "Filtro", "cantidad": "dos", "precio_unitario": "5"}])


class BasePresupuestoTestCase(TestCase):
    def setUp(self):
        self.store = MemoryStore()
        self.jefe = self.store.crear("usuarios", {
            "email": "ana@taller.es", "nombre": "Ana", "rol": Rol.JEFE_TALLER,
        }).unwrap()
        self.cliente = self.store.crear("clientes", {"nombre": "Transportes García S.L."}).unwrap()
        self.presupuesto = crear_presupuesto(self.store, {
            "cliente_id": self.cliente["id"],
            "descripcion": "Reparación sistema hidráulico grúa móvil",
        }, CONCEPTOS, self.jefe)


class PresupuestosTests(BasePresupuestoTestCase):
    def test_alta(self):
        p = self.presupuesto
        self.assertRegex(p["numero"], r"^PRES-\d{4}-001$")
        self.assertEqual(p["estado"], EstadoPresupuesto.PENDIENTE)
        self.assertEqual(p["cliente_nombre"], "Transportes García S.L.")
        self.assertEqual(p["validez_dias"], 30)
        self.assertEqual(p["total"], Decimal("1248.72"))
        self.assertEqual(len(ConceptoRepositorio(self.store).de_presupuesto(p["id"])), 2)

    def test_numeracion_correlativa(self):
        otro = crear_presupuesto(self.store, {"cliente_nombre": "Logística Madrid", "descripcion": "Revisión"}, CONCEPTOS, self.jefe)
        self.assertTrue(otro["numero"].endswith("-002"))

    def test_cliente_obligatorio(self):
        with self.assertRaises(ValidacionError):
            crear_presupuesto(self.store, {"descripcion": "Revisión"}, CONCEPTOS, self.jefe)
        self.assertEqual(len(PresupuestoRepositorio(self.store).listar().unwrap()), 1)

    def test_flujo_de_estados(self):
        with self.assertRaises(TransicionInvalida):
            cambiar_estado_presupuesto(self.store, self.presupuesto["id"], EstadoPresupuesto.ACEPTADO)
        cambiar_estado_presupuesto(self.store, self.presupuesto["id"], EstadoPresupuesto.ENVIADO)
        p = cambiar_estado_presupuesto(self.store, self.presupuesto["id"], EstadoPresupuesto.ACEPTADO)
        self.assertEqual(p["estado"], EstadoPresupuesto.ACEPTADO)
        with self.assertRaises(TransicionInvalida):
            cambiar_estado_presupuesto(self.store, self.presupuesto["id"], EstadoPresupuesto.RECHAZADO)

    def test_estado_desconocido(self):
        with self.assertRaises(ValidacionError):
            cambiar_estado_presupuesto(self.store, self.presupuesto["id"], "archivado")

    def test_parte_solo_desde_aceptado_y_una_vez(self):
        with self.assertRaises(ValidacionError):
            crear_parte_desde_presupuesto(self.store, self.presupuesto["id"], self.jefe)
        cambiar_estado_presupuesto(self.store, self.presupuesto["id"], EstadoPresupuesto.ENVIADO)
        cambiar_estado_presupuesto(self.store, self.presupuesto["id"], EstadoPresupuesto.ACEPTADO)

        parte = crear_parte_desde_presupuesto(self.store, self.presupuesto["id"], self.jefe)
        self.assertEqual(parte["estado"], EstadoParte.PENDIENTE)
        self.assertEqual(parte["cliente_id"], self.cliente["id"])
        self.assertEqual(parte["descripcion"], self.presupuesto["descripcion"])
        p = PresupuestoRepositorio(self.store).obtener(self.presupuesto["id"]).unwrap()
        self.assertEqual(p["parte_trabajo_id"], parte["id"])

        with self.assertRaises(ValidacionError):
            crear_parte_desde_presupuesto(self.store, self.presupuesto["id"], self.jefe)

    def test_listar_con_filtros(self):
        crear_presupuesto(self.store, {"cliente_nombre": "Logística Madrid", "descripcion": "Revisión"}, CONCEPTOS, self.jefe)
        cambiar_estado_presupuesto(self.store, self.presupuesto["id"], EstadoPresupuesto.ENVIADO)
        self.assertEqual(len(listar_presupuestos(self.store)), 2)
        self.assertEqual(len(listar_presupuestos(self.store, estado=EstadoPresupuesto.ENVIADO)), 1)
        self.assertEqual([p["cliente_nombre"] for p in listar_presupuestos(self.store, q="madrid")], ["Logística Madrid"])

    def test_borrar_cliente_no_borra_el_presupuesto(self):
        self.store.eliminar("clientes", self.cliente["id"]).unwrap()
        p = PresupuestoRepositorio(self.store).obtener(self.presupuesto["id"]).unwrap()
        self.assertIsNone(p["cliente_id"])
        self.assertEqual(p["cliente_nombre"], "Transportes García S.L.")

    def test_borrar_presupuesto_borra_sus_conceptos(self):
        PresupuestoRepositorio(self.store).eliminar(self.presupuesto["id"]).unwrap()
        self.assertEqual(ConceptoRepositorio(self.store).listar().unwrap(), [])


class PresupuestosVistasTests(BaseVistasTestCase):
    def _alta(self):
        return self.client.post(reverse("presupuesto_nuevo"), {
            "cliente_nombre": "Construcciones López",
            "descripcion": "Mantenimiento plataforma elevadora",
            "validez_dias": 15,
            "conceptos-TOTAL_FORMS": 2,
            "conceptos-INITIAL_FORMS": 0,
            "conceptos-0-descripcion": "Revisión completa",
            "conceptos-0-cantidad": "1",
            "conceptos-0-precio_unitario": "700",
            "conceptos-1-descripcion": "",
            "conceptos-1-cantidad": "1",
            "conceptos-1-precio_unitario": "0",
        })

    def test_tecnico_no_ve_presupuestos(self):
        self.entrar(self.tecnico)
        self.assertRedirects(self.client.get(reverse("presupuesto_lista")), reverse("home"))
        self.assertRedirects(self._alta(), reverse("home"))
        self.assertEqual(PresupuestoRepositorio(self.store).listar().unwrap(), [])

    def test_alta_y_lista(self):
        self.entrar(self.admin)
        resp = self._alta()
        presupuesto = PresupuestoRepositorio(self.store).listar().unwrap()[0]
        self.assertRedirects(resp, reverse("presupuesto_detalle", args=[presupuesto["id"]]))
        self.assertEqual(presupuesto["total"], Decimal("847.00"))
        self.assertEqual(len(ConceptoRepositorio(self.store).de_presupuesto(presupuesto["id"])), 1)

        resp = self.client.get(reverse("presupuesto_lista"), {"estado": EstadoPresupuesto.PENDIENTE})
        self.assertContains(resp, presupuesto["numero"])
        self.assertContains(resp, "Construcciones López")
        resp = self.client.get(reverse("presupuesto_lista"), {"estado": EstadoPresupuesto.ACEPTADO})
        self.assertNotContains(resp, presupuesto["numero"])

    def test_enviar_aceptar_y_crear_parte(self):
        self.entrar(self.admin)
        self._alta()
        presupuesto = PresupuestoRepositorio(self.store).listar().unwrap()[0]
        url = reverse("presupuesto_estado", args=[presupuesto["id"]])
        self.client.post(url, {"estado": EstadoPresupuesto.ENVIADO})
        self.client.post(url, {"estado": EstadoPresupuesto.ACEPTADO})
        resp = self.client.get(reverse("presupuesto_detalle", args=[presupuesto["id"]]))
        self.assertContains(resp, "Crear parte")

        resp = self.client.post(reverse("presupuesto_crear_parte", args=[presupuesto["id"]]))
        parte = self.store.listar("partes_trabajo").unwrap()[0]
        self.assertRedirects(resp, reverse("parte_detalle", args=[parte["id"]]))
        self.assertEqual(parte["cliente_nombre"], "Construcciones López")
