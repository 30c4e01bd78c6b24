from decimal import Decimal

from django.test import SimpleTestCase, TestCase
from django.urls import reverse

from core.exceptions import Duplicado, ValidacionError
from core.models import AuditLog
from core.store import MemoryStore
from core.tests import BaseVistasTestCase

from .forms import AjusteStockForm
from .services import (
    AJUSTE,
    ENTRADA,
    SALIDA,
    MaterialRepositorio,
    ajustar_stock,
    en_minimo,
    guardar_material,
    nuevo_stock,
    stock_bajo,
)


class NuevoStockTests(SimpleTestCase):
    def test_entrada_aumenta_stock(self):
        """
        Una ENTRADA debe aumentar el stock.
        """
        self.assertEqual(nuevo_stock(Decimal("10.00"), ENTRADA, Decimal("5.00")), Decimal("15.00"))

    def test_salida_disminuye_stock(self):
        self.assertEqual(nuevo_stock(Decimal("10.00"), SALIDA, Decimal("3.00")), Decimal("7.00"))

    def test_salida_no_puede_dejar_stock_negativo(self):
        """
        No debe permitir salidas que dejen stock negativo.
        """
        with self.assertRaises(ValidacionError):
            nuevo_stock(Decimal("2.00"), SALIDA, Decimal("5.00"))

    def test_ajuste_admite_cantidad_negativa(self):
        self.assertEqual(nuevo_stock(Decimal("10.00"), AJUSTE, Decimal("-4.00")), Decimal("6.00"))
        with self.assertRaises(ValidacionError):
            nuevo_stock(Decimal("10.00"), AJUSTE, Decimal("-11.00"))
        with self.assertRaises(ValidacionError):
            nuevo_stock(Decimal("10.00"), AJUSTE, 0)

    def test_cantidad_debe_ser_positiva(self):
        with self.assertRaises(ValidacionError):
            nuevo_stock(Decimal("10.00"), ENTRADA, Decimal("0"))
        with self.assertRaises(ValidacionError):
            nuevo_stock(Decimal("10.00"), SALIDA, Decimal("-1"))

    def test_tipo_desconocido(self):
        with self.assertRaises(ValidacionError):
            nuevo_stock(1, "traspaso", 1)

    def test_stock_vacio_cuenta_como_cero(self):
        self.assertEqual(nuevo_stock(None, ENTRADA, 2), Decimal("2"))


class AjusteStockFormTests(SimpleTestCase):
    def test_motivo_del_catalogo(self):
        form = AjusteStockForm({"tipo": ENTRADA, "cantidad": "5", "motivo": "Compra"})
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.cleaned_data["motivo"], "Compra")

    def test_otro_motivo_obligatorio(self):
        form = AjusteStockForm({"tipo": AJUSTE, "cantidad": "-1", "motivo": "OTRO"})
        self.assertFalse(form.is_valid())
        self.assertIn("motivo_otro", form.errors)

        form = AjusteStockForm({"tipo": AJUSTE, "cantidad": "-1", "motivo": "OTRO", "motivo_otro": "Caducado"})
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.cleaned_data["motivo"], "Caducado")


class BaseInventarioTestCase(TestCase):
    def setUp(self):
        self.store = MemoryStore()
        self.material = guardar_material(self.store, {
            "codigo": "r-001",
            "nombre": "Filtro de aceite",
            "unidad": "un",
            "stock_actual": Decimal("10.00"),
            "stock_minimo": Decimal("2.00"),
            "proveedor": "Parker",
        })


class MaterialTests(BaseInventarioTestCase):
    def test_codigo_en_mayusculas_y_unico(self):
        self.assertEqual(self.material["codigo"], "R-001")
        with self.assertRaises(Duplicado):
            guardar_material(self.store, {"codigo": "R-001", "nombre": "Otro"})

    def test_codigo_y_nombre_obligatorios(self):
        with self.assertRaises(ValidacionError):
            guardar_material(self.store, {"codigo": "", "nombre": "Sin código"})
        with self.assertRaises(ValidacionError):
            guardar_material(self.store, {"codigo": "R-002", "nombre": " "})

    def test_editar_no_toca_el_stock(self):
        material = guardar_material(
            self.store, {"codigo": "R-001", "nombre": "Filtro", "stock_actual": 99},
            material_id=self.material["id"],
        )
        self.assertEqual(material["nombre"], "Filtro")
        self.assertEqual(material["stock_actual"], Decimal("10.00"))

    def test_buscar(self):
        repo = MaterialRepositorio(self.store)
        self.assertEqual(len(repo.buscar("parker")), 1)
        self.assertEqual(len(repo.buscar("filtro")), 1)
        self.assertEqual(repo.buscar("bomba"), [])


class AjustarStockTests(BaseInventarioTestCase):
    def test_salida_actualiza_y_audita(self):
        material = ajustar_stock(self.store, self.material["id"], SALIDA, Decimal("3"), "Consumo en taller")
        self.assertEqual(material["stock_actual"], Decimal("7.00"))
        self.assertTrue(AuditLog.objects.filter(app="INVENTARIO", action="STOCK_SALIDA").exists())

    def test_salida_sin_stock_no_cambia_nada(self):
        with self.assertRaises(ValidacionError):
            ajustar_stock(self.store, self.material["id"], SALIDA, Decimal("11"))
        material = MaterialRepositorio(self.store).obtener(self.material["id"]).unwrap()
        self.assertEqual(material["stock_actual"], Decimal("10.00"))

    def test_ajuste_exige_motivo(self):
        with self.assertRaises(ValidacionError):
            ajustar_stock(self.store, self.material["id"], AJUSTE, Decimal("-1"))

    def test_stock_bajo(self):
        self.assertEqual(stock_bajo(self.store), [])
        material = ajustar_stock(self.store, self.material["id"], SALIDA, Decimal("8"))
        self.assertTrue(en_minimo(material))
        self.assertEqual([m["codigo"] for m in stock_bajo(self.store)], ["R-001"])


class InventarioVistasTests(BaseVistasTestCase):
    def setUp(self):
        super().setUp()
        self.material = guardar_material(self.store, {"codigo": "HID-001", "nombre": "Aceite", "stock_actual": 5})

    def test_lista(self):
        self.entrar(self.tecnico)
        self.assertContains(self.client.get(reverse("material_lista")), "HID-001")

    def test_tecnico_no_mueve_stock(self):
        self.entrar(self.tecnico)
        resp = self.client.get(reverse("material_stock", args=[self.material["id"]]))
        self.assertRedirects(resp, reverse("home"))

    def test_entrada_de_stock(self):
        self.entrar(self.admin)
        resp = self.client.post(reverse("material_stock", args=[self.material["id"]]), {
            "tipo": ENTRADA, "cantidad": "2.5", "motivo": "Compra",
        })
        self.assertRedirects(resp, reverse("material_lista"))
        material = MaterialRepositorio(self.store).obtener(self.material["id"]).unwrap()
        self.assertEqual(material["stock_actual"], Decimal("7.5"))
