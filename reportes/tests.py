from datetime import date
from io import BytesIO

from django.http import QueryDict
from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from django.utils import timezone
from openpyxl import load_workbook

from core.models import Config
from core.store import MemoryStore
from core.tests import BaseVistasTestCase
from partes.models import EstadoParte
from partes.services import agregar_material, crear_parte

from . import estadisticas
from .pdf import pdf_resumen


class ParseFiltrosTests(SimpleTestCase):
    def test_fechas_explicitas(self):
        f = estadisticas.parse_filtros(QueryDict("fini=2025-01-01&ffin=2025-01-31&estado=pendiente"))
        self.assertEqual(f["desde"], date(2025, 1, 1))
        self.assertEqual(f["hasta"], date(2025, 1, 31))
        self.assertEqual(f["estado"], "pendiente")

    def test_rango_rapido(self):
        hoy = timezone.localdate()
        f = estadisticas.parse_filtros(QueryDict("rango=mes"))
        self.assertEqual(f["desde"], hoy.replace(day=1))
        self.assertEqual(f["hasta"], hoy)

    def test_fechas_mandan_sobre_el_rango(self):
        f = estadisticas.parse_filtros(QueryDict("rango=hoy&fini=2025-01-01"))
        self.assertEqual(f["desde"], date(2025, 1, 1))
        self.assertIsNone(f["hasta"])

    def test_por_tecnico(self):
        partes = [
            {"tecnico_asignado_id": "a", "horas_reales": 2.0},
            {"tecnico_asignado_id": "b", "horas_reales": 5.0},
            {"tecnico_asignado_id": "a", "horas_reales": 1.5},
            {"tecnico_asignado_id": None, "horas_reales": 0},
        ]
        filas = estadisticas.por_tecnico(partes, {"a": "Juan", "b": "María"})
        self.assertEqual(filas, [("María", 1, 5.0), ("Juan", 2, 3.5), ("Sin asignar", 1, 0)])


class BaseReportesTestCase(TestCase):
    def setUp(self):
        self.store = MemoryStore()
        self.usuario = self.store.crear("usuarios", {"email": "ana@taller.es", "nombre": "Ana", "rol": "admin"}).unwrap()
        material = self.store.crear("materiales", {
            "codigo": "HID-001", "nombre": "Aceite", "stock_actual": 10, "precio_unitario": "4.50",
        }).unwrap()
        self.parte = crear_parte(self.store, {"cliente_nombre": "Particular", "descripcion": "Revisión"}, self.usuario)
        crear_parte(self.store, {"cliente_nombre": "Grúas Levante", "descripcion": "Bomba"}, self.usuario)
        agregar_material(self.store, self.parte["id"], {"material_id": material["id"], "cantidad": 2})


class ResumenTests(BaseReportesTestCase):
    def test_resumen(self):
        stats = estadisticas.resumen(self.store, estadisticas.parse_filtros(QueryDict("")))
        self.assertEqual(stats["total"], 2)
        self.assertIn((EstadoParte.PENDIENTE.label, 2), stats["por_estado"])
        codigo, _, cantidad, importe = stats["materiales"][0]
        self.assertEqual((codigo, cantidad, importe), ("HID-001", 2, 9))

    def test_filtro_por_estado(self):
        filtros = estadisticas.parse_filtros(QueryDict(f"estado={EstadoParte.COMPLETADO}"))
        self.assertEqual(estadisticas.resumen(self.store, filtros)["total"], 0)

    def test_pdf_resumen(self):
        filtros = estadisticas.parse_filtros(QueryDict(""))
        filtros["tecnico_nombre"] = ""
        salida = BytesIO()
        pdf_resumen(salida, estadisticas.resumen(self.store, filtros), filtros, Config.get_solo())
        self.assertTrue(salida.getvalue().startswith(b"%PDF"))


class ReportesVistasTests(BaseVistasTestCase):
    def setUp(self):
        super().setUp()
        crear_parte(self.store, {"cliente_nombre": "Particular", "descripcion": "Revisión"}, self.admin)

    def test_dashboard(self):
        self.entrar(self.admin)
        resp = self.client.get(reverse("informes"), {"rango": "mes"})
        self.assertEqual(resp.status_code, 200)

    def test_tecnico_no_ve_informes(self):
        self.entrar(self.tecnico)
        self.assertRedirects(self.client.get(reverse("informes")), reverse("home"))

    def test_excel(self):
        self.entrar(self.admin)
        resp = self.client.get(reverse("informes_excel"))
        self.assertEqual(
            resp["Content-Type"],
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )
        wb = load_workbook(BytesIO(resp.content))
        self.assertEqual(wb.sheetnames, ["Resumen", "Partes", "Técnicos", "Materiales"])
        self.assertEqual(wb["Partes"].max_row, 2)

    def test_pdf(self):
        self.entrar(self.admin)
        resp = self.client.get(reverse("informes_pdf"))
        self.assertEqual(resp["Content-Type"], "application/pdf")
        self.assertIn("attachment", resp["Content-Disposition"])
        self.assertTrue(resp.content.startswith(b"%PDF"))
