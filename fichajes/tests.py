from datetime import date, datetime, timedelta, timezone as dt_timezone

from django.test import SimpleTestCase, TestCase
from django.urls import reverse

from core.exceptions import ValidacionError
from core.roles import Rol
from core.store import MemoryStore
from core.tests import BaseVistasTestCase

from . import calculo
from .informes import construir_informe, nombre_archivo
from .services import (
    FichajeRepositorio,
    estado_presencia,
    fichar_presencia,
    filtrar,
    listar_fichajes,
    registrar_fichaje,
)


def _hora(h, m=0, dia=15):
    return datetime(2025, 1, dia, h, m, tzinfo=dt_timezone.utc)


def _f(tipo, momento, usuario="u1", parte=None):
    return {"usuario_id": usuario, "tipo": tipo, "fecha_hora": momento, "parte_trabajo_id": parte}


class CalculoHorasTests(SimpleTestCase):
    def test_jornada_partida_suma_siete_horas(self):
        """
        09:00-12:00 y 13:00-17:00 son 3h + 4h.
        """
        fichajes = [
            _f("entrada", _hora(9)), _f("salida", _hora(12)),
            _f("entrada", _hora(13)), _f("salida", _hora(17)),
        ]
        self.assertAlmostEqual(calculo.horas_trabajadas(fichajes), 7.0)
        self.assertEqual(len(calculo.tramos(fichajes)), 2)

    def test_entrada_seguida_reemplaza_la_anterior(self):
        """
        Dos entradas sin salida: cuenta solo desde la última.
        """
        fichajes = [_f("entrada", _hora(8)), _f("entrada", _hora(10)), _f("salida", _hora(12))]
        self.assertAlmostEqual(calculo.horas_trabajadas(fichajes), 2.0)

    def test_salida_sin_entrada_no_suma(self):
        fichajes = [_f("salida", _hora(9)), _f("entrada", _hora(10)), _f("salida", _hora(11))]
        self.assertAlmostEqual(calculo.horas_trabajadas(fichajes), 1.0)

    def test_entrada_abierta_al_final_no_suma(self):
        fichajes = [_f("entrada", _hora(9)), _f("salida", _hora(10)), _f("entrada", _hora(11))]
        self.assertAlmostEqual(calculo.horas_trabajadas(fichajes), 1.0)

    def test_varios_usuarios_se_suman(self):
        fichajes = [
            _f("entrada", _hora(9), "u1"), _f("entrada", _hora(10), "u2"),
            _f("salida", _hora(11), "u1"), _f("salida", _hora(14), "u2"),
        ]
        self.assertAlmostEqual(calculo.horas_trabajadas(fichajes), 6.0)
        self.assertEqual(calculo.segundos_por_usuario(fichajes), {"u1": 7200.0, "u2": 14400.0})

    def test_jornada_y_parte_se_calculan_por_separado(self):
        """
        Una entrada en un parte no pisa la entrada de jornada abierta.
        """
        fichajes = [
            _f("entrada", _hora(8)),
            _f("entrada", _hora(9), parte="p1"),
            _f("salida", _hora(12), parte="p1"),
            _f("salida", _hora(17)),
        ]
        self.assertAlmostEqual(calculo.horas_trabajadas(fichajes), 12.0)
        self.assertEqual(calculo.segundos_por_usuario(fichajes), {"u1": 12 * 3600.0})
        self.assertEqual(len(calculo.tramos(fichajes)), 2)

    def test_orden_de_entrada_no_importa(self):
        fichajes = [_f("salida", _hora(12)), _f("salida", _hora(17)), _f("entrada", _hora(13)), _f("entrada", _hora(9))]
        self.assertAlmostEqual(calculo.horas_trabajadas(fichajes), 7.0)

    def test_fechas_en_texto(self):
        fichajes = [_f("entrada", "2025-01-15T09:00:00+00:00"), _f("salida", "2025-01-15T09:45:00+00:00")]
        self.assertAlmostEqual(calculo.horas_trabajadas(fichajes), 0.75)

    def test_fecha_invalida(self):
        with self.assertRaises(ValueError):
            calculo.horas_trabajadas([_f("entrada", "ayer")])

    def test_sin_fichajes(self):
        self.assertEqual(calculo.horas_trabajadas([]), 0)
        self.assertIsNone(calculo.entrada_abierta([]))

    def test_entrada_abierta(self):
        fichajes = [_f("entrada", _hora(9)), _f("salida", _hora(10)), _f("entrada", _hora(11))]
        self.assertEqual(calculo.entrada_abierta(fichajes)["fecha_hora"], _hora(11))
        self.assertIsNone(calculo.entrada_abierta(fichajes[:2]))

    def test_formatear_horas(self):
        self.assertEqual(calculo.formatear_horas(7.5), "7h 30m")
        self.assertEqual(calculo.formatear_horas(0), "0h 00m")
        self.assertEqual(calculo.formatear_horas(None), "0h 00m")
        self.assertEqual(calculo.formatear_horas(1.01), "1h 01m")


class FiltrarTests(SimpleTestCase):
    def test_filtra_por_rango_tipo_y_parte(self):
        fichajes = [
            _f("entrada", _hora(9, dia=14)),
            _f("entrada", _hora(9, dia=15), parte="p1"),
            _f("salida", _hora(12, dia=15)),
            _f("entrada", _hora(9, dia=16)),
        ]
        self.assertEqual(len(filtrar(fichajes, date(2025, 1, 15), date(2025, 1, 15))), 2)
        self.assertEqual(len(filtrar(fichajes, tipo="salida")), 1)
        self.assertEqual(len(filtrar(fichajes, con_parte=True)), 1)
        self.assertEqual(len(filtrar(fichajes, con_parte=False)), 3)


class BasePresenciaTestCase(TestCase):
    def setUp(self):
        self.store = MemoryStore()
        self.usuario = self.store.crear("usuarios", {
            "email": "juan@taller.es", "nombre": "Juan", "apellidos": "Pérez", "rol": Rol.TECNICO,
        }).unwrap()
        self.jefe = self.store.crear("usuarios", {
            "email": "ana@taller.es", "nombre": "Ana", "rol": Rol.JEFE_TALLER,
        }).unwrap()


class PresenciaTests(BasePresenciaTestCase):
    def test_entrada_y_salida_de_jornada(self):
        fichar_presencia(self.store, self.usuario, "entrada")
        self.assertTrue(estado_presencia(self.store, self.usuario["id"])["dentro"])
        fichar_presencia(self.store, self.usuario, "salida")
        self.assertFalse(estado_presencia(self.store, self.usuario["id"])["dentro"])

    def test_no_se_puede_entrar_dos_veces(self):
        fichar_presencia(self.store, self.usuario, "entrada")
        with self.assertRaises(ValidacionError):
            fichar_presencia(self.store, self.usuario, "entrada")

    def test_no_se_puede_salir_sin_entrar(self):
        with self.assertRaises(ValidacionError):
            fichar_presencia(self.store, self.usuario, "salida")

    def test_tipo_invalido(self):
        with self.assertRaises(ValidacionError):
            registrar_fichaje(self.store, self.usuario["id"], "pausa")

    def test_tecnico_solo_ve_sus_fichajes(self):
        registrar_fichaje(self.store, self.usuario["id"], "entrada")
        registrar_fichaje(self.store, self.jefe["id"], "entrada")
        propios = listar_fichajes(self.store, self.usuario, usuario_id=self.jefe["id"])
        self.assertEqual({f["usuario_id"] for f in propios}, {self.usuario["id"]})
        self.assertEqual(len(listar_fichajes(self.store, self.jefe)), 2)


class InformeTests(BasePresenciaTestCase):
    def test_informe_con_resumen_por_persona(self):
        registrar_fichaje(self.store, self.usuario["id"], "entrada", momento=_hora(9))
        registrar_fichaje(self.store, self.usuario["id"], "salida", momento=_hora(12))
        registrar_fichaje(self.store, self.jefe["id"], "entrada", momento=_hora(8))
        registrar_fichaje(self.store, self.jefe["id"], "salida", momento=_hora(9))

        fichajes = FichajeRepositorio(self.store).listar().unwrap()
        informe = construir_informe(self.store, fichajes, date(2025, 1, 15), date(2025, 1, 15))

        self.assertEqual(len(informe["filas"]), 4)
        self.assertEqual(informe["filas"][0]["parte"], "Jornada")
        horas = {r["nombre"]: r["horas"] for r in informe["resumen"]}
        self.assertAlmostEqual(horas["Juan Pérez"], 3.0)
        self.assertAlmostEqual(horas["Ana"], 1.0)
        self.assertAlmostEqual(informe["total_horas"], 4.0)
        self.assertEqual(nombre_archivo(informe, "pdf"), "fichajes_20250115_20250115.pdf")

    def test_informe_separa_jornada_y_partes(self):
        parte = self.store.crear("partes_trabajo", {"numero_parte": "OT-2025-001", "descripcion": "Bomba"}).unwrap()
        registrar_fichaje(self.store, self.jefe["id"], "entrada", momento=_hora(8))
        registrar_fichaje(self.store, self.jefe["id"], "entrada", parte["id"], momento=_hora(9))
        registrar_fichaje(self.store, self.jefe["id"], "salida", parte["id"], momento=_hora(12))
        registrar_fichaje(self.store, self.jefe["id"], "salida", momento=_hora(17))

        informe = construir_informe(self.store, listar_fichajes(self.store, self.jefe, usuario_id=self.jefe["id"]))

        self.assertAlmostEqual(informe["total_horas"], 12.0)
        self.assertEqual(informe["resumen"], [{"nombre": "Ana", "tramos": 2, "horas": 12.0}])
        self.assertEqual(
            [f["parte"] for f in informe["filas"]],
            ["Jornada", "OT-2025-001", "OT-2025-001", "Jornada"],
        )


class FichajesVistasTests(BaseVistasTestCase):
    def test_fichar_presencia_desde_la_vista(self):
        self.entrar(self.tecnico)
        resp = self.client.post(reverse("fichar"), {"tipo": "entrada"})
        self.assertRedirects(resp, reverse("presencia"))
        self.assertTrue(estado_presencia(self.store, self.tecnico["id"])["dentro"])

    def test_historial(self):
        self.entrar(self.admin)
        registrar_fichaje(self.store, self.tecnico["id"], "entrada", momento=_hora(9))
        resp = self.client.get(reverse("fichajes_lista"))
        self.assertEqual(resp.status_code, 200)

    def test_exportar_html_y_pdf(self):
        self.entrar(self.admin)
        hoy = date.today()
        registrar_fichaje(self.store, self.tecnico["id"], "entrada")
        registrar_fichaje(self.store, self.tecnico["id"], "salida")
        params = {"desde": (hoy - timedelta(days=1)).isoformat(), "hasta": (hoy + timedelta(days=1)).isoformat()}

        resp = self.client.get(reverse("fichajes_exportar", args=["html"]), params)
        self.assertEqual(resp.status_code, 200)
        self.assertIn("attachment", resp["Content-Disposition"])
        self.assertContains(resp, "Juan")

        resp = self.client.get(reverse("fichajes_exportar", args=["pdf"]), params)
        self.assertEqual(resp["Content-Type"], "application/pdf")
        self.assertTrue(resp.content.startswith(b"%PDF"))
