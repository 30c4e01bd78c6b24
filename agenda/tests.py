from datetime import datetime, timedelta

from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from django.utils import timezone

from core.exceptions import ValidacionError
from core.roles import Rol
from core.store import MemoryStore
from core.tests import BaseVistasTestCase

from .models import EstadoCita
from .services import (
    CitaRepositorio,
    cambiar_estado_cita,
    citas_entre,
    crear_cita,
    eventos,
    fin_cita,
    se_solapan,
    solapes,
)


def _local(dia, hora, minuto=0):
    return timezone.make_aware(datetime(2025, 4, dia, hora, minuto))


class FinCitaTests(SimpleTestCase):
    def test_fin_es_inicio_mas_duracion(self):
        cita = {"fecha_hora": _local(7, 9), "duracion_estimada": 90}
        self.assertEqual(fin_cita(cita), _local(7, 10, 30))

    def test_solape(self):
        a = {"fecha_hora": _local(7, 9), "duracion_estimada": 60}
        b = {"fecha_hora": _local(7, 9, 30), "duracion_estimada": 60}
        c = {"fecha_hora": _local(7, 10), "duracion_estimada": 30}
        self.assertTrue(se_solapan(a, b))
        # una cita que empieza justo cuando acaba otra no se pisa
        self.assertFalse(se_solapan(a, c))


class BaseAgendaTestCase(TestCase):
    def setUp(self):
        self.store = MemoryStore()
        self.tecnico = self.store.crear("usuarios", {"email": "juan@taller.es", "nombre": "Juan"}).unwrap()
        self.otro = self.store.crear("usuarios", {"email": "maria@taller.es", "nombre": "María"}).unwrap()
        self.cita = crear_cita(self.store, {
            "titulo": "Revisión grúa",
            "fecha_hora": _local(7, 9),
            "duracion_estimada": 60,
            "tecnico_id": self.tecnico["id"],
        })


class CitasTests(BaseAgendaTestCase):
    def test_valores_por_defecto(self):
        self.assertEqual(self.cita["estado"], EstadoCita.PROGRAMADA)
        self.assertEqual(self.cita["tipo_servicio"], "revision")

    def test_validaciones(self):
        with self.assertRaises(ValidacionError):
            crear_cita(self.store, {"titulo": "", "fecha_hora": _local(7, 9)})
        with self.assertRaises(ValidacionError):
            crear_cita(self.store, {"titulo": "Sin fecha"})
        with self.assertRaises(ValidacionError):
            crear_cita(self.store, {"titulo": "Sin duración", "fecha_hora": _local(7, 9), "duracion_estimada": 0})
        with self.assertRaises(ValidacionError):
            crear_cita(self.store, {"titulo": "Duración rara", "fecha_hora": _local(7, 9), "duracion_estimada": "hora y media"})

    def test_solapes_del_mismo_tecnico(self):
        nueva = crear_cita(self.store, {
            "titulo": "Cambio de aceite", "fecha_hora": _local(7, 9, 30),
            "duracion_estimada": 30, "tecnico_id": self.tecnico["id"],
        })
        self.assertEqual([c["id"] for c in solapes(self.store, nueva)], [self.cita["id"]])

        ajena = crear_cita(self.store, {
            "titulo": "Diagnóstico", "fecha_hora": _local(7, 9, 30),
            "duracion_estimada": 30, "tecnico_id": self.otro["id"],
        })
        self.assertEqual(solapes(self.store, ajena), [])

    def test_citas_canceladas_no_solapan(self):
        cambiar_estado_cita(self.store, self.cita["id"], EstadoCita.CANCELADA)
        nueva = crear_cita(self.store, {
            "titulo": "Cambio de aceite", "fecha_hora": _local(7, 9, 30),
            "duracion_estimada": 30, "tecnico_id": self.tecnico["id"],
        })
        self.assertEqual(solapes(self.store, nueva), [])

    def test_estado_invalido(self):
        with self.assertRaises(ValidacionError):
            cambiar_estado_cita(self.store, self.cita["id"], "aplazada")

    def test_citas_entre(self):
        crear_cita(self.store, {"titulo": "Otro día", "fecha_hora": _local(9, 12), "duracion_estimada": 30})
        dia = _local(7, 0).date()
        self.assertEqual(len(citas_entre(self.store, dia, dia)), 1)
        self.assertEqual(len(citas_entre(self.store, dia, dia + timedelta(days=2))), 2)
        self.assertEqual(len(citas_entre(self.store, dia, dia, tecnico_id=self.otro["id"])), 0)

    def test_eventos(self):
        evento = eventos(CitaRepositorio(self.store).listar().unwrap())[0]
        self.assertEqual(evento["title"], "Revisión grúa")
        self.assertEqual(evento["start"], _local(7, 9).isoformat())
        self.assertEqual(evento["end"], _local(7, 10).isoformat())


class AgendaVistasTests(BaseVistasTestCase):
    def setUp(self):
        super().setUp()
        self.manana = timezone.localtime().replace(hour=10, minute=0, second=0, microsecond=0) + timedelta(days=1)
        self.cita = crear_cita(self.store, {
            "titulo": "Revisión grúa", "fecha_hora": self.manana,
            "duracion_estimada": 60, "tecnico_id": self.tecnico["id"],
        })
        crear_cita(self.store, {"titulo": "Sin técnico", "fecha_hora": self.manana, "duracion_estimada": 30})

    def test_vista_dia(self):
        self.entrar(self.admin)
        resp = self.client.get(reverse("agenda"), {"fecha": self.manana.date().isoformat()})
        self.assertContains(resp, "Revisión grúa")
        self.assertContains(resp, "Sin técnico")

    def test_tecnico_solo_ve_sus_citas(self):
        self.entrar(self.tecnico)
        dia = self.manana.date().isoformat()
        resp = self.client.get(reverse("agenda_eventos"), {"start": dia, "end": dia})
        self.assertEqual([e["title"] for e in resp.json()], ["Revisión grúa"])

    def test_eventos_para_gestion(self):
        self.entrar(self.admin)
        dia = self.manana.date().isoformat()
        resp = self.client.get(reverse("agenda_eventos"), {"start": dia, "end": dia})
        self.assertEqual(len(resp.json()), 2)

    def test_nueva_cita_avisa_de_solape(self):
        self.entrar(self.admin)
        resp = self.client.post(reverse("cita_nueva"), {
            "titulo": "Cambio de latiguillos",
            "fecha_hora": self.manana.strftime("%Y-%m-%dT%H:%M"),
            "duracion_estimada": 30,
            "tipo_servicio": "reparacion",
            "estado": EstadoCita.PROGRAMADA,
            "tecnico_id": self.tecnico["id"],
        }, follow=True)
        self.assertContains(resp, "El técnico ya tiene citas en ese horario")
        self.assertEqual(len(CitaRepositorio(self.store).listar().unwrap()), 3)

    def test_tecnico_asignado_cambia_estado(self):
        self.entrar(self.tecnico)
        self.client.post(reverse("cita_estado", args=[self.cita["id"]]), {"estado": EstadoCita.COMPLETADA})
        cita = CitaRepositorio(self.store).obtener(self.cita["id"]).unwrap()
        self.assertEqual(cita["estado"], EstadoCita.COMPLETADA)

    def test_otro_tecnico_no_cambia_estado(self):
        otro = self.crear_usuario("otro@taller.es", Rol.TECNICO)
        self.entrar(otro)
        self.client.post(reverse("cita_estado", args=[self.cita["id"]]), {"estado": EstadoCita.CANCELADA})
        cita = CitaRepositorio(self.store).obtener(self.cita["id"]).unwrap()
        self.assertEqual(cita["estado"], EstadoCita.PROGRAMADA)
