import logging
from datetime import datetime, time, timedelta

from django.utils import timezone

from core.exceptions import ValidacionError
from core.services import auditar
from core.store import Repositorio

from .models import EstadoCita

logger = logging.getLogger(__name__)


class CitaRepositorio(Repositorio):
    tabla = "citas"


def fin_cita(cita):
    """La hora de fin no se guarda: inicio + duración estimada."""
    return cita["fecha_hora"] + timedelta(minutes=cita["duracion_estimada"] or 0)


def se_solapan(a, b):
    return a["fecha_hora"] < fin_cita(b) and b["fecha_hora"] < fin_cita(a)


def citas_entre(store, desde, hasta, tecnico_id=None):
    tz = timezone.get_current_timezone()
    ini = timezone.make_aware(datetime.combine(desde, time.min), tz)
    fin = timezone.make_aware(datetime.combine(hasta, time.max), tz)
    filtros = {"tecnico_id": tecnico_id} if tecnico_id else {}
    return [
        c for c in CitaRepositorio(store).listar(orden="fecha_hora", **filtros).unwrap()
        if ini <= c["fecha_hora"] <= fin
    ]


def solapes(store, cita):
    """Otras citas activas del mismo técnico que se pisan con `cita`."""
    if not cita.get("tecnico_id"):
        return []
    return [
        otra for otra in CitaRepositorio(store).listar(tecnico_id=cita["tecnico_id"]).unwrap()
        if otra["id"] != cita.get("id")
        and otra["estado"] != EstadoCita.CANCELADA
        and se_solapan(cita, otra)
    ]


def _validar(datos):
    if not (datos.get("titulo") or "").strip():
        raise ValidacionError("El título de la cita es obligatorio.")
    if not datos.get("fecha_hora"):
        raise ValidacionError("La fecha y hora de la cita son obligatorias.")
    try:
        duracion = int(datos.get("duracion_estimada") or 0)
    except (TypeError, ValueError):
        raise ValidacionError("La duración estimada debe ser un número de minutos.")
    if duracion <= 0:
        raise ValidacionError("La duración estimada debe ser mayor que 0.")


def crear_cita(store, datos, usuario=None):
    _validar(datos)
    cita = CitaRepositorio(store).crear(datos).unwrap()
    auditar("AGENDA", "CREATE", usuario, cita["titulo"], fecha_hora=cita["fecha_hora"])
    return cita


def actualizar_cita(store, cita_id, datos, usuario=None):
    _validar(datos)
    cita = CitaRepositorio(store).actualizar(cita_id, datos).unwrap()
    auditar("AGENDA", "UPDATE", usuario, cita["titulo"])
    return cita


def cambiar_estado_cita(store, cita_id, estado, usuario=None):
    if estado not in EstadoCita.values:
        raise ValidacionError(f"Estado de cita no válido: {estado}")
    cita = CitaRepositorio(store).actualizar(cita_id, {"estado": estado}).unwrap()
    auditar("AGENDA", "ESTADO", usuario, cita["titulo"], estado=estado)
    return cita


def eventos(citas):
    """Formato de eventos para calendarios (FullCalendar y similares)."""
    return [
        {
            "id": c["id"],
            "title": c["titulo"],
            "start": c["fecha_hora"].isoformat(),
            "end": fin_cita(c).isoformat(),
            "estado": c["estado"],
            "tipo_servicio": c["tipo_servicio"],
        }
        for c in citas
    ]


def eliminar_cita(store, cita_id, usuario=None):
    cita = CitaRepositorio(store).eliminar(cita_id).unwrap()
    auditar("AGENDA", "DELETE", usuario, cita["titulo"])
    return cita
