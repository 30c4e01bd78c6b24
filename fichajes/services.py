import logging
from datetime import datetime, time

from django.utils import timezone

from core.exceptions import ValidacionError
from core.permisos import Capacidad, usuario_puede
from core.services import auditar
from core.store import Repositorio

from . import calculo
from .models import TipoFichaje

logger = logging.getLogger(__name__)


class FichajeRepositorio(Repositorio):
    tabla = "fichajes"

    def de_parte(self, parte_id):
        return self.listar(orden="fecha_hora", parte_trabajo_id=parte_id).unwrap()

    def de_usuario_en_parte(self, usuario_id, parte_id):
        return self.listar(orden="fecha_hora", usuario_id=usuario_id, parte_trabajo_id=parte_id).unwrap()

    def presencia(self, usuario_id):
        return self.listar(orden="fecha_hora", usuario_id=usuario_id, parte_trabajo_id=None).unwrap()

    def de_partes(self, usuario_id):
        return [
            f for f in self.listar(orden="fecha_hora", usuario_id=usuario_id).unwrap()
            if f["parte_trabajo_id"]
        ]


def registrar_fichaje(store, usuario_id, tipo, parte_id=None, momento=None, observaciones=""):
    if tipo not in TipoFichaje.values:
        raise ValidacionError(f"Tipo de fichaje no válido: {tipo}")
    fichaje = FichajeRepositorio(store).crear({
        "usuario_id": usuario_id,
        "parte_trabajo_id": parte_id,
        "tipo": tipo,
        "fecha_hora": momento or timezone.now(),
        "observaciones": observaciones,
    }).unwrap()
    logger.info("Fichaje %s de %s (parte %s)", tipo, usuario_id, parte_id or "-")
    return fichaje


def parte_activo(store, usuario_id):
    """
    Id del parte en el que el usuario tiene una entrada abierta, o None.
    """
    por_parte = {}
    for f in FichajeRepositorio(store).de_partes(usuario_id):
        por_parte.setdefault(f["parte_trabajo_id"], []).append(f)
    for parte_id, lista in por_parte.items():
        if calculo.entrada_abierta(lista):
            return parte_id
    return None


def recalcular_horas_parte(store, parte_id):
    """Suma los tramos completos de todos los usuarios y lo guarda en horas_reales."""
    horas = round(calculo.horas_trabajadas(FichajeRepositorio(store).de_parte(parte_id)), 2)
    store.actualizar("partes_trabajo", parte_id, {"horas_reales": horas}).unwrap()
    return horas


# ---------- presencia (jornada) ----------
def estado_presencia(store, usuario_id):
    fichajes = FichajeRepositorio(store).presencia(usuario_id)
    abierta = calculo.entrada_abierta(fichajes)
    return {
        "dentro": abierta is not None,
        "desde": abierta["fecha_hora"] if abierta else None,
        "ultimo": fichajes[-1] if fichajes else None,
    }


def fichar_presencia(store, usuario, tipo, observaciones=""):
    dentro = estado_presencia(store, usuario["id"])["dentro"]
    if tipo == TipoFichaje.ENTRADA and dentro:
        raise ValidacionError("Ya tienes una entrada de jornada abierta.")
    if tipo == TipoFichaje.SALIDA and not dentro:
        raise ValidacionError("No hay ninguna entrada de jornada abierta.")
    fichaje = registrar_fichaje(store, usuario["id"], tipo, observaciones=observaciones)
    auditar("FICHAJES", f"PRESENCIA_{tipo.upper()}", usuario, usuario["email"])
    return fichaje


def _rango(desde=None, hasta=None):
    tz = timezone.get_current_timezone()
    ini = timezone.make_aware(datetime.combine(desde, time.min), tz) if desde else None
    fin = timezone.make_aware(datetime.combine(hasta, time.max), tz) if hasta else None
    return ini, fin


def filtrar(fichajes, desde=None, hasta=None, tipo=None, con_parte=None):
    ini, fin = _rango(desde, hasta)
    out = []
    for f in fichajes:
        if ini and f["fecha_hora"] < ini:
            continue
        if fin and f["fecha_hora"] > fin:
            continue
        if tipo and f["tipo"] != tipo:
            continue
        if con_parte is True and not f["parte_trabajo_id"]:
            continue
        if con_parte is False and f["parte_trabajo_id"]:
            continue
        out.append(f)
    return out


def horas_presencia(store, usuario_id, desde=None, hasta=None):
    fichajes = filtrar(FichajeRepositorio(store).presencia(usuario_id), desde, hasta)
    return round(calculo.horas_trabajadas(fichajes), 2)


def listar_fichajes(store, usuario, usuario_id=None, desde=None, hasta=None, tipo=None, con_parte=None):
    """Fichajes visibles para `usuario`; un técnico solo ve los suyos."""
    if not usuario_puede(usuario, Capacidad.VER_TODOS_FICHAJES):
        usuario_id = usuario["id"]
    filtros = {"usuario_id": usuario_id} if usuario_id else {}
    fichajes = FichajeRepositorio(store).listar(orden="-fecha_hora", **filtros).unwrap()
    return filtrar(fichajes, desde, hasta, tipo, con_parte)
