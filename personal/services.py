import logging
import math
from datetime import date, datetime

from django.contrib.auth.hashers import check_password, make_password
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from django.utils import timezone
from django.utils.dateparse import parse_date

from core.exceptions import ValidacionError
from core.permisos import Capacidad, usuario_puede
from core.services import auditar
from core.store import Repositorio

from .models import EstadoSolicitud

logger = logging.getLogger(__name__)


class UsuarioRepositorio(Repositorio):
    tabla = "usuarios"

    def por_email(self, email):
        usuarios = self.listar(email=(email or "").strip().lower()).unwrap()
        return usuarios[0] if usuarios else None

    def activos(self, rol=None):
        filtros = {"activo": True}
        if rol:
            filtros["rol"] = rol
        return self.listar(orden=("nombre", "apellidos"), **filtros).unwrap()


class SolicitudRepositorio(Repositorio):
    tabla = "solicitudes_vacaciones"


def nombre_completo(usuario):
    if not usuario:
        return ""
    return f"{usuario['nombre']} {usuario['apellidos']}".strip()


def sin_password(usuario):
    return {k: v for k, v in usuario.items() if k != "password"}


# ---------- usuarios ----------
def autenticar(store, email, password):
    """Devuelve el usuario si las credenciales son válidas y está activo."""
    usuario = UsuarioRepositorio(store).por_email(email)
    if usuario is None or not usuario["activo"]:
        logger.info("Login rechazado para %s", email)
        return None
    if not check_password(password, usuario["password"]):
        logger.info("Contraseña incorrecta para %s", email)
        return None
    return usuario


def _validar_password(password):
    if not password:
        raise ValidacionError("La contraseña es obligatoria.")
    try:
        validate_password(password)
    except ValidationError as e:
        raise ValidacionError(" ".join(e.messages))


def crear_usuario(store, datos, password, por=None):
    _validar_password(password)
    datos = dict(datos, email=(datos.get("email") or "").strip().lower(), password=make_password(password))
    usuario = UsuarioRepositorio(store).crear(datos).unwrap()
    auditar("PERSONAL", "CREATE", por, usuario["email"], rol=usuario["rol"])
    return usuario


def actualizar_usuario(store, usuario_id, cambios, por=None):
    cambios = {k: v for k, v in cambios.items() if k != "password"}
    if "email" in cambios:
        cambios["email"] = (cambios["email"] or "").strip().lower()
    usuario = UsuarioRepositorio(store).actualizar(usuario_id, cambios).unwrap()
    auditar("PERSONAL", "UPDATE", por, usuario["email"])
    return usuario


def cambiar_password(store, usuario_id, password, por=None):
    _validar_password(password)
    usuario = UsuarioRepositorio(store).actualizar(usuario_id, {"password": make_password(password)}).unwrap()
    auditar("PERSONAL", "RESET_PASSWORD", por, usuario["email"])
    return usuario


def alternar_activo(store, usuario_id, por=None):
    repo = UsuarioRepositorio(store)
    usuario = repo.obtener(usuario_id).unwrap()
    if por and por["id"] == str(usuario_id):
        raise ValidacionError("No puedes desactivar tu propio usuario.")
    usuario = repo.actualizar(usuario_id, {"activo": not usuario["activo"]}).unwrap()
    auditar("PERSONAL", "ACTIVAR" if usuario["activo"] else "DESACTIVAR", por, usuario["email"])
    return usuario


def eliminar_usuario(store, usuario_id, por=None):
    """
    Borra el usuario. Si ya tiene fichajes no se borra (se perderían sus
    horas): hay que desactivarlo.
    """
    if por and por["id"] == str(usuario_id):
        raise ValidacionError("No puedes eliminar tu propio usuario.")
    repo = UsuarioRepositorio(store)
    usuario = repo.obtener(usuario_id).unwrap()
    if store.listar("fichajes", {"usuario_id": usuario["id"]}).unwrap():
        raise ValidacionError(f"{usuario['email']} tiene fichajes registrados; desactívalo en su lugar.")
    repo.eliminar(usuario["id"]).unwrap()
    auditar("PERSONAL", "DELETE", por, usuario["email"])
    return usuario


# ---------- vacaciones ----------
def _fecha(valor):
    if isinstance(valor, datetime):
        return valor.date()
    if isinstance(valor, date):
        return valor
    fecha = parse_date(str(valor or ""))
    if fecha is None:
        raise ValidacionError(f"Fecha no válida: {valor!r}")
    return fecha


def calcular_dias(fecha_inicio, fecha_fin):
    """Días naturales del rango, ambos extremos incluidos."""
    inicio, fin = _fecha(fecha_inicio), _fecha(fecha_fin)
    if fin < inicio:
        raise ValidacionError("La fecha de fin no puede ser anterior a la de inicio.")
    return math.ceil((fin - inicio).total_seconds() / 86400) + 1


def solicitar_vacaciones(store, usuario, fecha_inicio, fecha_fin, tipo, motivo=""):
    solicitud = SolicitudRepositorio(store).crear({
        "usuario_id": usuario["id"],
        "fecha_inicio": _fecha(fecha_inicio),
        "fecha_fin": _fecha(fecha_fin),
        "dias_solicitados": calcular_dias(fecha_inicio, fecha_fin),
        "tipo": tipo,
        "motivo": motivo,
        "estado": EstadoSolicitud.PENDIENTE,
    }).unwrap()
    auditar("VACACIONES", "CREATE", usuario, f"{solicitud['fecha_inicio']} → {solicitud['fecha_fin']}")
    return solicitud


def _resolver(store, solicitud_id, aprobador, estado, comentario):
    repo = SolicitudRepositorio(store)
    solicitud = repo.obtener(solicitud_id).unwrap()
    if solicitud["estado"] != EstadoSolicitud.PENDIENTE:
        raise ValidacionError("La solicitud ya fue resuelta.")
    solicitud = repo.actualizar(solicitud_id, {
        "estado": estado,
        "aprobado_por_id": aprobador["id"],
        "fecha_aprobacion": timezone.now(),
        "comentario_admin": comentario or "",
    }).unwrap()
    auditar("VACACIONES", estado.upper(), aprobador, str(solicitud_id))
    return solicitud


def aprobar_solicitud(store, solicitud_id, aprobador, comentario=""):
    return _resolver(store, solicitud_id, aprobador, EstadoSolicitud.APROBADA, comentario)


def rechazar_solicitud(store, solicitud_id, aprobador, comentario=""):
    return _resolver(store, solicitud_id, aprobador, EstadoSolicitud.RECHAZADA, comentario)


def solicitudes_visibles(store, usuario, estado=None):
    filtros = {}
    if not usuario_puede(usuario, Capacidad.VER_TODAS_VACACIONES):
        filtros["usuario_id"] = usuario["id"]
    if estado:
        filtros["estado"] = estado
    return SolicitudRepositorio(store).listar(orden="-fecha_inicio", **filtros).unwrap()
