# partes/services.py
import logging
from decimal import Decimal

from django.utils import timezone

from core.exceptions import TransicionInvalida, ValidacionError
from core.permisos import Capacidad, usuario_puede
from core.services import auditar
from core.store import Repositorio
from fichajes import calculo
from fichajes.models import TipoFichaje
from fichajes.services import (
    FichajeRepositorio,
    parte_activo,
    recalcular_horas_parte,
    registrar_fichaje,
)
from inventario.services import SALIDA, ENTRADA, MaterialRepositorio, nuevo_stock

from .models import EstadoParte

logger = logging.getLogger(__name__)

# Matriz de transiciones válidas
ALLOWED_TRANSITIONS = {
    EstadoParte.PENDIENTE:   {EstadoParte.EN_PROGRESO, EstadoParte.CANCELADO},
    EstadoParte.EN_PROGRESO: {EstadoParte.COMPLETADO, EstadoParte.CANCELADO},
    EstadoParte.COMPLETADO:  set(),
    EstadoParte.CANCELADO:   set(),
}

ESTADOS_ABIERTOS = (EstadoParte.PENDIENTE, EstadoParte.EN_PROGRESO)


class ParteRepositorio(Repositorio):
    tabla = "partes_trabajo"


class MaterialUsadoRepositorio(Repositorio):
    tabla = "materiales_usados"

    def de_parte(self, parte_id):
        return self.listar(orden="created_at", parte_trabajo_id=parte_id).unwrap()


def validar_transicion(estado_actual, nuevo_estado):
    return nuevo_estado in ALLOWED_TRANSITIONS.get(estado_actual, set())


def cambiar_estado(store, parte, nuevo_estado, usuario=None, **cambios):
    """
    Cambia el estado del parte validando la transición. `cambios` se guardan
    en la misma actualización (fechas, trabajo realizado...).
    """
    estado_anterior = parte["estado"]
    if not validar_transicion(estado_anterior, nuevo_estado):
        raise TransicionInvalida(f"Transición inválida: {estado_anterior} → {nuevo_estado}")

    parte = ParteRepositorio(store).actualizar(parte["id"], {"estado": nuevo_estado, **cambios}).unwrap()
    auditar("PARTES", "ESTADO", usuario, parte["numero_parte"], desde=estado_anterior, hasta=nuevo_estado)
    return parte


def generar_numero_parte(store, prefijo="PT", ahora=None):
    """PT-2025-001, PT-2025-002... por año; salta números ya usados."""
    anio = (ahora or timezone.localtime()).year
    base = f"{prefijo}-{anio}-"
    numeros = {p["numero_parte"] for p in ParteRepositorio(store).listar().unwrap()}
    n = sum(1 for num in numeros if num.startswith(base)) + 1
    while f"{base}{n:03d}" in numeros:
        n += 1
    return f"{base}{n:03d}"


def _con_instantaneas(store, datos):
    """Copia en el parte el nombre del cliente y los datos del vehículo."""
    descripcion = (datos.get("descripcion") or "").strip()
    if not descripcion:
        raise ValidacionError("La descripción del trabajo es obligatoria.")

    datos = dict(datos, descripcion=descripcion)
    cliente_id = datos.get("cliente_id")
    if cliente_id:
        cliente = store.obtener("clientes", cliente_id).unwrap()
        datos["cliente_nombre"] = cliente["nombre"]
    elif not (datos.get("cliente_nombre") or "").strip():
        raise ValidacionError("Indica un cliente registrado o el nombre del cliente.")

    vehiculo_id = datos.get("vehiculo_id")
    if vehiculo_id:
        vehiculo = store.obtener("vehiculos", vehiculo_id).unwrap()
        datos.update({
            "vehiculo_matricula": vehiculo["matricula"],
            "vehiculo_marca": vehiculo["marca"],
            "vehiculo_modelo": vehiculo["modelo"],
            "vehiculo_serie": vehiculo["numero_serie"],
        })
    return datos


def crear_parte(store, datos, usuario, prefijo="PT"):
    datos = _con_instantaneas(store, datos)
    datos.update({
        "numero_parte": generar_numero_parte(store, prefijo),
        "estado": EstadoParte.PENDIENTE,
        "creado_por_id": usuario["id"],
        "horas_reales": 0,
    })
    parte = ParteRepositorio(store).crear(datos).unwrap()
    auditar("PARTES", "CREATE", usuario, parte["numero_parte"])
    return parte


def actualizar_parte(store, parte_id, datos, usuario=None):
    """Edita los datos de cabecera. Estado, horas y cierre tienen sus propias operaciones."""
    parte = ParteRepositorio(store).obtener(parte_id).unwrap()
    if parte["estado"] not in ESTADOS_ABIERTOS:
        raise ValidacionError(f"El parte {parte['numero_parte']} está cerrado y no se puede editar.")
    datos = {
        k: v for k, v in _con_instantaneas(store, datos).items()
        if k not in ("numero_parte", "estado", "creado_por_id", "horas_reales", "fecha_inicio", "fecha_fin")
    }
    parte = ParteRepositorio(store).actualizar(parte_id, datos).unwrap()
    auditar("PARTES", "UPDATE", usuario, parte["numero_parte"])
    return parte


def puede_ver_parte(usuario, parte):
    if usuario_puede(usuario, Capacidad.VER_TODOS_PARTES):
        return True
    return usuario["id"] in (parte["tecnico_asignado_id"], parte["creado_por_id"])


def partes_visibles(store, usuario, estado=None, q="", tecnico_id=None):
    partes = ParteRepositorio(store).listar(orden="-created_at").unwrap()
    partes = [p for p in partes if puede_ver_parte(usuario, p)]
    if estado:
        partes = [p for p in partes if p["estado"] == estado]
    if tecnico_id:
        partes = [p for p in partes if p["tecnico_asignado_id"] == tecnico_id]
    q = (q or "").strip().lower()
    if q:
        partes = [
            p for p in partes
            if q in p["numero_parte"].lower()
            or q in p["cliente_nombre"].lower()
            or q in p["descripcion"].lower()
            or q in p["vehiculo_matricula"].lower()
        ]
    return partes


# ---------- fichajes sobre el parte ----------
def estado_fichaje(store, parte_id, usuario_id):
    """¿Está el usuario fichado en este parte? Devuelve la entrada abierta o None."""
    return calculo.entrada_abierta(FichajeRepositorio(store).de_usuario_en_parte(usuario_id, parte_id))


def iniciar_trabajo(store, parte_id, usuario):
    """
    Ficha la entrada del usuario en el parte. Si el parte estaba pendiente
    pasa a en progreso.
    """
    parte = ParteRepositorio(store).obtener(parte_id).unwrap()
    if parte["estado"] not in ESTADOS_ABIERTOS:
        raise TransicionInvalida(f"El parte {parte['numero_parte']} está {parte['estado']}.")
    if estado_fichaje(store, parte_id, usuario["id"]):
        raise ValidacionError("Ya has fichado la entrada en este parte.")

    activo = parte_activo(store, usuario["id"])
    if activo and activo != parte_id:
        otro = ParteRepositorio(store).obtener(activo).unwrap()
        raise ValidacionError(
            f"Tienes fichada la entrada en el parte {otro['numero_parte']}. Ficha la salida primero."
        )

    fichaje = registrar_fichaje(store, usuario["id"], TipoFichaje.ENTRADA, parte_id=parte_id)
    if parte["estado"] == EstadoParte.PENDIENTE:
        cambiar_estado(
            store, parte, EstadoParte.EN_PROGRESO, usuario,
            fecha_inicio=parte["fecha_inicio"] or fichaje["fecha_hora"],
        )
    return fichaje


def registrar_salida(store, parte_id, usuario):
    parte = ParteRepositorio(store).obtener(parte_id).unwrap()
    if not estado_fichaje(store, parte_id, usuario["id"]):
        raise ValidacionError("No has fichado la entrada en este parte.")
    fichaje = registrar_fichaje(store, usuario["id"], TipoFichaje.SALIDA, parte_id=parte["id"])
    recalcular_horas_parte(store, parte_id)
    return fichaje


def fichar_salidas_pendientes(store, parte_id):
    """Ficha la salida de todos los usuarios que siguen dentro del parte."""
    por_usuario = {}
    for f in FichajeRepositorio(store).de_parte(parte_id):
        por_usuario.setdefault(f["usuario_id"], []).append(f)
    fichados = [uid for uid, lista in por_usuario.items() if calculo.entrada_abierta(lista)]
    for usuario_id in fichados:
        registrar_fichaje(store, usuario_id, TipoFichaje.SALIDA, parte_id=parte_id, observaciones="Salida al cerrar el parte")
    return fichados


def _exigir_transicion(parte, nuevo_estado):
    if not validar_transicion(parte["estado"], nuevo_estado):
        raise TransicionInvalida(f"Transición inválida: {parte['estado']} → {nuevo_estado}")


def cerrar_parte(store, parte_id, usuario, trabajo_realizado, firma_cliente="", dni_cliente="", observaciones=None):
    """
    Completa el parte: exige el trabajo realizado, ficha la salida de quien
    siga dentro y recalcula las horas reales.
    """
    trabajo_realizado = (trabajo_realizado or "").strip()
    if not trabajo_realizado:
        raise ValidacionError("Describe el trabajo realizado antes de cerrar el parte.")

    parte = ParteRepositorio(store).obtener(parte_id).unwrap()
    _exigir_transicion(parte, EstadoParte.COMPLETADO)

    fichar_salidas_pendientes(store, parte_id)
    horas = recalcular_horas_parte(store, parte_id)
    cambios = {
        "trabajo_realizado": trabajo_realizado,
        "fecha_fin": timezone.now(),
        "firma_cliente": firma_cliente or "",
        "dni_cliente": dni_cliente or "",
        "horas_reales": horas,
    }
    if parte["horas_facturables"] is None:
        cambios["horas_facturables"] = horas
    if observaciones is not None:
        cambios["observaciones"] = observaciones
    return cambiar_estado(store, parte, EstadoParte.COMPLETADO, usuario, **cambios)


def cancelar_parte(store, parte_id, usuario, motivo=""):
    parte = ParteRepositorio(store).obtener(parte_id).unwrap()
    _exigir_transicion(parte, EstadoParte.CANCELADO)

    fichar_salidas_pendientes(store, parte_id)
    cambios = {"fecha_fin": timezone.now(), "horas_reales": recalcular_horas_parte(store, parte_id)}
    if motivo:
        cambios["observaciones"] = f"{parte['observaciones']}\nCancelado: {motivo}".strip()
    return cambiar_estado(store, parte, EstadoParte.CANCELADO, usuario, **cambios)


def actualizar_horas_facturables(store, parte_id, horas, usuario=None):
    if horas is None or horas < 0:
        raise ValidacionError("Las horas facturables no pueden ser negativas.")
    parte = ParteRepositorio(store).actualizar(parte_id, {"horas_facturables": horas}).unwrap()
    auditar("PARTES", "HORAS", usuario, parte["numero_parte"], horas_facturables=horas)
    return parte


def eliminar_parte(store, parte_id, usuario=None):
    parte = ParteRepositorio(store).eliminar(parte_id).unwrap()
    auditar("PARTES", "DELETE", usuario, parte["numero_parte"])
    return parte


# ---------- materiales ----------
def agregar_material(store, parte_id, datos, usuario=None):
    """
    Anota material usado en el parte. Si viene del catálogo se descuenta del
    stock (y se rechaza si no hay suficiente).
    """
    parte = ParteRepositorio(store).obtener(parte_id).unwrap()
    if parte["estado"] not in ESTADOS_ABIERTOS:
        raise ValidacionError("No se puede añadir material a un parte cerrado.")
    cantidad = Decimal(str(datos.get("cantidad") or 0))
    if cantidad <= 0:
        raise ValidacionError("La cantidad debe ser mayor que 0.")

    datos = dict(datos, parte_trabajo_id=parte_id, cantidad=cantidad)
    material_id = datos.get("material_id")
    if material_id:
        materiales = MaterialRepositorio(store)
        material = materiales.obtener(material_id).unwrap()
        stock = nuevo_stock(material["stock_actual"], SALIDA, cantidad)
        for campo, valor in (
            ("codigo", material["codigo"]),
            ("descripcion", material["nombre"]),
            ("unidad", material["unidad"]),
            ("precio_unitario", material["precio_unitario"]),
        ):
            if datos.get(campo) in (None, ""):
                datos[campo] = valor
        materiales.actualizar(material_id, {"stock_actual": stock}).unwrap()
    elif not (datos.get("descripcion") or "").strip():
        raise ValidacionError("La descripción del material es obligatoria.")

    usado = MaterialUsadoRepositorio(store).crear(datos).unwrap()
    auditar("PARTES", "MATERIAL", usuario, parte["numero_parte"], codigo=usado["codigo"], cantidad=str(cantidad))
    return usado


def quitar_material(store, parte_id, material_usado_id, usuario=None):
    """Quita una línea de material del parte (abierto) y devuelve el stock."""
    parte = ParteRepositorio(store).obtener(parte_id).unwrap()
    if parte["estado"] not in ESTADOS_ABIERTOS:
        raise ValidacionError("No se puede quitar material de un parte cerrado.")
    repo = MaterialUsadoRepositorio(store)
    if repo.obtener(material_usado_id).unwrap()["parte_trabajo_id"] != parte_id:
        raise ValidacionError("Ese material no pertenece a este parte.")

    usado = repo.eliminar(material_usado_id).unwrap()
    if usado["material_id"]:
        materiales = MaterialRepositorio(store)
        res = materiales.obtener(usado["material_id"])
        if res.ok:
            stock = nuevo_stock(res.data["stock_actual"], ENTRADA, usado["cantidad"])
            materiales.actualizar(usado["material_id"], {"stock_actual": stock}).unwrap()
    auditar("PARTES", "MATERIAL_QUITAR", usuario, parte["numero_parte"], codigo=usado["codigo"])
    return usado


def total_materiales(materiales):
    return sum((Decimal(m["cantidad"]) * Decimal(m["precio_unitario"]) for m in materiales), Decimal("0"))
