import logging
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.utils import timezone

from core.exceptions import TransicionInvalida, ValidacionError
from core.services import auditar
from core.store import Repositorio
from partes.services import crear_parte

from .models import EstadoPresupuesto

logger = logging.getLogger(__name__)

IVA_DEFECTO = Decimal("21")
CENTIMO = Decimal("0.01")

TRANSICIONES = {
    EstadoPresupuesto.PENDIENTE: {EstadoPresupuesto.ENVIADO, EstadoPresupuesto.RECHAZADO},
    EstadoPresupuesto.ENVIADO: {EstadoPresupuesto.ACEPTADO, EstadoPresupuesto.RECHAZADO},
    EstadoPresupuesto.ACEPTADO: set(),
    EstadoPresupuesto.RECHAZADO: set(),
}


class PresupuestoRepositorio(Repositorio):
    tabla = "presupuestos"


class ConceptoRepositorio(Repositorio):
    tabla = "conceptos_presupuesto"

    def de_presupuesto(self, presupuesto_id):
        return self.listar(orden="created_at", presupuesto_id=presupuesto_id).unwrap()


def generar_numero_presupuesto(store, ahora=None):
    """PRES-2025-001, PRES-2025-002... por año."""
    anio = (ahora or timezone.localtime()).year
    base = f"PRES-{anio}-"
    numeros = {p["numero"] for p in PresupuestoRepositorio(store).listar().unwrap()}
    n = sum(1 for num in numeros if num.startswith(base)) + 1
    while f"{base}{n:03d}" in numeros:
        n += 1
    return f"{base}{n:03d}"


def _decimal(valor, campo):
    try:
        return Decimal(str(valor if valor not in (None, "") else 0))
    except InvalidOperation:
        raise ValidacionError(f"{campo} no es un número: {valor!r}")


def limpiar_conceptos(conceptos):
    """
    Descarta las líneas sin descripción y normaliza cantidad y precio.
    Un presupuesto necesita al menos un concepto.
    """
    lineas = []
    for c in conceptos:
        descripcion = (c.get("descripcion") or "").strip()
        if not descripcion:
            continue
        cantidad = _decimal(c.get("cantidad"), "La cantidad")
        precio = _decimal(c.get("precio_unitario"), "El precio")
        if cantidad <= 0:
            raise ValidacionError(f"La cantidad de «{descripcion}» debe ser mayor que 0.")
        if precio < 0:
            raise ValidacionError(f"El precio de «{descripcion}» no puede ser negativo.")
        lineas.append({"descripcion": descripcion, "cantidad": cantidad, "precio_unitario": precio})
    if not lineas:
        raise ValidacionError("Añade al menos un concepto al presupuesto.")
    return lineas


def calcular_totales(conceptos, iva_porcentaje=IVA_DEFECTO):
    subtotal = sum(
        (Decimal(c["cantidad"]) * Decimal(c["precio_unitario"]) for c in conceptos), Decimal("0")
    ).quantize(CENTIMO, ROUND_HALF_UP)
    iva = (subtotal * Decimal(iva_porcentaje) / 100).quantize(CENTIMO, ROUND_HALF_UP)
    return {"subtotal": subtotal, "iva": iva, "total": subtotal + iva}


def valido_hasta(presupuesto):
    return timezone.localtime(presupuesto["created_at"]).date() + timedelta(days=presupuesto["validez_dias"] or 0)


def crear_presupuesto(store, datos, conceptos, usuario, iva_porcentaje=IVA_DEFECTO):
    descripcion = (datos.get("descripcion") or "").strip()
    if not descripcion:
        raise ValidacionError("La descripción del presupuesto es obligatoria.")
    lineas = limpiar_conceptos(conceptos)

    datos = dict(datos, descripcion=descripcion)
    if datos.get("cliente_id"):
        datos["cliente_nombre"] = store.obtener("clientes", datos["cliente_id"]).unwrap()["nombre"]
    elif not (datos.get("cliente_nombre") or "").strip():
        raise ValidacionError("Indica un cliente registrado o el nombre del cliente.")
    datos.update(calcular_totales(lineas, iva_porcentaje))
    datos.update({
        "iva_porcentaje": iva_porcentaje,
        "numero": generar_numero_presupuesto(store),
        "estado": EstadoPresupuesto.PENDIENTE,
        "creado_por_id": usuario["id"],
    })

    presupuesto = PresupuestoRepositorio(store).crear(datos).unwrap()
    repo = ConceptoRepositorio(store)
    for linea in lineas:
        repo.crear(dict(linea, presupuesto_id=presupuesto["id"])).unwrap()
    auditar("PRESUPUESTOS", "CREATE", usuario, presupuesto["numero"], total=str(presupuesto["total"]))
    return presupuesto


def cambiar_estado_presupuesto(store, presupuesto_id, nuevo_estado, usuario=None):
    repo = PresupuestoRepositorio(store)
    presupuesto = repo.obtener(presupuesto_id).unwrap()
    if nuevo_estado not in EstadoPresupuesto.values:
        raise ValidacionError(f"Estado de presupuesto no válido: {nuevo_estado}")
    anterior = presupuesto["estado"]
    if nuevo_estado not in TRANSICIONES[anterior]:
        raise TransicionInvalida(
            f"El presupuesto {presupuesto['numero']} está {anterior} y no puede pasar a {nuevo_estado}."
        )
    presupuesto = repo.actualizar(presupuesto["id"], {"estado": nuevo_estado}).unwrap()
    auditar("PRESUPUESTOS", "ESTADO", usuario, presupuesto["numero"], desde=anterior, hasta=nuevo_estado)
    return presupuesto


def crear_parte_desde_presupuesto(store, presupuesto_id, usuario, prefijo="PT"):
    """Abre un parte de trabajo con los datos de un presupuesto aceptado (una sola vez)."""
    repo = PresupuestoRepositorio(store)
    presupuesto = repo.obtener(presupuesto_id).unwrap()
    if presupuesto["estado"] != EstadoPresupuesto.ACEPTADO:
        raise ValidacionError("Solo se crea un parte a partir de un presupuesto aceptado.")
    if presupuesto["parte_trabajo_id"]:
        raise ValidacionError(f"El presupuesto {presupuesto['numero']} ya tiene un parte de trabajo.")
    parte = crear_parte(store, {
        "cliente_id": presupuesto["cliente_id"],
        "cliente_nombre": presupuesto["cliente_nombre"],
        "vehiculo_id": presupuesto["vehiculo_id"],
        "descripcion": presupuesto["descripcion"],
        "observaciones": f"Presupuesto {presupuesto['numero']}",
    }, usuario, prefijo=prefijo)
    repo.actualizar(presupuesto["id"], {"parte_trabajo_id": parte["id"]}).unwrap()
    logger.info("Parte %s creado desde %s", parte["numero_parte"], presupuesto["numero"])
    return parte


def listar_presupuestos(store, estado=None, q=""):
    filtros = {"estado": estado} if estado else {}
    presupuestos = PresupuestoRepositorio(store).listar(orden="-created_at", **filtros).unwrap()
    q = (q or "").strip().lower()
    if q:
        presupuestos = [
            p for p in presupuestos
            if q in p["numero"].lower() or q in p["cliente_nombre"].lower() or q in p["descripcion"].lower()
        ]
    return presupuestos
