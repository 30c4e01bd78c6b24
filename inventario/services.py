import logging
from decimal import Decimal

from core.exceptions import ValidacionError
from core.services import auditar
from core.store import Repositorio

logger = logging.getLogger(__name__)

ENTRADA = "entrada"
SALIDA = "salida"
AJUSTE = "ajuste"
TIPOS_MOVIMIENTO = [(ENTRADA, "Entrada"), (SALIDA, "Salida"), (AJUSTE, "Ajuste")]


class MaterialRepositorio(Repositorio):
    tabla = "materiales"

    def buscar(self, q=""):
        q = (q or "").strip().lower()
        items = self.listar(orden="codigo").unwrap()
        if q:
            items = [
                m for m in items
                if q in m["codigo"].lower() or q in m["nombre"].lower() or q in m["proveedor"].lower()
            ]
        return items


def en_minimo(material):
    return Decimal(material["stock_actual"]) <= Decimal(material["stock_minimo"])


def stock_bajo(store):
    return [m for m in MaterialRepositorio(store).listar(orden="codigo").unwrap() if en_minimo(m)]


def nuevo_stock(actual, tipo, cantidad):
    """Stock resultante de aplicar un movimiento. Ajuste admite cantidad con signo."""
    actual = Decimal(actual or 0)
    cantidad = Decimal(cantidad)
    if tipo != AJUSTE and cantidad <= 0:
        raise ValidacionError("La cantidad debe ser mayor que 0.")
    if tipo == ENTRADA:
        return actual + cantidad
    if tipo == SALIDA:
        nuevo = actual - cantidad
        if nuevo < 0:
            raise ValidacionError("Stock insuficiente para realizar la salida.")
        return nuevo
    if tipo == AJUSTE:
        if cantidad == 0:
            raise ValidacionError("La cantidad debe ser distinta de 0.")
        nuevo = actual + cantidad
        if nuevo < 0:
            raise ValidacionError("El ajuste deja stock negativo.")
        return nuevo
    raise ValidacionError(f"Tipo de movimiento desconocido: {tipo}")


def ajustar_stock(store, material_id, tipo, cantidad, motivo="", usuario=None):
    repo = MaterialRepositorio(store)
    material = repo.obtener(material_id).unwrap()
    if tipo == AJUSTE and not (motivo or "").strip():
        raise ValidacionError("El ajuste requiere un motivo.")
    stock = nuevo_stock(material["stock_actual"], tipo, cantidad)
    material = repo.actualizar(material_id, {"stock_actual": stock}).unwrap()
    auditar(
        "INVENTARIO", f"STOCK_{tipo.upper()}", usuario, material["codigo"],
        cantidad=str(cantidad), motivo=motivo, stock=str(stock),
    )
    if en_minimo(material):
        logger.warning("Stock bajo: %s (%s / min %s)", material["codigo"], stock, material["stock_minimo"])
    return material


def guardar_material(store, datos, usuario=None, material_id=None):
    if not (datos.get("codigo") or "").strip():
        raise ValidacionError("El código del material es obligatorio.")
    if not (datos.get("nombre") or "").strip():
        raise ValidacionError("El nombre del material es obligatorio.")
    datos = dict(datos, codigo=datos["codigo"].strip().upper())
    repo = MaterialRepositorio(store)
    if material_id:
        # El stock solo cambia con movimientos
        datos.pop("stock_actual", None)
        material = repo.actualizar(material_id, datos).unwrap()
        auditar("INVENTARIO", "UPDATE", usuario, material["codigo"])
    else:
        material = repo.crear(datos).unwrap()
        auditar("INVENTARIO", "CREATE", usuario, material["codigo"], stock=str(material["stock_actual"]))
    return material


def eliminar_material(store, material_id, usuario=None):
    """Los materiales usados en partes conservan código y descripción."""
    material = MaterialRepositorio(store).eliminar(material_id).unwrap()
    auditar("INVENTARIO", "DELETE", usuario, material["codigo"])
    return material
