from core.exceptions import ValidacionError
from core.services import auditar
from core.store import Repositorio


class ClienteRepositorio(Repositorio):
    tabla = "clientes"

    def buscar(self, q="", solo_activos=False):
        q = (q or "").strip().lower()
        filtros = {"activo": True} if solo_activos else {}
        clientes = self.listar(orden="nombre", **filtros).unwrap()
        if q:
            clientes = [
                c for c in clientes
                if q in c["nombre"].lower() or q in c["cif"].lower() or q in c["telefono"]
            ]
        return clientes


class VehiculoRepositorio(Repositorio):
    tabla = "vehiculos"

    def de_cliente(self, cliente_id):
        return self.listar(orden="matricula", cliente_id=cliente_id).unwrap()


def guardar_cliente(store, datos, usuario=None, cliente_id=None):
    if not (datos.get("nombre") or "").strip():
        raise ValidacionError("El nombre del cliente es obligatorio.")
    datos = dict(datos, cif=(datos.get("cif") or "").strip().upper())
    repo = ClienteRepositorio(store)
    if cliente_id:
        cliente = repo.actualizar(cliente_id, datos).unwrap()
        auditar("CLIENTES", "UPDATE", usuario, cliente["nombre"])
    else:
        cliente = repo.crear(datos).unwrap()
        auditar("CLIENTES", "CREATE", usuario, cliente["nombre"])
    return cliente


def eliminar_cliente(store, cliente_id, usuario=None):
    """Borra el cliente y, en cascada, sus vehículos. Los partes quedan sin cliente."""
    cliente = ClienteRepositorio(store).eliminar(cliente_id).unwrap()
    auditar("CLIENTES", "DELETE", usuario, cliente["nombre"])
    return cliente


def guardar_vehiculo(store, datos, usuario=None, vehiculo_id=None):
    if not (datos.get("matricula") or "").strip():
        raise ValidacionError("La matrícula es obligatoria.")
    datos = dict(datos, matricula=datos["matricula"].strip().upper())
    repo = VehiculoRepositorio(store)
    if vehiculo_id:
        vehiculo = repo.actualizar(vehiculo_id, datos).unwrap()
    else:
        vehiculo = repo.crear(datos).unwrap()
    auditar("CLIENTES", "VEHICULO", usuario, vehiculo["matricula"])
    return vehiculo


def eliminar_vehiculo(store, vehiculo_id, usuario=None):
    vehiculo = VehiculoRepositorio(store).eliminar(vehiculo_id).unwrap()
    auditar("CLIENTES", "VEHICULO_DELETE", usuario, vehiculo["matricula"])
    return vehiculo
