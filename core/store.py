# core/store.py
"""
Capa de acceso a datos.

Un `Store` expone las mismas cinco operaciones para todas las tablas
(listar, obtener, crear, actualizar, eliminar) y siempre devuelve un
`Resultado(data, error)` en lugar de lanzar excepciones.

Hay dos implementaciones y se elige una sola vez al arrancar
(`construir_store`):

- `MemoryStore`: diccionarios en memoria, protegidos por un lock; se pierden
  al reiniciar el proceso.
- `OrmStore`: el ORM de Django sobre la base de datos configurada.

El esquema de cada tabla (campos, valores por defecto, únicos y
referencias) sale del modelo Django correspondiente, así que los dos
backends validan y devuelven exactamente lo mismo.
"""
import copy
import logging
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from django.apps import apps
from django.core.exceptions import ImproperlyConfigured, ValidationError
from django.db import DatabaseError, IntegrityError, connection, models, transaction
from django.utils import timezone

from .exceptions import (
    ERRORES_POR_CODIGO,
    BackendError,
    DatosError,
    DominioError,
    Duplicado,
    NoEncontrado,
    ReferenciaInvalida,
    ValidacionError,
)

logger = logging.getLogger(__name__)

TABLAS = {
    "usuarios": "personal.Usuario",
    "solicitudes_vacaciones": "personal.SolicitudVacaciones",
    "clientes": "clientes.Cliente",
    "vehiculos": "clientes.Vehiculo",
    "partes_trabajo": "partes.ParteTrabajo",
    "materiales_usados": "partes.MaterialUsado",
    "fichajes": "fichajes.Fichaje",
    "materiales": "inventario.Material",
    "citas": "agenda.Cita",
    "presupuestos": "presupuestos.Presupuesto",
    "conceptos_presupuesto": "presupuestos.ConceptoPresupuesto",
}

CAMPOS_PROTEGIDOS = ("id", "created_at")


@dataclass
class ErrorDatos:
    message: str
    code: str = "error"


@dataclass
class Resultado:
    data: Any = None
    error: ErrorDatos | None = None

    @property
    def ok(self):
        return self.error is None

    @classmethod
    def fallo(cls, exc):
        return cls(error=ErrorDatos(exc.message or str(exc), exc.code))

    def unwrap(self):
        """Devuelve `data` o lanza la excepción que corresponde al error."""
        if self.error is not None:
            raise ERRORES_POR_CODIGO.get(self.error.code, DatosError)(self.error.message)
        return self.data


class Esquema:
    """Campos, únicos y referencias de una tabla, leídos del modelo."""

    def __init__(self, tabla, modelo):
        self.tabla = tabla
        self.modelo = modelo
        fields = modelo._meta.concrete_fields
        self.campos = {f.attname: f for f in fields}
        self.pk = modelo._meta.pk
        self.unicos = [f.attname for f in fields if f.unique and not f.primary_key]
        self.referencias = {
            f.attname: f.related_model._meta.db_table for f in fields if f.is_relation
        }

    def obligatorios(self):
        return [
            nombre for nombre, campo in self.campos.items()
            if not campo.null and nombre not in ("id", "created_at", "updated_at")
        ]


def _valor_plano(valor):
    if isinstance(valor, uuid.UUID):
        return str(valor)
    if isinstance(valor, datetime) and timezone.is_naive(valor):
        return timezone.make_aware(valor)
    return valor


class Store:
    nombre = "base"

    def __init__(self):
        self._esquemas = {}

    # ---------- esquema ----------
    def esquema(self, tabla):
        if tabla not in self._esquemas:
            if tabla not in TABLAS:
                raise LookupError(f"Tabla desconocida: {tabla}")
            self._esquemas[tabla] = Esquema(tabla, apps.get_model(TABLAS[tabla]))
        return self._esquemas[tabla]

    def dependientes(self, tabla):
        """(tabla, campo, on_delete) de los registros que apuntan a `tabla`."""
        out = []
        for otra in TABLAS:
            esq = self.esquema(otra)
            for attname, destino in esq.referencias.items():
                if destino == tabla:
                    out.append((otra, attname, esq.campos[attname].remote_field.on_delete))
        return out

    def _coercionar(self, esq, nombre, valor):
        campo = esq.campos[nombre]
        if valor is None or (valor == "" and campo.null):
            return None
        try:
            return _valor_plano(campo.to_python(valor))
        except ValidationError:
            raise ValidacionError(f"Valor inválido para '{nombre}': {valor!r}")

    def _normalizar(self, esq, datos):
        return {
            nombre: self._coercionar(esq, nombre, valor)
            for nombre, valor in datos.items()
            if nombre in esq.campos
        }

    def _id(self, esq, id):
        try:
            return _valor_plano(esq.pk.to_python(id))
        except ValidationError:
            raise NoEncontrado("Registro no encontrado")

    def _validar(self, esq, registro):
        for nombre in esq.obligatorios():
            if registro.get(nombre) is None:
                raise ValidacionError(f"El campo '{nombre}' es obligatorio")
        for nombre in esq.unicos:
            valor = registro.get(nombre)
            if valor not in (None, "") and self._existe(esq.tabla, nombre, valor, registro["id"]):
                raise Duplicado(f"Ya existe un registro con ese {nombre}")
        for nombre, destino in esq.referencias.items():
            valor = registro.get(nombre)
            if valor is not None and self._fila(destino, valor) is None:
                raise ReferenciaInvalida(f"La referencia '{nombre}' no existe")

    # ---------- operaciones ----------
    def listar(self, tabla, filtros=None, orden=None):
        try:
            esq = self.esquema(tabla)
            filtros = self._normalizar(esq, filtros or {})
            if isinstance(orden, str):
                orden = (orden,)
            with self._operacion():
                filas = self._filas(tabla, filtros, tuple(orden or ()))
            return Resultado(data=filas)
        except DominioError as exc:
            return Resultado.fallo(exc)

    def obtener(self, tabla, id):
        try:
            esq = self.esquema(tabla)
            with self._operacion():
                fila = self._fila(tabla, self._id(esq, id))
            if fila is None:
                raise NoEncontrado("Registro no encontrado")
            return Resultado(data=fila)
        except DominioError as exc:
            return Resultado.fallo(exc)

    def crear(self, tabla, datos):
        try:
            esq = self.esquema(tabla)
            registro = {
                nombre: self._coercionar(esq, nombre, campo.get_default())
                for nombre, campo in esq.campos.items()
            }
            registro.update(self._normalizar(esq, datos))
            registro["id"] = self._id(esq, datos.get("id") or uuid.uuid4())
            registro["created_at"] = registro["updated_at"] = timezone.now()
            with self._operacion():
                self._validar(esq, registro)
                if self._fila(tabla, registro["id"]) is not None:
                    raise Duplicado("Ya existe un registro con ese id")
                self._insertar(tabla, registro)
            logger.debug("Alta en %s: %s", tabla, registro["id"])
            return Resultado(data=copy.deepcopy(registro))
        except DominioError as exc:
            return Resultado.fallo(exc)

    def actualizar(self, tabla, id, cambios):
        try:
            esq = self.esquema(tabla)
            id = self._id(esq, id)
            parcial = self._normalizar(
                esq, {k: v for k, v in cambios.items() if k not in CAMPOS_PROTEGIDOS}
            )
            with self._operacion():
                actual = self._fila(tabla, id)
                if actual is None:
                    raise NoEncontrado("Registro no encontrado")
                registro = {**actual, **parcial, "updated_at": timezone.now()}
                self._validar(esq, registro)
                self._reemplazar(tabla, id, registro)
            return Resultado(data=copy.deepcopy(registro))
        except DominioError as exc:
            return Resultado.fallo(exc)

    def eliminar(self, tabla, id):
        try:
            esq = self.esquema(tabla)
            id = self._id(esq, id)
            with self._operacion():
                actual = self._fila(tabla, id)
                if actual is None:
                    raise NoEncontrado("Registro no encontrado")
                self._borrar(tabla, id)
            logger.debug("Baja en %s: %s", tabla, id)
            return Resultado(data=actual)
        except DominioError as exc:
            return Resultado.fallo(exc)

    def probar_conexion(self):
        return Resultado(data=True)

    # ---------- primitivas de cada backend ----------
    @contextmanager
    def _operacion(self):
        yield

    def _filas(self, tabla, filtros, orden):
        raise NotImplementedError

    def _fila(self, tabla, id):
        raise NotImplementedError

    def _existe(self, tabla, campo, valor, excluir_id):
        raise NotImplementedError

    def _insertar(self, tabla, registro):
        raise NotImplementedError

    def _reemplazar(self, tabla, id, registro):
        raise NotImplementedError

    def _borrar(self, tabla, id):
        raise NotImplementedError


def _clave_orden(valor):
    return (valor is None, valor if valor is not None else 0)


class MemoryStore(Store):
    """Tablas en memoria. Todas las operaciones pasan por un único lock."""

    nombre = "memoria"

    def __init__(self):
        super().__init__()
        self._tablas = {tabla: {} for tabla in TABLAS}
        self._lock = threading.RLock()

    @contextmanager
    def _operacion(self):
        with self._lock:
            yield

    def _filas(self, tabla, filtros, orden):
        filas = [
            fila for fila in self._tablas[tabla].values()
            if all(fila.get(k) == v for k, v in filtros.items())
        ]
        for campo in reversed(orden):
            nombre = campo.lstrip("-")
            filas.sort(key=lambda f: _clave_orden(f.get(nombre)), reverse=campo.startswith("-"))
        return copy.deepcopy(filas)

    def _fila(self, tabla, id):
        fila = self._tablas[tabla].get(id)
        return copy.deepcopy(fila) if fila is not None else None

    def _existe(self, tabla, campo, valor, excluir_id):
        return any(
            fila.get(campo) == valor and fila["id"] != excluir_id
            for fila in self._tablas[tabla].values()
        )

    def _insertar(self, tabla, registro):
        self._tablas[tabla][registro["id"]] = copy.deepcopy(registro)

    def _reemplazar(self, tabla, id, registro):
        self._tablas[tabla][id] = copy.deepcopy(registro)

    def _borrar(self, tabla, id):
        if self._tablas[tabla].pop(id, None) is None:
            return
        # Mismas acciones referenciales que define el modelo (CASCADE / SET_NULL)
        for dependiente, campo, on_delete in self.dependientes(tabla):
            for fila in list(self._tablas[dependiente].values()):
                if fila.get(campo) != id:
                    continue
                if on_delete is models.CASCADE:
                    self._borrar(dependiente, fila["id"])
                else:
                    fila[campo] = None


class OrmStore(Store):
    """Tablas en la base de datos de Django. Cada operación es atómica."""

    nombre = "orm"

    @contextmanager
    def _operacion(self):
        try:
            with transaction.atomic():
                yield
        except IntegrityError as exc:
            logger.warning("Violación de integridad: %s", exc)
            raise Duplicado("El registro entra en conflicto con otro existente") from exc
        except DatabaseError as exc:
            logger.exception("Error de base de datos")
            raise BackendError("Error de conexión con la base de datos") from exc

    def _modelo(self, tabla):
        return self.esquema(tabla).modelo

    def _a_registro(self, obj):
        return {
            f.attname: _valor_plano(getattr(obj, f.attname))
            for f in obj._meta.concrete_fields
        }

    def _filas(self, tabla, filtros, orden):
        lookups = {
            (k if v is not None else f"{k}__isnull"): (v if v is not None else True)
            for k, v in filtros.items()
        }
        qs = self._modelo(tabla).objects.filter(**lookups)
        qs = qs.order_by(*orden) if orden else qs.order_by("created_at")
        return [self._a_registro(obj) for obj in qs]

    def _fila(self, tabla, id):
        obj = self._modelo(tabla).objects.filter(pk=id).first()
        return self._a_registro(obj) if obj is not None else None

    def _existe(self, tabla, campo, valor, excluir_id):
        return (
            self._modelo(tabla).objects
            .filter(**{campo: valor})
            .exclude(pk=excluir_id)
            .exists()
        )

    def _insertar(self, tabla, registro):
        self._modelo(tabla)(**registro).save(force_insert=True)

    def _reemplazar(self, tabla, id, registro):
        self._modelo(tabla)(**registro).save(force_update=True)

    def _borrar(self, tabla, id):
        # Django aplica CASCADE / SET_NULL según el modelo
        self._modelo(tabla).objects.filter(pk=id).delete()

    def probar_conexion(self):
        try:
            connection.ensure_connection()
        except DatabaseError as exc:
            logger.exception("No se pudo conectar con la base de datos")
            return Resultado.fallo(BackendError(str(exc)))
        return Resultado(data=True)


BACKENDS = {
    "memory": MemoryStore,
    "orm": OrmStore,
}


def construir_store(backend):
    try:
        clase = BACKENDS[backend]
    except KeyError:
        raise ImproperlyConfigured(
            f"DATA_BACKEND inválido: {backend!r} (opciones: {', '.join(BACKENDS)})"
        )
    logger.info("Capa de datos: %s", clase.nombre)
    return clase()


def store_activo():
    """El store construido por CoreConfig.ready()."""
    return apps.get_app_config("core").store


class Repositorio:
    """Acceso a una sola tabla de un store."""

    tabla = None

    def __init__(self, store, tabla=None):
        self.store = store
        if tabla:
            self.tabla = tabla

    def listar(self, orden=None, **filtros):
        return self.store.listar(self.tabla, filtros or None, orden)

    def obtener(self, id):
        return self.store.obtener(self.tabla, id)

    def crear(self, datos):
        return self.store.crear(self.tabla, datos)

    def actualizar(self, id, cambios):
        return self.store.actualizar(self.tabla, id, cambios)

    def eliminar(self, id):
        return self.store.eliminar(self.tabla, id)

    def por_id(self, ids):
        """{id: registro} de los ids pedidos (los que no existan se omiten)."""
        ids = {i for i in ids if i}
        if not ids:
            return {}
        return {r["id"]: r for r in self.listar().unwrap() if r["id"] in ids}
