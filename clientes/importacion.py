# clientes/importacion.py
"""
Importación y exportación de clientes en CSV.

Columnas: nombre, cif, telefono, email, direccion, contacto_principal,
notas, activo. Si alguna fila tiene errores no se importa nada; si todas son
válidas se crean una a una y un fallo en una fila no deshace las demás.
"""
import csv
import io
import logging
import re
from dataclasses import dataclass, field

from core.exceptions import ValidacionError

logger = logging.getLogger(__name__)

COLUMNAS = [
    "nombre",
    "cif",
    "telefono",
    "email",
    "direccion",
    "contacto_principal",
    "notas",
    "activo",
]

CIF_RE = re.compile(r"^[A-Z]\d{8}$|^[A-Z]\d{7}[A-Z]$|^\d{8}[A-Z]$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

VERDADERO = {"", "true", "1", "si", "sí", "s", "yes"}
FALSO = {"false", "0", "no", "n"}


@dataclass
class ErrorFila:
    fila: int
    campo: str
    mensaje: str


@dataclass
class ResultadoImportacion:
    creados: list = field(default_factory=list)
    fallidos: list = field(default_factory=list)   # (fila, mensaje)


def leer_csv(contenido):
    """
    Devuelve una lista de dicts con las columnas conocidas. Acepta bytes o
    texto, con o sin BOM, separador coma o punto y coma.
    """
    if isinstance(contenido, bytes):
        contenido = contenido.decode("utf-8-sig")
    contenido = contenido.lstrip("\ufeff")
    if not contenido.strip():
        return []
    try:
        dialecto = csv.Sniffer().sniff(contenido.splitlines()[0], delimiters=",;")
    except csv.Error:
        dialecto = csv.excel
    lector = csv.DictReader(io.StringIO(contenido), dialect=dialecto)
    lector.fieldnames = [(c or "").strip().lower() for c in (lector.fieldnames or [])]
    filas = []
    for fila in lector:
        if not any((v or "").strip() for v in fila.values() if isinstance(v, str)):
            continue
        filas.append({col: (fila.get(col) or "").strip() for col in COLUMNAS})
    return filas


def validar_filas(filas):
    errores = []
    for n, fila in enumerate(filas, start=1):
        if not fila.get("nombre"):
            errores.append(ErrorFila(n, "nombre", "El nombre es obligatorio"))
        cif = fila.get("cif", "")
        if not cif:
            errores.append(ErrorFila(n, "cif", "El CIF es obligatorio"))
        elif not CIF_RE.match(cif):
            errores.append(ErrorFila(n, "cif", "Formato de CIF inválido"))
        if not fila.get("telefono"):
            errores.append(ErrorFila(n, "telefono", "El teléfono es obligatorio"))
        email = fila.get("email", "")
        if email and not EMAIL_RE.match(email):
            errores.append(ErrorFila(n, "email", "Formato de email inválido"))
        activo = fila.get("activo", "").lower()
        if activo not in VERDADERO | FALSO:
            errores.append(ErrorFila(n, "activo", "Valor de activo no reconocido"))
    return errores


def a_cliente(fila):
    datos = {col: fila.get(col, "") for col in COLUMNAS if col != "activo"}
    datos["activo"] = fila.get("activo", "").lower() not in FALSO
    return datos


def importar_clientes(store, filas):
    """
    Crea un cliente por fila. Las filas que fallen se anotan y se sigue con
    las siguientes (no hay rollback de las ya creadas).
    """
    errores = validar_filas(filas)
    if errores:
        raise ValidacionError(f"Hay {len(errores)} errores de validación; corrígelos antes de importar.")

    resultado = ResultadoImportacion()
    for n, fila in enumerate(filas, start=1):
        res = store.crear("clientes", a_cliente(fila))
        if res.ok:
            resultado.creados.append(res.data)
        else:
            logger.warning("Importación de clientes: fila %s falló: %s", n, res.error.message)
            resultado.fallidos.append((n, res.error.message))
    logger.info(
        "Importación de clientes: %s creados, %s fallidos",
        len(resultado.creados), len(resultado.fallidos),
    )
    return resultado


def escribir_csv(salida, clientes):
    w = csv.writer(salida)
    w.writerow(COLUMNAS)
    for c in clientes:
        w.writerow([
            c["nombre"], c["cif"], c["telefono"], c["email"], c["direccion"],
            c["contacto_principal"], c["notas"], "true" if c["activo"] else "false",
        ])


def plantilla_csv(salida):
    w = csv.writer(salida)
    w.writerow(COLUMNAS)
    w.writerow([
        "Transportes García S.L.", "B12345678", "968123456", "info@transportesgarcia.es",
        "Polígono Industrial Oeste, Murcia", "Antonio García", "", "true",
    ])
