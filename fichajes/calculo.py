# fichajes/calculo.py
"""
Cálculo de horas trabajadas a partir de fichajes de entrada/salida.

Por cada usuario, y dentro de él por flujo (la jornada sin parte y cada
parte por separado), se recorren sus fichajes en orden cronológico:

- una entrada abre un tramo (si ya había uno abierto, lo reemplaza y la
  entrada anterior se pierde);
- una salida con tramo abierto suma (salida - entrada) y lo cierra;
- una salida sin entrada previa no suma nada;
- una entrada que queda abierta al final no suma nada.

El total es la suma de todos los usuarios.
"""
from collections import defaultdict
from datetime import datetime

from django.utils import timezone
from django.utils.dateparse import parse_datetime

ENTRADA = "entrada"
SALIDA = "salida"


def _momento(valor):
    if isinstance(valor, datetime):
        return valor if timezone.is_aware(valor) else timezone.make_aware(valor)
    dt = parse_datetime(str(valor))
    if dt is None:
        raise ValueError(f"Fecha de fichaje no válida: {valor!r}")
    return dt if timezone.is_aware(dt) else timezone.make_aware(dt)


def _por_flujo(fichajes):
    # La jornada (sin parte) y cada parte son flujos independientes
    grupos = defaultdict(list)
    for f in fichajes:
        grupos[(f["usuario_id"], f.get("parte_trabajo_id"))].append(f)
    for lista in grupos.values():
        lista.sort(key=lambda f: _momento(f["fecha_hora"]))
    return grupos


def tramos(fichajes):
    """Pares (usuario_id, entrada, salida, segundos) completos, en orden."""
    out = []
    for (usuario_id, _), lista in _por_flujo(fichajes).items():
        abierta = None
        for f in lista:
            momento = _momento(f["fecha_hora"])
            if f["tipo"] == ENTRADA:
                abierta = momento
            elif f["tipo"] == SALIDA and abierta is not None:
                out.append((usuario_id, abierta, momento, (momento - abierta).total_seconds()))
                abierta = None
    return out


def segundos_por_usuario(fichajes):
    totales = defaultdict(float)
    for usuario_id, _ in _por_flujo(fichajes):
        totales[usuario_id] = 0.0
    for usuario_id, _, _, segundos in tramos(fichajes):
        totales[usuario_id] += segundos
    return dict(totales)


def horas_trabajadas(fichajes):
    return sum(segundos_por_usuario(fichajes).values()) / 3600.0


def entrada_abierta(fichajes):
    """Último fichaje si es una entrada (el usuario sigue fichado), si no None."""
    if not fichajes:
        return None
    ultimo = sorted(fichajes, key=lambda f: _momento(f["fecha_hora"]))[-1]
    return ultimo if ultimo["tipo"] == ENTRADA else None


def formatear_horas(horas):
    """7.5 -> '7h 30m'"""
    minutos = int(round((horas or 0) * 60))
    return f"{minutos // 60}h {minutos % 60:02d}m"
