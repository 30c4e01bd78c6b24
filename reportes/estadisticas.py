# reportes/estadisticas.py
"""
Cálculos del panel de informes. Trabajan sobre listas de registros del
store; las vistas solo filtran y pintan.
"""
from collections import defaultdict
from datetime import timedelta
from decimal import Decimal

from django.utils import timezone
from django.utils.dateparse import parse_date

from fichajes import calculo
from fichajes.services import FichajeRepositorio, filtrar
from inventario.services import stock_bajo
from partes.models import EstadoParte
from partes.services import MaterialUsadoRepositorio, ParteRepositorio
from personal.models import EstadoSolicitud
from personal.services import SolicitudRepositorio, UsuarioRepositorio, nombre_completo

RANGOS = [("hoy", "Hoy"), ("ult7", "Últimos 7 días"), ("mes", "Este mes")]


def parse_filtros(params):
    """
    Lee fini, ffin, estado, tecnico y rango de un QueryDict. Un rango rápido
    solo se aplica si no vienen fechas.
    """
    f_ini = (params.get("fini") or "").strip()
    f_fin = (params.get("ffin") or "").strip()
    rango = (params.get("rango") or "").strip()

    hoy = timezone.localdate()
    if rango and not (f_ini or f_fin):
        if rango == "hoy":
            f_ini = f_fin = hoy.isoformat()
        elif rango == "ult7":
            f_ini, f_fin = (hoy - timedelta(days=6)).isoformat(), hoy.isoformat()
        elif rango == "mes":
            f_ini, f_fin = hoy.replace(day=1).isoformat(), hoy.isoformat()

    return {
        "fini": f_ini,
        "ffin": f_fin,
        "desde": parse_date(f_ini) if f_ini else None,
        "hasta": parse_date(f_fin) if f_fin else None,
        "estado": (params.get("estado") or "").strip(),
        "tecnico": (params.get("tecnico") or "").strip(),
        "rango": rango,
    }


def partes_filtrados(store, filtros):
    partes = ParteRepositorio(store).listar(orden="-created_at").unwrap()
    out = []
    for p in partes:
        dia = timezone.localtime(p["created_at"]).date()
        if filtros["desde"] and dia < filtros["desde"]:
            continue
        if filtros["hasta"] and dia > filtros["hasta"]:
            continue
        if filtros["estado"] and p["estado"] != filtros["estado"]:
            continue
        if filtros["tecnico"] and p["tecnico_asignado_id"] != filtros["tecnico"]:
            continue
        out.append(p)
    return out


def por_estado(partes):
    cuenta = {valor: 0 for valor in EstadoParte.values}
    for p in partes:
        cuenta[p["estado"]] += 1
    return [(EstadoParte(valor).label, n) for valor, n in cuenta.items()]


def por_tecnico(partes, nombres):
    """[(nombre, nº partes, horas reales)] de más a menos horas."""
    n = defaultdict(int)
    horas = defaultdict(float)
    for p in partes:
        clave = p["tecnico_asignado_id"]
        n[clave] += 1
        horas[clave] += p["horas_reales"] or 0
    filas = [(nombres.get(k) or "Sin asignar", n[k], round(horas[k], 2)) for k in n]
    return sorted(filas, key=lambda f: (-f[2], f[0]))


def materiales_consumidos(store, partes, limite=None):
    """[(codigo, descripcion, cantidad, importe)] de los partes dados."""
    ids = {p["id"] for p in partes}
    cantidad = defaultdict(Decimal)
    importe = defaultdict(Decimal)
    descripcion = {}
    for m in MaterialUsadoRepositorio(store).listar().unwrap():
        if m["parte_trabajo_id"] not in ids:
            continue
        clave = m["codigo"] or m["descripcion"]
        descripcion[clave] = m["descripcion"]
        cantidad[clave] += Decimal(m["cantidad"])
        importe[clave] += Decimal(m["cantidad"]) * Decimal(m["precio_unitario"])
    filas = sorted(
        ((clave, descripcion[clave], cantidad[clave], importe[clave]) for clave in cantidad),
        key=lambda f: -f[2],
    )
    return filas[:limite] if limite else filas


def horas_presencia(store, filtros, nombres):
    """Horas de jornada por persona en el rango de fechas."""
    fichajes = [
        f for f in FichajeRepositorio(store).listar().unwrap()
        if not f["parte_trabajo_id"]
    ]
    fichajes = filtrar(fichajes, filtros["desde"], filtros["hasta"])
    return sorted(
        ((nombres.get(uid) or "-", round(seg / 3600, 2)) for uid, seg in calculo.segundos_por_usuario(fichajes).items()),
        key=lambda f: f[0],
    )


def resumen(store, filtros):
    partes = partes_filtrados(store, filtros)
    nombres = {u["id"]: nombre_completo(u) for u in UsuarioRepositorio(store).listar().unwrap()}
    pendientes = SolicitudRepositorio(store).listar(estado=EstadoSolicitud.PENDIENTE).unwrap()
    return {
        "partes": partes,
        "total": len(partes),
        "por_estado": por_estado(partes),
        "horas_reales": round(sum(p["horas_reales"] or 0 for p in partes), 2),
        "horas_facturables": round(sum(p["horas_facturables"] or 0 for p in partes), 2),
        "por_tecnico": por_tecnico(partes, nombres),
        "materiales": materiales_consumidos(store, partes),
        "presencia": horas_presencia(store, filtros, nombres),
        "stock_bajo": stock_bajo(store),
        "vacaciones_pendientes": len(pendientes),
        "nombres": nombres,
    }
