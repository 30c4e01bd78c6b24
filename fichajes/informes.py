"""
Informe de fichajes: tabla de fichajes + resumen de horas por persona.
Se descarga como HTML autocontenido (estilos en línea) o como PDF.
"""
from django.template.loader import render_to_string
from django.utils import timezone

from partes.services import ParteRepositorio
from personal.services import UsuarioRepositorio, nombre_completo

from . import calculo


def construir_informe(store, fichajes, desde=None, hasta=None):
    usuarios = UsuarioRepositorio(store).por_id(f["usuario_id"] for f in fichajes)
    partes = ParteRepositorio(store).por_id(f["parte_trabajo_id"] for f in fichajes)

    def nombre(uid):
        return nombre_completo(usuarios.get(uid)) or "-"

    filas = [
        {
            "fecha_hora": f["fecha_hora"],
            "nombre": nombre(f["usuario_id"]),
            "tipo": f["tipo"],
            "parte": partes[f["parte_trabajo_id"]]["numero_parte"] if f["parte_trabajo_id"] in partes else "Jornada",
            "observaciones": f["observaciones"],
        }
        for f in sorted(fichajes, key=lambda f: f["fecha_hora"])
    ]

    segundos = calculo.segundos_por_usuario(fichajes)
    n_tramos = {}
    for usuario_id, *_ in calculo.tramos(fichajes):
        n_tramos[usuario_id] = n_tramos.get(usuario_id, 0) + 1
    resumen = sorted(
        (
            {"nombre": nombre(uid), "tramos": n_tramos.get(uid, 0), "horas": round(seg / 3600, 2)}
            for uid, seg in segundos.items()
        ),
        key=lambda r: r["nombre"],
    )

    return {
        "desde": desde,
        "hasta": hasta,
        "filas": filas,
        "resumen": resumen,
        "total_horas": round(sum(segundos.values()) / 3600, 2),
        "generado": timezone.localtime(timezone.now()),
    }


def informe_html(informe, cfg):
    return render_to_string("fichajes/informe.html", {"informe": informe, "empresa": cfg})


def nombre_archivo(informe, extension):
    partes = ["fichajes"]
    if informe["desde"]:
        partes.append(f"{informe['desde']:%Y%m%d}")
    if informe["hasta"]:
        partes.append(f"{informe['hasta']:%Y%m%d}")
    return "_".join(partes) + f".{extension}"
