import logging

from django.contrib import messages
from django.http import HttpResponse
from django.shortcuts import redirect, render
from django.utils import timezone
from django.views.decorators.http import require_POST

from core.auth import login_requerido
from core.exceptions import DominioError
from core.models import Config
from core.permisos import Capacidad, usuario_puede
from core.services import auditar
from reportes.pdf import pdf_fichajes

from . import calculo, informes
from .forms import FiltroFichajesForm, PresenciaForm
from .services import FichajeRepositorio, estado_presencia, fichar_presencia, filtrar, listar_fichajes

logger = logging.getLogger(__name__)


@login_requerido
def presencia(request):
    store, usuario = request.store, request.usuario
    hoy = timezone.localdate()
    de_hoy = filtrar(FichajeRepositorio(store).presencia(usuario["id"]), hoy, hoy)
    ctx = {
        "estado": estado_presencia(store, usuario["id"]),
        "fichajes_hoy": de_hoy,
        "horas_hoy": calculo.horas_trabajadas(de_hoy),
    }
    return render(request, "fichajes/presencia.html", ctx)


@require_POST
@login_requerido
def fichar(request):
    form = PresenciaForm(request.POST)
    if not form.is_valid():
        messages.error(request, "Tipo de fichaje no válido.")
        return redirect("presencia")
    try:
        f = fichar_presencia(request.store, request.usuario, form.cleaned_data["tipo"], form.cleaned_data["observaciones"])
        hora = timezone.localtime(f["fecha_hora"]).strftime("%H:%M")
        messages.success(request, f"{f['tipo'].capitalize()} registrada a las {hora}.")
    except DominioError as e:
        messages.error(request, e.message)
    return redirect("presencia")


def _filtrados(request):
    ver_todos = usuario_puede(request.usuario, Capacidad.VER_TODOS_FICHAJES)
    form = FiltroFichajesForm(request.GET or None, store=request.store, ver_todos=ver_todos)
    filtros = form.cleaned_data if form.is_bound and form.is_valid() else {}
    fichajes = listar_fichajes(
        request.store, request.usuario,
        usuario_id=filtros.get("usuario") or None,
        desde=filtros.get("desde"),
        hasta=filtros.get("hasta"),
        tipo=filtros.get("tipo") or None,
        con_parte=filtros.get("con_parte"),
    )
    return form, filtros, fichajes


@login_requerido
def fichajes_lista(request):
    form, filtros, fichajes = _filtrados(request)
    informe = informes.construir_informe(request.store, fichajes, filtros.get("desde"), filtros.get("hasta"))
    ctx = {"form": form, "informe": informe, "query": request.GET.urlencode()}
    return render(request, "fichajes/fichajes_lista.html", ctx)


@login_requerido
def fichajes_exportar(request, formato):
    _, filtros, fichajes = _filtrados(request)
    informe = informes.construir_informe(request.store, fichajes, filtros.get("desde"), filtros.get("hasta"))
    cfg = Config.get_solo()

    if formato == "pdf":
        resp = HttpResponse(content_type="application/pdf")
        pdf_fichajes(resp, informe, cfg)
    else:
        resp = HttpResponse(informes.informe_html(informe, cfg), content_type="text/html; charset=utf-8")
    fname = informes.nombre_archivo(informe, formato)
    resp["Content-Disposition"] = f'attachment; filename="{fname}"'
    auditar("FICHAJES", f"EXPORT_{formato.upper()}", request.usuario, fname, total=len(fichajes))
    return resp
