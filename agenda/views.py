import logging
from datetime import timedelta

from django.contrib import messages
from django.http import Http404, JsonResponse
from django.shortcuts import redirect, render
from django.urls import reverse
from django.utils import timezone
from django.utils.dateparse import parse_date
from django.views.decorators.http import require_POST

from clientes.services import ClienteRepositorio
from core.auth import require_permiso
from core.exceptions import DominioError, NoEncontrado
from core.permisos import Capacidad, usuario_puede
from personal.services import UsuarioRepositorio, nombre_completo

from .forms import CitaForm
from .models import EstadoCita
from .services import (
    CitaRepositorio,
    actualizar_cita,
    cambiar_estado_cita,
    citas_entre,
    crear_cita,
    eliminar_cita,
    eventos,
    fin_cita,
    solapes,
)

logger = logging.getLogger(__name__)


def _cita(request, pk):
    try:
        return CitaRepositorio(request.store).obtener(pk).unwrap()
    except NoEncontrado:
        raise Http404("Cita no encontrada")


def _tecnico_visible(request):
    """Quien no gestiona la agenda solo ve sus citas."""
    if usuario_puede(request.usuario, Capacidad.GESTIONAR_AGENDA):
        return request.GET.get("tecnico") or None
    return request.usuario["id"]


def _volver(cita):
    dia = timezone.localtime(cita["fecha_hora"]).date()
    return redirect(f"{reverse('agenda')}?fecha={dia:%Y-%m-%d}")


def _avisar_solapes(request, cita):
    otras = solapes(request.store, cita)
    if otras:
        horas = ", ".join(
            f"{o['titulo']} ({timezone.localtime(o['fecha_hora']):%H:%M})" for o in otras
        )
        messages.warning(request, f"El técnico ya tiene citas en ese horario: {horas}.")


@require_permiso(Capacidad.VER_AGENDA)
def agenda(request):
    vista = "semana" if request.GET.get("vista") == "semana" else "dia"
    fecha = parse_date(request.GET.get("fecha") or "") or timezone.localdate()
    if vista == "semana":
        desde = fecha - timedelta(days=fecha.weekday())
        hasta = desde + timedelta(days=6)
        paso = timedelta(days=7)
    else:
        desde = hasta = fecha
        paso = timedelta(days=1)

    tecnico_id = _tecnico_visible(request)
    citas = citas_entre(request.store, desde, hasta, tecnico_id=tecnico_id)
    tecnicos = UsuarioRepositorio(request.store).por_id(c["tecnico_id"] for c in citas)
    clientes = ClienteRepositorio(request.store).por_id(c["cliente_id"] for c in citas)
    for c in citas:
        c["fin"] = fin_cita(c)
        c["tecnico_nombre"] = nombre_completo(tecnicos.get(c["tecnico_id"]))
        c["cliente_nombre"] = clientes[c["cliente_id"]]["nombre"] if c["cliente_id"] in clientes else ""

    dias = []
    dia = desde
    while dia <= hasta:
        dias.append((dia, [c for c in citas if timezone.localtime(c["fecha_hora"]).date() == dia]))
        dia += timedelta(days=1)

    ctx = {
        "vista": vista,
        "fecha": fecha,
        "anterior": fecha - paso,
        "siguiente": fecha + paso,
        "dias": dias,
        "estados": EstadoCita.choices,
        "tecnicos": UsuarioRepositorio(request.store).activos(),
        "tecnico_id": tecnico_id or "",
    }
    return render(request, "agenda/agenda.html", ctx)


@require_permiso(Capacidad.CREAR_CITAS)
def cita_nueva(request):
    inicial = {}
    fecha = parse_date(request.GET.get("fecha") or "")
    if fecha:
        inicial["fecha_hora"] = f"{fecha:%Y-%m-%d}T09:00"
    form = CitaForm(request.POST or None, store=request.store, initial=inicial)
    if request.method == "POST" and form.is_valid():
        try:
            cita = crear_cita(request.store, form.cleaned_data, request.usuario)
            messages.success(request, f"Cita «{cita['titulo']}» creada.")
            _avisar_solapes(request, cita)
            return _volver(cita)
        except DominioError as e:
            messages.error(request, e.message)
    return render(request, "agenda/cita_form.html", {"form": form, "title": "Nueva cita"})


@require_permiso(Capacidad.GESTIONAR_AGENDA)
def cita_editar(request, pk):
    cita = _cita(request, pk)
    inicial = dict(cita, fecha_hora=timezone.localtime(cita["fecha_hora"]))
    form = CitaForm(request.POST or None, store=request.store, initial=inicial)
    if request.method == "POST" and form.is_valid():
        try:
            cita = actualizar_cita(request.store, cita["id"], form.cleaned_data, request.usuario)
            messages.success(request, "Cita actualizada.")
            _avisar_solapes(request, cita)
            return _volver(cita)
        except DominioError as e:
            messages.error(request, e.message)
    return render(request, "agenda/cita_form.html", {"form": form, "title": f"Editar «{cita['titulo']}»", "cita": cita})


@require_POST
@require_permiso(Capacidad.VER_AGENDA)
def cita_estado(request, pk):
    cita = _cita(request, pk)
    puede = usuario_puede(request.usuario, Capacidad.GESTIONAR_AGENDA) or cita["tecnico_id"] == request.usuario["id"]
    if not puede:
        messages.warning(request, "No tienes permisos para cambiar esta cita.")
        return redirect("agenda")
    try:
        cambiar_estado_cita(request.store, cita["id"], request.POST.get("estado"), request.usuario)
        messages.success(request, "Estado de la cita actualizado.")
    except DominioError as e:
        messages.error(request, e.message)
    return _volver(cita)


@require_POST
@require_permiso(Capacidad.GESTIONAR_AGENDA)
def cita_eliminar(request, pk):
    try:
        cita = eliminar_cita(request.store, pk, request.usuario)
        messages.success(request, f"Cita «{cita['titulo']}» eliminada.")
    except DominioError as e:
        messages.error(request, e.message)
    return redirect("agenda")


@require_permiso(Capacidad.VER_AGENDA)
def agenda_eventos(request):
    """JSON para calendarios: ?start=YYYY-MM-DD&end=YYYY-MM-DD"""
    hoy = timezone.localdate()
    desde = parse_date((request.GET.get("start") or "")[:10]) or hoy - timedelta(days=hoy.weekday())
    hasta = parse_date((request.GET.get("end") or "")[:10]) or desde + timedelta(days=6)
    citas = citas_entre(request.store, desde, hasta, tecnico_id=_tecnico_visible(request))
    return JsonResponse(eventos(citas), safe=False)
