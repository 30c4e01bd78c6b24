from django.contrib import messages
from django.http import Http404
from django.shortcuts import redirect, render
from django.views.decorators.http import require_POST

from core.auth import require_permiso
from core.exceptions import DominioError, NoEncontrado
from core.models import Config
from core.permisos import Capacidad

from .forms import ConceptoFormSet, PresupuestoForm
from .models import EstadoPresupuesto
from .services import (
    ConceptoRepositorio,
    PresupuestoRepositorio,
    TRANSICIONES,
    calcular_totales,
    cambiar_estado_presupuesto,
    crear_parte_desde_presupuesto,
    crear_presupuesto,
    listar_presupuestos,
    valido_hasta,
)


def _presupuesto(request, pk):
    try:
        return PresupuestoRepositorio(request.store).obtener(pk).unwrap()
    except NoEncontrado:
        raise Http404("Presupuesto no encontrado")


@require_permiso(Capacidad.VER_PRESUPUESTOS)
def presupuesto_lista(request):
    estado = request.GET.get("estado") or ""
    q = request.GET.get("q", "").strip()
    presupuestos = listar_presupuestos(request.store, estado=estado or None, q=q)
    for p in presupuestos:
        p["valido_hasta"] = valido_hasta(p)
    ctx = {
        "presupuestos": presupuestos,
        "estado": estado,
        "estados": EstadoPresupuesto.choices,
        "q": q,
        "importe_total": sum(p["total"] for p in presupuestos),
    }
    return render(request, "presupuestos/presupuesto_lista.html", ctx)


@require_permiso(Capacidad.GESTIONAR_PRESUPUESTOS)
def presupuesto_nuevo(request):
    form = PresupuestoForm(request.POST or None, store=request.store)
    conceptos = ConceptoFormSet(request.POST or None, prefix="conceptos")
    if request.method == "POST" and form.is_valid() and conceptos.is_valid():
        try:
            lineas = [c.cleaned_data for c in conceptos.forms if c.cleaned_data]
            presupuesto = crear_presupuesto(
                request.store, form.cleaned_data, lineas, request.usuario, iva_porcentaje=Config.get_solo().iva_defecto
            )
            messages.success(request, f"Presupuesto {presupuesto['numero']} creado ({presupuesto['total']} €).")
            return redirect("presupuesto_detalle", pk=presupuesto["id"])
        except DominioError as e:
            messages.error(request, e.message)
    ctx = {"form": form, "conceptos": conceptos, "title": "Nuevo presupuesto"}
    return render(request, "presupuestos/presupuesto_form.html", ctx)


@require_permiso(Capacidad.VER_PRESUPUESTOS)
def presupuesto_detalle(request, pk):
    presupuesto = _presupuesto(request, pk)
    conceptos = ConceptoRepositorio(request.store).de_presupuesto(presupuesto["id"])
    for c in conceptos:
        c["importe"] = c["cantidad"] * c["precio_unitario"]
    ctx = {
        "presupuesto": presupuesto,
        "conceptos": conceptos,
        "totales": calcular_totales(conceptos, presupuesto["iva_porcentaje"]),
        "valido_hasta": valido_hasta(presupuesto),
        "siguientes": [(e, EstadoPresupuesto(e).label) for e in sorted(TRANSICIONES[presupuesto["estado"]])],
    }
    return render(request, "presupuestos/presupuesto_detalle.html", ctx)


@require_POST
@require_permiso(Capacidad.GESTIONAR_PRESUPUESTOS)
def presupuesto_estado(request, pk):
    presupuesto = _presupuesto(request, pk)
    try:
        presupuesto = cambiar_estado_presupuesto(request.store, presupuesto["id"], request.POST.get("estado"), request.usuario)
        messages.success(request, f"Presupuesto {presupuesto['numero']} {presupuesto['estado']}.")
    except DominioError as e:
        messages.error(request, e.message)
    return redirect("presupuesto_detalle", pk=presupuesto["id"])


@require_POST
@require_permiso(Capacidad.CREAR_PARTES)
def presupuesto_crear_parte(request, pk):
    presupuesto = _presupuesto(request, pk)
    try:
        parte = crear_parte_desde_presupuesto(
            request.store, presupuesto["id"], request.usuario, prefijo=Config.get_solo().prefijo_parte
        )
        messages.success(request, f"Parte {parte['numero_parte']} creado.")
        return redirect("parte_detalle", pk=parte["id"])
    except DominioError as e:
        messages.error(request, e.message)
    return redirect("presupuesto_detalle", pk=presupuesto["id"])
