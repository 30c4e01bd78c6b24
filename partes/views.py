import logging

from django.contrib import messages
from django.http import Http404, HttpResponse
from django.shortcuts import redirect, render
from django.views.decorators.http import require_POST

from core.auth import login_requerido, require_permiso
from core.exceptions import DominioError, NoEncontrado
from core.models import Config
from core.permisos import Capacidad, usuario_puede
from fichajes import calculo
from fichajes.services import FichajeRepositorio, parte_activo
from personal.services import UsuarioRepositorio, nombre_completo
from reportes.pdf import pdf_parte

from .forms import CancelarParteForm, CerrarParteForm, HorasForm, MaterialUsadoForm, ParteForm
from .models import EstadoParte
from .services import (
    ESTADOS_ABIERTOS,
    MaterialUsadoRepositorio,
    ParteRepositorio,
    actualizar_horas_facturables,
    actualizar_parte,
    agregar_material,
    cancelar_parte,
    cerrar_parte,
    crear_parte,
    eliminar_parte,
    estado_fichaje,
    iniciar_trabajo,
    partes_visibles,
    puede_ver_parte,
    quitar_material,
    registrar_salida,
    total_materiales,
)

logger = logging.getLogger(__name__)


def _parte_visible(request, pk):
    """El parte si existe y el usuario puede verlo; 404 en otro caso."""
    try:
        parte = ParteRepositorio(request.store).obtener(pk).unwrap()
    except NoEncontrado:
        raise Http404("Parte no encontrado")
    if not puede_ver_parte(request.usuario, parte):
        raise Http404("Parte no encontrado")
    return parte


def _nombres(store, ids):
    return {uid: nombre_completo(u) for uid, u in UsuarioRepositorio(store).por_id(ids).items()}


@login_requerido
def parte_lista(request):
    estado = request.GET.get("estado") or ""
    q = request.GET.get("q", "").strip()
    tecnico = request.GET.get("tecnico") or None
    partes = partes_visibles(request.store, request.usuario, estado=estado, q=q, tecnico_id=tecnico)
    ctx = {
        "partes": partes,
        "nombres": _nombres(request.store, (p["tecnico_asignado_id"] for p in partes)),
        "estados": EstadoParte.choices,
        "filtros": {"estado": estado, "q": q, "tecnico": tecnico or ""},
        "tecnicos": UsuarioRepositorio(request.store).activos(),
    }
    return render(request, "partes/parte_lista.html", ctx)


@require_permiso(Capacidad.CREAR_PARTES)
def parte_nuevo(request):
    form = ParteForm(request.POST or None, store=request.store)
    if request.method == "POST" and form.is_valid():
        try:
            parte = crear_parte(request.store, form.cleaned_data, request.usuario, prefijo=Config.get_solo().prefijo_parte)
            messages.success(request, f"Parte {parte['numero_parte']} creado.")
            return redirect("parte_detalle", pk=parte["id"])
        except DominioError as e:
            messages.error(request, e.message)
    return render(request, "partes/parte_form.html", {"form": form, "title": "Nuevo parte de trabajo"})


@login_requerido
def parte_detalle(request, pk):
    store, usuario = request.store, request.usuario
    parte = _parte_visible(request, pk)
    materiales = MaterialUsadoRepositorio(store).de_parte(parte["id"])
    fichajes = FichajeRepositorio(store).de_parte(parte["id"])
    tramos = calculo.tramos(fichajes)
    activo = parte_activo(store, usuario["id"])

    ctx = {
        "parte": parte,
        "abierto": parte["estado"] in ESTADOS_ABIERTOS,
        "materiales": materiales,
        "total_materiales": total_materiales(materiales),
        "fichajes": fichajes,
        "tramos": tramos,
        "nombres": _nombres(store, [f["usuario_id"] for f in fichajes] + [parte["tecnico_asignado_id"], parte["creado_por_id"]]),
        "fichado_aqui": estado_fichaje(store, parte["id"], usuario["id"]),
        "fichado_en_otro": activo if activo and activo != parte["id"] else None,
        "cerrar_form": CerrarParteForm(initial={"observaciones": parte["observaciones"]}),
        "cancelar_form": CancelarParteForm(),
        "material_form": MaterialUsadoForm(store=store),
        "horas_form": HorasForm(initial={"horas_facturables": parte["horas_facturables"]}),
        "puede_validar": usuario_puede(usuario, Capacidad.VALIDAR_PARTES),
    }
    return render(request, "partes/parte_detalle.html", ctx)


@require_permiso(Capacidad.EDITAR_PARTES)
def parte_editar(request, pk):
    parte = _parte_visible(request, pk)
    form = ParteForm(request.POST or None, store=request.store, initial=parte)
    if request.method == "POST" and form.is_valid():
        try:
            actualizar_parte(request.store, parte["id"], form.cleaned_data, request.usuario)
            messages.success(request, "Parte actualizado.")
            return redirect("parte_detalle", pk=parte["id"])
        except DominioError as e:
            messages.error(request, e.message)
    return render(request, "partes/parte_form.html", {"form": form, "title": f"Editar {parte['numero_parte']}", "parte": parte})


@require_POST
@login_requerido
def parte_fichar(request, pk):
    parte = _parte_visible(request, pk)
    accion = request.POST.get("accion")
    try:
        if accion == "entrada":
            iniciar_trabajo(request.store, parte["id"], request.usuario)
            messages.success(request, f"Entrada fichada en {parte['numero_parte']}.")
        elif accion == "salida":
            registrar_salida(request.store, parte["id"], request.usuario)
            messages.success(request, f"Salida fichada en {parte['numero_parte']}.")
        else:
            messages.error(request, "Acción no válida.")
    except DominioError as e:
        messages.error(request, e.message)
    return redirect("parte_detalle", pk=parte["id"])


@require_POST
@login_requerido
def parte_cerrar(request, pk):
    parte = _parte_visible(request, pk)
    form = CerrarParteForm(request.POST)
    if not form.is_valid():
        messages.error(request, "Describe el trabajo realizado antes de cerrar el parte.")
        return redirect("parte_detalle", pk=parte["id"])
    try:
        parte = cerrar_parte(
            request.store, parte["id"], request.usuario,
            form.cleaned_data["trabajo_realizado"],
            firma_cliente=form.cleaned_data["firma_cliente"],
            dni_cliente=form.cleaned_data["dni_cliente"],
            observaciones=form.cleaned_data["observaciones"],
        )
        messages.success(request, f"Parte {parte['numero_parte']} completado.")
    except DominioError as e:
        messages.error(request, e.message)
    return redirect("parte_detalle", pk=parte["id"])


@require_POST
@require_permiso(Capacidad.GESTIONAR_PARTES)
def parte_cancelar(request, pk):
    parte = _parte_visible(request, pk)
    form = CancelarParteForm(request.POST)
    motivo = form.cleaned_data["motivo"] if form.is_valid() else ""
    try:
        cancelar_parte(request.store, parte["id"], request.usuario, motivo)
        messages.success(request, f"Parte {parte['numero_parte']} cancelado.")
    except DominioError as e:
        messages.error(request, e.message)
    return redirect("parte_detalle", pk=parte["id"])


@require_POST
@require_permiso(Capacidad.ELIMINAR_PARTES)
def parte_eliminar(request, pk):
    try:
        parte = eliminar_parte(request.store, pk, request.usuario)
        messages.success(request, f"Parte {parte['numero_parte']} eliminado.")
    except DominioError as e:
        messages.error(request, e.message)
    return redirect("parte_lista")


@require_POST
@login_requerido
def parte_material_agregar(request, pk):
    parte = _parte_visible(request, pk)
    form = MaterialUsadoForm(request.POST, store=request.store)
    if form.is_valid():
        datos = {k: v for k, v in form.cleaned_data.items() if v not in (None, "")}
        try:
            usado = agregar_material(request.store, parte["id"], datos, request.usuario)
            messages.success(request, f"Material {usado['descripcion']} añadido.")
        except DominioError as e:
            messages.error(request, e.message)
    else:
        for err in form.non_field_errors():
            messages.error(request, err)
        if not form.non_field_errors():
            messages.error(request, "Revisa los datos del material.")
    return redirect("parte_detalle", pk=parte["id"])


@require_POST
@login_requerido
def parte_material_quitar(request, pk, material_pk):
    parte = _parte_visible(request, pk)
    try:
        usado = quitar_material(request.store, parte["id"], material_pk, request.usuario)
        messages.success(request, f"Material {usado['descripcion']} quitado.")
    except DominioError as e:
        messages.error(request, e.message)
    return redirect("parte_detalle", pk=parte["id"])


@require_POST
@require_permiso(Capacidad.VALIDAR_PARTES)
def parte_horas(request, pk):
    parte = _parte_visible(request, pk)
    form = HorasForm(request.POST)
    if form.is_valid():
        try:
            actualizar_horas_facturables(request.store, parte["id"], form.cleaned_data["horas_facturables"], request.usuario)
            messages.success(request, "Horas facturables actualizadas.")
        except DominioError as e:
            messages.error(request, e.message)
    else:
        messages.error(request, "Las horas facturables no pueden ser negativas.")
    return redirect("parte_detalle", pk=parte["id"])


@login_requerido
def parte_pdf(request, pk):
    parte = _parte_visible(request, pk)
    fichajes = FichajeRepositorio(request.store).de_parte(parte["id"])
    resp = HttpResponse(content_type="application/pdf")
    resp["Content-Disposition"] = f'attachment; filename="{parte["numero_parte"]}.pdf"'
    pdf_parte(
        resp,
        parte,
        MaterialUsadoRepositorio(request.store).de_parte(parte["id"]),
        calculo.tramos(fichajes),
        _nombres(request.store, [f["usuario_id"] for f in fichajes] + [parte["tecnico_asignado_id"]]),
        Config.get_solo(),
    )
    return resp
