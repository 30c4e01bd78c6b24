from django.contrib import messages
from django.http import Http404
from django.shortcuts import redirect, render
from django.views.decorators.http import require_POST

from core.auth import require_permiso
from core.exceptions import DominioError, NoEncontrado
from core.permisos import Capacidad

from .forms import AjusteStockForm, MaterialForm
from .services import MaterialRepositorio, ajustar_stock, eliminar_material, en_minimo, guardar_material


def _material(request, pk):
    try:
        return MaterialRepositorio(request.store).obtener(pk).unwrap()
    except NoEncontrado:
        raise Http404("Material no encontrado")


@require_permiso(Capacidad.VER_MATERIALES)
def material_lista(request):
    q = request.GET.get("q", "").strip()
    solo_bajo = request.GET.get("bajo") == "1"
    items = MaterialRepositorio(request.store).buscar(q)
    for m in items:
        m["bajo"] = en_minimo(m)
    if solo_bajo:
        items = [m for m in items if m["bajo"]]
    return render(request, "inventario/material_lista.html", {"items": items, "q": q, "solo_bajo": solo_bajo})


@require_permiso(Capacidad.CREAR_MATERIALES)
def material_nuevo(request):
    form = MaterialForm(request.POST or None)
    if request.method == "POST" and form.is_valid():
        try:
            material = guardar_material(request.store, form.cleaned_data, request.usuario)
            messages.success(request, f"Material {material['codigo']} creado.")
            return redirect("material_lista")
        except DominioError as e:
            messages.error(request, e.message)
    return render(request, "inventario/material_form.html", {"form": form, "title": "Nuevo material"})


@require_permiso(Capacidad.EDITAR_MATERIALES)
def material_editar(request, pk):
    material = _material(request, pk)
    form = MaterialForm(request.POST or None, initial=material, editando=True)
    if request.method == "POST" and form.is_valid():
        try:
            guardar_material(request.store, form.cleaned_data, request.usuario, material_id=material["id"])
            messages.success(request, "Material actualizado.")
            return redirect("material_lista")
        except DominioError as e:
            messages.error(request, e.message)
    ctx = {"form": form, "title": f"Editar {material['codigo']}", "material": material}
    return render(request, "inventario/material_form.html", ctx)


@require_POST
@require_permiso(Capacidad.ELIMINAR_MATERIALES)
def material_eliminar(request, pk):
    try:
        material = eliminar_material(request.store, pk, request.usuario)
        messages.success(request, f"Material {material['codigo']} eliminado.")
    except DominioError as e:
        messages.error(request, e.message)
    return redirect("material_lista")


@require_permiso(Capacidad.GESTIONAR_MATERIALES)
def material_stock(request, pk):
    material = _material(request, pk)
    form = AjusteStockForm(request.POST or None)
    if request.method == "POST" and form.is_valid():
        try:
            material = ajustar_stock(
                request.store, material["id"],
                form.cleaned_data["tipo"], form.cleaned_data["cantidad"],
                motivo=form.cleaned_data["motivo"], usuario=request.usuario,
            )
            messages.success(request, f"Stock de {material['codigo']}: {material['stock_actual']} {material['unidad']}.")
            if en_minimo(material):
                messages.warning(request, f"{material['codigo']} está en o por debajo del stock mínimo.")
            return redirect("material_lista")
        except DominioError as e:
            messages.error(request, e.message)
    return render(request, "inventario/material_stock.html", {"form": form, "material": material})
