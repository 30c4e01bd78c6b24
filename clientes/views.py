import io
import logging

from django.conf import settings
from django.contrib import messages
from django.http import Http404, HttpResponse
from django.shortcuts import redirect, render
from django.utils import timezone
from django.views.decorators.http import require_POST

from core.auth import require_permiso
from core.exceptions import DominioError, NoEncontrado
from core.permisos import Capacidad
from core.services import auditar
from partes.services import partes_visibles

from . import importacion
from .forms import ClienteForm, ImportarCSVForm, VehiculoForm
from .services import (
    ClienteRepositorio,
    VehiculoRepositorio,
    eliminar_cliente,
    eliminar_vehiculo,
    guardar_cliente,
    guardar_vehiculo,
)

logger = logging.getLogger(__name__)

SESSION_IMPORTACION = "importacion_clientes"


def _obtener(repo, pk):
    try:
        return repo.obtener(pk).unwrap()
    except NoEncontrado:
        raise Http404("Registro no encontrado")


# ---------- Clientes ----------
@require_permiso(Capacidad.VER_CLIENTES)
def cliente_lista(request):
    q = request.GET.get("q", "").strip()
    clientes = ClienteRepositorio(request.store).buscar(q)
    return render(request, "clientes/cliente_lista.html", {"clientes": clientes, "q": q})


@require_permiso(Capacidad.VER_CLIENTES)
def cliente_detalle(request, pk):
    cliente = _obtener(ClienteRepositorio(request.store), pk)
    vehiculos = VehiculoRepositorio(request.store).de_cliente(pk)
    partes = [p for p in partes_visibles(request.store, request.usuario) if p["cliente_id"] == str(pk)]
    ctx = {
        "cliente": cliente,
        "vehiculos": vehiculos,
        "partes": partes[:10],
        "vehiculo_form": VehiculoForm(),
    }
    return render(request, "clientes/cliente_detalle.html", ctx)


@require_permiso(Capacidad.CREAR_CLIENTES)
def cliente_nuevo(request):
    form = ClienteForm(request.POST or None)
    if request.method == "POST" and form.is_valid():
        try:
            cliente = guardar_cliente(request.store, form.cleaned_data, request.usuario)
            messages.success(request, f"Cliente {cliente['nombre']} creado.")
            return redirect("cliente_detalle", pk=cliente["id"])
        except DominioError as e:
            messages.error(request, e.message)
    return render(request, "clientes/cliente_form.html", {"form": form, "title": "Nuevo cliente"})


@require_permiso(Capacidad.EDITAR_CLIENTES)
def cliente_editar(request, pk):
    cliente = _obtener(ClienteRepositorio(request.store), pk)
    form = ClienteForm(request.POST or None, initial=cliente)
    if request.method == "POST" and form.is_valid():
        try:
            guardar_cliente(request.store, form.cleaned_data, request.usuario, cliente_id=pk)
            messages.success(request, "Cliente actualizado.")
            return redirect("cliente_detalle", pk=pk)
        except DominioError as e:
            messages.error(request, e.message)
    return render(request, "clientes/cliente_form.html", {"form": form, "title": f"Editar {cliente['nombre']}"})


@require_POST
@require_permiso(Capacidad.ELIMINAR_CLIENTES)
def cliente_eliminar(request, pk):
    try:
        cliente = eliminar_cliente(request.store, pk, request.usuario)
        messages.success(request, f"Cliente {cliente['nombre']} eliminado.")
    except DominioError as e:
        messages.error(request, e.message)
    return redirect("cliente_lista")


# ---------- Vehículos ----------
@require_POST
@require_permiso(Capacidad.GESTIONAR_VEHICULOS)
def vehiculo_nuevo(request, pk):
    cliente = _obtener(ClienteRepositorio(request.store), pk)
    form = VehiculoForm(request.POST)
    if form.is_valid():
        try:
            guardar_vehiculo(request.store, {**form.cleaned_data, "cliente_id": cliente["id"]}, request.usuario)
            messages.success(request, "Vehículo añadido.")
        except DominioError as e:
            messages.error(request, e.message)
    else:
        messages.error(request, "Revisa los datos del vehículo.")
    return redirect("cliente_detalle", pk=pk)


@require_permiso(Capacidad.GESTIONAR_VEHICULOS)
def vehiculo_editar(request, pk):
    vehiculo = _obtener(VehiculoRepositorio(request.store), pk)
    form = VehiculoForm(request.POST or None, initial=vehiculo)
    if request.method == "POST" and form.is_valid():
        try:
            guardar_vehiculo(request.store, form.cleaned_data, request.usuario, vehiculo_id=pk)
            messages.success(request, "Vehículo actualizado.")
            return redirect("cliente_detalle", pk=vehiculo["cliente_id"])
        except DominioError as e:
            messages.error(request, e.message)
    return render(request, "clientes/vehiculo_form.html", {"form": form, "vehiculo": vehiculo})


@require_POST
@require_permiso(Capacidad.GESTIONAR_VEHICULOS)
def vehiculo_eliminar(request, pk):
    vehiculo = _obtener(VehiculoRepositorio(request.store), pk)
    try:
        eliminar_vehiculo(request.store, pk, request.usuario)
        messages.success(request, f"Vehículo {vehiculo['matricula']} eliminado.")
    except DominioError as e:
        messages.error(request, e.message)
    return redirect("cliente_detalle", pk=vehiculo["cliente_id"])


# ---------- Importación / exportación CSV ----------
@require_permiso(Capacidad.IMPORTAR_DATOS)
def clientes_importar(request):
    """
    Paso 1: se sube el CSV y se valida. Si hay errores se muestran y no se
    importa nada. Si no, las filas quedan en sesión a la espera de confirmar.
    """
    form = ImportarCSVForm(request.POST or None, request.FILES or None, max_mb=settings.MAX_UPLOAD_MB)
    ctx = {"form": form, "columnas": importacion.COLUMNAS}

    if request.method == "POST" and form.is_valid():
        try:
            filas = importacion.leer_csv(form.cleaned_data["archivo"].read())
        except UnicodeDecodeError:
            messages.error(request, "El archivo no está en UTF-8.")
            return render(request, "clientes/importar.html", ctx)

        errores = importacion.validar_filas(filas)
        ctx.update({"filas": filas, "errores": errores})
        if not filas:
            messages.warning(request, "El archivo no contiene filas.")
        elif errores:
            request.session.pop(SESSION_IMPORTACION, None)
            messages.error(request, f"Hay {len(errores)} errores. Corrige el archivo y vuelve a subirlo.")
        else:
            request.session[SESSION_IMPORTACION] = filas
            messages.info(request, f"{len(filas)} filas válidas. Revisa y confirma la importación.")
    return render(request, "clientes/importar.html", ctx)


@require_POST
@require_permiso(Capacidad.IMPORTAR_DATOS)
def clientes_importar_confirmar(request):
    filas = request.session.pop(SESSION_IMPORTACION, None)
    if not filas:
        messages.warning(request, "No hay ninguna importación pendiente.")
        return redirect("clientes_importar")
    try:
        resultado = importacion.importar_clientes(request.store, filas)
    except DominioError as e:
        messages.error(request, e.message)
        return redirect("clientes_importar")

    for fila, mensaje in resultado.fallidos:
        messages.error(request, f"Fila {fila}: {mensaje}")
    if resultado.creados:
        messages.success(request, f"{len(resultado.creados)} clientes importados.")
    auditar(
        "CLIENTES", "IMPORT", request.usuario, "CSV",
        creados=len(resultado.creados), fallidos=resultado.fallidos,
    )
    return redirect("cliente_lista")


@require_permiso(Capacidad.EXPORTAR_DATOS)
def clientes_exportar(request):
    clientes = ClienteRepositorio(request.store).buscar(request.GET.get("q", ""))
    resp = HttpResponse(content_type="text/csv; charset=utf-8")
    fname = f"clientes_{timezone.localdate():%Y%m%d}.csv"
    resp["Content-Disposition"] = f'attachment; filename="{fname}"'
    resp.write("\ufeff")  # BOM para que Excel detecte UTF-8
    importacion.escribir_csv(resp, clientes)
    auditar("CLIENTES", "EXPORT", request.usuario, fname, total=len(clientes))
    return resp


@require_permiso(Capacidad.IMPORTAR_DATOS)
def clientes_plantilla(request):
    buf = io.StringIO()
    importacion.plantilla_csv(buf)
    resp = HttpResponse(buf.getvalue(), content_type="text/csv; charset=utf-8")
    resp["Content-Disposition"] = 'attachment; filename="plantilla_clientes.csv"'
    return resp
