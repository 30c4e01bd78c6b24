import logging

from django.contrib import messages
from django.http import HttpResponse
from django.shortcuts import redirect, render
from django.utils import timezone
from django.utils.http import url_has_allowed_host_and_scheme
from django.views.decorators.http import require_POST

from agenda.services import citas_entre
from fichajes.services import estado_presencia, parte_activo
from inventario.services import stock_bajo
from partes.models import EstadoParte
from partes.services import partes_visibles
from personal.models import EstadoSolicitud
from personal.services import autenticar, solicitudes_visibles

from .auth import cerrar_sesion, iniciar_sesion, login_requerido
from .forms import LoginForm
from .permisos import Capacidad, usuario_puede

logger = logging.getLogger(__name__)


def healthcheck(request):
    res = request.store.probar_conexion()
    if not res.ok:
        return HttpResponse(f"ERROR: {res.error.message}", content_type="text/plain", status=503)
    return HttpResponse("OK", content_type="text/plain")


def login_view(request):
    if request.usuario:
        return redirect("home")

    form = LoginForm(request.POST or None)
    if request.method == "POST" and form.is_valid():
        usuario = autenticar(request.store, form.cleaned_data["email"], form.cleaned_data["password"])
        if usuario is None:
            messages.error(request, "Credenciales inválidas o usuario inactivo.")
        else:
            iniciar_sesion(request, usuario)
            messages.success(request, f"Bienvenido/a, {usuario['nombre']}.")
            destino = request.POST.get("next") or request.GET.get("next")
            if destino and url_has_allowed_host_and_scheme(destino, allowed_hosts={request.get_host()}):
                return redirect(destino)
            return redirect("home")

    return render(request, "core/login.html", {"form": form, "next": request.GET.get("next", "")})


@require_POST
def logout_view(request):
    cerrar_sesion(request)
    messages.success(request, "Sesión cerrada correctamente.")
    return redirect("login")


@login_requerido
def home(request):
    store, usuario = request.store, request.usuario
    hoy = timezone.localdate()

    partes = partes_visibles(store, usuario)
    por_estado = {estado: 0 for estado in EstadoParte.values}
    for p in partes:
        por_estado[p["estado"]] += 1

    activo_id = parte_activo(store, usuario["id"])
    parte_fichado = next((p for p in partes if p["id"] == activo_id), None)

    ctx = {
        "hoy": hoy,
        "por_estado": por_estado,
        "ultimos_partes": partes[:5],
        "presencia": estado_presencia(store, usuario["id"]),
        "parte_fichado": parte_fichado,
        "citas_hoy": citas_entre(
            store, hoy, hoy,
            tecnico_id=None if usuario_puede(usuario, Capacidad.GESTIONAR_AGENDA) else usuario["id"],
        ),
        "estados": EstadoParte.choices,
    }

    if usuario_puede(usuario, Capacidad.GESTIONAR_MATERIALES):
        ctx["stock_bajo"] = stock_bajo(store)
    if usuario_puede(usuario, Capacidad.APROBAR_VACACIONES):
        ctx["vacaciones_pendientes"] = solicitudes_visibles(store, usuario, estado=EstadoSolicitud.PENDIENTE)

    return render(request, "core/home.html", ctx)
