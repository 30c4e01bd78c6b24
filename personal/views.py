from django.contrib import messages
from django.http import Http404
from django.shortcuts import redirect, render
from django.views.decorators.http import require_POST

from core.auth import login_requerido, require_permiso
from core.exceptions import DominioError, NoEncontrado
from core.permisos import Capacidad, usuario_puede
from core.roles import Rol

from .forms import PasswordForm, ResolverSolicitudForm, SolicitudForm, UsuarioForm
from .models import EstadoSolicitud
from .services import (
    UsuarioRepositorio,
    actualizar_usuario,
    alternar_activo,
    aprobar_solicitud,
    cambiar_password,
    crear_usuario,
    eliminar_usuario,
    nombre_completo,
    rechazar_solicitud,
    sin_password,
    solicitar_vacaciones,
    solicitudes_visibles,
)


def _usuario(request, pk):
    try:
        return UsuarioRepositorio(request.store).obtener(pk).unwrap()
    except NoEncontrado:
        raise Http404("Usuario no encontrado")


# ---------- Personal ----------
@require_permiso(Capacidad.VER_PERSONAL)
def personal_lista(request):
    q = request.GET.get("q", "").strip().lower()
    rol = request.GET.get("rol") or ""
    usuarios = [sin_password(u) for u in UsuarioRepositorio(request.store).listar(orden=("nombre", "apellidos")).unwrap()]
    if rol:
        usuarios = [u for u in usuarios if u["rol"] == rol]
    if q:
        usuarios = [u for u in usuarios if q in nombre_completo(u).lower() or q in u["email"]]
    ctx = {"usuarios": usuarios, "q": q, "rol": rol, "roles": Rol.choices}
    return render(request, "personal/personal_lista.html", ctx)


@require_permiso(Capacidad.CREAR_PERSONAL)
def personal_nuevo(request):
    form = UsuarioForm(request.POST or None)
    if request.method == "POST" and form.is_valid():
        datos = dict(form.cleaned_data)
        password = datos.pop("password")
        try:
            usuario = crear_usuario(request.store, datos, password, por=request.usuario)
            messages.success(request, f"Usuario {usuario['email']} creado.")
            return redirect("personal_lista")
        except DominioError as e:
            messages.error(request, e.message)
    return render(request, "personal/personal_form.html", {"form": form, "title": "Nuevo usuario"})


@require_permiso(Capacidad.EDITAR_PERSONAL)
def personal_editar(request, pk):
    usuario = _usuario(request, pk)
    form = UsuarioForm(request.POST or None, initial=sin_password(usuario), editando=True)
    if request.method == "POST" and form.is_valid():
        try:
            actualizar_usuario(request.store, usuario["id"], form.cleaned_data, por=request.usuario)
            messages.success(request, "Usuario actualizado.")
            return redirect("personal_lista")
        except DominioError as e:
            messages.error(request, e.message)
    ctx = {"form": form, "title": f"Editar {nombre_completo(usuario)}", "editado": usuario}
    return render(request, "personal/personal_form.html", ctx)


@require_POST
@require_permiso(Capacidad.EDITAR_PERSONAL)
def personal_toggle_activo(request, pk):
    try:
        usuario = alternar_activo(request.store, pk, por=request.usuario)
        estado = "activado" if usuario["activo"] else "desactivado"
        messages.success(request, f"Usuario {usuario['email']} {estado}.")
    except DominioError as e:
        messages.error(request, e.message)
    return redirect("personal_lista")


@require_POST
@require_permiso(Capacidad.ELIMINAR_PERSONAL)
def personal_eliminar(request, pk):
    try:
        usuario = eliminar_usuario(request.store, pk, por=request.usuario)
        messages.success(request, f"Usuario {usuario['email']} eliminado.")
    except DominioError as e:
        messages.error(request, e.message)
    return redirect("personal_lista")


@require_permiso(Capacidad.EDITAR_PERSONAL)
def personal_password(request, pk):
    usuario = _usuario(request, pk)
    form = PasswordForm(request.POST or None)
    if request.method == "POST" and form.is_valid():
        try:
            cambiar_password(request.store, usuario["id"], form.cleaned_data["password"], por=request.usuario)
            messages.success(request, f"Contraseña de {usuario['email']} cambiada.")
            return redirect("personal_lista")
        except DominioError as e:
            messages.error(request, e.message)
    ctx = {"form": form, "title": f"Contraseña de {nombre_completo(usuario)}", "editado": usuario}
    return render(request, "personal/personal_form.html", ctx)


# ---------- Vacaciones ----------
@login_requerido
def vacaciones(request):
    form = SolicitudForm(request.POST or None)
    if request.method == "POST" and form.is_valid():
        try:
            s = solicitar_vacaciones(
                request.store, request.usuario,
                form.cleaned_data["fecha_inicio"], form.cleaned_data["fecha_fin"],
                form.cleaned_data["tipo"], form.cleaned_data["motivo"],
            )
            messages.success(request, f"Solicitud enviada ({s['dias_solicitados']} días).")
            return redirect("vacaciones")
        except DominioError as e:
            messages.error(request, e.message)

    estado = request.GET.get("estado") or None
    solicitudes = solicitudes_visibles(request.store, request.usuario, estado=estado)
    usuarios = UsuarioRepositorio(request.store).por_id(
        [s["usuario_id"] for s in solicitudes] + [s["aprobado_por_id"] for s in solicitudes]
    )
    for s in solicitudes:
        s["usuario_nombre"] = nombre_completo(usuarios.get(s["usuario_id"]))
        s["aprobado_por_nombre"] = nombre_completo(usuarios.get(s["aprobado_por_id"]))
    ctx = {
        "form": form,
        "solicitudes": solicitudes,
        "estado": estado or "",
        "estados": EstadoSolicitud.choices,
        "puede_aprobar": usuario_puede(request.usuario, Capacidad.APROBAR_VACACIONES),
    }
    return render(request, "personal/vacaciones.html", ctx)


def _resolver(request, pk, operacion, texto):
    form = ResolverSolicitudForm(request.POST)
    comentario = form.cleaned_data["comentario"] if form.is_valid() else ""
    try:
        operacion(request.store, pk, request.usuario, comentario)
        messages.success(request, f"Solicitud {texto}.")
    except DominioError as e:
        messages.error(request, e.message)
    return redirect("vacaciones")


@require_POST
@require_permiso(Capacidad.APROBAR_VACACIONES)
def vacaciones_aprobar(request, pk):
    return _resolver(request, pk, aprobar_solicitud, "aprobada")


@require_POST
@require_permiso(Capacidad.APROBAR_VACACIONES)
def vacaciones_rechazar(request, pk):
    return _resolver(request, pk, rechazar_solicitud, "rechazada")
