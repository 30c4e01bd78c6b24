from functools import wraps

from django.conf import settings
from django.contrib import messages
from django.contrib.auth.views import redirect_to_login
from django.shortcuts import redirect

from .permisos import usuario_puede
from .services import auditar

SESSION_KEY = "usuario_id"


def iniciar_sesion(request, usuario):
    request.session.cycle_key()
    request.session[SESSION_KEY] = usuario["id"]
    auditar("CORE", "LOGIN", usuario, usuario["email"], ip=request.META.get("REMOTE_ADDR", ""))


def cerrar_sesion(request):
    if getattr(request, "usuario", None):
        auditar("CORE", "LOGOUT", request.usuario, request.usuario["email"])
    request.session.flush()
    request.usuario = None


def login_requerido(viewfunc):
    @wraps(viewfunc)
    def _wrapped(request, *args, **kwargs):
        if getattr(request, "usuario", None) is None:
            return redirect_to_login(request.get_full_path(), settings.LOGIN_URL)
        return viewfunc(request, *args, **kwargs)
    return _wrapped


def require_permiso(*capacidades):
    """
    Uso: @require_permiso(Capacidad.GESTIONAR_CLIENTES)
    Hace falta tener todas las capacidades indicadas.
    """
    def decorator(viewfunc):
        @wraps(viewfunc)
        @login_requerido
        def _wrapped(request, *args, **kwargs):
            if all(usuario_puede(request.usuario, c) for c in capacidades):
                return viewfunc(request, *args, **kwargs)
            messages.warning(request, "No tienes permisos para acceder a esta sección.")
            return redirect("home")
        return _wrapped
    return decorator
