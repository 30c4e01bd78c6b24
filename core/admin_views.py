# core/admin_views.py
import csv

from django.contrib import messages
from django.core.paginator import Paginator
from django.http import HttpResponse
from django.shortcuts import redirect, render

from .auth import require_permiso
from .forms import ConfigForm
from .models import AuditLog, Config
from .permisos import Capacidad, matriz_permisos, usuario_puede
from .roles import Rol
from .services import auditar


@require_permiso(Capacidad.VER_AJUSTES)
def ajustes_view(request):
    cfg = Config.get_solo()
    puede_editar = usuario_puede(request.usuario, Capacidad.GESTIONAR_AJUSTES)

    form = ConfigForm(request.POST or None, instance=cfg)
    if request.method == "POST":
        if not puede_editar:
            messages.warning(request, "Solo un administrador puede modificar los ajustes.")
            return redirect("core_ajustes")
        if form.is_valid():
            form.save()
            auditar("CONFIG", "UPDATE", request.usuario, "Config", **form.cleaned_data)
            messages.success(request, "Configuración actualizada")
            return redirect("core_ajustes")

    conexion = request.store.probar_conexion()
    ctx = {
        "form": form,
        "puede_editar": puede_editar,
        "conexion": conexion,
        "roles": Rol.choices,
        "matriz": matriz_permisos(),
    }
    return render(request, "core/ajustes.html", ctx)


@require_permiso(Capacidad.GESTIONAR_AJUSTES)
def logs_view(request):
    fini = (request.GET.get("fini") or "").strip()
    ffin = (request.GET.get("ffin") or "").strip()
    app  = (request.GET.get("app")  or "").strip()
    act  = (request.GET.get("action") or "").strip()
    usr  = (request.GET.get("user") or "").strip()
    objq = (request.GET.get("objq") or "").strip()

    qs = AuditLog.objects.all().order_by("-ts")

    if fini: qs = qs.filter(ts__date__gte=fini)
    if ffin: qs = qs.filter(ts__date__lte=ffin)
    if app:  qs = qs.filter(app=app)
    if act:  qs = qs.filter(action=act)
    if usr:  qs = qs.filter(usuario_email__icontains=usr)
    if objq: qs = qs.filter(object_repr__icontains=objq)

    # Export CSV rápido
    if request.GET.get("export") == "csv":
        resp = HttpResponse(content_type="text/csv; charset=utf-8")
        resp["Content-Disposition"] = "attachment; filename=logs.csv"
        resp.write("\ufeff")
        w = csv.writer(resp)
        w.writerow(["ts", "app", "action", "usuario", "object", "extra"])
        for l in qs[:50000]:
            w.writerow([l.ts, l.app, l.action, l.usuario_email, l.object_repr, l.extra])
        return resp

    page = request.GET.get("page") or 1
    logs_page = Paginator(qs, 50).get_page(page)

    apps_ = AuditLog.objects.values_list("app", flat=True).distinct().order_by("app")
    actions = AuditLog.objects.values_list("action", flat=True).distinct().order_by("action")

    ctx = {
        "logs_page": logs_page,
        "apps": apps_, "actions": actions,
        "filtros": {"fini": fini, "ffin": ffin, "app": app, "action": act, "user": usr, "objq": objq},
    }
    return render(request, "core/logs.html", ctx)
