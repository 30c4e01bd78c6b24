from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path("admin/", admin.site.urls),
    path("", include("core.urls")),
    path("clientes/", include("clientes.urls")),
    path("partes/", include("partes.urls")),
    path("fichajes/", include("fichajes.urls")),
    path("inventario/", include("inventario.urls")),
    path("agenda/", include("agenda.urls")),
    path("presupuestos/", include("presupuestos.urls")),
    path("personal/", include("personal.urls")),
    path("informes/", include("reportes.urls")),
]
