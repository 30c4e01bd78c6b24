from django.contrib import admin
from .models import SolicitudVacaciones, Usuario


@admin.register(Usuario)
class UsuarioAdmin(admin.ModelAdmin):
    list_display = ("email", "nombre", "apellidos", "rol", "activo", "puesto")
    list_filter = ("rol", "activo", "especialidad")
    search_fields = ("email", "nombre", "apellidos", "dni")
    exclude = ("password",)


@admin.register(SolicitudVacaciones)
class SolicitudVacacionesAdmin(admin.ModelAdmin):
    list_display = ("usuario", "tipo", "fecha_inicio", "fecha_fin", "dias_solicitados", "estado")
    list_filter = ("estado", "tipo")
