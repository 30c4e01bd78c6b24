from django.contrib import admin
from .models import Cita


@admin.register(Cita)
class CitaAdmin(admin.ModelAdmin):
    list_display = ("titulo", "fecha_hora", "duracion_estimada", "tecnico", "cliente", "estado")
    list_filter = ("estado", "tipo_servicio")
    search_fields = ("titulo", "notas")
