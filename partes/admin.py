from django.contrib import admin
from .models import MaterialUsado, ParteTrabajo


class MaterialUsadoInline(admin.TabularInline):
    model = MaterialUsado
    extra = 0


@admin.register(ParteTrabajo)
class ParteTrabajoAdmin(admin.ModelAdmin):
    list_display = ("numero_parte", "cliente_nombre", "estado", "prioridad", "tecnico_asignado", "horas_reales", "created_at")
    list_filter = ("estado", "prioridad", "tipo_trabajo")
    search_fields = ("numero_parte", "cliente_nombre", "vehiculo_matricula")
    inlines = [MaterialUsadoInline]
