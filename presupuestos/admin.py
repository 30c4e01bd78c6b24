from django.contrib import admin
from .models import ConceptoPresupuesto, Presupuesto


class ConceptoInline(admin.TabularInline):
    model = ConceptoPresupuesto
    extra = 0


@admin.register(Presupuesto)
class PresupuestoAdmin(admin.ModelAdmin):
    list_display = ("numero", "cliente_nombre", "estado", "total", "created_at")
    list_filter = ("estado",)
    search_fields = ("numero", "cliente_nombre", "descripcion")
    inlines = [ConceptoInline]
