from django.contrib import admin
from .models import Material


@admin.register(Material)
class MaterialAdmin(admin.ModelAdmin):
    list_display = ("codigo", "nombre", "categoria", "unidad", "stock_actual", "stock_minimo", "precio_unitario")
    search_fields = ("codigo", "nombre", "proveedor")
    list_filter = ("categoria", "unidad")
