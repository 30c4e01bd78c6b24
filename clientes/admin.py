from django.contrib import admin
from .models import Cliente, Vehiculo


class VehiculoInline(admin.TabularInline):
    model = Vehiculo
    extra = 0


@admin.register(Cliente)
class ClienteAdmin(admin.ModelAdmin):
    list_display = ("nombre", "cif", "telefono", "email", "activo")
    list_filter = ("activo",)
    search_fields = ("nombre", "cif", "telefono")
    inlines = [VehiculoInline]


@admin.register(Vehiculo)
class VehiculoAdmin(admin.ModelAdmin):
    list_display = ("matricula", "marca", "modelo", "cliente", "activo")
    search_fields = ("matricula", "numero_serie", "cliente__nombre")
