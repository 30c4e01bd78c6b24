from django.contrib import admin
from .models import Fichaje


@admin.register(Fichaje)
class FichajeAdmin(admin.ModelAdmin):
    list_display = ("usuario", "tipo", "fecha_hora", "parte_trabajo")
    list_filter = ("tipo",)
    date_hierarchy = "fecha_hora"
