from django.contrib import admin
from .models import AuditLog, Config


@admin.register(Config)
class ConfigAdmin(admin.ModelAdmin):
    list_display = ("nombre_empresa", "cif", "telefono", "email", "prefijo_parte")


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ("ts", "app", "action", "usuario_email", "object_repr")
    list_filter = ("app", "action")
    search_fields = ("usuario_email", "object_repr", "extra")
    readonly_fields = ("ts", "app", "action", "usuario_id", "usuario_email", "object_repr", "extra")
