import uuid

from django.db import models
from django.utils import timezone


class Registro(models.Model):
    """
    Base de las tablas de negocio. Los timestamps los asigna la capa de
    datos (core.store), no el ORM, para que ambos backends se comporten igual.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        abstract = True


class Config(models.Model):
    nombre_empresa = models.CharField(max_length=120, default="CMG Hidráulica")
    cif = models.CharField(max_length=20, blank=True, default="")
    direccion = models.CharField(max_length=200, blank=True, default="")
    telefono = models.CharField(max_length=30, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    iva_defecto = models.DecimalField(max_digits=5, decimal_places=2, default=21)
    prefijo_parte = models.CharField(max_length=10, default="PT")
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Configuración"
        verbose_name_plural = "Configuración"

    def __str__(self):
        return f"Config · {self.nombre_empresa}"

    @classmethod
    def get_solo(cls):
        obj, _ = cls.objects.get_or_create(pk=1)
        return obj


class AuditLog(models.Model):
    app = models.CharField(max_length=40)
    action = models.CharField(max_length=40)       # CREATE/UPDATE/DELETE/LOGIN/LOGOUT/EXPORT/IMPORT/FICHAJE
    usuario_id = models.CharField(max_length=36, blank=True, default="")
    usuario_email = models.CharField(max_length=254, blank=True, default="")
    object_repr = models.CharField(max_length=140, blank=True, default="")
    extra = models.TextField(blank=True, default="")
    ts = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-ts"]
        indexes = [models.Index(fields=["app", "action", "ts"])]

    def __str__(self):
        return f"[{self.ts:%Y-%m-%d %H:%M}] {self.app}:{self.action} · {self.object_repr or '-'}"
