from django.db import models

from core.models import Registro


class EstadoParte(models.TextChoices):
    PENDIENTE = "pendiente", "Pendiente"
    EN_PROGRESO = "en_progreso", "En progreso"
    COMPLETADO = "completado", "Completado"
    CANCELADO = "cancelado", "Cancelado"


class Prioridad(models.TextChoices):
    BAJA = "baja", "Baja"
    MEDIA = "media", "Media"
    ALTA = "alta", "Alta"
    URGENTE = "urgente", "Urgente"


class TipoTrabajo(models.TextChoices):
    REPARACION = "reparacion", "Reparación"
    MANTENIMIENTO = "mantenimiento", "Mantenimiento"
    REVISION = "revision", "Revisión"
    INSTALACION = "instalacion", "Instalación"


class ParteTrabajo(Registro):
    numero_parte = models.CharField(max_length=20, unique=True)

    # El cliente puede no estar dado de alta: entonces solo hay cliente_nombre
    cliente = models.ForeignKey(
        "clientes.Cliente", null=True, blank=True, on_delete=models.SET_NULL, related_name="partes"
    )
    cliente_nombre = models.CharField(max_length=150, blank=True, default="")
    vehiculo = models.ForeignKey(
        "clientes.Vehiculo", null=True, blank=True, on_delete=models.SET_NULL, related_name="partes"
    )
    vehiculo_matricula = models.CharField(max_length=20, blank=True, default="")
    vehiculo_marca = models.CharField(max_length=60, blank=True, default="")
    vehiculo_modelo = models.CharField(max_length=60, blank=True, default="")
    vehiculo_serie = models.CharField(max_length=60, blank=True, default="")

    tecnico_asignado = models.ForeignKey(
        "personal.Usuario", null=True, blank=True, on_delete=models.SET_NULL, related_name="partes_asignados"
    )
    creado_por = models.ForeignKey(
        "personal.Usuario", null=True, blank=True, on_delete=models.SET_NULL, related_name="partes_creados"
    )

    descripcion = models.TextField()
    tipo_trabajo = models.CharField(max_length=20, choices=TipoTrabajo.choices, blank=True, default="")
    prioridad = models.CharField(max_length=10, choices=Prioridad.choices, default=Prioridad.MEDIA)
    estado = models.CharField(max_length=20, choices=EstadoParte.choices, default=EstadoParte.PENDIENTE)

    horas_estimadas = models.FloatField(null=True, blank=True)
    horas_reales = models.FloatField(default=0)
    horas_facturables = models.FloatField(null=True, blank=True)
    fecha_inicio = models.DateTimeField(null=True, blank=True)
    fecha_fin = models.DateTimeField(null=True, blank=True)

    trabajo_realizado = models.TextField(blank=True, default="")
    observaciones = models.TextField(blank=True, default="")
    firma_cliente = models.CharField(max_length=150, blank=True, default="")
    dni_cliente = models.CharField(max_length=15, blank=True, default="")

    class Meta:
        db_table = "partes_trabajo"
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["estado", "created_at"])]

    def __str__(self):
        return f"{self.numero_parte} · {self.cliente_nombre or '-'}"


class MaterialUsado(Registro):
    parte_trabajo = models.ForeignKey(ParteTrabajo, on_delete=models.CASCADE, related_name="materiales")
    material = models.ForeignKey(
        "inventario.Material", null=True, blank=True, on_delete=models.SET_NULL, related_name="usos"
    )
    codigo = models.CharField(max_length=50, blank=True, default="")
    descripcion = models.CharField(max_length=255)
    cantidad = models.DecimalField(max_digits=12, decimal_places=2, default=1)
    unidad = models.CharField(max_length=10, default="un")
    precio_unitario = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    class Meta:
        db_table = "materiales_usados"

    def __str__(self):
        return f"{self.codigo} {self.descripcion} x{self.cantidad}"
