from django.db import models

from core.models import Registro


class EstadoCita(models.TextChoices):
    PROGRAMADA = "programada", "Programada"
    CONFIRMADA = "confirmada", "Confirmada"
    COMPLETADA = "completada", "Completada"
    CANCELADA = "cancelada", "Cancelada"


class TipoServicio(models.TextChoices):
    REVISION = "revision", "Revisión"
    REPARACION = "reparacion", "Reparación"
    MANTENIMIENTO = "mantenimiento", "Mantenimiento"
    DIAGNOSTICO = "diagnostico", "Diagnóstico"
    INSTALACION = "instalacion", "Instalación"


class Cita(Registro):
    titulo = models.CharField(max_length=140)
    cliente = models.ForeignKey(
        "clientes.Cliente", null=True, blank=True, on_delete=models.SET_NULL, related_name="citas"
    )
    vehiculo = models.ForeignKey(
        "clientes.Vehiculo", null=True, blank=True, on_delete=models.SET_NULL, related_name="citas"
    )
    tecnico = models.ForeignKey(
        "personal.Usuario", null=True, blank=True, on_delete=models.SET_NULL, related_name="citas"
    )
    fecha_hora = models.DateTimeField()
    duracion_estimada = models.PositiveIntegerField(default=60, help_text="Minutos")
    tipo_servicio = models.CharField(max_length=20, choices=TipoServicio.choices, default=TipoServicio.REVISION)
    estado = models.CharField(max_length=20, choices=EstadoCita.choices, default=EstadoCita.PROGRAMADA)
    notas = models.TextField(blank=True, default="")

    class Meta:
        db_table = "citas"
        ordering = ["fecha_hora"]
        indexes = [models.Index(fields=["fecha_hora"])]

    def __str__(self):
        return self.titulo
