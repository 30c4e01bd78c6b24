from django.db import models

from core.models import Registro


class EstadoPresupuesto(models.TextChoices):
    PENDIENTE = "pendiente", "Pendiente"
    ENVIADO = "enviado", "Enviado"
    ACEPTADO = "aceptado", "Aceptado"
    RECHAZADO = "rechazado", "Rechazado"


class Presupuesto(Registro):
    numero = models.CharField(max_length=20, unique=True)
    cliente = models.ForeignKey(
        "clientes.Cliente", null=True, blank=True, on_delete=models.SET_NULL, related_name="presupuestos"
    )
    cliente_nombre = models.CharField(max_length=150, blank=True, default="")
    vehiculo = models.ForeignKey(
        "clientes.Vehiculo", null=True, blank=True, on_delete=models.SET_NULL, related_name="presupuestos"
    )
    descripcion = models.TextField()
    observaciones = models.TextField(blank=True, default="")
    validez_dias = models.PositiveIntegerField(default=30)
    estado = models.CharField(
        max_length=20, choices=EstadoPresupuesto.choices, default=EstadoPresupuesto.PENDIENTE
    )
    creado_por = models.ForeignKey(
        "personal.Usuario", null=True, blank=True, on_delete=models.SET_NULL, related_name="presupuestos"
    )
    # Parte abierto a partir de este presupuesto, una vez aceptado
    parte_trabajo = models.ForeignKey(
        "partes.ParteTrabajo", null=True, blank=True, on_delete=models.SET_NULL, related_name="presupuestos"
    )

    iva_porcentaje = models.DecimalField(max_digits=5, decimal_places=2, default=21)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    iva = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    class Meta:
        db_table = "presupuestos"
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["estado", "created_at"])]

    def __str__(self):
        return f"{self.numero} · {self.cliente_nombre or '-'}"


class ConceptoPresupuesto(Registro):
    presupuesto = models.ForeignKey(Presupuesto, on_delete=models.CASCADE, related_name="conceptos")
    descripcion = models.CharField(max_length=255)
    cantidad = models.DecimalField(max_digits=12, decimal_places=2, default=1)
    precio_unitario = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    class Meta:
        db_table = "conceptos_presupuesto"
        ordering = ["created_at"]

    @property
    def importe(self):
        return self.cantidad * self.precio_unitario

    def __str__(self):
        return self.descripcion
