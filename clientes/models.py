from django.db import models

from core.models import Registro


class Cliente(Registro):
    nombre = models.CharField(max_length=150)
    cif = models.CharField(max_length=15, blank=True, default="")
    telefono = models.CharField(max_length=30, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    direccion = models.CharField(max_length=255, blank=True, default="")
    contacto_principal = models.CharField(max_length=120, blank=True, default="")
    notas = models.TextField(blank=True, default="")
    activo = models.BooleanField(default=True)

    class Meta:
        db_table = "clientes"
        ordering = ["nombre"]

    def __str__(self):
        return self.nombre


class Vehiculo(Registro):
    cliente = models.ForeignKey(Cliente, on_delete=models.CASCADE, related_name="vehiculos")
    matricula = models.CharField(max_length=20)
    marca = models.CharField(max_length=60, blank=True, default="")
    modelo = models.CharField(max_length=60, blank=True, default="")
    anio = models.PositiveIntegerField(null=True, blank=True)
    numero_serie = models.CharField(max_length=60, blank=True, default="")
    tipo = models.CharField(max_length=60, blank=True, default="")
    activo = models.BooleanField(default=True)

    class Meta:
        db_table = "vehiculos"
        ordering = ["matricula"]

    def __str__(self):
        return f"{self.matricula} · {self.marca} {self.modelo}".strip()
