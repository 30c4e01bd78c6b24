from django.db import models

from core.models import Registro

UNIDADES = [
    ("un", "Unidad"),
    ("kg", "Kilogramo"),
    ("lt", "Litro"),
    ("mt", "Metro"),
]


class Categoria(models.TextChoices):
    FILTROS = "filtros", "Filtros"
    ACEITES = "aceites", "Aceites y Lubricantes"
    JUNTAS = "juntas", "Juntas y Retenes"
    MANGUERAS = "mangueras", "Mangueras"
    VALVULAS = "valvulas", "Válvulas"
    BOMBAS = "bombas", "Bombas"
    CILINDROS = "cilindros", "Cilindros"
    OTROS = "otros", "Otros"


class Material(Registro):
    codigo = models.CharField(max_length=50, unique=True)
    nombre = models.CharField(max_length=150)
    descripcion = models.TextField(blank=True, default="")
    categoria = models.CharField(max_length=20, choices=Categoria.choices, default=Categoria.OTROS)
    unidad = models.CharField(max_length=10, choices=UNIDADES, default="un")
    stock_actual = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    stock_minimo = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    precio_unitario = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    proveedor = models.CharField(max_length=120, blank=True, default="")
    ubicacion = models.CharField(max_length=60, blank=True, default="")

    class Meta:
        db_table = "materiales"
        ordering = ["codigo"]

    def __str__(self):
        return f"{self.codigo} · {self.nombre}"
