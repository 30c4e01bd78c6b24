from django.db import models

from core.models import Registro


class TipoFichaje(models.TextChoices):
    ENTRADA = "entrada", "Entrada"
    SALIDA = "salida", "Salida"


class Fichaje(Registro):
    usuario = models.ForeignKey("personal.Usuario", on_delete=models.CASCADE, related_name="fichajes")
    # Sin parte = fichaje de presencia (jornada)
    parte_trabajo = models.ForeignKey(
        "partes.ParteTrabajo", null=True, blank=True, on_delete=models.CASCADE, related_name="fichajes"
    )
    tipo = models.CharField(max_length=10, choices=TipoFichaje.choices)
    fecha_hora = models.DateTimeField()
    observaciones = models.TextField(blank=True, default="")

    class Meta:
        db_table = "fichajes"
        ordering = ["fecha_hora"]
        indexes = [models.Index(fields=["usuario", "fecha_hora"])]

    def __str__(self):
        return f"{self.get_tipo_display()} · {self.fecha_hora:%Y-%m-%d %H:%M}"
