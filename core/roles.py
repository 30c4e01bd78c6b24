from django.db import models

class Rol(models.TextChoices):
    ADMIN = "admin", "Administrador"
    JEFE_TALLER = "jefe_taller", "Jefe de Taller"
    TECNICO = "tecnico", "Técnico"
    RECEPCION = "recepcion", "Recepción"
