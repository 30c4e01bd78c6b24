from django.db import models

from core.models import Registro
from core.roles import Rol


class Especialidad(models.TextChoices):
    HIDRAULICA = "hidraulica", "Sistemas Hidráulicos"
    NEUMATICA = "neumatica", "Sistemas Neumáticos"
    MECANICA = "mecanica", "Mecánica General"
    ELECTRONICA = "electronica", "Electrónica"
    SOLDADURA = "soldadura", "Soldadura"
    DIAGNOSTICO = "diagnostico", "Diagnóstico"
    ATENCION_CLIENTE = "atencion_cliente", "Atención al Cliente"
    ADMINISTRACION = "administracion", "Administración"


class Usuario(Registro):
    email = models.EmailField(unique=True)
    nombre = models.CharField(max_length=80)
    apellidos = models.CharField(max_length=120, blank=True, default="")
    rol = models.CharField(max_length=20, choices=Rol.choices, default=Rol.TECNICO)
    activo = models.BooleanField(default=True)
    dni = models.CharField(max_length=15, blank=True, default="")
    telefono = models.CharField(max_length=30, blank=True, default="")
    puesto = models.CharField(max_length=80, blank=True, default="")
    especialidad = models.CharField(max_length=30, choices=Especialidad.choices, blank=True, default="")
    fecha_alta = models.DateField(null=True, blank=True)
    password = models.CharField(max_length=128, blank=True, default="")

    class Meta:
        db_table = "usuarios"
        ordering = ["nombre", "apellidos"]

    def __str__(self):
        return f"{self.nombre} {self.apellidos}".strip()


class TipoAusencia(models.TextChoices):
    VACACIONES = "vacaciones", "Vacaciones"
    PERMISO = "permiso", "Permiso"
    BAJA = "baja", "Baja"


class EstadoSolicitud(models.TextChoices):
    PENDIENTE = "pendiente", "Pendiente"
    APROBADA = "aprobada", "Aprobada"
    RECHAZADA = "rechazada", "Rechazada"


class SolicitudVacaciones(Registro):
    usuario = models.ForeignKey(Usuario, on_delete=models.CASCADE, related_name="solicitudes")
    fecha_inicio = models.DateField()
    fecha_fin = models.DateField()
    dias_solicitados = models.PositiveIntegerField(default=1)
    tipo = models.CharField(max_length=20, choices=TipoAusencia.choices, default=TipoAusencia.VACACIONES)
    motivo = models.TextField(blank=True, default="")
    estado = models.CharField(max_length=20, choices=EstadoSolicitud.choices, default=EstadoSolicitud.PENDIENTE)
    aprobado_por = models.ForeignKey(
        Usuario, null=True, blank=True, on_delete=models.SET_NULL, related_name="solicitudes_resueltas"
    )
    fecha_aprobacion = models.DateTimeField(null=True, blank=True)
    comentario_admin = models.TextField(blank=True, default="")

    class Meta:
        db_table = "solicitudes_vacaciones"
        ordering = ["-fecha_inicio"]

    def __str__(self):
        return f"{self.usuario} · {self.fecha_inicio} → {self.fecha_fin}"
