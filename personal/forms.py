from django import forms

from core.forms import VACIO, BootstrapMixin
from core.roles import Rol

from .models import Especialidad, TipoAusencia
from .services import UsuarioRepositorio, nombre_completo


def opciones_tecnicos(store):
    """Personal activo que puede tener partes o citas asignadas."""
    return VACIO + [
        (u["id"], nombre_completo(u)) for u in UsuarioRepositorio(store).activos()
        if u["rol"] in (Rol.TECNICO, Rol.JEFE_TALLER)
    ]


class UsuarioForm(BootstrapMixin, forms.Form):
    nombre = forms.CharField(max_length=80)
    apellidos = forms.CharField(max_length=120, required=False)
    email = forms.EmailField()
    rol = forms.ChoiceField(choices=Rol.choices, initial=Rol.TECNICO)
    dni = forms.CharField(max_length=15, required=False, label="DNI")
    telefono = forms.CharField(max_length=30, required=False, label="Teléfono")
    puesto = forms.CharField(max_length=80, required=False)
    especialidad = forms.ChoiceField(choices=VACIO + Especialidad.choices, required=False)
    fecha_alta = forms.DateField(required=False, widget=forms.DateInput(attrs={"type": "date"}), label="Fecha de alta")
    password = forms.CharField(
        min_length=8, widget=forms.PasswordInput, label="Contraseña",
        help_text="Mínimo 8 caracteres.",
    )

    def __init__(self, *args, editando=False, **kwargs):
        super().__init__(*args, **kwargs)
        if editando:
            del self.fields["password"]


class PasswordForm(BootstrapMixin, forms.Form):
    password = forms.CharField(min_length=8, widget=forms.PasswordInput, label="Nueva contraseña")
    password2 = forms.CharField(widget=forms.PasswordInput, label="Repite la contraseña")

    def clean(self):
        cleaned = super().clean()
        if cleaned.get("password") and cleaned.get("password") != cleaned.get("password2"):
            raise forms.ValidationError("Las contraseñas no coinciden.")
        return cleaned


class SolicitudForm(BootstrapMixin, forms.Form):
    fecha_inicio = forms.DateField(widget=forms.DateInput(attrs={"type": "date"}), label="Desde")
    fecha_fin = forms.DateField(widget=forms.DateInput(attrs={"type": "date"}), label="Hasta")
    tipo = forms.ChoiceField(choices=TipoAusencia.choices, initial=TipoAusencia.VACACIONES)
    motivo = forms.CharField(required=False, widget=forms.Textarea(attrs={"rows": 2}))

    def clean(self):
        cleaned = super().clean()
        ini, fin = cleaned.get("fecha_inicio"), cleaned.get("fecha_fin")
        if ini and fin and fin < ini:
            raise forms.ValidationError("La fecha de fin no puede ser anterior a la de inicio.")
        return cleaned


class ResolverSolicitudForm(forms.Form):
    comentario = forms.CharField(required=False, max_length=500)
