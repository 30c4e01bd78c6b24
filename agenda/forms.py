from django import forms

from clientes.forms import opciones_clientes, opciones_vehiculos
from core.forms import BootstrapMixin
from personal.forms import opciones_tecnicos

from .models import EstadoCita, TipoServicio


class CitaForm(BootstrapMixin, forms.Form):
    titulo = forms.CharField(max_length=140, label="Título")
    fecha_hora = forms.DateTimeField(
        label="Fecha y hora",
        input_formats=["%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M", "%d/%m/%Y %H:%M"],
        widget=forms.DateTimeInput(attrs={"type": "datetime-local"}, format="%Y-%m-%dT%H:%M"),
    )
    duracion_estimada = forms.IntegerField(min_value=1, initial=60, label="Duración (min)")
    tipo_servicio = forms.ChoiceField(choices=TipoServicio.choices, label="Tipo de servicio")
    estado = forms.ChoiceField(choices=EstadoCita.choices, initial=EstadoCita.PROGRAMADA)
    cliente_id = forms.ChoiceField(required=False, label="Cliente")
    vehiculo_id = forms.ChoiceField(required=False, label="Vehículo")
    tecnico_id = forms.ChoiceField(required=False, label="Técnico")
    notas = forms.CharField(required=False, widget=forms.Textarea(attrs={"rows": 3}))

    def __init__(self, *args, store=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["cliente_id"].choices = opciones_clientes(store)
        self.fields["vehiculo_id"].choices = opciones_vehiculos(store)
        self.fields["tecnico_id"].choices = opciones_tecnicos(store)

    def clean(self):
        cleaned = super().clean()
        for campo in ("cliente_id", "vehiculo_id", "tecnico_id"):
            cleaned[campo] = cleaned.get(campo) or None
        return cleaned
