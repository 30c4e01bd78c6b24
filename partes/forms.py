from decimal import Decimal

from django import forms

from clientes.forms import opciones_clientes, opciones_vehiculos
from core.forms import VACIO, BootstrapMixin
from inventario.services import MaterialRepositorio
from personal.forms import opciones_tecnicos

from .models import Prioridad, TipoTrabajo


class ParteForm(BootstrapMixin, forms.Form):
    cliente_id = forms.ChoiceField(required=False, label="Cliente registrado")
    cliente_nombre = forms.CharField(
        max_length=150, required=False, label="o nombre del cliente",
        widget=forms.TextInput(attrs={"placeholder": "Cliente sin alta"}),
    )
    vehiculo_id = forms.ChoiceField(required=False, label="Vehículo")
    tecnico_asignado_id = forms.ChoiceField(required=False, label="Técnico asignado")
    descripcion = forms.CharField(widget=forms.Textarea(attrs={"rows": 4}), label="Descripción del trabajo")
    tipo_trabajo = forms.ChoiceField(choices=VACIO + TipoTrabajo.choices, required=False, label="Tipo de trabajo")
    prioridad = forms.ChoiceField(choices=Prioridad.choices, initial=Prioridad.MEDIA)
    horas_estimadas = forms.FloatField(required=False, min_value=0, label="Horas estimadas")
    observaciones = forms.CharField(required=False, widget=forms.Textarea(attrs={"rows": 2}))

    def __init__(self, *args, store=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["cliente_id"].choices = opciones_clientes(store)
        self.fields["vehiculo_id"].choices = opciones_vehiculos(store)
        self.fields["tecnico_asignado_id"].choices = opciones_tecnicos(store)

    def clean(self):
        cleaned = super().clean()
        if not cleaned.get("cliente_id") and not (cleaned.get("cliente_nombre") or "").strip():
            raise forms.ValidationError("Elige un cliente registrado o escribe su nombre.")
        # Los selects vacíos llegan como "" y el store espera None
        for campo in ("cliente_id", "vehiculo_id", "tecnico_asignado_id"):
            cleaned[campo] = cleaned.get(campo) or None
        return cleaned


class CerrarParteForm(BootstrapMixin, forms.Form):
    trabajo_realizado = forms.CharField(widget=forms.Textarea(attrs={"rows": 4}), label="Trabajo realizado")
    observaciones = forms.CharField(required=False, widget=forms.Textarea(attrs={"rows": 2}))
    firma_cliente = forms.CharField(max_length=150, required=False, label="Nombre de quien firma")
    dni_cliente = forms.CharField(max_length=15, required=False, label="DNI")


class CancelarParteForm(BootstrapMixin, forms.Form):
    motivo = forms.CharField(max_length=255, required=False)


class MaterialUsadoForm(BootstrapMixin, forms.Form):
    material_id = forms.ChoiceField(required=False, label="Material del catálogo")
    descripcion = forms.CharField(max_length=255, required=False, label="o descripción libre")
    cantidad = forms.DecimalField(min_value=Decimal("0.01"), max_digits=12, decimal_places=2, initial=1)
    precio_unitario = forms.DecimalField(required=False, min_value=0, max_digits=12, decimal_places=2, label="Precio unitario")

    def __init__(self, *args, store=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["material_id"].choices = VACIO + [
            (m["id"], f"{m['codigo']} · {m['nombre']} (stock {m['stock_actual']})")
            for m in MaterialRepositorio(store).listar(orden="codigo").unwrap()
        ]

    def clean(self):
        cleaned = super().clean()
        cleaned["material_id"] = cleaned.get("material_id") or None
        if not cleaned["material_id"] and not (cleaned.get("descripcion") or "").strip():
            raise forms.ValidationError("Elige un material o describe el que se ha usado.")
        return cleaned


class HorasForm(BootstrapMixin, forms.Form):
    horas_facturables = forms.FloatField(min_value=0, label="Horas facturables")
