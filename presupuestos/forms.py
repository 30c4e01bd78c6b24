from django import forms

from clientes.forms import opciones_clientes, opciones_vehiculos
from core.forms import BootstrapMixin


class PresupuestoForm(BootstrapMixin, forms.Form):
    cliente_id = forms.ChoiceField(required=False, label="Cliente registrado")
    cliente_nombre = forms.CharField(
        max_length=150, required=False, label="o nombre del cliente",
        widget=forms.TextInput(attrs={"placeholder": "Cliente sin alta"}),
    )
    vehiculo_id = forms.ChoiceField(required=False, label="Vehículo")
    descripcion = forms.CharField(widget=forms.Textarea(attrs={"rows": 3}), label="Descripción")
    observaciones = forms.CharField(required=False, widget=forms.Textarea(attrs={"rows": 2}))
    validez_dias = forms.IntegerField(min_value=1, initial=30, label="Validez (días)")

    def __init__(self, *args, store=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["cliente_id"].choices = opciones_clientes(store)
        self.fields["vehiculo_id"].choices = opciones_vehiculos(store)

    def clean(self):
        cleaned = super().clean()
        if not cleaned.get("cliente_id") and not (cleaned.get("cliente_nombre") or "").strip():
            raise forms.ValidationError("Elige un cliente registrado o escribe su nombre.")
        for campo in ("cliente_id", "vehiculo_id"):
            cleaned[campo] = cleaned.get(campo) or None
        return cleaned


class ConceptoForm(BootstrapMixin, forms.Form):
    descripcion = forms.CharField(max_length=255, required=False, label="Concepto")
    cantidad = forms.DecimalField(min_value=0, decimal_places=2, initial=1, required=False)
    precio_unitario = forms.DecimalField(min_value=0, decimal_places=2, initial=0, required=False, label="Precio (€)")


ConceptoFormSet = forms.formset_factory(ConceptoForm, extra=4)
