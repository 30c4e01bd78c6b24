from django import forms

from core.forms import BootstrapMixin

from .models import UNIDADES, Categoria
from .services import AJUSTE, ENTRADA, SALIDA, TIPOS_MOVIMIENTO

MOTIVOS = {
    ENTRADA: [
        ("Compra", "Compra"),
        ("Devolución a stock", "Devolución a stock"),
        ("Ajuste inicial", "Ajuste inicial"),
    ],
    SALIDA: [
        ("Consumo en taller", "Consumo en taller"),
        ("Devolución a proveedor", "Devolución a proveedor"),
    ],
    AJUSTE: [
        ("Inventario físico", "Ajuste por inventario físico"),
        ("Rotura / merma", "Rotura / merma"),
    ],
}
OTRO = "OTRO"


class MaterialForm(BootstrapMixin, forms.Form):
    codigo = forms.CharField(max_length=50, label="Código")
    nombre = forms.CharField(max_length=150)
    descripcion = forms.CharField(required=False, widget=forms.Textarea(attrs={"rows": 2}), label="Descripción")
    categoria = forms.ChoiceField(choices=Categoria.choices, initial=Categoria.OTROS, label="Categoría")
    unidad = forms.ChoiceField(choices=UNIDADES, initial="un")
    stock_actual = forms.DecimalField(min_value=0, max_digits=12, decimal_places=2, initial=0, label="Stock inicial")
    stock_minimo = forms.DecimalField(min_value=0, max_digits=12, decimal_places=2, initial=0, label="Stock mínimo")
    precio_unitario = forms.DecimalField(min_value=0, max_digits=12, decimal_places=2, initial=0, label="Precio unitario (€)")
    proveedor = forms.CharField(max_length=120, required=False)
    ubicacion = forms.CharField(max_length=60, required=False, label="Ubicación")

    def __init__(self, *args, editando=False, **kwargs):
        super().__init__(*args, **kwargs)
        if editando:
            # el stock se mueve con entradas, salidas y ajustes
            del self.fields["stock_actual"]


class AjusteStockForm(BootstrapMixin, forms.Form):
    tipo = forms.ChoiceField(choices=TIPOS_MOVIMIENTO)
    cantidad = forms.DecimalField(max_digits=12, decimal_places=2,
                                  help_text="En un ajuste, negativa para restar.")
    motivo = forms.ChoiceField(required=False)
    motivo_otro = forms.CharField(required=False, max_length=200, label="Otro motivo",
                                  widget=forms.TextInput(attrs={"placeholder": "Especifica el motivo"}))

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        opciones = [("", "---------")]
        for tipo, label in TIPOS_MOVIMIENTO:
            opciones.append((label, MOTIVOS[tipo]))
        opciones.append((OTRO, "Otro (especificar)"))
        self.fields["motivo"].choices = opciones

    def clean(self):
        cleaned = super().clean()
        if cleaned.get("motivo") == OTRO:
            otro = (cleaned.get("motivo_otro") or "").strip()
            if not otro:
                self.add_error("motivo_otro", "Debes especificar el motivo.")
            cleaned["motivo"] = otro
        return cleaned
