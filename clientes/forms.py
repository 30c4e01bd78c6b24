from django import forms

from core.forms import VACIO, BootstrapMixin

from .importacion import CIF_RE
from .services import ClienteRepositorio, VehiculoRepositorio


class ClienteForm(BootstrapMixin, forms.Form):
    nombre = forms.CharField(max_length=150)
    cif = forms.CharField(max_length=15, required=False, label="CIF")
    telefono = forms.CharField(max_length=30, required=False, label="Teléfono")
    email = forms.EmailField(required=False)
    direccion = forms.CharField(max_length=255, required=False, label="Dirección")
    contacto_principal = forms.CharField(max_length=120, required=False)
    notas = forms.CharField(required=False, widget=forms.Textarea(attrs={"rows": 3}))
    activo = forms.BooleanField(required=False, initial=True)

    def clean_cif(self):
        cif = (self.cleaned_data.get("cif") or "").strip().upper()
        if cif and not CIF_RE.match(cif):
            raise forms.ValidationError("Formato de CIF inválido (ej. B12345678).")
        return cif


class VehiculoForm(BootstrapMixin, forms.Form):
    matricula = forms.CharField(max_length=20, label="Matrícula")
    marca = forms.CharField(max_length=60, required=False)
    modelo = forms.CharField(max_length=60, required=False)
    anio = forms.IntegerField(required=False, min_value=1950, max_value=2100, label="Año")
    numero_serie = forms.CharField(max_length=60, required=False, label="Nº de serie")
    tipo = forms.CharField(max_length=60, required=False, widget=forms.TextInput(attrs={"placeholder": "Camión, grúa..."}))
    activo = forms.BooleanField(required=False, initial=True)


class ImportarCSVForm(forms.Form):
    archivo = forms.FileField(widget=forms.ClearableFileInput(attrs={"class": "form-control", "accept": ".csv"}))

    def __init__(self, *args, max_mb=5, **kwargs):
        super().__init__(*args, **kwargs)
        self.max_mb = max_mb

    def clean_archivo(self):
        f = self.cleaned_data["archivo"]
        if not f.name.lower().endswith(".csv"):
            raise forms.ValidationError("El archivo debe ser .csv")
        if f.size > self.max_mb * 1024 * 1024:
            raise forms.ValidationError(f"El archivo supera {self.max_mb} MB.")
        return f


def opciones_clientes(store):
    return VACIO + [(c["id"], c["nombre"]) for c in ClienteRepositorio(store).buscar(solo_activos=True)]


def opciones_vehiculos(store):
    vehiculos = VehiculoRepositorio(store).listar(orden="matricula").unwrap()
    clientes = ClienteRepositorio(store).por_id(v["cliente_id"] for v in vehiculos)
    out = []
    for v in vehiculos:
        cliente = clientes.get(v["cliente_id"])
        etiqueta = f"{v['matricula']} · {v['marca']} {v['modelo']}".strip()
        if cliente:
            etiqueta += f" ({cliente['nombre']})"
        out.append((v["id"], etiqueta))
    return VACIO + out
