from django import forms

from .models import Config


class BootstrapMixin:
    """Pone las clases de Bootstrap a todos los widgets del formulario."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        for name, field in self.fields.items():
            css = "form-control"
            if isinstance(field.widget, forms.CheckboxInput):
                css = "form-check-input"
            elif isinstance(field.widget, forms.Select):
                css = "form-select"
            field.widget.attrs.setdefault("class", css)


class LoginForm(BootstrapMixin, forms.Form):
    email = forms.EmailField(label="Email")
    password = forms.CharField(widget=forms.PasswordInput, label="Contraseña")

    def clean_email(self):
        return self.cleaned_data["email"].strip().lower()


class ConfigForm(BootstrapMixin, forms.ModelForm):
    class Meta:
        model = Config
        fields = ["nombre_empresa", "cif", "direccion", "telefono", "email", "iva_defecto", "prefijo_parte"]
        labels = {
            "nombre_empresa": "Nombre de la empresa",
            "cif": "CIF",
            "direccion": "Dirección",
            "telefono": "Teléfono",
            "iva_defecto": "IVA por defecto (%)",
            "prefijo_parte": "Prefijo de partes",
        }

    def clean_prefijo_parte(self):
        p = self.cleaned_data["prefijo_parte"].strip().upper()
        if not p.isalnum():
            raise forms.ValidationError("El prefijo solo admite letras y números.")
        return p


VACIO = [("", "---------")]
