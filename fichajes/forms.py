from django import forms

from core.forms import BootstrapMixin
from personal.services import UsuarioRepositorio, nombre_completo

from .models import TipoFichaje

CON_PARTE = [("", "Todos"), ("si", "Con parte"), ("no", "Jornada")]


class FiltroFichajesForm(BootstrapMixin, forms.Form):
    usuario = forms.ChoiceField(required=False, label="Persona")
    desde = forms.DateField(required=False, widget=forms.DateInput(attrs={"type": "date"}))
    hasta = forms.DateField(required=False, widget=forms.DateInput(attrs={"type": "date"}))
    tipo = forms.ChoiceField(required=False, choices=[("", "Todos")] + TipoFichaje.choices)
    con_parte = forms.ChoiceField(required=False, choices=CON_PARTE, label="Origen")

    def __init__(self, *args, store=None, ver_todos=False, **kwargs):
        super().__init__(*args, **kwargs)
        if ver_todos:
            self.fields["usuario"].choices = [("", "Todas")] + [
                (u["id"], nombre_completo(u)) for u in UsuarioRepositorio(store).listar(orden="nombre").unwrap()
            ]
        else:
            del self.fields["usuario"]

    def clean(self):
        cleaned = super().clean()
        desde, hasta = cleaned.get("desde"), cleaned.get("hasta")
        if desde and hasta and hasta < desde:
            raise forms.ValidationError("La fecha final no puede ser anterior a la inicial.")
        cleaned["con_parte"] = {"si": True, "no": False}.get(cleaned.get("con_parte"))
        return cleaned


class PresenciaForm(forms.Form):
    tipo = forms.ChoiceField(choices=TipoFichaje.choices)
    observaciones = forms.CharField(required=False, max_length=255)
