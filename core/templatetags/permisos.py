# core/templatetags/permisos.py
from django import template

from core.permisos import usuario_puede
from core.roles import Rol

register = template.Library()


@register.filter
def puede(usuario, capacidad):
    """
    Uso: {% if usuario|puede:"gestionar_clientes" %} ... {% endif %}
    """
    return usuario_puede(usuario, capacidad)


@register.filter
def rol_label(rol):
    try:
        return Rol(rol).label
    except ValueError:
        return rol or "-"


@register.simple_tag(takes_context=True)
def puede_alguna(context, *capacidades):
    """
    Uso:
      {% puede_alguna 'ver_informes' 'generar_informes' as ver_menu %}
    """
    usuario = context.get("usuario")
    return any(usuario_puede(usuario, c) for c in capacidades)
