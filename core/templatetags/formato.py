# core/templatetags/formato.py
from django import template

from fichajes.calculo import formatear_horas

register = template.Library()


@register.filter
def horas(valor):
    """7.5 -> 7h 30m"""
    return formatear_horas(valor)


@register.filter
def get_item(d, key):
    return (d or {}).get(key)
