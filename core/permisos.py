# core/permisos.py
"""
Tabla única de permisos: qué rol puede hacer qué.

Cualquier comprobación de permisos (vistas, plantillas, servicios) pasa por
`puede()`. Un rol desconocido o vacío nunca tiene permisos.
"""
from django.db import models

from .roles import Rol


class Capacidad(models.TextChoices):
    VER_CLIENTES = "ver_clientes", "Ver clientes"
    GESTIONAR_CLIENTES = "gestionar_clientes", "Gestionar clientes"
    CREAR_CLIENTES = "crear_clientes", "Crear clientes"
    EDITAR_CLIENTES = "editar_clientes", "Editar clientes"
    ELIMINAR_CLIENTES = "eliminar_clientes", "Eliminar clientes"
    IMPORTAR_DATOS = "importar_datos", "Importar datos"
    EXPORTAR_DATOS = "exportar_datos", "Exportar datos"

    VER_MATERIALES = "ver_materiales", "Ver materiales"
    GESTIONAR_MATERIALES = "gestionar_materiales", "Gestionar materiales"
    CREAR_MATERIALES = "crear_materiales", "Crear materiales"
    EDITAR_MATERIALES = "editar_materiales", "Editar materiales"
    ELIMINAR_MATERIALES = "eliminar_materiales", "Eliminar materiales"

    VER_PERSONAL = "ver_personal", "Ver personal"
    GESTIONAR_PERSONAL = "gestionar_personal", "Gestionar personal"
    CREAR_PERSONAL = "crear_personal", "Crear personal"
    EDITAR_PERSONAL = "editar_personal", "Editar personal"
    ELIMINAR_PERSONAL = "eliminar_personal", "Eliminar personal"

    GESTIONAR_PARTES = "gestionar_partes", "Gestionar partes de trabajo"
    VER_TODOS_PARTES = "ver_todos_partes", "Ver todos los partes"
    CREAR_PARTES = "crear_partes", "Crear partes"
    EDITAR_PARTES = "editar_partes", "Editar partes"
    VALIDAR_PARTES = "validar_partes", "Validar partes"
    ELIMINAR_PARTES = "eliminar_partes", "Eliminar partes"

    VER_TODOS_FICHAJES = "ver_todos_fichajes", "Ver todos los fichajes"
    GESTIONAR_FICHAJES = "gestionar_fichajes", "Gestionar fichajes"

    GESTIONAR_VACACIONES = "gestionar_vacaciones", "Gestionar vacaciones"
    VER_TODAS_VACACIONES = "ver_todas_vacaciones", "Ver todas las vacaciones"
    APROBAR_VACACIONES = "aprobar_vacaciones", "Aprobar vacaciones"

    VER_INFORMES = "ver_informes", "Ver informes"
    GENERAR_INFORMES = "generar_informes", "Generar informes"

    GESTIONAR_AJUSTES = "gestionar_ajustes", "Gestionar ajustes"
    VER_AJUSTES = "ver_ajustes", "Ver ajustes"
    GESTIONAR_USUARIOS = "gestionar_usuarios", "Gestionar usuarios"
    VER_USUARIOS = "ver_usuarios", "Ver usuarios"

    GESTIONAR_AGENDA = "gestionar_agenda", "Gestionar agenda"
    VER_AGENDA = "ver_agenda", "Ver agenda"
    CREAR_CITAS = "crear_citas", "Crear citas"

    GESTIONAR_VEHICULOS = "gestionar_vehiculos", "Gestionar vehículos"
    VER_VEHICULOS = "ver_vehiculos", "Ver vehículos"

    VER_PRESUPUESTOS = "ver_presupuestos", "Ver presupuestos"
    GESTIONAR_PRESUPUESTOS = "gestionar_presupuestos", "Gestionar presupuestos"


_TODOS = frozenset(Rol)
_A = frozenset({Rol.ADMIN})
_AJ = frozenset({Rol.ADMIN, Rol.JEFE_TALLER})
_AJR = frozenset({Rol.ADMIN, Rol.JEFE_TALLER, Rol.RECEPCION})

POLITICA = {
    Capacidad.VER_CLIENTES: _TODOS,
    Capacidad.GESTIONAR_CLIENTES: _AJR,
    Capacidad.CREAR_CLIENTES: _AJR,
    Capacidad.EDITAR_CLIENTES: _AJ,
    Capacidad.ELIMINAR_CLIENTES: _A,
    Capacidad.IMPORTAR_DATOS: _AJ,
    Capacidad.EXPORTAR_DATOS: _AJR,

    Capacidad.VER_MATERIALES: _TODOS,
    Capacidad.GESTIONAR_MATERIALES: _AJR,
    Capacidad.CREAR_MATERIALES: _AJ,
    Capacidad.EDITAR_MATERIALES: _AJ,
    Capacidad.ELIMINAR_MATERIALES: _A,

    Capacidad.VER_PERSONAL: _AJR,
    Capacidad.GESTIONAR_PERSONAL: _AJ,
    Capacidad.CREAR_PERSONAL: _A,
    Capacidad.EDITAR_PERSONAL: _A,
    Capacidad.ELIMINAR_PERSONAL: _A,

    Capacidad.GESTIONAR_PARTES: _AJR,
    Capacidad.VER_TODOS_PARTES: _AJR,
    Capacidad.CREAR_PARTES: _AJR,
    Capacidad.EDITAR_PARTES: _AJ,
    Capacidad.VALIDAR_PARTES: _AJ,
    Capacidad.ELIMINAR_PARTES: _A,

    Capacidad.VER_TODOS_FICHAJES: _AJ,
    Capacidad.GESTIONAR_FICHAJES: _AJ,

    Capacidad.GESTIONAR_VACACIONES: _AJ,
    Capacidad.VER_TODAS_VACACIONES: _AJR,
    Capacidad.APROBAR_VACACIONES: _AJ,

    Capacidad.VER_INFORMES: _AJR,
    Capacidad.GENERAR_INFORMES: _AJ,

    Capacidad.GESTIONAR_AJUSTES: _A,
    Capacidad.VER_AJUSTES: _AJ,
    Capacidad.GESTIONAR_USUARIOS: _A,
    Capacidad.VER_USUARIOS: _AJ,

    Capacidad.GESTIONAR_AGENDA: _AJR,
    Capacidad.VER_AGENDA: _TODOS,
    Capacidad.CREAR_CITAS: _AJR,

    Capacidad.GESTIONAR_VEHICULOS: _AJR,
    Capacidad.VER_VEHICULOS: _TODOS,

    Capacidad.VER_PRESUPUESTOS: _AJR,
    Capacidad.GESTIONAR_PRESUPUESTOS: _AJR,
}


def puede(rol, capacidad):
    if not rol or rol not in Rol.values:
        return False
    if capacidad not in Capacidad.values:
        return False
    return Rol(rol) in POLITICA[Capacidad(capacidad)]


def usuario_puede(usuario, capacidad):
    """Como `puede`, pero sobre un registro de usuario: exige que esté activo."""
    if not usuario or not usuario.get("activo"):
        return False
    return puede(usuario.get("rol"), capacidad)


def capacidades_de(rol):
    return {cap for cap in Capacidad if puede(rol, cap)}


def matriz_permisos():
    """Filas (capacidad, {rol: bool}) para pintar la tabla en Ajustes."""
    return [
        (cap, [(rol, rol in POLITICA[cap]) for rol in Rol])
        for cap in Capacidad
    ]


# Atajos
def puede_gestionar_clientes(rol):
    return puede(rol, Capacidad.GESTIONAR_CLIENTES)


def puede_ver_todos_partes(rol):
    return puede(rol, Capacidad.VER_TODOS_PARTES)


def puede_ver_todos_fichajes(rol):
    return puede(rol, Capacidad.VER_TODOS_FICHAJES)


def puede_aprobar_vacaciones(rol):
    return puede(rol, Capacidad.APROBAR_VACACIONES)


def es_admin(rol):
    return rol == Rol.ADMIN


def es_jefe_taller(rol):
    return rol == Rol.JEFE_TALLER


def es_tecnico(rol):
    return rol == Rol.TECNICO


def es_recepcion(rol):
    return rol == Rol.RECEPCION
