# core/exceptions.py
"""
Excepciones de dominio.

Los servicios las lanzan y las vistas las convierten en mensajes
(django.contrib.messages). La capa de datos no lanza: devuelve un
Resultado con ErrorDatos, salvo en Resultado.unwrap().
"""


class DominioError(Exception):
    """Base de todos los errores de negocio."""
    code = "error"

    def __init__(self, message=""):
        super().__init__(message)
        self.message = message


class ValidacionError(DominioError):
    """Falta un campo obligatorio o un valor no es válido."""
    code = "validation"


class TransicionInvalida(DominioError, ValueError):
    """Cambio de estado no permitido para un parte de trabajo."""
    code = "transition"


class DatosError(DominioError):
    pass


class NoEncontrado(DatosError):
    code = "not_found"


class Duplicado(DatosError):
    code = "duplicate"


class ReferenciaInvalida(DatosError):
    code = "reference"


class BackendError(DatosError):
    code = "backend"


ERRORES_POR_CODIGO = {
    cls.code: cls
    for cls in (ValidacionError, NoEncontrado, Duplicado, ReferenciaInvalida, BackendError)
}
