# core/middleware.py
from .auth import SESSION_KEY
from .store import store_activo


class CurrentUserMiddleware:
    """
    Deja en cada request el store de datos (`request.store`) y el usuario
    autenticado (`request.usuario`, sin el hash de la contraseña).
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.store = store_activo()
        request.usuario = None

        usuario_id = request.session.get(SESSION_KEY)
        if usuario_id:
            res = request.store.obtener("usuarios", usuario_id)
            if res.ok and res.data["activo"]:
                request.usuario = {k: v for k, v in res.data.items() if k != "password"}
            else:
                # usuario borrado o desactivado: sesión inválida
                request.session.flush()

        return self.get_response(request)
