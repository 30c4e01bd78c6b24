# core/context_processors.py
from .models import Config


def usuario_actual(request):
    store = getattr(request, "store", None)
    return {
        "usuario": getattr(request, "usuario", None),
        "backend_datos": store.nombre if store else "",
        "modo_desarrollo": bool(store) and store.nombre == "memoria",
    }


def empresa(request):
    return {"empresa": Config.get_solo()}
