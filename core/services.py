import json
import logging

from .models import AuditLog

logger = logging.getLogger(__name__)


def auditar(app, action, usuario=None, objeto="", **extra):
    """Deja constancia de una acción de negocio en AuditLog."""
    usuario = usuario or {}
    logger.info("%s:%s %s (%s)", app, action, objeto, usuario.get("email", "-"))
    return AuditLog.objects.create(
        app=app,
        action=action,
        usuario_id=usuario.get("id") or "",
        usuario_email=usuario.get("email") or "",
        object_repr=str(objeto)[:140],
        extra=json.dumps(extra, ensure_ascii=False, default=str) if extra else "",
    )
