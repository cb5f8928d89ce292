import logging

from django.conf import settings

logger = logging.getLogger("auth")


def client_ip(request) -> str | None:
    """Client address for audit logs.

    `X-Forwarded-For` is only read when the direct peer is one of
    `TRUSTED_PROXIES`; the nearest hop not owned by a trusted proxy wins.
    """
    remote = request.META.get("REMOTE_ADDR")
    trusted = set(getattr(settings, "TRUSTED_PROXIES", ()))
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR")
    if not forwarded or remote not in trusted:
        return remote
    hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
    for hop in reversed(hops):
        if hop not in trusted:
            return hop
    return remote


def log_auth_event(action: str, request, user=None, status: str = "success", extra: dict | None = None):
    """Emit a structured auth event with action, user, ip, and status."""
    payload = {
        "action": action,
        "ip": client_ip(request),
        "status": status,
    }
    if user is not None:
        payload["user_id"] = getattr(user, "id", None)
        payload["email"] = getattr(user, "email", None)
    if extra:
        payload.update(extra)
    level = logging.INFO if status == "success" else logging.WARNING
    logger.log(level, payload)
