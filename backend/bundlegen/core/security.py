"""Shared-secret check for admin routes (x-admin-secret or Authorization: Bearer)."""
import hmac
import logging

from fastapi import Request

from bundlegen.config import settings
from bundlegen.core.errors import Unauthorized, error_to_http

logger = logging.getLogger(__name__)


def presented_secret(request: Request) -> str:
    header = (request.headers.get("x-admin-secret") or "").strip()
    if header:
        return header
    auth = request.headers.get("authorization") or ""
    if auth.lower().startswith("bearer "):
        return auth[7:].strip()
    return ""


def is_authorized(secret: str, expected: str) -> bool:
    """Unset expected secret rejects everything."""
    if not expected or not secret:
        return False
    return hmac.compare_digest(secret.encode(), expected.encode())


def require_admin(request: Request) -> None:
    """FastAPI dependency: fail fast before any processing."""
    if not is_authorized(presented_secret(request), settings.admin_secret):
        logger.warning("Rejected admin call to %s", request.url.path)
        raise error_to_http(Unauthorized("unauthorized"))
