"""
Centralized errors for generator/backend failures.
Exception types plus one rule table so routes stay thin and new error types are easy to add.
"""
from __future__ import annotations

from fastapi import HTTPException

# ---------------------------------------------------------------------------
# Exception types
# ---------------------------------------------------------------------------


class GeneratorError(Exception):
    """Base for everything the generator raises on purpose. ctx carries diagnostic fields."""

    def __init__(self, message: str = "", *, ctx: dict | None = None) -> None:
        super().__init__(message or self.__class__.__name__)
        self.ctx = dict(ctx or {})


class BackendError(GeneratorError):
    """Commerce backend call failed: transport, HTTP status, invalid JSON or top-level GraphQL errors."""


class BackendNotConfigured(BackendError):
    pass


class ValidationError(BackendError):
    """Backend rejected a mutation with userErrors."""

    def __init__(self, operation: str, messages: list[str], *, ctx: dict | None = None) -> None:
        self.operation = operation
        self.messages = list(messages)
        super().__init__(f"{operation} error: {' | '.join(self.messages)}", ctx=ctx)


class UpstreamShapeError(BackendError):
    """Backend answered, but not in the shape declared for the operation."""


class FeedFetchError(GeneratorError):
    pass


class BundleModeConflict(GeneratorError):
    pass


class SlotError(GeneratorError):
    """A backend failure while reconciling one slot, with the slot and operation attached."""

    def __init__(self, date_str: str, time_str: str, operation: str, cause: Exception) -> None:
        self.date = date_str
        self.time = time_str
        self.operation = operation
        self.cause = cause
        super().__init__(
            f"{date_str} {time_str} [{operation}]: {cause}",
            ctx={"date": date_str, "time": time_str, "operation": operation},
        )


class Unauthorized(GeneratorError):
    pass


class InvalidInput(GeneratorError):
    pass


class NotFound(GeneratorError):
    pass


# ---------------------------------------------------------------------------
# HTTP mapping: (exception class, status_code, error code). First match wins.
# Add new rules here instead of scattering checks in routes.
# ---------------------------------------------------------------------------

STATUS_BAD_REQUEST = 400
STATUS_UNAUTHORIZED = 401
STATUS_NOT_FOUND = 404
STATUS_INTERNAL_ERROR = 500
STATUS_BAD_GATEWAY = 502
STATUS_SERVICE_UNAVAILABLE = 503

ERROR_RULES: list[tuple[type[Exception], int, str]] = [
    (Unauthorized, STATUS_UNAUTHORIZED, "unauthorized"),
    (InvalidInput, STATUS_BAD_REQUEST, "invalid_input"),
    (NotFound, STATUS_NOT_FOUND, "not_found"),
    (FeedFetchError, STATUS_BAD_GATEWAY, "upstream_feed_error"),
    (BackendNotConfigured, STATUS_SERVICE_UNAVAILABLE, "backend_not_configured"),
    (SlotError, STATUS_INTERNAL_ERROR, "slot_failed"),
    (BackendError, STATUS_INTERNAL_ERROR, "shopify_error"),
]


def error_to_http(exc: Exception) -> HTTPException:
    """
    Map an exception from the generator or backend into an HTTPException.
    Uses ERROR_RULES for known types; otherwise 500. The exception message is always kept in detail.
    """
    for exc_type, status_code, code in ERROR_RULES:
        if isinstance(exc, exc_type):
            detail: dict = {"ok": False, "error": code, "detail": str(exc)}
            ctx = getattr(exc, "ctx", None)
            if ctx:
                detail["context"] = ctx
            return HTTPException(status_code=status_code, detail=detail)
    return HTTPException(
        status_code=STATUS_INTERNAL_ERROR,
        detail={"ok": False, "error": "internal_error", "detail": str(exc)},
    )
