"""
core.domain.exception_handler — DRF-compatible global exception handler.

Registered in ``crimewatch/settings.py``::

    REST_FRAMEWORK = {
        ...
        "EXCEPTION_HANDLER": "core.domain.exception_handler.domain_exception_handler",
    }

DRF's own exceptions (serializer ``ValidationError``, authentication
failures, throttling) are rendered by the stock handler.  Domain
exceptions are rendered as ``{"detail": ..., "kind": ...}`` with a
stable ``kind`` so clients can branch without parsing messages.
"""

from __future__ import annotations

import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_default_handler

from core.domain.exceptions import (
    Conflict,
    DomainError,
    InvalidTransition,
    NotFound,
    PermissionDenied,
)

logger = logging.getLogger(__name__)

# Domain exception → (HTTP status, error kind).  Most specific first.
_STATUS_MAP: dict[type, tuple[int, str]] = {
    PermissionDenied:  (403, "access_denied"),
    NotFound:          (404, "not_found"),
    InvalidTransition: (409, "invalid_transition"),
    Conflict:          (409, "conflict"),
    DomainError:       (400, "domain_error"),
}


def domain_exception_handler(exc: Exception, context: dict) -> Response | None:
    """
    DRF exception handler that also handles ``core.domain.exceptions``.

    The default DRF handler is called first.  If it returns ``None``
    the exception is matched against the domain hierarchy; anything
    else propagates as a 500.
    """
    response = drf_default_handler(exc, context)
    if response is not None:
        return response

    for exc_class, (status_code, kind) in _STATUS_MAP.items():
        if isinstance(exc, exc_class):
            view = context.get("view")
            logger.warning(
                "Domain exception [%s] in %s: %s",
                exc_class.__name__,
                type(view).__name__ if view is not None else "unknown",
                exc,
            )
            return Response(
                {"detail": str(exc), "kind": kind},
                status=status_code,
            )

    return None
