"""
core.domain.exception_handler — Turns review workflow errors into HTTP responses.

The review and inbox views call their services without any try/except;
whatever the workflow engine raises ends up here:

==========================  ======  ===========================================
Exception                   Status  Raised when
==========================  ======  ===========================================
``NotFound``                404     case missing, or registered under another type
``InvalidTransition``       409     stage decided before the earlier stage approved
``StorageConflict``         409     every compare-and-swap attempt lost a race
``Conflict``                409     case ID already taken
``DomainError``             400     any other rule violation
``ConfigurationError``      500     stage or template tables are inconsistent
==========================  ======  ===========================================

Wired up through ``REST_FRAMEWORK["EXCEPTION_HANDLER"]`` in
``backend/settings.py``.
"""

from __future__ import annotations

import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_default_handler

from core.domain.exceptions import (
    Conflict,
    DomainError,
    NotFound,
)

logger = logging.getLogger(__name__)

# Checked in order, so subclasses of Conflict (InvalidTransition,
# StorageConflict) are matched before the DomainError fallback.
_STATUS_MAP: dict[type, int] = {
    NotFound:    404,
    Conflict:    409,
    DomainError: 400,
}


def domain_exception_handler(exc: Exception, context: dict) -> Response | None:
    """
    Render a workflow error as ``{"detail": <message>}``.

    Serializer validation and authentication errors keep DRF's own
    responses.  Returning ``None`` for ``ConfigurationError`` lets Django
    answer 500: a broken stage table is a deployment bug, not a bad request.
    """
    response = drf_default_handler(exc, context)
    if response is not None:
        return response

    for exc_class, status_code in _STATUS_MAP.items():
        if isinstance(exc, exc_class):
            view = context.get("view")
            logger.warning(
                "Review request rejected by %s with %d [%s]: %s",
                type(view).__name__ if view is not None else "unknown view",
                status_code,
                type(exc).__name__,
                exc,
            )
            return Response({"detail": str(exc)}, status=status_code)

    return None
