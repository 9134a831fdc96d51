"""Uniform error envelope for the API.

Every rejection leaving the API has the shape::

    {"success": false, "message": "...", "code": "..."}

Domain exceptions are translated explicitly in the views through
``error_response``; DRF's own exceptions (authentication, permissions,
serializer validation, 404) go through ``api_exception_handler``, which
DRF calls via the ``EXCEPTION_HANDLER`` setting.
"""

from __future__ import annotations

from typing import Any, Optional

import structlog
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = structlog.get_logger(__name__)


def error_response(
    exc: Exception,
    http_status: int,
    code: Optional[str] = None,
    message: Optional[str] = None,
) -> Response:
    """Build the standard rejection response for a domain exception.

    ``code`` defaults to the exception's ``code`` attribute; ``message``
    defaults to the exception text.
    """
    body = {
        "success": False,
        "message": message or str(exc),
        "code": code or getattr(exc, "code", "ERROR"),
    }
    logger.info(
        "api.request_rejected",
        code=body["code"],
        status_code=http_status,
        error=type(exc).__name__,
    )
    return Response(body, status=http_status)


def api_exception_handler(exc: Exception, context: dict[str, Any]) -> Optional[Response]:
    """Normalize DRF exceptions into the standard envelope."""
    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, exceptions.ValidationError):
        response.data = {
            "success": False,
            "message": "Invalid input.",
            "code": "VALIDATION_ERROR",
            "errors": response.data,
        }
        return response

    detail = response.data.get("detail") if isinstance(response.data, dict) else None
    code = getattr(detail, "code", None) or _default_code(response.status_code)
    response.data = {
        "success": False,
        "message": str(detail) if detail is not None else str(exc),
        "code": str(code).upper(),
    }
    return response


def _default_code(status_code: int) -> str:
    if status_code == status.HTTP_404_NOT_FOUND:
        return "NOT_FOUND"
    if status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN):
        return "NOT_AUTHORIZED"
    return "ERROR"
