"""
DRF exception handler

Turns every error leaving a view into the same envelope:

    {"error": {"kind": ..., "message": ..., "context": {...}}}

Domain errors keep their own kind and status. DRF's own exceptions
(validation, authentication, 404) are reshaped. Anything unexpected is logged
with its traceback and answered with a generic InternalError, so clients never
see stack traces or raw payment gateway messages.
"""

from __future__ import annotations

import logging

from django.core.exceptions import PermissionDenied  # type: ignore
from django.http import Http404  # type: ignore
from rest_framework import exceptions, status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import exception_handler  # type: ignore

from shared.domain.errors import DomainError, InternalError

logger = logging.getLogger(__name__)

# DRF exception class -> kind reported to the client
DRF_ERROR_KINDS: dict[type, str] = {
    exceptions.ValidationError: "InvalidRequest",
    exceptions.ParseError: "InvalidRequest",
    exceptions.NotAuthenticated: "NotAuthenticated",
    exceptions.AuthenticationFailed: "NotAuthenticated",
    exceptions.PermissionDenied: "PermissionDenied",
    exceptions.NotFound: "NotFound",
    exceptions.MethodNotAllowed: "MethodNotAllowed",
    exceptions.Throttled: "Throttled",
    Http404: "NotFound",
    PermissionDenied: "PermissionDenied",
}


def error_response(error: DomainError) -> Response:
    return Response({"error": error.to_dict()}, status=error.http_status)


def _drf_kind(exc: Exception) -> str:
    for exc_type, kind in DRF_ERROR_KINDS.items():
        if isinstance(exc, exc_type):
            return kind
    return "InvalidRequest"


def domain_exception_handler(exc, context):  # type: ignore
    if isinstance(exc, DomainError):
        if exc.http_status >= 500:
            logger.error(f"{exc.kind}: {exc.message} {exc.context}")
        return error_response(exc)

    if isinstance(exc, (Http404, PermissionDenied, exceptions.APIException)):
        response = exception_handler(exc, context)
        if response is None:
            return None
        detail = response.data
        if isinstance(detail, dict) and set(detail) == {"detail"}:
            message = str(detail["detail"])
            error_context = {}
        else:
            message = "Некорректные параметры запроса."
            error_context = {"fields": detail}
        response.data = {
            "error": {
                "kind": _drf_kind(exc),
                "message": message,
                "context": error_context,
            }
        }
        return response

    view = context.get("view")
    logger.error(
        f"Unhandled error in {view.__class__.__name__ if view else 'unknown view'}: {exc}",
        exc_info=exc,
    )
    return Response({"error": InternalError().to_dict()}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
