"""Custom exception handling to enforce the API error envelope."""

import logging
from typing import Any

from django.conf import settings
from django.db import DatabaseError
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed, NotAuthenticated
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from authentication.services import BlocklistUnavailable
from core import errors
from core.middleware import UNAUTHORIZED_MESSAGE

logger = logging.getLogger(__name__)

_DOMAIN_STATUS = {
    errors.ValidationError: status.HTTP_400_BAD_REQUEST,
    errors.NotFoundError: status.HTTP_404_NOT_FOUND,
    errors.AuthorizationError: status.HTTP_403_FORBIDDEN,
    errors.ConflictError: status.HTTP_409_CONFLICT,
}


def _normalize_errors(payload: Any) -> list[Any]:
    """Convert DRF's response.data into a list for the envelope."""

    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and "detail" in payload:
        # Common DRF pattern: {"detail": "..."}
        return [payload["detail"]]
    return [payload]


def _domain_error_response(exc: errors.PortalError) -> Response:
    """Render a portal domain error in the standard envelope.

    Concealed authorization denials are reported exactly like a missing
    entity so that callers cannot tell hidden articles from absent ones.
    """

    if isinstance(exc, errors.AuthorizationError) and exc.conceal:
        return Response(
            {"data": None, "errors": [errors.NotFoundError.default_message]},
            status=status.HTTP_404_NOT_FOUND,
        )

    code = status.HTTP_400_BAD_REQUEST
    for kind, mapped in _DOMAIN_STATUS.items():
        if isinstance(exc, kind):
            code = mapped
            break
    return Response({"data": None, "errors": [exc.message]}, status=code)


def custom_exception_handler(exc: Exception, context: dict[str, Any]) -> Response | None:
    """Wrap DRF and portal errors in `{ "data": null, "errors": [...] }` shape.

    - Maps ``core.errors`` kinds onto 400/403/404/409.
    - Uses DRF's default handler to produce the base response otherwise.
    - Optionally exposes more detailed auth errors when DEBUG_AUTH_ERRORS is enabled.
    """

    if isinstance(exc, errors.PortalError):
        return _domain_error_response(exc)

    # Blocklist connectivity errors are security-critical and must fail-closed.
    if isinstance(exc, BlocklistUnavailable):
        logger.error("Token blocklist unavailable: %s", exc)
        return Response(
            {"data": None, "errors": ["Authentication service unavailable (blocklist)."]},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    # Storage failures surface as a generic outage, still inside the envelope.
    if isinstance(exc, DatabaseError):
        logger.exception("Database error while handling request")
        return Response(
            {"data": None, "errors": ["Service temporarily unavailable."]},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    response = drf_exception_handler(exc, context)

    if response is None:
        return response

    # AuthenticationFailed/NotAuthenticated consistently produce 401.
    if isinstance(exc, (AuthenticationFailed, NotAuthenticated)):
        response.status_code = status.HTTP_401_UNAUTHORIZED

    if response.status_code >= 400:
        base_errors = response.data

        if response.status_code == status.HTTP_401_UNAUTHORIZED:
            if getattr(settings, "DEBUG_AUTH_ERRORS", False):
                errors_list = _normalize_errors(base_errors)
            else:
                errors_list = [UNAUTHORIZED_MESSAGE]
        elif response.status_code == status.HTTP_403_FORBIDDEN:
            errors_list = [errors.AuthorizationError.default_message]
        else:
            errors_list = _normalize_errors(base_errors)

        response.data = {"data": None, "errors": errors_list}

    return response
