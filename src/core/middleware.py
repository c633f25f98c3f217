"""Bearer-token authentication performed before DRF sees the request."""

import logging
from typing import Optional

from django.contrib.auth.models import AnonymousUser
from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed

from authentication.models import User
from authentication.services import ACCESS, BlocklistUnavailable, TokenService

logger = logging.getLogger(__name__)

UNAUTHORIZED_MESSAGE = (
    "Authentication credentials were not provided or are invalid, token revoked, or user is inactive."
)


class JWTAuthMiddleware(MiddlewareMixin):
    """Resolve ``request.user`` from an ``Authorization: Bearer`` access token.

    Requests without a bearer header continue anonymously. A header that is
    present but unusable (bad signature, expired, blocklisted, stale version,
    inactive account) ends the request with 401; an unreachable blocklist
    ends it with 503.
    """

    def process_request(self, request):  # type: ignore[override]
        auth_header = request.META.get("HTTP_AUTHORIZATION", "")
        if not auth_header.startswith("Bearer "):
            request.user = AnonymousUser()
            return None

        try:
            user = self._authenticate(auth_header.split(" ", 1)[1])
        except AuthenticationFailed as exc:
            logger.debug("Rejected bearer token: %s", exc)
            return _envelope_error(UNAUTHORIZED_MESSAGE, status.HTTP_401_UNAUTHORIZED)
        except BlocklistUnavailable:
            logger.error("Token blocklist unavailable during authentication")
            return _envelope_error(
                "Authentication service unavailable (blocklist).",
                status.HTTP_503_SERVICE_UNAVAILABLE,
            )

        request.user = user
        return None

    def _authenticate(self, token: str) -> User:
        payload = TokenService.decode_token(token, expected_type=ACCESS)
        if TokenService.is_token_blocked(payload["jti"]):
            raise AuthenticationFailed("Token revoked")

        user = self._get_user(payload["sub"])
        if user is None or not user.is_active:
            raise AuthenticationFailed("Unknown or inactive user")
        if not TokenService.is_current(payload, user):
            raise AuthenticationFailed("Token version is stale")
        return user

    @staticmethod
    def _get_user(user_id: str) -> Optional[User]:
        try:
            return User.objects.get(id=user_id)
        except (User.DoesNotExist, DjangoValidationError):
            return None


def _envelope_error(message: str, code: int) -> JsonResponse:
    return JsonResponse({"data": None, "errors": [message]}, status=code)


__all__ = ["JWTAuthMiddleware"]
