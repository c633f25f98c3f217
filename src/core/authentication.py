"""DRF authenticator for users already resolved by ``JWTAuthMiddleware``."""

from typing import Any, Optional, Tuple

from django.contrib.auth.models import AnonymousUser
from rest_framework.authentication import BaseAuthentication


class MiddlewareUserAuthentication(BaseAuthentication):
    """Surface the middleware-attached user as DRF's ``request.user``.

    Tokens are decoded, checked against the blocklist and matched against the
    user's ``token_version`` in the middleware; nothing is re-verified here.
    Anonymous requests return None so that ``RolePermission`` answers 401.
    """

    def authenticate(self, request) -> Optional[Tuple[Any, None]]:
        django_request = getattr(request, "_request", None)
        user = getattr(django_request, "user", None)
        if user is None or isinstance(user, AnonymousUser):
            return None
        if not getattr(user, "is_authenticated", False):
            return None
        return user, None

    def authenticate_header(self, request) -> str:
        # Lets DRF answer 401 rather than 403 for unauthenticated callers.
        return 'Bearer realm="api"'


__all__ = ["MiddlewareUserAuthentication"]
