"""Authentication endpoints (register, login, refresh, logout, profile) and accounts."""

import logging
from typing import Any

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed, NotAuthenticated
from rest_framework.response import Response

from access_control.permissions import RolePermission
from access_control.policy import Operation
from core.identity import Identity
from core.response import BaseAPIView, BaseServiceViewSet, api_response
from . import accounts
from .serializers import (
    AccountSerializer,
    LoginSerializer,
    ProfileUpdateSerializer,
    RegisterSerializer,
    UserDetailSerializer,
)
from .services import REFRESH, TokenService

logger = logging.getLogger(__name__)

User = get_user_model()


class RegisterView(BaseAPIView):
    permission_classes: list[Any] = []

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Self-service sign-up. New accounts are always Consumers."""
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info("Registered consumer %s", user.pk)
        return api_response(UserDetailSerializer(user).data, status=status.HTTP_201_CREATED)


class LoginView(BaseAPIView):
    permission_classes: list[Any] = []

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.validated_data["user"]
        access, refresh = TokenService.generate_tokens(user)
        logger.info("Login for %s", user.pk)
        return api_response({"access": access, "refresh": refresh, "user": UserDetailSerializer(user).data})


class RefreshView(BaseAPIView):
    permission_classes: list[Any] = []

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Trade a live refresh token for a new pair.

        Refresh tokens minted before logout-all, a password change or a role
        change carry a stale version and are refused.
        """
        refresh_token = request.data.get("refresh")
        if not refresh_token:
            raise AuthenticationFailed("Refresh token required")

        payload = TokenService.decode_token(refresh_token, expected_type=REFRESH)
        user = _get_active_user(payload["sub"])
        if user is None or not TokenService.is_current(payload, user):
            raise AuthenticationFailed("Invalid or revoked refresh token")

        access, new_refresh = TokenService.generate_tokens(user)
        return api_response({"access": access, "refresh": new_refresh})


class LogoutView(BaseAPIView):
    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Blocklist the bearer access token."""
        TokenService.revoke(_require_bearer_token(request))
        return Response(status=status.HTTP_204_NO_CONTENT)


class LogoutAllView(BaseAPIView):
    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Invalidate every token of the caller on every device."""
        user = _require_user(request)
        user.token_version += 1
        user.save(update_fields=["token_version"])
        TokenService.revoke(_require_bearer_token(request))
        logger.info("All sessions revoked for %s", user.pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


class MeView(BaseAPIView):
    permission_classes: list[Any] = []

    # noinspection PyMethodMayBeStatic
    def get(self, request):
        return api_response(UserDetailSerializer(_require_user(request)).data)

    # noinspection PyMethodMayBeStatic
    def patch(self, request):
        """Change display name or password; email and role are not self-service."""
        user = _require_user(request)
        serializer = ProfileUpdateSerializer(user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return api_response(UserDetailSerializer(user).data)

    # noinspection PyMethodMayBeStatic
    def delete(self, request):
        """Deactivate the caller's account and revoke the current token."""
        user = _require_user(request)
        TokenService.revoke(_require_bearer_token(request))
        user.is_active = False
        user.save(update_fields=["is_active"])
        logger.info("Account %s deactivated by its owner", user.pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


class AccountViewSet(BaseServiceViewSet):
    """Administrator account management backed by ``authentication.accounts``."""

    permission_classes = [RolePermission]
    operations = {
        "list": Operation.MANAGE_ACCOUNTS,
        "retrieve": Operation.MANAGE_ACCOUNTS,
        "create": Operation.MANAGE_ACCOUNTS,
        "update": Operation.MANAGE_ACCOUNTS,
        "partial_update": Operation.MANAGE_ACCOUNTS,
        "destroy": Operation.MANAGE_ACCOUNTS,
    }

    def list(self, request):
        users = accounts.list_accounts(Identity.of(request.user))
        return Response(UserDetailSerializer(users, many=True).data)

    def retrieve(self, request, pk=None):
        user = accounts.get_account(Identity.of(request.user), pk)
        return Response(UserDetailSerializer(user).data)

    def create(self, request):
        serializer = AccountSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        data.pop("is_active", None)
        user = accounts.create_account(Identity.of(request.user), **data)
        return Response(UserDetailSerializer(user).data, status=status.HTTP_201_CREATED)

    def update(self, request, pk=None, partial=False):
        actor = Identity.of(request.user)
        target = accounts.get_account(actor, pk)
        serializer = AccountSerializer(target, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        user = accounts.update_account(actor, pk, **serializer.validated_data)
        return Response(UserDetailSerializer(user).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk, partial=True)

    def destroy(self, request, pk=None):
        accounts.delete_account(Identity.of(request.user), pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


def _get_active_user(user_id) -> User | None:
    try:
        user = User.objects.get(id=user_id)
    except (User.DoesNotExist, DjangoValidationError):
        return None
    return user if user.is_active else None


def _require_user(request):
    if not request.user or not request.user.is_authenticated:
        raise NotAuthenticated("Authentication required")
    return request.user


def _require_bearer_token(request) -> str:
    auth_header = request.META.get("HTTP_AUTHORIZATION", "")
    if not auth_header.startswith("Bearer "):
        raise NotAuthenticated("Missing token.")
    return auth_header.split(" ", 1)[1]
