"""Account management performed by Administrators.

Administrator identities are provisioned out-of-band; none of these
operations can create one, promote to one, or modify one.
"""

import logging
from typing import Any

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction

from access_control.policy import Operation, authorize
from access_control.roles import Role
from core import errors
from core.identity import Identity
from .managers import UserManager

logger = logging.getLogger(__name__)

User = get_user_model()


def _check_assignable(role: Any) -> Role:
    if role == Role.ADMINISTRATOR:
        raise errors.ValidationError("The Administrator role cannot be assigned through account management.")
    if role not in Role.values:
        raise errors.ValidationError(f"Unknown role: {role!r}.")
    return Role(role)


def _check_email_free(email: str, exclude_pk=None) -> None:
    qs = User.objects.filter(email__iexact=email)
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    if qs.exists():
        raise errors.ConflictError("Email already exists.")


def _get_managed_user(user_id):
    try:
        user = User.objects.get(pk=user_id)
    except (User.DoesNotExist, DjangoValidationError):
        raise errors.NotFoundError("User not found.")
    if user.is_administrator:
        raise errors.ValidationError("Administrator accounts cannot be modified through account management.")
    return user


def list_accounts(actor: Identity):
    authorize(actor, Operation.MANAGE_ACCOUNTS)
    return User.objects.all()


def get_account(actor: Identity, user_id):
    authorize(actor, Operation.MANAGE_ACCOUNTS)
    try:
        return User.objects.get(pk=user_id)
    except (User.DoesNotExist, DjangoValidationError):
        raise errors.NotFoundError("User not found.")


def create_account(
    actor: Identity,
    *,
    email: str,
    password: str,
    name: str,
    role: Any = Role.CONSUMER,
    employee_id: str = "",
):
    """Create a Contributor or Consumer account."""

    authorize(actor, Operation.MANAGE_ACCOUNTS)
    role = _check_assignable(role)
    email = UserManager.normalize_email(email)

    with transaction.atomic():
        _check_email_free(email)
        user = User.objects.create_user(
            email=email,
            password=password,
            name=name,
            role=role,
            employee_id=employee_id or "",
        )
    logger.info("Account %s created by %s with role %s", user.pk, actor.id, role)
    return user


def update_account(actor: Identity, user_id, **changes):
    """Apply ``changes`` (email, name, employee_id, role, is_active, password)."""

    authorize(actor, Operation.MANAGE_ACCOUNTS)
    if "role" in changes:
        changes["role"] = _check_assignable(changes["role"])

    with transaction.atomic():
        user = _get_managed_user(user_id)
        if "email" in changes:
            changes["email"] = UserManager.normalize_email(changes["email"])
            _check_email_free(changes["email"], exclude_pk=user.pk)

        password = changes.pop("password", None)
        if password:
            user.set_password(password)
            # Existing tokens stop working once the password changes.
            user.token_version += 1

        role_changed = "role" in changes and changes["role"] != user.role
        for field, value in changes.items():
            setattr(user, field, value)
        if role_changed and not password:
            user.token_version += 1
        user.save()

    logger.info("Account %s updated by %s (%s)", user.pk, actor.id, ", ".join(sorted(changes)) or "password")
    return user


def delete_account(actor: Identity, user_id) -> None:
    authorize(actor, Operation.MANAGE_ACCOUNTS)
    with transaction.atomic():
        user = _get_managed_user(user_id)
        user.delete()
    logger.info("Account %s deleted by %s", user_id, actor.id)


__all__ = [
    "list_accounts",
    "get_account",
    "create_account",
    "update_account",
    "delete_account",
]
