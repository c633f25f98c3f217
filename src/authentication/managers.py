"""User manager: bcrypt hashing and role-aware account creation."""

import uuid

import bcrypt
from django.conf import settings
from django.contrib.auth.base_user import BaseUserManager

from access_control.roles import Role


class UserManager(BaseUserManager):
    use_in_migrations = True

    def _create_user(self, email: str, password: str | None, **extra_fields):
        if not email:
            raise ValueError("The Email must be set")
        if not password:
            raise ValueError("Password must be provided")
        user = self.model(id=uuid.uuid4(), email=self.normalize_email(email), **extra_fields)
        user.password_hash = self.hash_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email: str, password: str | None = None, **extra_fields):
        """Create a Contributor or Consumer (the default) account."""
        extra_fields.setdefault("role", Role.CONSUMER)
        if extra_fields["role"] == Role.ADMINISTRATOR:
            raise ValueError("Use create_superuser to provision an Administrator.")
        extra_fields.update(is_staff=False, is_superuser=False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email: str, password: str | None = None, **extra_fields):
        """Create an Administrator.

        Only the provisioning commands reach this; no API endpoint does.
        """
        extra_fields.update(role=Role.ADMINISTRATOR, is_staff=True, is_superuser=True)
        extra_fields.setdefault("is_active", True)
        return self._create_user(email, password, **extra_fields)

    @staticmethod
    def hash_password(raw_password: str) -> str:
        salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
        return bcrypt.hashpw(raw_password.encode(), salt).decode()

    @staticmethod
    def verify_password(user, raw_password: str) -> bool:
        """Check ``raw_password`` against the stored hash; malformed hashes never match."""
        if not user.password_hash or raw_password is None:
            return False
        try:
            return bcrypt.checkpw(raw_password.encode(), user.password_hash.encode())
        except ValueError:
            return False


__all__ = ["UserManager"]
