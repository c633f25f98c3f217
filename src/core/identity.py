"""Caller identity passed into every portal service call.

The JWT middleware attaches a ``User`` to the request; views reduce it to an
``Identity`` so the services only ever see the id and role they decide on.
"""

from dataclasses import dataclass
from typing import Any

from rest_framework.exceptions import NotAuthenticated

from access_control.roles import Role


@dataclass(frozen=True)
class Identity:
    """Resolved ``(identity id, role)`` pair for the current caller."""

    id: Any
    role: Role

    @property
    def is_administrator(self) -> bool:
        return self.role == Role.ADMINISTRATOR

    @classmethod
    def of(cls, user) -> "Identity":
        """Build an identity from an authenticated user object.

        Raises ``NotAuthenticated`` for anonymous or missing users so views can
        call this unconditionally.
        """
        if user is None or not getattr(user, "is_authenticated", False):
            raise NotAuthenticated("Authentication required")
        return cls(id=user.pk, role=Role(user.role))


__all__ = ["Identity"]
