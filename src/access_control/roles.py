"""Portal roles."""

from django.db import models


class Role(models.TextChoices):
    """Exactly one role is attached to every identity."""

    ADMINISTRATOR = "administrator", "Administrator"
    CONTRIBUTOR = "contributor", "Contributor"
    CONSUMER = "consumer", "Consumer"


# Roles that account-management endpoints may assign. Administrators are
# provisioned out-of-band with the ``create_administrator`` command.
ASSIGNABLE_ROLES = (Role.CONTRIBUTOR, Role.CONSUMER)


__all__ = ["Role", "ASSIGNABLE_ROLES"]
