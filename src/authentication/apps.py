"""App configuration for identity and account management."""

from django.apps import AppConfig


class AuthenticationConfig(AppConfig):
    """Holds the portal User model, token issuance, and account management."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "authentication"
    verbose_name = "Identity and accounts"
