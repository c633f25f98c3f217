"""App configuration for shared portal plumbing."""

from django.apps import AppConfig


class CoreConfig(AppConfig):
    """Settings, URL root, JWT middleware, error envelope, and caller identity."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "core"
