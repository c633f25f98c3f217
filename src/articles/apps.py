from django.apps import AppConfig


class ArticlesConfig(AppConfig):
    """Categories, moderated articles, view ledger, and comments."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "articles"
