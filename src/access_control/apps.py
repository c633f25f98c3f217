from django.apps import AppConfig


class AccessControlConfig(AppConfig):
    """Roles, the operation policy table, and the DRF role gate.

    Holds no models; ``ready`` registers the wiring checks for guarded views.
    """

    name = "access_control"
    verbose_name = "Access control"

    def ready(self) -> None:
        from . import checks  # noqa: F401
