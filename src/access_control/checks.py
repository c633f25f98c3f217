"""System checks for the authorization policy wiring."""

from django.core.checks import Error, register

from access_control.permissions import RolePermission
from access_control.policy import POLICY, Operation


@register()
def guarded_views_declare_operations(app_configs, **kwargs):
    """Ensure RolePermission-protected views map their actions to operations.

    Only the views known to this project are inspected. New guarded views
    should be added to the list below.
    """
    errors: list[Error] = []

    # Import here to avoid circular imports at module load time.
    from articles.views import ArticleViewSet, CategoryViewSet, DashboardView
    from authentication.views import AccountViewSet

    guarded_views = [ArticleViewSet, CategoryViewSet, DashboardView, AccountViewSet]

    for view_cls in guarded_views:
        permission_classes = getattr(view_cls, "permission_classes", [])
        if RolePermission not in permission_classes:
            continue
        operations = getattr(view_cls, "operations", None)
        if not operations:
            errors.append(
                Error(
                    f"{view_cls.__name__} uses RolePermission but does not "
                    f"define operations.",
                    obj=view_cls,
                    id="access_control.E001",
                )
            )
            continue
        for action, operation in operations.items():
            if not isinstance(operation, Operation) or operation not in POLICY:
                errors.append(
                    Error(
                        f"{view_cls.__name__}.{action} maps to an operation "
                        f"missing from the policy table.",
                        obj=view_cls,
                        id="access_control.E002",
                    )
                )

    return errors
