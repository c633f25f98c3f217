"""DRF permission class applying the policy table's role gate per view action."""

from rest_framework import permissions

from .policy import role_permits
from .roles import Role


class RolePermission(permissions.BasePermission):
    """Check the caller's role against the operation mapped to the view action.

    Views declare ``operations``: a mapping of DRF action name (``list``,
    ``create``, ``approve``...) to ``policy.Operation``. Actions missing from the
    mapping are denied. Ownership and article-state conditions are not known
    here; services enforce them through ``policy.authorize`` once the target is
    loaded.
    """

    message = "You do not have permission to perform this action on this resource."

    def has_permission(self, request, view) -> bool:
        user = getattr(request, "user", None)
        if not user or not getattr(user, "is_authenticated", False):
            return False

        operation = self._get_operation(view)
        if operation is None:
            return False

        role = getattr(user, "role", None)
        if role not in Role.values:
            return False
        return role_permits(Role(role), operation)

    @staticmethod
    def _get_operation(view):
        operations = getattr(view, "operations", None) or {}
        action = getattr(view, "action", None)
        if action is None:
            # Plain APIViews have no action; key them by HTTP method instead.
            method = getattr(getattr(view, "request", None), "method", "") or ""
            action = method.lower()
        return operations.get(action)


__all__ = ["RolePermission"]
