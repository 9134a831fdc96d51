"""Role-based permissions for administrative endpoints."""

from __future__ import annotations

from django.conf import settings
from rest_framework.permissions import BasePermission


class IsAdminRole(BasePermission):
    """Allow only users holding an administrative role.

    Roles are Django groups named in ``settings.ADMIN_ROLES``
    (``admin`` and ``superadmin`` by default).  Superusers always pass.
    """

    message = "Admin or superadmin role required."

    def has_permission(self, request, view) -> bool:
        user = request.user
        if not user or not user.is_authenticated:
            return False
        if getattr(user, "is_superuser", False):
            return True
        groups = getattr(user, "groups", None)
        if groups is None:
            return False
        return groups.filter(name__in=settings.ADMIN_ROLES).exists()
