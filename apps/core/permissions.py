"""
Role-Based Permissions for Newsdesk.

Maps StaffProfile.role to DRF permission classes. Category-scoped
workflow capabilities live in apps.editorial.capabilities; the classes
here only gate whole endpoints by role.

Usage:
    from apps.core.permissions import IsDeskStaff, IsAdmin

    class MyView(APIView):
        permission_classes = [IsAuthenticated, IsDeskStaff]
"""

import logging

from rest_framework.permissions import SAFE_METHODS, BasePermission

from apps.core.actors import ADMIN_ROLES, STAFF_ROLES, Role

logger = logging.getLogger(__name__)


def get_user_role(user):
    """
    Resolve a user's newsroom role.

    Superusers are SUPER_ADMIN. Users without a profile get the
    StaffProfile default (AUTHOR). Returns None for anonymous users.
    """
    if not user or not user.is_authenticated:
        return None

    if user.is_superuser:
        return Role.SUPER_ADMIN

    from apps.core.models import StaffProfile

    try:
        profile = user.staff_profile
    except StaffProfile.DoesNotExist:
        return Role.AUTHOR
    return Role.from_string(profile.role)


class RolePermission(BasePermission):
    """Base class for role-based permissions."""

    # Override in subclasses
    allowed_roles = frozenset()

    def has_permission(self, request, view):
        role = get_user_role(request.user)
        return role is not None and role in self.allowed_roles


class IsDeskStaff(RolePermission):
    """
    Allow editors and administrators.

    Desk staff can read every article, its review and its activity.
    """
    allowed_roles = STAFF_ROLES
    message = "Editor access required."


class IsAdmin(RolePermission):
    """Allow ADMIN and SUPER_ADMIN."""
    allowed_roles = ADMIN_ROLES
    message = "Admin access required."


class AdminReadSuperAdminWrite(BasePermission):
    """
    Read access for ADMIN and SUPER_ADMIN, write access for SUPER_ADMIN.

    Used for publishing rules and editorial assignments.
    """
    message = "Super admin access required for changes."

    def has_permission(self, request, view):
        role = get_user_role(request.user)
        if role is None:
            return False
        if request.method in SAFE_METHODS:
            return role in ADMIN_ROLES
        return role == Role.SUPER_ADMIN
