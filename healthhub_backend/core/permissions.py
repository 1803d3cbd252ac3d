"""Core permissions for RBAC (Role-Based Access Control).

This module provides base permission classes and role-specific permissions
following the project's RBAC pattern with read_roles/write_roles.

Standard roles: admin, owner, staff
"""

from rest_framework.permissions import BasePermission, SAFE_METHODS

ROLE_ADMIN = 'admin'
ROLE_OWNER = 'owner'
ROLE_STAFF = 'staff'

ALL_ROLES = {ROLE_ADMIN, ROLE_OWNER, ROLE_STAFF}


class RBACPermission(BasePermission):
    """Base class for RBAC permissions with read_roles/write_roles pattern.

    Subclasses should define:
    - read_roles: set of role names that can perform GET/HEAD/OPTIONS
    - write_roles: set of role names that can perform POST/PUT/PATCH/DELETE

    Example:
        class MyPermission(RBACPermission):
            read_roles = {"owner", "staff"}
            write_roles = {"owner"}
    """

    read_roles: set = set()
    write_roles: set = set()

    def _role_name(self, request):
        user = getattr(request, "user", None)
        role = getattr(user, "role", None)
        return getattr(role, "name", None)

    def has_permission(self, request, view):
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return False

        role_name = self._role_name(request)
        if not role_name:
            return False

        if request.method in SAFE_METHODS:
            return role_name in self.read_roles

        return role_name in self.write_roles

    def has_object_permission(self, request, view, obj):
        # Branch scoping is applied in the querysets, not here.
        return True


class IsRole(BasePermission):
    """Simple role check, independent of the HTTP method."""

    allowed_roles: list = []

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        if not getattr(user, 'role', None):
            return False
        return user.role.name in self.allowed_roles


class IsAdmin(IsRole):
    """Permission: user must have admin role."""

    allowed_roles = [ROLE_ADMIN]


class IsOwner(IsRole):
    """Permission: user must have owner role."""

    allowed_roles = [ROLE_OWNER]


class AnyRolePermission(RBACPermission):
    """Any authenticated user with a role may read and write."""

    read_roles = ALL_ROLES
    write_roles = ALL_ROLES
