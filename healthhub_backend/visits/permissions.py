from healthhub_backend.core.permissions import ALL_ROLES, RBACPermission


class VisitPermission(RBACPermission):
    """RBAC for diagnostic/clinic visits, bills and report results.

    - admin, owner, staff: read + write
    """

    read_roles = ALL_ROLES
    write_roles = ALL_ROLES
