from healthhub_backend.core.permissions import ALL_ROLES, RBACPermission


class ReportPermission(RBACPermission):
    """RBAC for result entry, finalization, amendments and staff rendering.

    - admin, owner, staff: read + write
    """

    read_roles = ALL_ROLES
    write_roles = ALL_ROLES
