from healthhub_backend.core.permissions import ALL_ROLES, RBACPermission


class DoctorPermission(RBACPermission):
    """RBAC for referral/clinic doctor endpoints.

    - admin, owner, staff: read + write
    """

    read_roles = ALL_ROLES
    write_roles = ALL_ROLES
