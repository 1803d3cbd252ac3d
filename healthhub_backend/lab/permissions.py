from healthhub_backend.core.permissions import ALL_ROLES, RBACPermission


class LabTestPermission(RBACPermission):
    """RBAC for the lab test catalogue.

    - admin, owner, staff: read + write
    """

    read_roles = ALL_ROLES
    write_roles = ALL_ROLES
