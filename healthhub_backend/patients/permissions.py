from healthhub_backend.core.permissions import ALL_ROLES, RBACPermission


class PatientPermission(RBACPermission):
    """RBAC for Patient endpoints.

    - admin, owner, staff: read + write
    - staff needs a change_reason for identity edits (enforced in the service)
    """

    read_roles = ALL_ROLES
    write_roles = ALL_ROLES
