from healthhub_backend.core.permissions import ALL_ROLES, ROLE_OWNER, RBACPermission


class PayoutPermission(RBACPermission):
    """RBAC for the payout ledger.

    - admin, owner, staff: read + mark paid
    """

    read_roles = ALL_ROLES
    write_roles = ALL_ROLES


class PayoutDerivePermission(RBACPermission):
    """Deriving a payout is reserved to owners."""

    read_roles = ALL_ROLES
    write_roles = {ROLE_OWNER}
