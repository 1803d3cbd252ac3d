from django.contrib.auth import get_user_model
from django.db import transaction

from healthhub_backend.core.models import AuditLog, Branch, Role
from healthhub_backend.core.permissions import ROLE_ADMIN, ROLE_OWNER, ROLE_STAFF

User = get_user_model()

ROLE_DEFINITIONS = [
    (ROLE_ADMIN, "Admin"),
    (ROLE_OWNER, "Owner"),
    (ROLE_STAFF, "Staff"),
]

BRANCH_DEFINITIONS = [
    ("CNT", "Central", "Main Road, Hyderabad"),
    ("IDPL", "IDPL Colony", "IDPL Colony, Hyderabad"),
    ("JGG", "Jagadgiri Gutta", "Jagadgirigutta, Hyderabad"),
    ("BLN", "Balanagar", "Balanagar, Hyderabad"),
]


def seed_core(flush: bool = False) -> dict:
    """
    Seeds:
    - roles
    - branches CNT, IDPL, JGG, BLN
    - users admin, owner, staff

    With flush=True audit logs and the non-superuser seed users
    (email ending in '@seed.local') are deleted first.
    """
    stats: dict[str, int] = {}

    with transaction.atomic():
        if flush:
            AuditLog.objects.all().delete()
            User.objects.filter(is_superuser=False, email__endswith="@seed.local").delete()

        roles = _seed_roles()
        stats["core_roles"] = len(roles)

        branches = _seed_branches()
        stats["core_branches"] = len(branches)

        users = _seed_users(roles, branches)
        stats["core_users"] = len(users)

    return stats


def _seed_roles() -> dict[str, Role]:
    roles = {}
    for name, label in ROLE_DEFINITIONS:
        role, _created = Role.objects.get_or_create(name=name, defaults={"label": label})
        roles[name] = role
    return roles


def _seed_branches() -> list[Branch]:
    branches = []
    for code, name, address in BRANCH_DEFINITIONS:
        branch, _created = Branch.objects.get_or_create(
            code=code, defaults={"name": name, "address": address}
        )
        branches.append(branch)
    return branches


def _seed_users(roles: dict[str, Role], branches: list[Branch]) -> list:
    main_branch = branches[0]
    users = []

    admin = User.objects.filter(username="admin").first()
    if admin is None:
        admin = User.objects.create_superuser(
            username="admin",
            email="admin@healthhub.local",
            password="admin",
        )
    admin.role = roles[ROLE_ADMIN]
    admin.active_branch = admin.active_branch or main_branch
    admin.save()
    users.append(admin)

    for username, role_name, first_name, last_name in [
        ("owner", ROLE_OWNER, "Srinivas", "Rao"),
        ("staff", ROLE_STAFF, "Priya", "Reddy"),
    ]:
        user = User.objects.filter(username=username).first()
        if user is None:
            user = User.objects.create_user(
                username=username,
                email=f"{username}@seed.local",
                password="test1234",
                first_name=first_name,
                last_name=last_name,
            )
        user.role = roles[role_name]
        user.active_branch = user.active_branch or main_branch
        user.save()
        users.append(user)

    return users
