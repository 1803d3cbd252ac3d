import logging

from django.db import transaction

from .exceptions import NoActiveBranch
from .models import AuditLog

logger = logging.getLogger(__name__)


def get_client_ip(request) -> str:
    """Client IP, honouring the first X-Forwarded-For hop."""
    if request is None:
        return ''
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR', '')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR', '') or ''


def get_user_agent(request) -> str:
    if request is None:
        return ''
    return request.META.get('HTTP_USER_AGENT', '') or ''


def role_name_of(user) -> str:
    role = getattr(user, 'role', None)
    return getattr(role, 'name', '') or ''


def require_branch(user):
    """Return the user's active branch or raise NoActiveBranch."""
    branch = getattr(user, 'active_branch', None)
    if branch is None:
        raise NoActiveBranch()
    return branch


def log_action(
    *,
    user,
    branch,
    action_type,
    entity_type,
    entity_id,
    old_values=None,
    new_values=None,
    request=None,
):
    """Write an audit entry (insert-only). Failures are logged, never raised."""

    try:
        # savepoint: a failed insert must not poison the caller's transaction
        with transaction.atomic(using='default'):
            AuditLog.objects.using('default').create(
                user=user if getattr(user, 'is_authenticated', False) else None,
                branch=branch,
                role_name=role_name_of(user),
                action_type=action_type,
                entity_type=entity_type,
                entity_id=str(entity_id),
                old_values=old_values,
                new_values=new_values,
                ip_address=get_client_ip(request),
                user_agent=get_user_agent(request),
            )
    except Exception:
        logger.exception(
            'AuditLog write failed (action=%s, entity=%s#%s)',
            action_type, entity_type, entity_id,
        )
