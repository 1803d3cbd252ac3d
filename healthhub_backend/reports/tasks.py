import logging

from celery import shared_task
from django.utils import timezone

from healthhub_backend.reports.models import ReportAccessToken

logger = logging.getLogger(__name__)


@shared_task
def purge_expired_access_tokens() -> int:
    """Delete report link tokens past their expiry. Returns the number removed."""
    deleted, _ = (
        ReportAccessToken.objects.using('default')
        .filter(expires_at__isnull=False, expires_at__lt=timezone.now())
        .delete()
    )
    if deleted:
        logger.info('Purged %s expired report access token(s)', deleted)
    return deleted
