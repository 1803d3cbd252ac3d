"""
Sequential number generation.

Every human-facing number (patient, doctor, bill) comes from a row in
NumberSequence. The row is locked with SELECT ... FOR UPDATE NOWAIT, so
concurrent requests either wait their turn via retry or fail fast; numbers
within a sequence are gapless and never reused.

Formats:
    patient          P-00001
    referralDoctor   RD-00001
    clinicDoctor     CD-00001
    diagnostic-<BR>  D-<BR>-00001
    clinic-<BR>      C-<BR>-00001
"""

from __future__ import annotations

import logging
import random
import time

from django.conf import settings
from django.db import DatabaseError, IntegrityError, connection, transaction

from healthhub_backend.core.exceptions import NumberSequenceExhausted
from healthhub_backend.core.models import NumberSequence

logger = logging.getLogger(__name__)

# lock_not_available (NOWAIT), serialization_failure, deadlock_detected
RETRYABLE_SQLSTATES = frozenset({'55P03', '40001', '40P01'})
RETRYABLE_MESSAGES = ('could not obtain lock', 'deadlock', 'write conflict', 'database is locked')


def _is_retryable(exc: DatabaseError) -> bool:
    cause = exc.__cause__
    sqlstate = getattr(cause, 'sqlstate', None) or getattr(cause, 'pgcode', None)
    if sqlstate in RETRYABLE_SQLSTATES:
        return True
    message = str(exc).lower()
    return any(marker in message for marker in RETRYABLE_MESSAGES)


def backoff_delay_ms(attempt: int) -> float:
    """Exponential backoff with jitter, capped at NUMBER_SEQUENCE_MAX_DELAY_MS."""
    conf = settings.HEALTHHUB
    base = conf['NUMBER_SEQUENCE_BASE_DELAY_MS']
    return min(base * 2 ** (attempt - 1) + random.random() * base, conf['NUMBER_SEQUENCE_MAX_DELAY_MS'])


def _lock_sequence(sequence_id: str) -> NumberSequence | None:
    # NOWAIT is only honoured by PostgreSQL; other backends serialise writes themselves.
    nowait = connection.vendor == 'postgresql'
    return (
        NumberSequence.objects.using('default')
        .select_for_update(nowait=nowait)
        .filter(pk=sequence_id)
        .first()
    )


def _allocate(sequence_id: str, prefix: str) -> str:
    with transaction.atomic(using='default'):
        sequence = _lock_sequence(sequence_id)
        if sequence is None:
            try:
                with transaction.atomic(using='default'):
                    NumberSequence.objects.using('default').create(
                        id=sequence_id,
                        prefix=prefix,
                        last_value=0,
                    )
            except IntegrityError:
                # another request created the row first
                logger.debug('Sequence %s created concurrently', sequence_id)
            sequence = _lock_sequence(sequence_id)
            if sequence is None:
                raise DatabaseError(f'Failed to create or find sequence {sequence_id!r}')

        sequence.last_value += 1
        sequence.save(using='default', update_fields=['last_value', 'updated_at'])
        return f"{prefix}-{sequence.last_value:05d}"


def generate_next_number(*, sequence_id: str, prefix: str, max_retries: int | None = None) -> str:
    """
    Allocate the next number of a sequence.

    Args:
        sequence_id: Sequence key, e.g. 'patient' or 'diagnostic-CNT'
        prefix: Display prefix, e.g. 'P' or 'D-CNT'
        max_retries: Override for NUMBER_SEQUENCE_MAX_RETRIES

    Returns:
        Formatted number such as 'P-00042'

    Raises:
        NumberSequenceExhausted: If lock contention persisted for every attempt
        DatabaseError: For any non-retryable database failure
    """
    if max_retries is None:
        max_retries = settings.HEALTHHUB['NUMBER_SEQUENCE_MAX_RETRIES']

    last_error: DatabaseError | None = None
    for attempt in range(1, max_retries + 1):
        try:
            return _allocate(sequence_id, prefix)
        except DatabaseError as exc:
            if not _is_retryable(exc):
                raise
            last_error = exc
            if attempt == max_retries:
                break
            delay = backoff_delay_ms(attempt)
            logger.warning(
                'Sequence %s busy (attempt %s/%s), retrying in %.0f ms',
                sequence_id, attempt, max_retries, delay,
            )
            time.sleep(delay / 1000)

    raise NumberSequenceExhausted(
        f'Failed to generate number for {sequence_id!r} after {max_retries} attempts: {last_error}'
    )


def generate_patient_number() -> str:
    return generate_next_number(sequence_id='patient', prefix='P')


def generate_referral_doctor_number() -> str:
    return generate_next_number(sequence_id='referralDoctor', prefix='RD')


def generate_clinic_doctor_number() -> str:
    return generate_next_number(sequence_id='clinicDoctor', prefix='CD')


def generate_diagnostic_bill_number(branch_code: str) -> str:
    """Branch-scoped: D-CNT-00001, D-JGG-00001, ..."""
    return generate_next_number(sequence_id=f'diagnostic-{branch_code}', prefix=f'D-{branch_code}')


def generate_clinic_bill_number(branch_code: str) -> str:
    """Branch-scoped: C-CNT-00001, C-JGG-00001, ..."""
    return generate_next_number(sequence_id=f'clinic-{branch_code}', prefix=f'C-{branch_code}')
