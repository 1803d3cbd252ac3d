"""Lab test catalogue maintenance. Prices arrive in rupees and are stored in paise."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.db import transaction
from django.db.models import Prefetch

from healthhub_backend.core.models import AuditLog
from healthhub_backend.core.utils import log_action
from healthhub_backend.lab.exceptions import DuplicateTestCode, InvalidLabTestData, LabTestNotFound
from healthhub_backend.lab.models import LabTest


def rupees_to_paise(value) -> int:
    try:
        rupees = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidLabTestData('Price must be a number', field='price')
    if rupees < 0:
        raise InvalidLabTestData('Price cannot be negative', field='price')
    return int((rupees * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def _snapshot(test: LabTest) -> dict:
    return {
        'code': test.code,
        'name': test.name,
        'price_in_paise': test.price_in_paise,
        'reference_min': test.reference_min,
        'reference_max': test.reference_max,
        'reference_unit': test.reference_unit,
        'is_active': test.is_active,
    }


def _ensure_code_free(code: str, *, exclude_pk=None) -> None:
    qs = LabTest.objects.using('default').filter(code=code)
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    if qs.exists():
        raise DuplicateTestCode(f'Test with code {code} already exists', field='code')


def _apply_reference(test: LabTest, reference: dict | None) -> None:
    if not reference:
        return
    if 'min' in reference:
        test.reference_min = reference['min']
    if 'max' in reference:
        test.reference_max = reference['max']
    if 'unit' in reference:
        test.reference_unit = reference['unit'] or ''
    if (
        test.reference_min is not None
        and test.reference_max is not None
        and test.reference_min > test.reference_max
    ):
        raise InvalidLabTestData('Reference min cannot exceed max', field='reference_range')


def list_lab_tests(*, include_inactive=False):
    """Top-level tests (no parent) with their sub-tests prefetched."""
    sub_tests = LabTest.objects.using('default').order_by('name')
    qs = LabTest.objects.using('default').filter(parent_test__isnull=True)
    if not include_inactive:
        qs = qs.filter(is_active=True)
        sub_tests = sub_tests.filter(is_active=True)
    return qs.prefetch_related(Prefetch('sub_tests', queryset=sub_tests))


def get_lab_test(test_id) -> LabTest:
    try:
        return LabTest.objects.using('default').get(pk=test_id)
    except (LabTest.DoesNotExist, ValueError, TypeError):
        raise LabTestNotFound()


def create_lab_test(*, data: dict, user, request=None) -> LabTest:
    name = (data.get('name') or '').strip()
    code = (data.get('code') or '').strip().upper()
    if not name or not code or data.get('price') is None:
        raise InvalidLabTestData('Name, code, and price are required')
    _ensure_code_free(code)

    test = LabTest(name=name, code=code, price_in_paise=rupees_to_paise(data['price']))
    _apply_reference(test, data.get('reference_range'))
    if data.get('parent_test_id'):
        test.parent_test = get_lab_test(data['parent_test_id'])
    test.is_panel = bool(data.get('is_panel', False))

    with transaction.atomic(using='default'):
        test.save(using='default')

    log_action(
        user=user,
        branch=getattr(user, 'active_branch', None),
        action_type=AuditLog.ACTION_CREATE,
        entity_type='LabTest',
        entity_id=test.pk,
        new_values=_snapshot(test),
        request=request,
    )
    return test


def update_lab_test(*, test: LabTest, data: dict, user, request=None) -> LabTest:
    old_values = _snapshot(test)

    if data.get('code'):
        code = data['code'].strip().upper()
        if code != test.code:
            _ensure_code_free(code, exclude_pk=test.pk)
        test.code = code
    if 'name' in data:
        name = (data['name'] or '').strip()
        if not name:
            raise InvalidLabTestData('Name cannot be empty', field='name')
        test.name = name
    if data.get('price') is not None:
        test.price_in_paise = rupees_to_paise(data['price'])
    _apply_reference(test, data.get('reference_range'))
    if 'is_active' in data:
        test.is_active = bool(data['is_active'])

    test.save(using='default')
    log_action(
        user=user,
        branch=getattr(user, 'active_branch', None),
        action_type=AuditLog.ACTION_UPDATE,
        entity_type='LabTest',
        entity_id=test.pk,
        old_values=old_values,
        new_values=_snapshot(test),
        request=request,
    )
    return test


def deactivate_lab_test(*, test: LabTest, user, request=None) -> LabTest:
    test.is_active = False
    test.save(using='default', update_fields=['is_active', 'updated_at'])
    log_action(
        user=user,
        branch=getattr(user, 'active_branch', None),
        action_type=AuditLog.ACTION_DELETE,
        entity_type='LabTest',
        entity_id=test.pk,
        old_values={'is_active': True},
        new_values={'is_active': False},
        request=request,
    )
    return test
