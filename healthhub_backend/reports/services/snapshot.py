"""
Report snapshots.

At finalization everything a report shows is copied into JSON columns on the
ReportVersion: departments/panels/test rows, signatures, patient and visit.
Rendering reads only these snapshots, never live rows, so a finalized report
looks the same no matter how the catalogue, the patient or the signing
doctors change afterwards.

Snapshot layout (snapshot_version 1)::

    {
        'snapshot_version': 1,
        'report_version_id': ..., 'version_num': ...,
        'departments': [{department_id, department_name, department_header_text,
                         display_order, panels: [{panel_id, panel_name, display_name,
                         layout_type, display_order, tests: [...], interpretation_text}]}],
        'signatures': [{doctor_id, doctor_name, degrees, designation,
                        registration_number, signature_image_path,
                        show_lab_incharge_note, display_order}],
        'patient': {...},
        'visit': {...},
    }
"""

from __future__ import annotations

from django.db.models import Prefetch
from django.utils import timezone

from healthhub_backend.lab.models import InterpretationTemplate, PanelDefinition, PanelTestItem, SigningRule
from healthhub_backend.reports.models import ReportVersion, TestResult

SNAPSHOT_VERSION = 1


def _iso(value):
    return value.isoformat() if value else None


def resolve_interpretation(templates, value):
    """Text of the first template whose half-open range contains ``value``."""
    if value is None:
        return None
    for template in templates:
        if template.matches(value):
            return template.interpretation_text
    return None


def _test_row(result: TestResult, item: PanelTestItem) -> dict:
    test = result.test
    return {
        'test_id': test.pk,
        'test_code': test.code,
        'test_name': test.name,
        'value': result.value,
        'flag': result.flag or None,
        'notes': result.notes or None,
        'reference_min': test.reference_min,
        'reference_max': test.reference_max,
        'reference_unit': test.reference_unit or None,
        'method_text': item.method_text or None,
        'display_order': item.display_order,
        'indent_level': item.indent_level,
        'sub_group': item.sub_group,
        'interpretation_text': resolve_interpretation(test.active_interpretations, result.value),
    }


def _results(version: ReportVersion):
    return (
        TestResult.objects.using('default')
        .filter(report_version=version)
        .select_related('test')
        .prefetch_related(
            Prefetch(
                'test__panel_items',
                queryset=PanelTestItem.objects.using('default').select_related('panel', 'panel__department'),
            ),
            Prefetch(
                'test__interpretations',
                queryset=InterpretationTemplate.objects.using('default')
                .filter(is_active=True)
                .order_by('display_order', 'id'),
                to_attr='active_interpretations',
            ),
        )
        .order_by('id')
    )


def build_departments(version: ReportVersion) -> list[dict]:
    """Result rows grouped by panel, panels grouped by department, both sorted by display_order."""
    panels: dict[int, tuple[PanelDefinition, list]] = {}
    for result in _results(version):
        for item in result.test.panel_items.all():
            panel = item.panel
            panels.setdefault(panel.pk, (panel, []))[1].append(_test_row(result, item))

    departments: dict[int, dict] = {}
    for panel, rows in panels.values():
        department = panel.department
        rows.sort(key=lambda row: row['display_order'])

        interpretation_text = None
        if panel.layout_type == PanelDefinition.LAYOUT_INTERPRETATION_SINGLE:
            texts = [row['interpretation_text'] for row in rows if row['interpretation_text']]
            interpretation_text = '\n\n'.join(texts) or None

        entry = departments.setdefault(department.pk, {
            'department_id': department.pk,
            'department_name': department.name,
            'department_header_text': department.report_header_text,
            'display_order': department.display_order,
            'panels': [],
        })
        entry['panels'].append({
            'panel_id': panel.pk,
            'panel_name': panel.name,
            'display_name': panel.display_name,
            'layout_type': panel.layout_type,
            'display_order': panel.display_order,
            'tests': rows,
            'interpretation_text': interpretation_text,
        })

    ordered = sorted(departments.values(), key=lambda d: d['display_order'])
    for department in ordered:
        department['panels'].sort(key=lambda p: p['display_order'])
    return ordered


def build_signatures(department_ids) -> list[dict]:
    """Signing doctors of the report's departments, first rule per doctor wins."""
    rules = (
        SigningRule.objects.using('default')
        .filter(department_id__in=list(department_ids), is_active=True)
        .select_related('signing_doctor')
        .order_by('display_order', 'id')
    )
    signatures = {}
    for rule in rules:
        doctor = rule.signing_doctor
        if doctor.pk in signatures:
            continue
        signatures[doctor.pk] = {
            'doctor_id': doctor.pk,
            'doctor_name': doctor.name,
            'degrees': doctor.degrees,
            'designation': doctor.designation,
            'registration_number': doctor.registration_number or None,
            'signature_image_path': doctor.signature_image_path,
            'show_lab_incharge_note': rule.show_lab_incharge_note,
            'display_order': rule.display_order,
        }
    return sorted(signatures.values(), key=lambda s: s['display_order'])


def build_patient_snapshot(patient) -> dict:
    return {
        'patient_id': patient.pk,
        'patient_number': patient.patient_number,
        'name': patient.name,
        'gender': patient.gender,
        'year_of_birth': patient.year_of_birth,
        'date_of_birth': _iso(patient.date_of_birth),
        'age': patient.age,
        'phone': patient.primary_phone,
        'address': patient.address or None,
    }


def build_visit_snapshot(visit, *, finalized_at) -> dict:
    return {
        'visit_id': visit.pk,
        'bill_number': visit.bill_number,
        'branch_id': visit.branch_id,
        'branch_name': visit.branch.name,
        'branch_code': visit.branch.code,
        'referral_doctor_name': visit.referral_doctor.name if visit.referral_doctor_id else None,
        'created_at': _iso(visit.created_at),
        'finalized_at': _iso(finalized_at),
    }


def build_report_snapshot(version: ReportVersion, *, finalized_at=None) -> dict:
    """Assemble the full snapshot for ``version`` from live rows."""
    finalized_at = finalized_at or version.finalized_at or timezone.now()
    visit = version.report.visit
    departments = build_departments(version)
    return {
        'snapshot_version': SNAPSHOT_VERSION,
        'report_version_id': version.pk,
        'version_num': version.version_num,
        'departments': departments,
        'signatures': build_signatures(d['department_id'] for d in departments),
        'patient': build_patient_snapshot(visit.patient),
        'visit': build_visit_snapshot(visit, finalized_at=finalized_at),
    }


def snapshot_columns(snapshot: dict) -> dict:
    """ReportVersion column values for a snapshot."""
    return {
        'panels_snapshot': snapshot['departments'],
        'signatures_snapshot': snapshot['signatures'],
        'patient_snapshot': snapshot['patient'],
        'visit_snapshot': snapshot['visit'],
    }


def get_report_snapshot(version: ReportVersion) -> dict | None:
    """The stored snapshot, or None unless the version is finalized with all snapshot columns."""
    if version is None or not version.is_finalized:
        return None
    if version.panels_snapshot is None or not version.patient_snapshot or not version.visit_snapshot:
        return None
    return {
        'snapshot_version': SNAPSHOT_VERSION,
        'report_version_id': version.pk,
        'version_num': version.version_num,
        'departments': version.panels_snapshot,
        'signatures': version.signatures_snapshot or [],
        'patient': version.patient_snapshot,
        'visit': version.visit_snapshot,
    }
