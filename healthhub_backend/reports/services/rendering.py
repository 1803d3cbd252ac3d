"""
Report HTML rendering.

Everything here works on a snapshot dict (see snapshot.py) and never
touches the database, so rendering the same snapshot twice yields the same
bytes. Screen and print share one template; ``mode`` only switches CSS and
the action buttons.
"""

from __future__ import annotations

from urllib.parse import quote

from django.conf import settings
from django.template.loader import render_to_string
from django.utils import timezone
from django.utils.dateparse import parse_datetime

MODE_SCREEN = 'screen'
MODE_PRINT = 'print'
MODES = (MODE_SCREEN, MODE_PRINT)

# Legacy CBP snapshots carry no sub_group
DIFFERENTIAL_CODES = ('NEUTRO', 'LYMPH', 'MONO', 'EOSINO', 'BASO')
SMEAR_CODE = 'PS'

WARNING_RATIO = 0.2

GENDER_LABELS = {'M': 'Male', 'F': 'Female', 'O': 'Other'}

PANEL_TEMPLATES = {
    'STANDARD_TABLE': 'reports/panels/standard_table.html',
    'CBP': 'reports/panels/cbp.html',
    'WIDAL': 'reports/panels/widal.html',
    'INTERPRETATION_SINGLE': 'reports/panels/interpretation_single.html',
    'TEXT_ONLY': 'reports/panels/text_only.html',
}

QR_IMAGE_URL = 'https://api.qrserver.com/v1/create-qr-code/?size=80x80&data={}'


def format_number(value) -> str:
    if value is None:
        return ''
    value = float(value)
    return str(int(value)) if value.is_integer() else str(value)


def format_value(value, unit=None) -> str:
    """Integers bare, otherwise two decimals; '-' when there is no value."""
    if value is None:
        return '-'
    value = float(value)
    formatted = str(int(value)) if value.is_integer() else f'{value:.2f}'
    return f'{formatted} {unit}' if unit else formatted


def format_reference(min_value, max_value, unit=None) -> str:
    suffix = f' {unit}' if unit else ''
    if min_value is None and max_value is None:
        return '-'
    if min_value is None:
        return f'< {format_number(max_value)}{suffix}'
    if max_value is None:
        return f'> {format_number(min_value)}{suffix}'
    return f'{format_number(min_value)} - {format_number(max_value)}{suffix}'


def value_class(value, min_value, max_value) -> str:
    """
    CSS class for a result value.

    'value-normal' inside the range, 'value-warning' when the deviation is at
    most 20% of the range (or of the violated bound when the range is
    one-sided) and 'value-critical' beyond that. Empty without value or range.
    """
    if value is None or (min_value is None and max_value is None):
        return ''

    above = max_value is not None and value > max_value
    below = min_value is not None and value < min_value
    if not above and not below:
        return 'value-normal'

    span = max_value - min_value if min_value is not None and max_value is not None else None
    if above:
        deviation = value - max_value
        threshold = span if span is not None else max_value
    else:
        deviation = min_value - value
        threshold = span if span is not None else min_value
    return 'value-warning' if deviation <= threshold * WARNING_RATIO else 'value-critical'


def gender_label(gender) -> str:
    return GENDER_LABELS.get(gender, gender or '')


def format_date(iso_value, fmt='%d/%m/%Y') -> str:
    if not iso_value:
        return ''
    parsed = parse_datetime(iso_value)
    if parsed is None:
        return iso_value
    if timezone.is_aware(parsed):
        parsed = timezone.localtime(parsed)
    return parsed.strftime(fmt)


def _row(test: dict) -> dict:
    return {
        **test,
        'value_display': format_value(test.get('value')),
        'value_class': value_class(test.get('value'), test.get('reference_min'), test.get('reference_max')),
        'unit_display': test.get('reference_unit') or '',
        'reference_display': format_reference(test.get('reference_min'), test.get('reference_max')),
    }


def split_cbp_rows(tests: list[dict]):
    """Split CBP rows into (main, differential, smear)."""
    main, differential, smear = [], [], None
    for test in tests:
        sub_group = test.get('sub_group')
        code = test.get('test_code')
        if sub_group:
            group = sub_group
        elif code in DIFFERENTIAL_CODES:
            group = 'DIFFERENTIAL'
        elif code == SMEAR_CODE:
            group = 'SMEAR'
        else:
            group = 'MAIN'

        if group == 'DIFFERENTIAL':
            differential.append(test)
        elif group == 'SMEAR':
            smear = smear or test
        else:
            main.append(test)
    return main, differential, smear


def widal_titre(value) -> str:
    return f'1:{format_number(value)}' if value is not None else 'Negative'


def build_panel_context(panel: dict) -> dict:
    layout = panel.get('layout_type') or 'STANDARD_TABLE'
    rows = [_row(test) for test in panel.get('tests', [])]
    context = {
        **panel,
        'template_name': PANEL_TEMPLATES.get(layout, PANEL_TEMPLATES['STANDARD_TABLE']),
        'rows': rows,
        'first_row': rows[0] if rows else None,
    }
    if layout == 'CBP':
        main, differential, smear = split_cbp_rows(rows)
        context.update(main_rows=main, differential_rows=differential, smear=smear)
    elif layout == 'WIDAL':
        for row in rows:
            row['titre'] = widal_titre(row.get('value'))
    elif layout == 'TEXT_ONLY' and rows:
        first = rows[0]
        first['text'] = first.get('notes') or format_value(first.get('value'), first.get('reference_unit'))
    return context


def build_render_context(snapshot: dict, *, mode=MODE_SCREEN, base_url='', report_token='', hide_actions=False) -> dict:
    if mode not in MODES:
        mode = MODE_SCREEN
    patient = snapshot['patient']
    visit = snapshot['visit']
    report_url = f'{base_url}/r/{report_token}' if report_token else ''
    lab = settings.HEALTHHUB

    return {
        'mode': mode,
        'patient': patient,
        'visit': visit,
        'gender_label': gender_label(patient.get('gender')),
        'visit_date': format_date(visit.get('created_at')),
        'departments': [
            {**department, 'panels': [build_panel_context(p) for p in department.get('panels', [])]}
            for department in snapshot.get('departments', [])
        ],
        # lab-incharge placeholders without an image are the blank pen-signature box
        'signatures': [
            sig for sig in snapshot.get('signatures', [])
            if not sig.get('show_lab_incharge_note') or sig.get('signature_image_path')
        ],
        'report_url': report_url,
        'qr_image_url': QR_IMAGE_URL.format(quote(report_url, safe='')) if report_url else '',
        'pdf_url': f'{report_url}/pdf/' if report_url else '',
        'show_actions': mode == MODE_SCREEN and not hide_actions,
        'lab_name': lab.get('LAB_NAME', ''),
        'lab_address': lab.get('LAB_ADDRESS', ''),
        'lab_phone': lab.get('LAB_PHONE', ''),
    }


def render_report_html(snapshot: dict, *, mode=MODE_SCREEN, base_url='', report_token='', hide_actions=False) -> str:
    context = build_render_context(
        snapshot,
        mode=mode,
        base_url=base_url,
        report_token=report_token,
        hide_actions=hide_actions,
    )
    return render_to_string('reports/report.html', context)


def render_error_html(message: str, *, title='Report not available') -> str:
    return render_to_string('reports/error.html', {'title': title, 'message': message})
