"""
PDF rendering with reportlab platypus.

Mirrors the HTML layout: patient block, departments with one table per
panel, the clinical note and the signature row. Input is the snapshot
only.
"""

from __future__ import annotations

from io import BytesIO
from xml.sax.saxutils import escape

from django.conf import settings
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from healthhub_backend.reports.services.rendering import (
    build_panel_context,
    format_date,
    gender_label,
)

VALUE_COLORS = {
    'value-normal': colors.HexColor('#1b7f3b'),
    'value-warning': colors.HexColor('#d9822b'),
    'value-critical': colors.HexColor('#c0392b'),
}

HEADER_ROW = ['TEST', 'VALUE', 'UNIT', 'REFERENCE RANGE']
COLUMN_WIDTHS = [75 * mm, 30 * mm, 25 * mm, 50 * mm]


def _styles():
    base = getSampleStyleSheet()
    return {
        'title': ParagraphStyle('LabTitle', parent=base['Title'], fontSize=16, spaceAfter=2),
        'small': ParagraphStyle('Small', parent=base['Normal'], fontSize=8, alignment=TA_CENTER),
        'department': ParagraphStyle(
            'Department', parent=base['Heading2'], fontSize=12, alignment=TA_CENTER, spaceBefore=8,
        ),
        'panel': ParagraphStyle('Panel', parent=base['Heading3'], fontSize=10, spaceBefore=6, spaceAfter=2),
        'cell': ParagraphStyle('Cell', parent=base['Normal'], fontSize=9, leading=11),
        'normal': base['Normal'],
    }


def _p(text, style):
    return Paragraph(escape(str(text or '')), style)


def _table(data, widths, value_styles=()):
    table = Table(data, colWidths=widths, repeatRows=1)
    commands = [
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('LINEBELOW', (0, 0), (-1, 0), 0.75, colors.black),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 2),
        ('TOPPADDING', (0, 0), (-1, -1), 2),
    ]
    commands.extend(value_styles)
    table.setStyle(TableStyle(commands))
    return table


def _result_rows(rows, styles, *, start=1, unit_override=None, indent=0):
    data, value_styles = [], []
    for offset, row in enumerate(rows):
        name = '&nbsp;' * 4 * (indent or row.get('indent_level') or 0) + escape(row.get('test_name') or '')
        if row.get('method_text'):
            name += f'<br/><font size="7" color="grey">{escape(row["method_text"])}</font>'
        data.append([
            Paragraph(name, styles['cell']),
            row['value_display'],
            unit_override or row['unit_display'],
            row['reference_display'],
        ])
        color = VALUE_COLORS.get(row['value_class'])
        if color is not None:
            value_styles.append(('TEXTCOLOR', (1, start + offset), (1, start + offset), color))
    return data, value_styles


def _panel_flowables(panel: dict, styles) -> list:
    layout = panel.get('layout_type')
    rows = panel['rows']
    flowables = [_p(panel.get('display_name'), styles['panel'])]

    if layout == 'WIDAL':
        data = [['ANTIGEN', 'TITRE']] + [[row.get('test_name'), row['titre']] for row in rows]
        flowables.append(_table(data, [105 * mm, 75 * mm]))
        flowables.append(_p('Note: Titre of 1:80 or above is considered significant for diagnosis.', styles['cell']))
        return flowables

    if layout == 'TEXT_ONLY':
        first = panel.get('first_row')
        if first:
            flowables.append(Paragraph(
                f'<b>{escape(first.get("test_name") or "")}:</b> {escape(first["text"])}', styles['cell'],
            ))
        return flowables

    if layout == 'CBP':
        data, value_styles = _result_rows(panel['main_rows'], styles)
        if panel['differential_rows']:
            data.append([Paragraph('<b>DIFFERENTIAL COUNT</b>', styles['cell']), '', '', ''])
            diff, diff_styles = _result_rows(
                panel['differential_rows'], styles, start=len(data) + 1, unit_override='%', indent=1,
            )
            data.extend(diff)
            value_styles.extend(diff_styles)
        smear = panel.get('smear')
        if smear and smear.get('notes'):
            data.append([Paragraph('<b>PERIPHERAL SMEAR EXAMINATION</b>', styles['cell']), '', '', ''])
            data.append([_p(smear['notes'], styles['cell']), '', '', ''])
        flowables.append(_table([HEADER_ROW] + data, COLUMN_WIDTHS, value_styles))
        return flowables

    if layout == 'INTERPRETATION_SINGLE':
        rows = rows[:1]

    data, value_styles = _result_rows(rows, styles)
    if data:
        flowables.append(_table([HEADER_ROW] + data, COLUMN_WIDTHS, value_styles))
    if layout == 'INTERPRETATION_SINGLE' and panel.get('interpretation_text'):
        text = escape(panel['interpretation_text']).replace('\n', '<br/>')
        flowables.append(Spacer(1, 3 * mm))
        flowables.append(Paragraph(f'<b>Interpretation:</b><br/>{text}', styles['cell']))
    return flowables


def _patient_table(snapshot: dict, styles):
    patient = snapshot['patient']
    visit = snapshot['visit']
    if visit.get('referral_doctor_name'):
        last = ('Ref. Doctor:', visit['referral_doctor_name'])
    else:
        last = ('Branch:', visit.get('branch_name'))
    cells = [
        ('Patient Name:', patient.get('name')),
        ('Bill No:', visit.get('bill_number')),
        ('Age / Gender:', f'{patient.get("age")} Years / {gender_label(patient.get("gender"))}'),
        ('Date:', format_date(visit.get('created_at'))),
        ('Patient ID:', patient.get('patient_number')),
        last,
    ]
    data = []
    for i in range(0, len(cells), 2):
        row = []
        for label, value in cells[i:i + 2]:
            row.extend([label, _p(value, styles['cell'])])
        data.append(row)
    table = Table(data, colWidths=[28 * mm, 62 * mm, 28 * mm, 62 * mm])
    table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTNAME', (2, 0), (2, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('BOX', (0, 0), (-1, -1), 0.5, colors.grey),
    ]))
    return table


def _signature_table(snapshot: dict, styles):
    signatures = [
        sig for sig in snapshot.get('signatures', [])
        if not sig.get('show_lab_incharge_note') or sig.get('signature_image_path')
    ]
    cells = []
    for sig in signatures:
        lines = [f'<b>{escape(sig.get("doctor_name") or "")}</b>']
        lines += [escape(sig[key]) for key in ('degrees', 'designation') if sig.get(key)]
        if sig.get('registration_number'):
            lines.append(f'Reg. No: {escape(sig["registration_number"])}')
        cells.append(Paragraph('<br/>'.join(lines), styles['cell']))
    cells.append(Paragraph('<br/><br/>______________________<br/>Lab Incharge', styles['cell']))
    return Table([cells], colWidths=[180 * mm / len(cells)] * len(cells))


def render_report_pdf(snapshot: dict) -> bytes:
    """A4 PDF of a report snapshot."""
    styles = _styles()
    lab = settings.HEALTHHUB
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=15 * mm,
        rightMargin=15 * mm,
        topMargin=15 * mm,
        bottomMargin=15 * mm,
        title=f'Diagnostic Report - {snapshot["visit"].get("bill_number")}',
        creator='',
        producer='',
        invariant=1,
    )

    story = [_p(lab.get('LAB_NAME'), styles['title'])]
    contact = ' | '.join(part for part in (lab.get('LAB_ADDRESS'), lab.get('LAB_PHONE')) if part)
    if contact:
        story.append(_p(contact, styles['small']))
    story += [Spacer(1, 4 * mm), _patient_table(snapshot, styles)]

    for department in snapshot.get('departments', []):
        story.append(_p(department.get('department_header_text'), styles['department']))
        for panel in department.get('panels', []):
            story.extend(_panel_flowables(build_panel_context(panel), styles))

    story += [
        Spacer(1, 6 * mm),
        Paragraph('<i>Note : Please correlate clinically if necessary kindly discuss.</i>', styles['cell']),
        Spacer(1, 10 * mm),
        _signature_table(snapshot, styles),
        Spacer(1, 6 * mm),
        _p('END OF REPORT', styles['small']),
    ]

    doc.build(story)
    return buffer.getvalue()
