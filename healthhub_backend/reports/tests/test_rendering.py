"""Tests for the snapshot-only rendering helpers."""

from django.test import SimpleTestCase

from healthhub_backend.reports.services.rendering import (
    format_reference,
    format_value,
    render_report_html,
    split_cbp_rows,
    value_class,
    widal_titre,
)

SNAPSHOT = {
    "snapshot_version": 1,
    "report_version_id": 1,
    "version_num": 1,
    "departments": [
        {
            "department_id": 1,
            "department_name": "Serology",
            "department_header_text": "DEPARTMENT OF SEROLOGY",
            "display_order": 1,
            "panels": [
                {
                    "panel_id": 1,
                    "panel_name": "WIDAL",
                    "display_name": "WIDAL TEST",
                    "layout_type": "WIDAL",
                    "display_order": 1,
                    "interpretation_text": None,
                    "tests": [
                        {"test_id": 1, "test_code": "WIDAL_O", "test_name": "S. Typhi O", "value": 80,
                         "reference_min": None, "reference_max": None, "display_order": 1, "indent_level": 0},
                        {"test_id": 2, "test_code": "WIDAL_H", "test_name": "S. Typhi H", "value": None,
                         "reference_min": None, "reference_max": None, "display_order": 2, "indent_level": 0},
                    ],
                },
            ],
        },
    ],
    "signatures": [
        {"doctor_id": 1, "doctor_name": "Dr. A", "degrees": "MD", "designation": "Pathologist",
         "registration_number": None, "signature_image_path": "", "show_lab_incharge_note": False,
         "display_order": 0},
        {"doctor_id": 2, "doctor_name": "Placeholder", "degrees": "", "designation": "",
         "registration_number": None, "signature_image_path": "", "show_lab_incharge_note": True,
         "display_order": 1},
    ],
    "patient": {"patient_id": 1, "patient_number": "P-1", "name": "Asha", "gender": "F", "age": 30},
    "visit": {"visit_id": 1, "bill_number": "D-CNT-00001", "branch_name": "Central",
              "referral_doctor_name": None, "created_at": "2026-01-05T10:00:00+00:00"},
}


class FormattingTest(SimpleTestCase):
    def test_format_value(self):
        self.assertEqual(format_value(None), "-")
        self.assertEqual(format_value(12.0), "12")
        self.assertEqual(format_value(12.345), "12.35")
        self.assertEqual(format_value(5, "g/dL"), "5 g/dL")

    def test_format_reference(self):
        self.assertEqual(format_reference(None, None), "-")
        self.assertEqual(format_reference(None, 200.0), "< 200")
        self.assertEqual(format_reference(40, None), "> 40")
        self.assertEqual(format_reference(0.5, 5, "mIU/L"), "0.5 - 5 mIU/L")

    def test_value_class_tiers(self):
        self.assertEqual(value_class(None, 1, 2), "")
        self.assertEqual(value_class(5, None, None), "")
        self.assertEqual(value_class(14, 12, 16), "value-normal")
        # range span 4, warning up to 0.8 outside
        self.assertEqual(value_class(16.5, 12, 16), "value-warning")
        self.assertEqual(value_class(17, 12, 16), "value-critical")
        self.assertEqual(value_class(11.5, 12, 16), "value-warning")
        # one-sided: 20% of the violated bound
        self.assertEqual(value_class(230, None, 200), "value-warning")
        self.assertEqual(value_class(250, None, 200), "value-critical")

    def test_widal_titre(self):
        self.assertEqual(widal_titre(80.0), "1:80")
        self.assertEqual(widal_titre(None), "Negative")

    def test_cbp_split_uses_sub_group_then_legacy_codes(self):
        rows = [
            {"test_code": "HB", "sub_group": "MAIN"},
            {"test_code": "X", "sub_group": "DIFFERENTIAL"},
            {"test_code": "LYMPH"},
            {"test_code": "PS", "notes": "Normocytic"},
            {"test_code": "WBC"},
        ]
        main, differential, smear = split_cbp_rows(rows)
        self.assertEqual([r["test_code"] for r in main], ["HB", "WBC"])
        self.assertEqual([r["test_code"] for r in differential], ["X", "LYMPH"])
        self.assertEqual(smear["notes"], "Normocytic")


class RenderHtmlTest(SimpleTestCase):
    def test_widal_and_signatures(self):
        html = render_report_html(SNAPSHOT, mode="screen", base_url="https://lab.example", report_token="abc123DEF456")
        self.assertIn("1:80", html)
        self.assertIn("Negative", html)
        self.assertIn("Titre of 1:80 or above is considered significant", html)
        self.assertIn("Dr. A", html)
        self.assertNotIn("Placeholder", html)
        self.assertIn("Lab Incharge", html)
        self.assertIn("https://lab.example/r/abc123DEF456/pdf/", html)
        self.assertIn("Please correlate clinically", html)

    def test_render_is_deterministic_and_print_hides_actions(self):
        first = render_report_html(SNAPSHOT, mode="print")
        self.assertEqual(first, render_report_html(SNAPSHOT, mode="print"))
        self.assertNotIn("btn-print", first)
        self.assertIn("print-mode", first)

    def test_hide_actions_in_screen_mode(self):
        html = render_report_html(SNAPSHOT, mode="screen", hide_actions=True)
        self.assertNotIn("btn-print", html)
