from django.db import transaction

from healthhub_backend.lab.models import (
    Department,
    InterpretationTemplate,
    LabTest,
    PanelDefinition,
    PanelTestItem,
    SigningDoctor,
    SigningRule,
)

# code, name, price (rupees), ref min, ref max, unit
CBP_SUB_TESTS = [
    ("HB", "Haemoglobin", 0, 12.0, 16.0, "g/dL"),
    ("RBC", "Total RBC Count", 0, 4.0, 5.5, "mill/cumm"),
    ("PCV", "Packed Cell Volume", 0, 36.0, 46.0, "%"),
    ("WBC", "Total WBC Count", 0, 4000, 11000, "cells/cumm"),
    ("PLT", "Platelet Count", 0, 1.5, 4.5, "lakhs/cumm"),
    ("NEUTRO", "Neutrophils", 0, 40, 75, "%"),
    ("LYMPH", "Lymphocytes", 0, 20, 45, "%"),
    ("EOSIN", "Eosinophils", 0, 1, 6, "%"),
    ("MONO", "Monocytes", 0, 2, 10, "%"),
    ("BASO", "Basophils", 0, 0, 1, "%"),
    ("PS", "Peripheral Smear", 0, None, None, ""),
]

STANDALONE_TESTS = [
    ("FBS", "Fasting Blood Sugar", 100, 70, 100, "mg/dL"),
    ("PPBS", "Post Prandial Blood Sugar", 100, 70, 140, "mg/dL"),
    ("HBA1C", "Glycated Haemoglobin", 450, 4.0, 5.7, "%"),
    ("CREAT", "Serum Creatinine", 150, 0.6, 1.2, "mg/dL"),
    ("UREA", "Blood Urea", 150, 15, 40, "mg/dL"),
    ("CHOL", "Total Cholesterol", 200, None, 200, "mg/dL"),
    ("TSH", "Thyroid Stimulating Hormone", 300, 0.4, 4.5, "mIU/L"),
    ("WIDAL_O", "S. Typhi O", 0, None, None, ""),
    ("WIDAL_H", "S. Typhi H", 0, None, None, ""),
    ("WIDAL_AH", "S. Paratyphi AH", 0, None, None, ""),
    ("WIDAL_BH", "S. Paratyphi BH", 0, None, None, ""),
    ("BGRP", "Blood Grouping & Rh Typing", 100, None, None, ""),
]

DIFFERENTIAL_CODES = {"NEUTRO", "LYMPH", "EOSIN", "MONO", "BASO"}

DEPARTMENTS = [
    ("Haematology", "DEPARTMENT OF HAEMATOLOGY", 1),
    ("Biochemistry", "DEPARTMENT OF BIOCHEMISTRY", 2),
    ("Serology", "DEPARTMENT OF SEROLOGY", 3),
]

# name, display name, department, layout, tests (code, method)
PANELS = [
    ("CBP", "COMPLETE BLOOD PICTURE", "Haematology", PanelDefinition.LAYOUT_CBP,
     [(code, "") for code, *_ in CBP_SUB_TESTS]),
    ("BLOOD_GROUP", "BLOOD GROUPING", "Haematology", PanelDefinition.LAYOUT_TEXT_ONLY,
     [("BGRP", "Slide Agglutination")]),
    ("SUGAR", "BLOOD SUGAR", "Biochemistry", PanelDefinition.LAYOUT_STANDARD_TABLE,
     [("FBS", "GOD-POD"), ("PPBS", "GOD-POD")]),
    ("RFT", "RENAL FUNCTION TEST", "Biochemistry", PanelDefinition.LAYOUT_STANDARD_TABLE,
     [("UREA", "Urease-GLDH"), ("CREAT", "Jaffe Kinetic")]),
    ("LIPID", "LIPID PROFILE", "Biochemistry", PanelDefinition.LAYOUT_STANDARD_TABLE,
     [("CHOL", "CHOD-PAP")]),
    ("HBA1C", "GLYCATED HAEMOGLOBIN", "Biochemistry", PanelDefinition.LAYOUT_INTERPRETATION_SINGLE,
     [("HBA1C", "HPLC")]),
    ("TSH", "THYROID STIMULATING HORMONE", "Biochemistry", PanelDefinition.LAYOUT_INTERPRETATION_SINGLE,
     [("TSH", "CLIA")]),
    ("WIDAL", "WIDAL TEST", "Serology", PanelDefinition.LAYOUT_WIDAL,
     [("WIDAL_O", ""), ("WIDAL_H", ""), ("WIDAL_AH", ""), ("WIDAL_BH", "")]),
]

# test code, min, max, text
INTERPRETATIONS = [
    ("HBA1C", None, 5.7, "Non-diabetic range."),
    ("HBA1C", 5.7, 6.5, "Prediabetes. Lifestyle modification advised."),
    ("HBA1C", 6.5, None, "Consistent with diabetes mellitus."),
    ("TSH", None, 0.4, "Suppressed TSH. Suggestive of hyperthyroidism."),
    ("TSH", 0.4, 4.5, "Euthyroid."),
    ("TSH", 4.5, None, "Raised TSH. Suggestive of hypothyroidism."),
]

SIGNING_DOCTORS = [
    ("Dr. K. Lakshmi", "MBBS, MD (Pathology)", "Consultant Pathologist", "TSMC-48213"),
    ("Dr. R. Venkatesh", "MBBS, MD (Biochemistry)", "Consultant Biochemist", "TSMC-51907"),
]

# department, signing doctor index, show lab incharge note
SIGNING_RULES = [
    ("Haematology", 0, True),
    ("Biochemistry", 1, True),
    ("Serology", 0, False),
]


def seed_lab(flush: bool = False) -> dict:
    """
    Seeds the lab catalogue and report configuration:
    - CBP panel test with its sub-tests plus standalone tests
    - departments, panel definitions and panel items
    - signing doctors and rules, interpretation templates

    Existing rows are matched by their natural keys and left in place.
    """
    stats: dict[str, int] = {}

    with transaction.atomic():
        if flush:
            InterpretationTemplate.objects.all().delete()
            SigningRule.objects.all().delete()
            PanelTestItem.objects.all().delete()

        tests = _seed_tests()
        stats["lab_tests"] = len(tests)

        departments = _seed_departments()
        stats["lab_departments"] = len(departments)

        stats["lab_panel_items"] = _seed_panels(departments, tests)
        stats["lab_signing_rules"] = _seed_signing(departments)
        stats["lab_interpretations"] = _seed_interpretations(tests)

    return stats


def _upsert_test(code, name, price, ref_min, ref_max, unit, **extra) -> LabTest:
    test, _created = LabTest.objects.update_or_create(
        code=code,
        defaults={
            "name": name,
            "price_in_paise": price * 100,
            "reference_min": ref_min,
            "reference_max": ref_max,
            "reference_unit": unit,
            **extra,
        },
    )
    return test


def _seed_tests() -> dict[str, LabTest]:
    tests = {}
    cbp = _upsert_test("CBP", "Complete Blood Picture", 350, None, None, "", is_panel=True)
    tests["CBP"] = cbp
    for row in CBP_SUB_TESTS:
        tests[row[0]] = _upsert_test(*row, parent_test=cbp)
    for row in STANDALONE_TESTS:
        tests[row[0]] = _upsert_test(*row)
    return tests


def _seed_departments() -> dict[str, Department]:
    departments = {}
    for name, header, order in DEPARTMENTS:
        department, _created = Department.objects.update_or_create(
            name=name, defaults={"report_header_text": header, "display_order": order}
        )
        departments[name] = department
    return departments


def _sub_group(panel_layout, code):
    if panel_layout != PanelDefinition.LAYOUT_CBP:
        return None
    if code in DIFFERENTIAL_CODES:
        return PanelTestItem.SUB_GROUP_DIFFERENTIAL
    if code == "PS":
        return PanelTestItem.SUB_GROUP_SMEAR
    return PanelTestItem.SUB_GROUP_MAIN


def _seed_panels(departments, tests) -> int:
    count = 0
    for order, (name, display_name, department, layout, items) in enumerate(PANELS, start=1):
        panel, _created = PanelDefinition.objects.update_or_create(
            name=name,
            defaults={
                "display_name": display_name,
                "department": departments[department],
                "layout_type": layout,
                "display_order": order,
            },
        )
        for item_order, (code, method) in enumerate(items, start=1):
            PanelTestItem.objects.update_or_create(
                panel=panel,
                test=tests[code],
                defaults={
                    "display_order": item_order,
                    "method_text": method,
                    "indent_level": 1 if code in DIFFERENTIAL_CODES else 0,
                    "sub_group": _sub_group(layout, code),
                },
            )
            count += 1
    return count


def _seed_signing(departments) -> int:
    doctors = []
    for name, degrees, designation, registration in SIGNING_DOCTORS:
        doctor, _created = SigningDoctor.objects.update_or_create(
            name=name,
            defaults={"degrees": degrees, "designation": designation, "registration_number": registration},
        )
        doctors.append(doctor)

    for order, (department, doctor_index, lab_incharge) in enumerate(SIGNING_RULES):
        SigningRule.objects.update_or_create(
            department=departments[department],
            signing_doctor=doctors[doctor_index],
            defaults={"show_lab_incharge_note": lab_incharge, "display_order": order},
        )
    return len(SIGNING_RULES)


def _seed_interpretations(tests) -> int:
    for order, (code, min_value, max_value, text) in enumerate(INTERPRETATIONS):
        InterpretationTemplate.objects.update_or_create(
            test=tests[code],
            min_value=min_value,
            max_value=max_value,
            defaults={"interpretation_text": text, "display_order": order},
        )
    return len(INTERPRETATIONS)
