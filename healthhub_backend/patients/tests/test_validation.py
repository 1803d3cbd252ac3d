from __future__ import annotations

from datetime import date, timedelta

from django.test import SimpleTestCase

from healthhub_backend.patients.validation import (
    normalize_phone,
    validate_age,
    validate_date_of_birth,
    validate_email,
    validate_name,
    validate_patient_demographics,
    validate_phone,
)


class DemographicValidationTest(SimpleTestCase):
    def _fields(self, errors):
        return {e["field"] for e in errors}

    def test_valid_registration_has_no_errors(self):
        errors = validate_patient_demographics({
            "name": "Ravi Kumar",
            "age": 34,
            "gender": "M",
            "identifiers": [{"type": "PHONE", "value": "98765 43210"}],
        })
        self.assertEqual(errors, [])

    def test_name_rules(self):
        self.assertEqual(validate_name(""), "Name is required")
        self.assertIn("at least 2", validate_name("A"))
        self.assertIn("cannot exceed", validate_name("A" * 101))
        self.assertIn("only contain", validate_name("R2D2"))
        self.assertIsNone(validate_name("D'Souza-Pereira Jr."))

    def test_age_or_dob_required(self):
        errors = validate_patient_demographics({"name": "Asha", "gender": "F"})
        self.assertIn("age", self._fields(errors))

    def test_age_bounds(self):
        self.assertIsNone(validate_age(0))
        self.assertIsNone(validate_age(120))
        self.assertIn("negative", validate_age(-1))
        self.assertIn("exceed", validate_age(121))
        self.assertIn("whole number", validate_age(3.5))

    def test_dob_cannot_be_in_future_or_too_old(self):
        today = date(2026, 1, 1)
        self.assertIn("future", validate_date_of_birth(today + timedelta(days=1), today=today))
        self.assertIn("exceeding", validate_date_of_birth(date(1900, 1, 1), today=today))
        self.assertIsNone(validate_date_of_birth("1990-05-17", today=today))
        self.assertEqual(validate_date_of_birth("not-a-date", today=today), "Invalid date of birth")

    def test_dob_takes_precedence_over_age(self):
        errors = validate_patient_demographics({
            "name": "Asha",
            "gender": "F",
            "age": 500,
            "date_of_birth": "1990-01-01",
        })
        self.assertEqual(errors, [])

    def test_gender_must_be_m_f_or_o(self):
        errors = validate_patient_demographics({"name": "Asha", "age": 30, "gender": "X"})
        self.assertEqual(self._fields(errors), {"gender"})

    def test_phone_rules(self):
        self.assertEqual(normalize_phone("98765-43210"), "9876543210")
        self.assertIsNone(normalize_phone("12345"))
        self.assertIn("10 digits", validate_phone("12345"))
        self.assertIn("start with", validate_phone("5876543210"))
        self.assertIsNone(validate_phone("6000000000"))

    def test_phone_strips_only_spaces_and_dashes(self):
        self.assertEqual(normalize_phone(" 987 654-3210 "), "9876543210")
        self.assertIsNone(validate_phone("987 654-3210"))
        self.assertIsNone(normalize_phone("(987) 654.3210"))
        self.assertIn("10 digits", validate_phone("(987) 654.3210"))
        self.assertIn("10 digits", validate_phone("+919876543210"))

    def test_email_is_optional_but_validated(self):
        self.assertIsNone(validate_email(""))
        self.assertIsNone(validate_email("ravi@example.com"))
        self.assertIn("valid email", validate_email("ravi@example"))
        self.assertIn("too long", validate_email("a" * 250 + "@x.com"))

    def test_address_length(self):
        errors = validate_patient_demographics({
            "name": "Asha",
            "age": 30,
            "gender": "F",
            "address": "x" * 501,
        })
        self.assertEqual(self._fields(errors), {"address"})

    def test_partial_validation_only_checks_given_fields(self):
        self.assertEqual(validate_patient_demographics({"address": "MG Road"}, partial=True), [])
        errors = validate_patient_demographics({"gender": "Z"}, partial=True)
        self.assertEqual(self._fields(errors), {"gender"})
