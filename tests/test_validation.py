"""Tests for JSON schema validation of entry-form field maps."""

from hospital.schemas.forms import (
    DOCTOR_FORM_SCHEMA,
    PRESCRIPTION_FORM_SCHEMA,
    VISIT_FORM_SCHEMA,
)
from hospital.services.validation import validate_against_schema


def _doctor(**overrides):
    record = {
        "Doctor ID": "D1",
        "First Name": "Gregory",
        "Surname": "House",
        "Address": "221B Baker Street",
        "Email": "house@example.org",
        "Specialization": "Diagnostics",
        "Hospital": "Princeton-Plainsboro",
    }
    record.update(overrides)
    return record


def test_valid_doctor():
    assert validate_against_schema(_doctor(), DOCTOR_FORM_SCHEMA) == []


def test_optional_field_may_be_left_out():
    record = _doctor()
    del record["Hospital"]
    assert validate_against_schema(record, DOCTOR_FORM_SCHEMA) == []


def test_missing_required_fields():
    errors = validate_against_schema({"Doctor ID": "D1"}, DOCTOR_FORM_SCHEMA)
    assert any("Surname" in e for e in errors)
    assert any("Email" in e for e in errors)


def test_blank_identifier_reported_once():
    errors = validate_against_schema(_doctor(**{"Doctor ID": "   "}), DOCTOR_FORM_SCHEMA)
    assert errors == ["Doctor ID cannot be empty."]


def test_non_text_value():
    errors = validate_against_schema(_doctor(Surname=42), DOCTOR_FORM_SCHEMA)
    assert errors == ["Surname must be text."]


def test_unknown_label_is_rejected():
    errors = validate_against_schema(_doctor(Nickname="Hugh"), DOCTOR_FORM_SCHEMA)
    assert any("Nickname" in e for e in errors)


def test_numbers_and_dates_are_not_checked_here():
    record = {
        "Prescription ID": "RX1",
        "Drug": "DR1",
        "Doctor": "D1",
        "Patient": "P1",
        "Date Prescribed": "not a date",
        "Dosage": "abc",
        "Duration": "7",
    }
    assert validate_against_schema(record, PRESCRIPTION_FORM_SCHEMA) == []


def test_null_values_pass_shape_check():
    record = {"Patient": None, "Doctor": None, "Date of Visit": None, "Symptoms": None, "Diagnosis": None}
    assert validate_against_schema(record, VISIT_FORM_SCHEMA) == []
