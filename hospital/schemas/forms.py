"""
JSON schemas for the entry forms.

A form arrives as a flat map of field label -> text, exactly as the entry
form shows it. These schemas check only its shape (known labels, string
values, non-empty identifiers); turning text into numbers, dates and
referenced records happens in services/forms.py.
"""

from __future__ import annotations

from typing import Iterable

DOCTOR_FIELDS = (
    "Doctor ID",
    "First Name",
    "Surname",
    "Address",
    "Email",
    "Specialization",
    "Hospital",
)
DRUG_FIELDS = ("Drug ID", "Drug Name", "Side Effects", "Benefits")
INSURANCE_FIELDS = ("Insurance ID", "Company", "Address", "Phone")
PATIENT_FIELDS = (
    "Patient ID",
    "First Name",
    "Surname",
    "Address",
    "Postcode",
    "Phone",
    "Email",
    "Insurance",
)
PRESCRIPTION_FIELDS = (
    "Prescription ID",
    "Drug",
    "Doctor",
    "Patient",
    "Date Prescribed",
    "Dosage",
    "Duration",
    "Comment",
)
VISIT_FIELDS = ("Patient", "Doctor", "Date of Visit", "Symptoms", "Diagnosis")


def build_form_schema(
    title: str,
    fields: Iterable[str],
    *,
    identifiers: Iterable[str] = (),
    optional: Iterable[str] = (),
) -> dict:
    """Draft 7 schema for one entity's form."""
    fields = tuple(fields)
    identifiers = set(identifiers)
    optional = set(optional)
    properties: dict[str, dict] = {}
    for field in fields:
        prop: dict = {"type": ["string", "null"]}
        if field in identifiers:
            prop = {"type": "string", "minLength": 1, "pattern": "\\S"}
        properties[field] = prop
    return {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "title": title,
        "type": "object",
        "required": [field for field in fields if field not in optional],
        "properties": properties,
        "additionalProperties": False,
    }


DOCTOR_FORM_SCHEMA = build_form_schema(
    "Doctor entry form",
    DOCTOR_FIELDS,
    identifiers=["Doctor ID", "Email"],
    optional=["Hospital"],
)

DRUG_FORM_SCHEMA = build_form_schema(
    "Drug entry form",
    DRUG_FIELDS,
    identifiers=["Drug ID"],
)

INSURANCE_FORM_SCHEMA = build_form_schema(
    "Insurance entry form",
    INSURANCE_FIELDS,
    identifiers=["Insurance ID"],
)

PATIENT_FORM_SCHEMA = build_form_schema(
    "Patient entry form",
    PATIENT_FIELDS,
    identifiers=["Patient ID", "Email"],
    optional=["Insurance"],
)

PRESCRIPTION_FORM_SCHEMA = build_form_schema(
    "Prescription entry form",
    PRESCRIPTION_FIELDS,
    identifiers=["Prescription ID"],
    optional=["Comment"],
)

VISIT_FORM_SCHEMA = build_form_schema(
    "Visit entry form",
    VISIT_FIELDS,
)
