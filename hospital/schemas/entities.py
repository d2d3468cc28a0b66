"""
Domain entities for the hospital records store.

Entities are plain value objects: every read re-queries the database and
builds fresh instances, and two entities are equal when their fields are.
References to other entities (a patient's insurer, a prescription's drug,
doctor and patient) are materialized as nested entities and are None when
the referenced row does not exist.
"""

from __future__ import annotations

from datetime import date
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict

# Insurer id stored for patients without private insurance. It does not need
# a matching insurance row.
NHS = "NHS"


class Entity(BaseModel):
    model_config = ConfigDict(frozen=True)

    @property
    def label(self) -> str:
        raise NotImplementedError

    def to_form(self) -> dict[str, str]:
        raise NotImplementedError


class Choice(BaseModel):
    """An entity key paired with the text a user picks it by."""

    key: str
    label: str


def full_name(first_name: str, surname: str) -> str:
    return f"{first_name} {surname}"


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------

class Insurance(Entity):
    id: str
    company: str
    address: str
    phone: str

    @property
    def label(self) -> str:
        return self.company

    def to_form(self) -> dict[str, str]:
        return {
            "Insurance ID": self.id,
            "Company": self.company,
            "Address": self.address,
            "Phone": self.phone,
        }


class Drug(Entity):
    id: str
    drug_name: str
    side_effects: str
    benefits: str

    @property
    def label(self) -> str:
        return f"{self.id} - {self.drug_name}"

    def to_form(self) -> dict[str, str]:
        return {
            "Drug ID": self.id,
            "Drug Name": self.drug_name,
            "Side Effects": self.side_effects,
            "Benefits": self.benefits,
        }


# ---------------------------------------------------------------------------
# People
# ---------------------------------------------------------------------------

class Doctor(Entity):
    id: str
    first_name: str
    surname: str
    address: str
    email: str
    specialization: str
    hospital: str | None = None

    @property
    def label(self) -> str:
        return full_name(self.first_name, self.surname)

    def to_form(self) -> dict[str, str]:
        return {
            "Doctor ID": self.id,
            "First Name": self.first_name,
            "Surname": self.surname,
            "Address": self.address,
            "Email": self.email,
            "Specialization": self.specialization,
            "Hospital": self.hospital or "",
        }


class Patient(Entity):
    id: str
    first_name: str
    surname: str
    address: str
    postcode: str
    phone: str
    email: str
    insurance: Insurance | None = None

    @property
    def label(self) -> str:
        return full_name(self.first_name, self.surname)

    @property
    def insurance_id(self) -> str:
        return self.insurance.id if self.insurance else NHS

    @property
    def insurer_name(self) -> str:
        return self.insurance.company if self.insurance else NHS

    def to_form(self) -> dict[str, str]:
        return {
            "Patient ID": self.id,
            "First Name": self.first_name,
            "Surname": self.surname,
            "Address": self.address,
            "Postcode": self.postcode,
            "Phone": self.phone,
            "Email": self.email,
            "Insurance": self.insurer_name,
        }


# ---------------------------------------------------------------------------
# Clinical records
# ---------------------------------------------------------------------------

def _label_or_empty(entity: Entity | None) -> str:
    return entity.label if entity is not None else ""


class Prescription(Entity):
    id: str
    date_prescribed: date
    dosage: int
    duration: int
    comment: str | None = None
    drug: Drug | None = None
    doctor: Doctor | None = None
    patient: Patient | None = None

    @property
    def label(self) -> str:
        return self.id

    def to_form(self) -> dict[str, str]:
        return {
            "Prescription ID": self.id,
            "Drug": _label_or_empty(self.drug),
            "Doctor": _label_or_empty(self.doctor),
            "Patient": _label_or_empty(self.patient),
            "Date Prescribed": self.date_prescribed.isoformat(),
            "Dosage": str(self.dosage),
            "Duration": str(self.duration),
            "Comment": self.comment or "",
        }


class VisitKey(NamedTuple):
    patient_id: str
    doctor_id: str
    date_of_visit: date


class Visit(Entity):
    """A visit has no surrogate id; patient, doctor and date identify it."""

    patient_id: str
    doctor_id: str
    date_of_visit: date
    symptoms: str
    diagnosis: str
    patient: Patient | None = None
    doctor: Doctor | None = None

    @property
    def key(self) -> VisitKey:
        return VisitKey(self.patient_id, self.doctor_id, self.date_of_visit)

    @property
    def label(self) -> str:
        return f"{self.patient_id}/{self.doctor_id}/{self.date_of_visit.isoformat()}"

    def to_form(self) -> dict[str, str]:
        return {
            "Patient": _label_or_empty(self.patient),
            "Doctor": _label_or_empty(self.doctor),
            "Date of Visit": self.date_of_visit.isoformat(),
            "Symptoms": self.symptoms,
            "Diagnosis": self.diagnosis,
        }
