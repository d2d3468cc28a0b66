"""
Entry forms: from a flat field map to a persisted record.

The UI hands over what the user typed or picked, keyed by field label.
Each form checks the map's shape, resolves referenced records, coerces
numbers and dates, and only then calls its repository. Every failure is
returned as a rejected Outcome; nothing here raises on bad input and
nothing is written unless every step succeeded.

Reference fields accept the referenced record's key or the label it is
shown with in the form's options (``"D1 - Aspirin"`` for drugs,
``"Jane Smith"`` for people, the company name for insurers). Keys win over
labels, and a label shared by more than one record is not guessed at.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, ClassVar, Generic, Iterable, Mapping, TypeVar

from hospital.repositories.base import Repository
from hospital.repositories.registry import Repositories
from hospital.schemas import forms as schemas
from hospital.schemas.entities import (
    NHS,
    Choice,
    Doctor,
    Drug,
    Entity,
    Insurance,
    Patient,
    Prescription,
    Visit,
)
from hospital.services.outcome import Outcome, Reason, Severity
from hospital.services.validation import validate_against_schema

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Entity)
R = TypeVar("R", bound=Entity)

DATE_FORMAT = "%Y-%m-%d"
INVALID_DATE = "Invalid date format. Please use 'yyyy-mm-dd'."
INVALID_NUMBERS = "Dosage and Duration must be valid numbers."

# Plain decimal digits with an optional sign, stored in a 32-bit INTEGER column.
INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")
INT_MIN, INT_MAX = -(2**31), 2**31 - 1


class FormRejected(Exception):
    """Internal signal carrying the outcome a form step rejected with."""

    def __init__(self, outcome: Outcome):
        super().__init__(outcome.message)
        self.outcome = outcome


def reject(message: str, reason: Reason, severity: Severity = Severity.ERROR) -> FormRejected:
    return FormRejected(Outcome.rejected(message, reason, severity))


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------

def text(fields: Mapping[str, Any], label: str) -> str:
    value = fields.get(label)
    return "" if value is None else str(value)


def optional_text(fields: Mapping[str, Any], label: str) -> str | None:
    value = text(fields, label).strip()
    return value or None


def parse_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    raw = "" if value is None else str(value).strip()
    if not raw:
        raise reject(INVALID_DATE, Reason.INVALID_DATE)
    try:
        return datetime.strptime(raw, DATE_FORMAT).date()
    except ValueError:
        raise reject(INVALID_DATE, Reason.INVALID_DATE) from None


def parse_int(value: Any, message: str = INVALID_NUMBERS) -> int:
    raw = "" if value is None else str(value).strip()
    if INTEGER_PATTERN.fullmatch(raw) is None:
        raise reject(message, Reason.INVALID_NUMBER)
    number = int(raw)
    if not INT_MIN <= number <= INT_MAX:
        raise reject(message, Reason.INVALID_NUMBER)
    return number


def resolve(
    value: Any,
    find_by_key: Callable[[str], R | None],
    *find_by_label: Callable[[str], list[R]],
) -> R | None:
    """Resolve a key or a display label to exactly one record, else None."""
    raw = "" if value is None else str(value).strip()
    if not raw:
        return None
    found = find_by_key(raw)
    if found is not None:
        return found
    for lookup in find_by_label:
        matches = lookup(raw)
        if len(matches) == 1:
            return matches[0]
        if len(matches) > 1:
            logger.warning("Ambiguous selection %r matches %d records", raw, len(matches))
            return None
    return None


def choices(entities: Iterable[Entity], key: Callable[[Any], str]) -> list[Choice]:
    return [Choice(key=key(entity), label=entity.label) for entity in entities]


# ---------------------------------------------------------------------------
# Generic form
# ---------------------------------------------------------------------------

class EntityForm(Generic[E]):
    fields: ClassVar[tuple[str, ...]]
    key_fields: ClassVar[tuple[str, ...]]
    schema: ClassVar[dict]

    def __init__(self, repository: Repository[E]):
        self.repository = repository

    def blank(self) -> dict[str, str]:
        """Empty field map shown by the "Add" form."""
        return {field: "" for field in self.fields}

    def options(self) -> dict[str, list[Choice]]:
        """Choices for fields that reference other records."""
        return {}

    def parse_key(self, key: Iterable[Any]) -> tuple[Any, ...]:
        return tuple(str(part) for part in key)

    def _key_fields(self, key: tuple[Any, ...]) -> dict[str, Any]:
        return dict(zip(self.key_fields, key))

    def _stored_fields(self, entity: E) -> dict[str, Any]:
        """Field map of a stored record, used as the base of an update."""
        return entity.to_form()

    def _build(self, fields: Mapping[str, Any]) -> E:
        raise NotImplementedError

    def _checked(self, fields: dict[str, Any]) -> E:
        errors = validate_against_schema(fields, self.schema)
        if errors:
            raise reject(" ".join(errors), Reason.INVALID_INPUT)
        return self._build(fields)

    def add(self, fields: Mapping[str, Any]) -> Outcome:
        try:
            entity = self._checked(dict(fields))
        except FormRejected as rejected:
            logger.warning("Add %s rejected: %s", self.repository.noun, rejected.outcome.message)
            return rejected.outcome
        return self.repository.add(entity)

    def update(self, key: Iterable[Any], fields: Mapping[str, Any]) -> Outcome:
        """
        Update the record at ``key``. Labels left out of ``fields`` (or sent
        as null) keep their stored value; key labels always come from ``key``.
        """
        try:
            parsed_key = self.parse_key(key)
            existing = self.repository.read_by_key(*parsed_key)
            if not existing.ok:
                return self.repository.storage_error("update", existing.error)  # type: ignore[arg-type]
            if not existing.found:
                return self.repository.missing_key_outcome()
            merged = self._stored_fields(existing.value)
            merged.update({label: value for label, value in fields.items() if value is not None})
            merged.update(self._key_fields(parsed_key))
            entity = self._checked(merged)
        except FormRejected as rejected:
            logger.warning("Update %s rejected: %s", self.repository.noun, rejected.outcome.message)
            return rejected.outcome
        return self.repository.update(entity)

    def delete(self, key: Iterable[Any]) -> Outcome:
        try:
            parsed_key = self.parse_key(key)
        except FormRejected as rejected:
            return rejected.outcome
        return self.repository.delete(*parsed_key)


# ---------------------------------------------------------------------------
# Per-entity forms
# ---------------------------------------------------------------------------

class InsuranceForm(EntityForm[Insurance]):
    fields = schemas.INSURANCE_FIELDS
    key_fields = ("Insurance ID",)
    schema = schemas.INSURANCE_FORM_SCHEMA

    def _build(self, fields: Mapping[str, Any]) -> Insurance:
        return Insurance(
            id=text(fields, "Insurance ID").strip(),
            company=text(fields, "Company"),
            address=text(fields, "Address"),
            phone=text(fields, "Phone"),
        )


class DrugForm(EntityForm[Drug]):
    fields = schemas.DRUG_FIELDS
    key_fields = ("Drug ID",)
    schema = schemas.DRUG_FORM_SCHEMA

    def _build(self, fields: Mapping[str, Any]) -> Drug:
        return Drug(
            id=text(fields, "Drug ID").strip(),
            drug_name=text(fields, "Drug Name"),
            side_effects=text(fields, "Side Effects"),
            benefits=text(fields, "Benefits"),
        )


class DoctorForm(EntityForm[Doctor]):
    fields = schemas.DOCTOR_FIELDS
    key_fields = ("Doctor ID",)
    schema = schemas.DOCTOR_FORM_SCHEMA

    def _build(self, fields: Mapping[str, Any]) -> Doctor:
        return Doctor(
            id=text(fields, "Doctor ID").strip(),
            first_name=text(fields, "First Name"),
            surname=text(fields, "Surname"),
            address=text(fields, "Address"),
            email=text(fields, "Email").strip(),
            specialization=text(fields, "Specialization"),
            hospital=optional_text(fields, "Hospital"),
        )


class PatientForm(EntityForm[Patient]):
    fields = schemas.PATIENT_FIELDS
    key_fields = ("Patient ID",)
    schema = schemas.PATIENT_FORM_SCHEMA

    def __init__(self, repository, insurance):
        super().__init__(repository)
        self.insurance = insurance

    def options(self) -> dict[str, list[Choice]]:
        insurers = [Choice(key=NHS, label=NHS)]
        insurers += choices(self.insurance.list_all(), key=lambda i: i.id)
        return {"Insurance": insurers}

    def _stored_fields(self, entity: Patient) -> dict[str, Any]:
        return {**entity.to_form(), "Insurance": entity.insurance_id}

    def _insurer(self, value: Any) -> Insurance | None:
        raw = "" if value is None else str(value).strip()
        if not raw or raw == NHS:
            return None
        insurer = resolve(raw, self.insurance.find_by_key, self.insurance.find_all_by_company)
        if insurer is None:
            raise reject("Invalid insurance selection.", Reason.UNRESOLVED_REFERENCE, Severity.WARNING)
        return insurer

    def _build(self, fields: Mapping[str, Any]) -> Patient:
        return Patient(
            id=text(fields, "Patient ID").strip(),
            first_name=text(fields, "First Name"),
            surname=text(fields, "Surname"),
            address=text(fields, "Address"),
            postcode=text(fields, "Postcode"),
            phone=text(fields, "Phone"),
            email=text(fields, "Email").strip(),
            insurance=self._insurer(fields.get("Insurance")),
        )


class PrescriptionForm(EntityForm[Prescription]):
    fields = schemas.PRESCRIPTION_FIELDS
    key_fields = ("Prescription ID",)
    schema = schemas.PRESCRIPTION_FORM_SCHEMA

    def __init__(self, repository, drugs, doctors, patients):
        super().__init__(repository)
        self.drugs = drugs
        self.doctors = doctors
        self.patients = patients

    def options(self) -> dict[str, list[Choice]]:
        return {
            "Drug": choices(self.drugs.list_all(), key=lambda d: d.id),
            "Doctor": choices(self.doctors.list_all(), key=lambda d: d.id),
            "Patient": choices(self.patients.list_all(), key=lambda p: p.id),
        }

    def _stored_fields(self, entity: Prescription) -> dict[str, Any]:
        fields = entity.to_form()
        for label, reference in (("Drug", entity.drug), ("Doctor", entity.doctor), ("Patient", entity.patient)):
            fields[label] = reference.id if reference is not None else ""
        return fields

    def _drug_by_label(self, label: str) -> list[Drug]:
        drug = self.drugs.find_by_label(label)
        return [drug] if drug is not None else self.drugs.find_by_name(label)

    def _build(self, fields: Mapping[str, Any]) -> Prescription:
        drug = resolve(fields.get("Drug"), self.drugs.find_by_key, self._drug_by_label)
        doctor = resolve(fields.get("Doctor"), self.doctors.find_by_key, self.doctors.find_all_by_full_name)
        patient = resolve(fields.get("Patient"), self.patients.find_by_key, self.patients.find_all_by_full_name)
        if drug is None or doctor is None or patient is None:
            raise reject(
                "Invalid drug, doctor, or patient selection.",
                Reason.UNRESOLVED_REFERENCE,
                Severity.WARNING,
            )
        date_prescribed = parse_date(fields.get("Date Prescribed"))
        return Prescription(
            id=text(fields, "Prescription ID").strip(),
            date_prescribed=date_prescribed,
            dosage=parse_int(fields.get("Dosage")),
            duration=parse_int(fields.get("Duration")),
            comment=optional_text(fields, "Comment"),
            drug=drug,
            doctor=doctor,
            patient=patient,
        )


class VisitForm(EntityForm[Visit]):
    fields = schemas.VISIT_FIELDS
    key_fields = ("Patient", "Doctor", "Date of Visit")
    schema = schemas.VISIT_FORM_SCHEMA

    def __init__(self, repository, doctors, patients):
        super().__init__(repository)
        self.doctors = doctors
        self.patients = patients

    def options(self) -> dict[str, list[Choice]]:
        return {
            "Patient": choices(self.patients.list_all(), key=lambda p: p.id),
            "Doctor": choices(self.doctors.list_all(), key=lambda d: d.id),
        }

    def parse_key(self, key: Iterable[Any]) -> tuple[Any, ...]:
        patient_id, doctor_id, date_of_visit = key
        return str(patient_id), str(doctor_id), parse_date(date_of_visit)

    def _key_fields(self, key: tuple[Any, ...]) -> dict[str, Any]:
        patient_id, doctor_id, date_of_visit = key
        return {
            "Patient": patient_id,
            "Doctor": doctor_id,
            "Date of Visit": date_of_visit.isoformat(),
        }

    def _build(self, fields: Mapping[str, Any]) -> Visit:
        doctor = resolve(fields.get("Doctor"), self.doctors.find_by_key, self.doctors.find_all_by_full_name)
        patient = resolve(fields.get("Patient"), self.patients.find_by_key, self.patients.find_all_by_full_name)
        if doctor is None or patient is None:
            raise reject("Invalid doctor or patient selection.", Reason.UNRESOLVED_REFERENCE, Severity.WARNING)
        return Visit(
            patient_id=patient.id,
            doctor_id=doctor.id,
            date_of_visit=parse_date(fields.get("Date of Visit")),
            symptoms=text(fields, "Symptoms"),
            diagnosis=text(fields, "Diagnosis"),
            patient=patient,
            doctor=doctor,
        )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

@dataclass
class Forms:
    insurance: InsuranceForm
    doctors: DoctorForm
    drugs: DrugForm
    patients: PatientForm
    prescriptions: PrescriptionForm
    visits: VisitForm

    @classmethod
    def build(cls, repos: Repositories) -> Forms:
        return cls(
            insurance=InsuranceForm(repos.insurance),
            doctors=DoctorForm(repos.doctors),
            drugs=DrugForm(repos.drugs),
            patients=PatientForm(repos.patients, repos.insurance),
            prescriptions=PrescriptionForm(repos.prescriptions, repos.drugs, repos.doctors, repos.patients),
            visits=VisitForm(repos.visits, repos.doctors, repos.patients),
        )

    def get(self, entity: str) -> EntityForm | None:
        return getattr(self, entity, None) if entity in self.__dataclass_fields__ else None
