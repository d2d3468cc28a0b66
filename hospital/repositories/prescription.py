"""Prescriptions: a drug prescribed by a doctor to a patient."""

from __future__ import annotations

from typing import Any

from sqlalchemy import Connection, RowMapping

from hospital.models.tables import PrescriptionTable
from hospital.repositories.base import Repository
from hospital.repositories.doctor import DoctorRepository
from hospital.repositories.drug import DrugRepository
from hospital.repositories.patient import PatientRepository
from hospital.schemas.entities import Prescription
from hospital.services.outcome import Outcome, Reason, Severity

INVALID_SELECTION = "Invalid drug, doctor, or patient selection."


class PrescriptionRepository(Repository[Prescription]):
    table = PrescriptionTable.__table__
    key_columns = ("prescriptionid",)
    noun = "prescription"

    def __init__(
        self,
        connection: Connection,
        drugs: DrugRepository | None = None,
        doctors: DoctorRepository | None = None,
        patients: PatientRepository | None = None,
        *,
        strict: bool = False,
    ):
        super().__init__(connection, strict=strict)
        self.drugs = drugs or DrugRepository(connection, strict=strict)
        self.doctors = doctors or DoctorRepository(connection, strict=strict)
        self.patients = patients or PatientRepository(connection, strict=strict)

    def _to_entity(self, row: RowMapping) -> Prescription:
        return Prescription(
            id=row["prescriptionid"],
            date_prescribed=row["dateprescribed"],
            dosage=row["dosage"],
            duration=row["duration"],
            comment=row["comment"],
            drug=self.drugs.find_by_key(row["drugid"]),
            doctor=self.doctors.find_by_key(row["doctorid"]),
            patient=self.patients.find_by_key(row["patientid"]),
        )

    def _to_values(self, entity: Prescription) -> dict[str, Any]:
        return {
            "prescriptionid": entity.id,
            "dateprescribed": entity.date_prescribed,
            "dosage": entity.dosage,
            "duration": entity.duration,
            "comment": entity.comment,
            "drugid": entity.drug.id if entity.drug else None,
            "doctorid": entity.doctor.id if entity.doctor else None,
            "patientid": entity.patient.id if entity.patient else None,
        }

    def _key_of(self, entity: Prescription) -> tuple[str]:
        return (entity.id,)

    def _check_references(self, entity: Prescription) -> Outcome | None:
        references = (
            (self.drugs, entity.drug),
            (self.doctors, entity.doctor),
            (self.patients, entity.patient),
        )
        for repository, reference in references:
            if reference is None:
                return Outcome.rejected(INVALID_SELECTION, Reason.UNRESOLVED_REFERENCE, Severity.WARNING)
            exists = repository.exists(reference.id)
            if not exists.ok:
                return self.storage_error("reference check", exists.error)  # type: ignore[arg-type]
            if not exists.value:
                return Outcome.rejected(INVALID_SELECTION, Reason.UNRESOLVED_REFERENCE, Severity.WARNING)
        return None

    _check_add = _check_references
    _check_update = _check_references

    def find_by_patient(self, patient_id: str) -> list[Prescription]:
        return self._find_many(self.table.c.patientid == patient_id)

    def find_by_doctor(self, doctor_id: str) -> list[Prescription]:
        return self._find_many(self.table.c.doctorid == doctor_id)
