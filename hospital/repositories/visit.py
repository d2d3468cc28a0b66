"""Visits, keyed by (patient, doctor, date) with no surrogate id."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from sqlalchemy import Connection, RowMapping, func, select
from sqlalchemy.exc import SQLAlchemyError

from hospital.models.tables import VisitTable
from hospital.repositories.base import Repository
from hospital.repositories.doctor import DoctorRepository
from hospital.repositories.patient import PatientRepository
from hospital.schemas.entities import Doctor, Visit, VisitKey
from hospital.services.outcome import Outcome, Reason, Severity

logger = logging.getLogger(__name__)

INVALID_SELECTION = "Invalid doctor or patient selection."


class VisitRepository(Repository[Visit]):
    table = VisitTable.__table__
    key_columns = ("patientid", "doctorid", "dateofvisit")
    noun = "visit"
    duplicate_key_message = "Error: A visit with this patient, doctor, and date already exists."
    missing_key_message = "Error: Visit with this patient, doctor, and date does not exist."

    def __init__(
        self,
        connection: Connection,
        doctors: DoctorRepository | None = None,
        patients: PatientRepository | None = None,
        *,
        strict: bool = False,
    ):
        super().__init__(connection, strict=strict)
        self.doctors = doctors or DoctorRepository(connection, strict=strict)
        self.patients = patients or PatientRepository(connection, strict=strict)

    def _to_entity(self, row: RowMapping) -> Visit:
        return Visit(
            patient_id=row["patientid"],
            doctor_id=row["doctorid"],
            date_of_visit=row["dateofvisit"],
            symptoms=row["symptoms"],
            diagnosis=row["diagnosis"],
            patient=self.patients.find_by_key(row["patientid"]),
            doctor=self.doctors.find_by_key(row["doctorid"]),
        )

    def _to_values(self, entity: Visit) -> dict[str, Any]:
        # Key columns are filtered out by update(), so only symptoms and
        # diagnosis can ever change once a visit exists.
        return {
            "patientid": entity.patient_id,
            "doctorid": entity.doctor_id,
            "dateofvisit": entity.date_of_visit,
            "symptoms": entity.symptoms,
            "diagnosis": entity.diagnosis,
        }

    def _key_of(self, entity: Visit) -> VisitKey:
        return entity.key

    def _check_add(self, entity: Visit) -> Outcome | None:
        for repository, key in ((self.doctors, entity.doctor_id), (self.patients, entity.patient_id)):
            exists = repository.exists(key)
            if not exists.ok:
                return self.storage_error("reference check", exists.error)  # type: ignore[arg-type]
            if not exists.value:
                return Outcome.rejected(INVALID_SELECTION, Reason.UNRESOLVED_REFERENCE, Severity.WARNING)
        return None

    def find_by_visit_key(self, patient_id: str, doctor_id: str, date_of_visit: date) -> Visit | None:
        return self.find_by_key(patient_id, doctor_id, date_of_visit)

    def find_by_patient(self, patient_id: str) -> list[Visit]:
        return self._find_many(self.table.c.patientid == patient_id)

    def find_by_doctor(self, doctor_id: str) -> list[Visit]:
        return self._find_many(self.table.c.doctorid == doctor_id)

    def main_doctor_for_patient(self, patient_id: str) -> Doctor | None:
        """The doctor this patient has visited most often, if any."""
        c = self.table.c
        visit_count = func.count().label("visit_count")
        stmt = (
            select(c.doctorid, visit_count)
            .where(c.patientid == patient_id)
            .group_by(c.doctorid)
            .order_by(visit_count.desc(), c.doctorid)
            .limit(1)
        )
        try:
            row = self.connection.execute(stmt).first()
        except SQLAlchemyError:
            logger.exception("Error finding main doctor for patient %s", patient_id)
            if self.strict:
                raise
            return None
        if row is None:
            return None
        return self.doctors.find_by_key(row.doctorid)
