"""Patients and the insurer each one is covered by."""

from __future__ import annotations

from typing import Any

from sqlalchemy import Connection, RowMapping

from hospital.models.tables import PatientTable, PrescriptionTable, VisitTable
from hospital.repositories.base import Repository
from hospital.repositories.insurance import InsuranceRepository
from hospital.schemas.entities import NHS, Patient


class PatientRepository(Repository[Patient]):
    table = PatientTable.__table__
    key_columns = ("patientid",)
    noun = "patient"
    unique_columns = ("email",)
    dependents = (
        (PrescriptionTable.__table__, "patientid"),
        (VisitTable.__table__, "patientid"),
    )

    def __init__(
        self,
        connection: Connection,
        insurance: InsuranceRepository | None = None,
        *,
        strict: bool = False,
    ):
        super().__init__(connection, strict=strict)
        self.insurance = insurance or InsuranceRepository(connection, strict=strict)

    def _to_entity(self, row: RowMapping) -> Patient:
        insurance_id = row["insuranceid"]
        # "NHS" and unknown ids both materialize as no private insurer.
        insurance = (
            self.insurance.find_by_key(insurance_id)
            if insurance_id and insurance_id != NHS
            else None
        )
        return Patient(
            id=row["patientid"],
            first_name=row["firstname"],
            surname=row["surname"],
            address=row["address"],
            postcode=row["postcode"],
            phone=row["phone"],
            email=row["email"],
            insurance=insurance,
        )

    def _to_values(self, entity: Patient) -> dict[str, Any]:
        return {
            "patientid": entity.id,
            "firstname": entity.first_name,
            "surname": entity.surname,
            "address": entity.address,
            "postcode": entity.postcode,
            "phone": entity.phone,
            "email": entity.email,
            "insuranceid": entity.insurance_id,
        }

    def _key_of(self, entity: Patient) -> tuple[str]:
        return (entity.id,)

    def find_by_email(self, email: str) -> Patient | None:
        return self._find_one(self.table.c.email == email)

    def find_all_by_full_name(self, name: str) -> list[Patient]:
        c = self.table.c
        return self._find_many(c.firstname + " " + c.surname == name)

    def find_by_full_name(self, name: str) -> Patient | None:
        """First patient whose "first last" name matches exactly."""
        c = self.table.c
        return self._find_one(c.firstname + " " + c.surname == name)

    def find_by_insurance(self, insurance_id: str) -> list[Patient]:
        return self._find_many(self.table.c.insuranceid == insurance_id)
