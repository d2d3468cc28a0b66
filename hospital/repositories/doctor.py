"""Doctors, identified by id and unique by email."""

from __future__ import annotations

from typing import Any

from sqlalchemy import RowMapping

from hospital.models.tables import DoctorTable, PrescriptionTable, VisitTable
from hospital.repositories.base import Repository
from hospital.schemas.entities import Doctor


class DoctorRepository(Repository[Doctor]):
    table = DoctorTable.__table__
    key_columns = ("doctorid",)
    noun = "doctor"
    unique_columns = ("email",)
    dependents = (
        (PrescriptionTable.__table__, "doctorid"),
        (VisitTable.__table__, "doctorid"),
    )
    duplicate_key_message = "Error: Doctor with this ID already exists."

    def _to_entity(self, row: RowMapping) -> Doctor:
        return Doctor(
            id=row["doctorid"],
            first_name=row["firstname"],
            surname=row["surname"],
            address=row["address"],
            email=row["email"],
            specialization=row["specialization"],
            hospital=row["hospital"],
        )

    def _to_values(self, entity: Doctor) -> dict[str, Any]:
        return {
            "doctorid": entity.id,
            "firstname": entity.first_name,
            "surname": entity.surname,
            "address": entity.address,
            "email": entity.email,
            "specialization": entity.specialization,
            "hospital": entity.hospital,
        }

    def _key_of(self, entity: Doctor) -> tuple[str]:
        return (entity.id,)

    def find_by_email(self, email: str) -> Doctor | None:
        return self._find_one(self.table.c.email == email)

    def find_all_by_full_name(self, name: str) -> list[Doctor]:
        c = self.table.c
        return self._find_many(c.firstname + " " + c.surname == name)

    def find_by_full_name(self, name: str) -> Doctor | None:
        """First doctor whose "first last" name matches exactly."""
        c = self.table.c
        return self._find_one(c.firstname + " " + c.surname == name)
