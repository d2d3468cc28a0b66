"""Insurance companies. Leaf of the repository graph."""

from __future__ import annotations

from typing import Any

from sqlalchemy import RowMapping

from hospital.models.tables import InsuranceTable, PatientTable
from hospital.repositories.base import Repository
from hospital.schemas.entities import Insurance


class InsuranceRepository(Repository[Insurance]):
    table = InsuranceTable.__table__
    key_columns = ("insuranceid",)
    noun = "insurance"
    dependents = ((PatientTable.__table__, "insuranceid"),)
    duplicate_key_message = "Error: An insurance with this ID already exists."

    def _to_entity(self, row: RowMapping) -> Insurance:
        return Insurance(
            id=row["insuranceid"],
            company=row["company"],
            address=row["address"],
            phone=row["phone"],
        )

    def _to_values(self, entity: Insurance) -> dict[str, Any]:
        return {
            "insuranceid": entity.id,
            "company": entity.company,
            "address": entity.address,
            "phone": entity.phone,
        }

    def _key_of(self, entity: Insurance) -> tuple[str]:
        return (entity.id,)

    def find_by_company(self, company: str) -> Insurance | None:
        return self._find_one(self.table.c.company == company)

    def find_all_by_company(self, company: str) -> list[Insurance]:
        return self._find_many(self.table.c.company == company)
