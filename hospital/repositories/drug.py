"""Drugs that can be prescribed."""

from __future__ import annotations

from typing import Any

from sqlalchemy import RowMapping

from hospital.models.tables import DrugTable, PrescriptionTable
from hospital.repositories.base import Repository
from hospital.schemas.entities import Drug

LABEL_SEPARATOR = " - "


class DrugRepository(Repository[Drug]):
    table = DrugTable.__table__
    key_columns = ("drugid",)
    noun = "drug"
    dependents = ((PrescriptionTable.__table__, "drugid"),)

    def _to_entity(self, row: RowMapping) -> Drug:
        return Drug(
            id=row["drugid"],
            drug_name=row["drugname"],
            side_effects=row["sideeffects"],
            benefits=row["benefits"],
        )

    def _to_values(self, entity: Drug) -> dict[str, Any]:
        return {
            "drugid": entity.id,
            "drugname": entity.drug_name,
            "sideeffects": entity.side_effects,
            "benefits": entity.benefits,
        }

    def _key_of(self, entity: Drug) -> tuple[str]:
        return (entity.id,)

    def find_by_name(self, drug_name: str) -> list[Drug]:
        return self._find_many(self.table.c.drugname == drug_name)

    def find_by_label(self, label: str) -> Drug | None:
        """Look up a drug from its "id - name" display label."""
        drug_id = label.split(LABEL_SEPARATOR, 1)[0].strip()
        if not drug_id:
            return None
        return self.find_by_key(drug_id)
