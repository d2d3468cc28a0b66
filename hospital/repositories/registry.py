"""Builds the six repositories over one shared connection."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import Connection

from hospital.repositories.doctor import DoctorRepository
from hospital.repositories.drug import DrugRepository
from hospital.repositories.insurance import InsuranceRepository
from hospital.repositories.patient import PatientRepository
from hospital.repositories.prescription import PrescriptionRepository
from hospital.repositories.visit import VisitRepository


@dataclass
class Repositories:
    insurance: InsuranceRepository
    doctors: DoctorRepository
    drugs: DrugRepository
    patients: PatientRepository
    prescriptions: PrescriptionRepository
    visits: VisitRepository

    @classmethod
    def build(cls, connection: Connection, *, strict: bool = False) -> Repositories:
        """Wire repositories leaves-first so each borrows the same connection."""
        insurance = InsuranceRepository(connection, strict=strict)
        doctors = DoctorRepository(connection, strict=strict)
        drugs = DrugRepository(connection, strict=strict)
        patients = PatientRepository(connection, insurance, strict=strict)
        return cls(
            insurance=insurance,
            doctors=doctors,
            drugs=drugs,
            patients=patients,
            prescriptions=PrescriptionRepository(connection, drugs, doctors, patients, strict=strict),
            visits=VisitRepository(connection, doctors, patients, strict=strict),
        )
