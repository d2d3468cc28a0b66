"""
Relational schema for the hospital records store.

Column names are lower-case and match the legacy schema the desktop client
was written against, so an existing database can be used as-is.
"""

from sqlalchemy import (
    Column,
    Date,
    ForeignKey,
    Integer,
    PrimaryKeyConstraint,
    String,
    Text,
)

from hospital.models.database import Base


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------
class InsuranceTable(Base):
    __tablename__ = "insurance"

    insuranceid = Column(String(64), primary_key=True)
    company = Column(String(255), nullable=False)
    address = Column(String(255), nullable=False)
    phone = Column(String(64), nullable=False)


class DrugTable(Base):
    __tablename__ = "drug"

    drugid = Column(String(64), primary_key=True)
    drugname = Column(String(255), nullable=False)
    sideeffects = Column(Text, nullable=False)
    benefits = Column(Text, nullable=False)


# ---------------------------------------------------------------------------
# People
# ---------------------------------------------------------------------------
class DoctorTable(Base):
    __tablename__ = "doctor"

    doctorid = Column(String(64), primary_key=True)
    firstname = Column(String(128), nullable=False)
    surname = Column(String(128), nullable=False)
    address = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    specialization = Column(String(128), nullable=False)
    hospital = Column(String(255), nullable=True)


class PatientTable(Base):
    __tablename__ = "patient"

    patientid = Column(String(64), primary_key=True)
    firstname = Column(String(128), nullable=False)
    surname = Column(String(128), nullable=False)
    address = Column(String(255), nullable=False)
    postcode = Column(String(32), nullable=False)
    phone = Column(String(64), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    # No FK: "NHS" is stored here without a matching insurance row.
    insuranceid = Column(String(64), nullable=False, default="NHS")


# ---------------------------------------------------------------------------
# Clinical records
# ---------------------------------------------------------------------------
class PrescriptionTable(Base):
    __tablename__ = "prescription"

    prescriptionid = Column(String(64), primary_key=True)
    dateprescribed = Column(Date, nullable=False)
    dosage = Column(Integer, nullable=False)
    duration = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    drugid = Column(String(64), ForeignKey("drug.drugid", ondelete="RESTRICT"), nullable=False)
    doctorid = Column(String(64), ForeignKey("doctor.doctorid", ondelete="RESTRICT"), nullable=False)
    patientid = Column(String(64), ForeignKey("patient.patientid", ondelete="RESTRICT"), nullable=False)


class VisitTable(Base):
    __tablename__ = "visit"

    patientid = Column(String(64), ForeignKey("patient.patientid", ondelete="RESTRICT"), nullable=False)
    doctorid = Column(String(64), ForeignKey("doctor.doctorid", ondelete="RESTRICT"), nullable=False)
    dateofvisit = Column(Date, nullable=False)
    symptoms = Column(Text, nullable=False)
    diagnosis = Column(Text, nullable=False)

    __table_args__ = (
        PrimaryKeyConstraint("patientid", "doctorid", "dateofvisit", name="pk_visit"),
    )
