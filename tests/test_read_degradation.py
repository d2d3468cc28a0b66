"""Behaviour when the store cannot be reached."""

import logging

import pytest
from sqlalchemy.exc import SQLAlchemyError

from hospital.repositories.doctor import DoctorRepository
from hospital.schemas.entities import Drug
from hospital.services.outcome import STORAGE_ERROR_MESSAGE, Reason


@pytest.fixture
def broken(database, repos):
    repos.drugs.add(Drug(id="DR1", drug_name="Aspirin", side_effects="Nausea", benefits="Pain relief"))
    database.connection.close()
    return repos


def test_reads_degrade_to_empty(broken, caplog):
    with caplog.at_level(logging.ERROR):
        assert broken.drugs.list_all() == []
        assert broken.drugs.find_by_key("DR1") is None
        assert broken.doctors.find_by_email("house@example.org") is None
        assert broken.drugs.search("aspirin") == []
        assert broken.visits.main_doctor_for_patient("P1") is None
    assert "Error reading from drug" in caplog.text


def test_read_result_tells_failure_from_miss(broken):
    result = broken.drugs.read_all()

    assert not result.ok
    assert isinstance(result.error, SQLAlchemyError)
    with pytest.raises(SQLAlchemyError):
        result.unwrap()


def test_strict_repository_raises(database, broken):
    doctors = DoctorRepository(database.connection, strict=True)

    with pytest.raises(SQLAlchemyError):
        doctors.list_all()
    with pytest.raises(SQLAlchemyError):
        doctors.find_by_key("D1")


def test_mutations_report_storage_error(broken):
    drug = Drug(id="DR2", drug_name="Ibuprofen", side_effects="None", benefits="Pain relief")

    for outcome in (broken.drugs.add(drug), broken.drugs.update(drug), broken.drugs.delete("DR1")):
        assert outcome.reason == Reason.STORAGE_ERROR
        assert outcome.message == STORAGE_ERROR_MESSAGE


def test_form_update_reports_storage_error(broken, forms):
    outcome = forms.drugs.update(["DR1"], {"Drug Name": "Aspirin Forte"})
    assert outcome.reason == Reason.STORAGE_ERROR
