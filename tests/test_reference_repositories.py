"""Tests for drug and insurance persistence (no secondary unique fields)."""

from types import SimpleNamespace

from sqlalchemy import Delete, Insert, Update

from hospital.repositories.drug import DrugRepository
from hospital.repositories.insurance import InsuranceRepository
from hospital.schemas.entities import Drug, Insurance, Patient
from hospital.services.outcome import OutcomeStatus, Reason


def _make_drug(drug_id="DR1", name="Aspirin"):
    return Drug(id=drug_id, drug_name=name, side_effects="Nausea", benefits="Pain relief")


def _make_insurance(insurance_id="I1", company="Bupa"):
    return Insurance(id=insurance_id, company=company, address="1 High St", phone="0100")


class NoRowsWritten:
    """Connection stand-in whose writes report zero affected rows."""

    def __init__(self, connection):
        self._connection = connection

    def execute(self, statement, *args, **kwargs):
        if isinstance(statement, (Insert, Update, Delete)):
            return SimpleNamespace(rowcount=0)
        return self._connection.execute(statement, *args, **kwargs)


def test_drug_lifecycle(repos):
    drug = _make_drug()

    assert repos.drugs.add(drug).status == OutcomeStatus.CREATED
    assert repos.drugs.find_by_key("DR1") == drug
    assert repos.drugs.add(drug).reason == Reason.DUPLICATE_KEY

    changed = _make_drug(name="Aspirin Forte")
    assert repos.drugs.update(changed).status == OutcomeStatus.UPDATED
    assert repos.drugs.find_by_key("DR1").drug_name == "Aspirin Forte"

    assert repos.drugs.delete("DR1").status == OutcomeStatus.DELETED
    assert repos.drugs.find_by_key("DR1") is None
    assert repos.drugs.delete("DR1").reason == Reason.NOT_FOUND


def test_drug_update_never_creates(repos):
    outcome = repos.drugs.update(_make_drug())
    assert outcome.reason == Reason.NOT_FOUND
    assert outcome.message == "Error: Drug with this ID does not exist."
    assert repos.drugs.list_all() == []


def test_drug_lookup_by_display_label(repos):
    repos.drugs.add(_make_drug())

    assert repos.drugs.find_by_label("DR1 - Aspirin").id == "DR1"
    # Only the part before the first separator is the key.
    assert repos.drugs.find_by_label("DR1 - Aspirin - 75mg").id == "DR1"
    assert repos.drugs.find_by_label(" - Aspirin") is None
    assert repos.drugs.find_by_name("Aspirin")[0].id == "DR1"


def test_insurance_lifecycle(repos):
    insurance = _make_insurance()

    assert repos.insurance.add(insurance).message == "Insurance added successfully!"
    assert repos.insurance.find_by_key("I1") == insurance
    duplicate = repos.insurance.add(insurance)
    assert duplicate.reason == Reason.DUPLICATE_KEY
    assert duplicate.message == "Error: An insurance with this ID already exists."
    assert repos.insurance.find_by_company("Bupa").id == "I1"
    assert repos.insurance.find_by_company("Aviva") is None


def test_insurance_in_use_cannot_be_deleted(repos):
    repos.insurance.add(_make_insurance())
    repos.patients.add(
        Patient(
            id="P1",
            first_name="Ann",
            surname="Lee",
            address="2 Low St",
            postcode="AB1 2CD",
            phone="0200",
            email="ann@example.org",
            insurance=_make_insurance(),
        )
    )

    outcome = repos.insurance.delete("I1")

    assert outcome.reason == Reason.REFERENCED
    assert repos.insurance.find_by_key("I1") is not None


def test_zero_rows_written_is_a_persistence_failure(database, repos):
    repos.drugs.add(_make_drug())
    drugs = DrugRepository(NoRowsWritten(database.connection))

    assert drugs.add(_make_drug("DR2")).reason == Reason.PERSISTENCE_FAILURE
    assert drugs.update(_make_drug(name="Other")).reason == Reason.PERSISTENCE_FAILURE
    assert drugs.delete("DR1").reason == Reason.PERSISTENCE_FAILURE
    assert repos.drugs.find_by_key("DR1").drug_name == "Aspirin"


def test_zero_rows_insert_message(database):
    insurance = InsuranceRepository(NoRowsWritten(database.connection))
    outcome = insurance.add(_make_insurance())
    assert outcome.message == "Error: Insurance could not be added."
    assert not outcome.ok
