"""Tests for patient persistence and insurer resolution."""

from sqlalchemy import insert, select

from hospital.models.tables import PatientTable
from hospital.schemas.entities import NHS, Insurance, Patient
from hospital.services.outcome import OutcomeStatus, Reason

patient_table = PatientTable.__table__


def _make_insurance(insurance_id="I1", company="Bupa"):
    return Insurance(id=insurance_id, company=company, address="1 High St", phone="0100")


def _make_patient(patient_id="P1", email="ann@example.org", insurance=None, **overrides):
    fields = {
        "id": patient_id,
        "first_name": "Ann",
        "surname": "Lee",
        "address": "2 Low St",
        "postcode": "AB1 2CD",
        "phone": "0200",
        "email": email,
        "insurance": insurance,
    }
    fields.update(overrides)
    return Patient(**fields)


def _stored_insurance_id(database, patient_id):
    stmt = select(patient_table.c.insuranceid).where(patient_table.c.patientid == patient_id)
    return database.connection.execute(stmt).scalar_one()


def test_add_with_insurer_materializes_insurer(repos):
    insurer = _make_insurance()
    repos.insurance.add(insurer)
    patient = _make_patient(insurance=insurer)

    assert repos.patients.add(patient).status == OutcomeStatus.CREATED
    found = repos.patients.find_by_key("P1")
    assert found == patient
    assert found.insurance == insurer
    assert found.insurer_name == "Bupa"


def test_no_insurer_is_stored_as_nhs(database, repos):
    repos.patients.add(_make_patient())

    assert _stored_insurance_id(database, "P1") == NHS
    found = repos.patients.find_by_key("P1")
    assert found.insurance is None
    assert found.to_form()["Insurance"] == NHS


def test_unknown_insurer_id_materializes_as_none(database, repos):
    database.connection.execute(
        insert(patient_table).values(
            patientid="P9",
            firstname="Orphan",
            surname="Row",
            address="x",
            postcode="y",
            phone="z",
            email="orphan@example.org",
            insuranceid="GONE",
        )
    )

    patient = repos.patients.find_by_key("P9")

    assert patient is not None
    assert patient.insurance is None
    assert patient.insurance_id == NHS


def test_duplicate_id_and_email_rules(repos):
    repos.patients.add(_make_patient())

    assert repos.patients.add(_make_patient(email="new@example.org")).reason == Reason.DUPLICATE_KEY
    clash = repos.patients.add(_make_patient(patient_id="P2"))
    assert clash.reason == Reason.DUPLICATE_NATURAL_KEY
    assert clash.message == "Error: A patient with this email already exists."
    assert repos.patients.find_by_key("P2") is None


def test_update_email_rules(repos):
    repos.patients.add(_make_patient())
    repos.patients.add(_make_patient(patient_id="P2", email="bob@example.org", first_name="Bob"))

    stolen = repos.patients.update(_make_patient(patient_id="P2", email="ann@example.org"))
    assert stolen.reason == Reason.DUPLICATE_NATURAL_KEY

    same = repos.patients.update(_make_patient(patient_id="P2", email="bob@example.org", phone="0999"))
    assert same.status == OutcomeStatus.UPDATED
    assert repos.patients.find_by_key("P2").phone == "0999"


def test_update_switches_insurer(database, repos):
    insurer = _make_insurance()
    repos.insurance.add(insurer)
    repos.patients.add(_make_patient())

    repos.patients.update(_make_patient(insurance=insurer))

    assert _stored_insurance_id(database, "P1") == "I1"
    assert repos.patients.find_by_key("P1").insurance == insurer


def test_update_and_delete_of_missing_patient(repos):
    assert repos.patients.update(_make_patient()).reason == Reason.NOT_FOUND
    assert repos.patients.delete("P1").reason == Reason.NOT_FOUND


def test_lookups(repos):
    repos.patients.add(_make_patient())

    assert repos.patients.find_by_email("ann@example.org").id == "P1"
    assert repos.patients.find_by_full_name("Ann Lee").id == "P1"
    assert [p.id for p in repos.patients.find_all_by_full_name("Ann Lee")] == ["P1"]
    assert [p.id for p in repos.patients.find_by_insurance(NHS)] == ["P1"]


def test_search_matches_insurer_name(repos):
    insurer = _make_insurance()
    repos.insurance.add(insurer)
    repos.patients.add(_make_patient(insurance=insurer))
    repos.patients.add(_make_patient(patient_id="P2", email="b@example.org"))

    assert [p.id for p in repos.patients.search("bupa")] == ["P1"]
    assert [p.id for p in repos.patients.search("nhs")] == ["P2"]
