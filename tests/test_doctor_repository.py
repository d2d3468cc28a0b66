"""Tests for doctor persistence: id and email rules."""

from hospital.repositories.doctor import DoctorRepository
from hospital.schemas.entities import Doctor
from hospital.services.outcome import OutcomeStatus, Reason, Severity


def _make_doctor(doctor_id="D1", email="house@example.org", **overrides):
    fields = {
        "id": doctor_id,
        "first_name": "Gregory",
        "surname": "House",
        "address": "221B Baker Street",
        "email": email,
        "specialization": "Diagnostics",
        "hospital": "Princeton-Plainsboro",
    }
    fields.update(overrides)
    return Doctor(**fields)


def test_add_then_find_returns_equal_doctor(repos):
    doctor = _make_doctor()
    outcome = repos.doctors.add(doctor)

    assert outcome.status == OutcomeStatus.CREATED
    assert outcome.as_pair() == ("Doctor added successfully!", Severity.INFORMATION)
    assert repos.doctors.find_by_key("D1") == doctor


def test_hospital_is_nullable(repos):
    doctor = _make_doctor(hospital=None)
    repos.doctors.add(doctor)
    assert repos.doctors.find_by_key("D1").hospital is None


def test_duplicate_id_is_rejected_and_storage_unchanged(repos):
    repos.doctors.add(_make_doctor())
    outcome = repos.doctors.add(_make_doctor(email="other@example.org", surname="Changed"))

    assert outcome.reason == Reason.DUPLICATE_KEY
    assert outcome.severity == Severity.ERROR
    assert repos.doctors.find_by_key("D1").surname == "House"
    assert len(repos.doctors.list_all()) == 1


def test_duplicate_email_on_add_is_rejected(repos):
    repos.doctors.add(_make_doctor())
    outcome = repos.doctors.add(_make_doctor(doctor_id="D2"))

    assert outcome.reason == Reason.DUPLICATE_NATURAL_KEY
    assert "email" in outcome.message
    assert repos.doctors.find_by_key("D2") is None


def test_update_missing_doctor_is_not_found(repos):
    outcome = repos.doctors.update(_make_doctor())
    assert outcome.reason == Reason.NOT_FOUND
    assert repos.doctors.list_all() == []


def test_update_to_email_of_other_doctor_is_rejected(repos):
    repos.doctors.add(_make_doctor())
    repos.doctors.add(_make_doctor(doctor_id="D2", email="wilson@example.org"))

    outcome = repos.doctors.update(_make_doctor(doctor_id="D2", email="house@example.org"))

    assert outcome.reason == Reason.DUPLICATE_NATURAL_KEY
    assert repos.doctors.find_by_key("D2").email == "wilson@example.org"


def test_update_keeping_own_email_succeeds(repos):
    repos.doctors.add(_make_doctor())
    outcome = repos.doctors.update(_make_doctor(specialization="Nephrology"))

    assert outcome.status == OutcomeStatus.UPDATED
    assert outcome.message == "Doctor updated successfully!"
    assert repos.doctors.find_by_key("D1").specialization == "Nephrology"


def test_delete_missing_doctor_is_not_found(repos):
    outcome = repos.doctors.delete("D404")
    assert outcome.reason == Reason.NOT_FOUND
    assert outcome.message == "Error: Doctor with this ID does not exist."


def test_delete_removes_doctor(repos):
    repos.doctors.add(_make_doctor())
    outcome = repos.doctors.delete("D1")

    assert outcome.status == OutcomeStatus.DELETED
    assert repos.doctors.find_by_key("D1") is None


def test_natural_key_lookups(repos):
    repos.doctors.add(_make_doctor())

    assert repos.doctors.find_by_email("house@example.org").id == "D1"
    assert repos.doctors.find_by_full_name("Gregory House").id == "D1"
    assert repos.doctors.find_by_full_name("Gregory") is None
    assert repos.doctors.find_by_email("nobody@example.org") is None


def test_search_is_case_insensitive(repos):
    repos.doctors.add(_make_doctor())
    repos.doctors.add(_make_doctor(doctor_id="D2", email="w@example.org", surname="Wilson", specialization="Oncology"))

    assert [d.id for d in repos.doctors.search("onco")] == ["D2"]
    assert len(repos.doctors.search("")) == 2
    assert repos.doctors.search("cardiology") == []


class LosesEmailRace(DoctorRepository):
    """Skips its first email check, as if another writer took the email just after it."""

    checked = False

    def _check_unique(self, entity, own_key):
        if not self.checked:
            self.checked = True
            return None
        return super()._check_unique(entity, own_key)


def test_email_constraint_hit_on_insert_is_reported_as_email_clash(database, repos):
    repos.doctors.add(_make_doctor())
    racing = LosesEmailRace(database.connection)

    outcome = racing.add(_make_doctor(doctor_id="D2"))

    assert outcome.reason == Reason.DUPLICATE_NATURAL_KEY
    assert outcome.message == "Error: A doctor with this email already exists."
    assert repos.doctors.find_by_key("D2") is None


def test_email_constraint_hit_on_update_is_reported_as_email_clash(database, repos):
    repos.doctors.add(_make_doctor())
    repos.doctors.add(_make_doctor(doctor_id="D2", email="wilson@example.org"))
    racing = LosesEmailRace(database.connection)

    outcome = racing.update(_make_doctor(doctor_id="D2", email="house@example.org"))

    assert outcome.reason == Reason.DUPLICATE_NATURAL_KEY
    assert repos.doctors.find_by_key("D2").email == "wilson@example.org"
