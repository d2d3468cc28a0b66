"""
FastAPI routes: the record screens as an HTTP surface.

Each entity gets the operations its desktop screen offers: list and
search, open a record, fetch the blank "Add" form with its choices, and
add, modify or delete through a flat field map. Mutations always answer
with the outcome body (message and severity) the screen would show.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from hospital.config import settings
from hospital.models.database import DatabaseConnectionError, DatabaseManager
from hospital.schemas.api import (
    EntityName,
    FieldMap,
    FormResponse,
    HealthResponse,
    OutcomeResponse,
)
from hospital.services.forms import EntityForm, FormRejected, Forms
from hospital.services.outcome import Outcome, OutcomeStatus, Reason

logger = logging.getLogger(__name__)

router = APIRouter()

STATUS_CODES: dict[Reason, int] = {
    Reason.NOT_FOUND: 404,
    Reason.DUPLICATE_KEY: 409,
    Reason.DUPLICATE_NATURAL_KEY: 409,
    Reason.REFERENCED: 409,
    Reason.UNRESOLVED_REFERENCE: 422,
    Reason.INVALID_NUMBER: 422,
    Reason.INVALID_DATE: 422,
    Reason.INVALID_INPUT: 422,
    Reason.PERSISTENCE_FAILURE: 500,
    Reason.STORAGE_ERROR: 503,
}


def get_forms(request: Request) -> Forms:
    return request.app.state.forms


def get_database(request: Request) -> DatabaseManager:
    return request.app.state.database


def outcome_response(outcome: Outcome) -> JSONResponse:
    if outcome.status == OutcomeStatus.CREATED:
        status_code = 201
    elif outcome.ok:
        status_code = 200
    else:
        status_code = STATUS_CODES.get(outcome.reason, 400)  # type: ignore[arg-type]
    body = OutcomeResponse.from_outcome(outcome)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def dump(entity: Any) -> dict[str, Any]:
    return entity.model_dump(mode="json")


def form_for(entity: EntityName, forms: Forms) -> EntityForm:
    return getattr(forms, entity.value)


def single_key_form(entity: EntityName, forms: Forms) -> EntityForm:
    if entity == EntityName.visits:
        raise HTTPException(
            status_code=404,
            detail="Visits are addressed by patient id, doctor id and date",
        )
    return form_for(entity, forms)


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@router.get("/health", response_model=HealthResponse)
def health_check(database: DatabaseManager = Depends(get_database)):
    """Health endpoint; verifies DB connectivity."""
    try:
        database.connection.execute(select(1))
        db_status = "connected"
    except (DatabaseConnectionError, SQLAlchemyError):
        db_status = "disconnected"
    return HealthResponse(environment=settings.ENVIRONMENT, database=db_status)


# ---------------------------------------------------------------------------
# Visits (composite key)
# ---------------------------------------------------------------------------

@router.get("/visits/{patient_id}/{doctor_id}/{date_of_visit}")
def get_visit(patient_id: str, doctor_id: str, date_of_visit: str, forms: Forms = Depends(get_forms)):
    key = _visit_key(forms, patient_id, doctor_id, date_of_visit)
    visit = forms.visits.repository.find_by_key(*key)
    if visit is None:
        raise HTTPException(status_code=404, detail="Visit not found")
    return dump(visit)


@router.put("/visits/{patient_id}/{doctor_id}/{date_of_visit}", response_model=OutcomeResponse)
def modify_visit(
    patient_id: str,
    doctor_id: str,
    date_of_visit: str,
    fields: FieldMap,
    forms: Forms = Depends(get_forms),
):
    return outcome_response(forms.visits.update((patient_id, doctor_id, date_of_visit), fields))


@router.delete("/visits/{patient_id}/{doctor_id}/{date_of_visit}", response_model=OutcomeResponse)
def delete_visit(patient_id: str, doctor_id: str, date_of_visit: str, forms: Forms = Depends(get_forms)):
    return outcome_response(forms.visits.delete((patient_id, doctor_id, date_of_visit)))


def _visit_key(forms: Forms, patient_id: str, doctor_id: str, date_of_visit: str) -> tuple:
    try:
        return forms.visits.parse_key((patient_id, doctor_id, date_of_visit))
    except FormRejected as rejected:
        raise HTTPException(status_code=422, detail=rejected.outcome.message) from None


# ---------------------------------------------------------------------------
# Patient history
# ---------------------------------------------------------------------------

@router.get("/patients/{patient_id}/main-doctor")
def get_main_doctor(patient_id: str, forms: Forms = Depends(get_forms)):
    """The doctor the patient has visited most often."""
    doctor = forms.visits.repository.main_doctor_for_patient(patient_id)
    if doctor is None:
        raise HTTPException(status_code=404, detail="Patient has no visits")
    return dump(doctor)


@router.get("/patients/{patient_id}/visits")
def get_patient_visits(patient_id: str, forms: Forms = Depends(get_forms)):
    return [dump(visit) for visit in forms.visits.repository.find_by_patient(patient_id)]


@router.get("/patients/{patient_id}/prescriptions")
def get_patient_prescriptions(patient_id: str, forms: Forms = Depends(get_forms)):
    return [dump(p) for p in forms.prescriptions.repository.find_by_patient(patient_id)]


# ---------------------------------------------------------------------------
# Entry forms
# ---------------------------------------------------------------------------
# Fixed prefixes, so no record id can shadow them.

@router.get("/forms/{entity}", response_model=FormResponse)
def blank_form(entity: EntityName, forms: Forms = Depends(get_forms)):
    form = form_for(entity, forms)
    return FormResponse(entity=entity, fields=form.blank(), options=form.options())


@router.get("/forms/{entity}/{record_id}", response_model=FormResponse)
def edit_form(entity: EntityName, record_id: str, forms: Forms = Depends(get_forms)):
    form = single_key_form(entity, forms)
    record = form.repository.find_by_key(record_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"{entity.value} record not found")
    return FormResponse(entity=entity, fields=record.to_form(), options=form.options())


@router.get("/options/{entity}")
def reference_options(entity: EntityName, forms: Forms = Depends(get_forms)):
    """Choices for the form's reference fields, keyed by field label."""
    options = form_for(entity, forms).options()
    return {field: [choice.model_dump() for choice in entries] for field, entries in options.items()}


# ---------------------------------------------------------------------------
# Generic record screens
# ---------------------------------------------------------------------------

@router.get("/{entity}")
def list_records(entity: EntityName, q: str | None = None, forms: Forms = Depends(get_forms)):
    """List every record of a table, optionally filtered by a search term."""
    return [dump(record) for record in form_for(entity, forms).repository.search(q)]


@router.post("/{entity}", response_model=OutcomeResponse, status_code=201)
def add_record(entity: EntityName, fields: FieldMap, forms: Forms = Depends(get_forms)):
    return outcome_response(form_for(entity, forms).add(fields))


@router.get("/{entity}/{record_id}")
def get_record(entity: EntityName, record_id: str, forms: Forms = Depends(get_forms)):
    record = single_key_form(entity, forms).repository.find_by_key(record_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"{entity.value} record not found")
    return dump(record)


@router.put("/{entity}/{record_id}", response_model=OutcomeResponse)
def modify_record(
    entity: EntityName,
    record_id: str,
    fields: FieldMap,
    forms: Forms = Depends(get_forms),
):
    return outcome_response(single_key_form(entity, forms).update((record_id,), fields))


@router.delete("/{entity}/{record_id}", response_model=OutcomeResponse)
def delete_record(entity: EntityName, record_id: str, forms: Forms = Depends(get_forms)):
    return outcome_response(single_key_form(entity, forms).delete((record_id,)))
