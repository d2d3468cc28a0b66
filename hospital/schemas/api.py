"""Pydantic models for API request/response serialization."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel

from hospital.schemas.entities import Choice
from hospital.services.outcome import Outcome


class EntityName(str, Enum):
    doctors = "doctors"
    drugs = "drugs"
    insurance = "insurance"
    patients = "patients"
    prescriptions = "prescriptions"
    visits = "visits"


# ---------------------------------------------------------------------------
# Entry forms
# ---------------------------------------------------------------------------

FieldMap = dict[str, str | None]


class FormResponse(BaseModel):
    entity: EntityName
    fields: dict[str, str]
    options: dict[str, list[Choice]] = {}


class OutcomeResponse(BaseModel):
    status: str
    message: str
    severity: str
    reason: str | None = None

    @classmethod
    def from_outcome(cls, outcome: Outcome) -> OutcomeResponse:
        return cls(
            status=outcome.status.value,
            message=outcome.message,
            severity=outcome.severity.value,
            reason=outcome.reason.value if outcome.reason else None,
        )


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

class HealthResponse(BaseModel):
    status: str = "healthy"
    environment: str
    database: str = "connected"
