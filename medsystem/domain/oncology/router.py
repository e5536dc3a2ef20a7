from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_approved_profile, require_admin
from ...database import get_db
from ...models import Profile
from .service import (
    EVENT_TYPE_LABELS,
    OncologyEventCreate,
    OncologyEventResponse,
    OncologyPatientSummary,
    OncologyService,
    event_response,
)

router = APIRouter(tags=["Oncology"])


def get_oncology_service(db: Session = Depends(get_db)) -> OncologyService:
    return OncologyService(db)


@router.get("/oncology/event-types")
async def event_types():
    return [{"value": value, "label": label} for value, label in EVENT_TYPE_LABELS.items()]


@router.get("/oncology/patients", response_model=list[OncologyPatientSummary])
async def oncology_patients(
    responsible_user_id: Optional[str] = Query(None),
    _: Profile = Depends(get_approved_profile),
    service: OncologyService = Depends(get_oncology_service),
):
    """Open oncology cases with their most recent timeline event"""
    return service.active_patients(responsible_user_id)


@router.get("/patients/{patient_id}/oncology", response_model=list[OncologyEventResponse])
async def list_events(
    patient_id: str,
    _: Profile = Depends(get_approved_profile),
    service: OncologyService = Depends(get_oncology_service),
):
    return [event_response(e) for e in service.list_events(patient_id)]


@router.post(
    "/patients/{patient_id}/oncology", response_model=OncologyEventResponse, status_code=201
)
async def add_event(
    patient_id: str,
    data: OncologyEventCreate,
    current_profile: Profile = Depends(get_approved_profile),
    service: OncologyService = Depends(get_oncology_service),
):
    return event_response(service.add_event(patient_id, data, current_profile))


@router.delete("/oncology/{event_id}")
async def delete_event(
    event_id: str,
    _: Profile = Depends(require_admin),
    service: OncologyService = Depends(get_oncology_service),
):
    return service.delete_event(event_id)
