"""Patient router - FastAPI endpoints for patient operations"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_approved_profile, require_admin
from ...config import REQUIRED_EXAMS
from ...database import get_db
from ...models import Profile
from ..notifications.dispatch import dispatch_new_patient
from .schemas import (
    DashboardStats,
    ExamChecklistUpdate,
    PatientCreate,
    PatientHistoryResponse,
    PatientResponse,
    PatientUpdate,
)
from .service import PatientService, to_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/patients", tags=["Patients"])


def get_patient_service(db: Session = Depends(get_db)) -> PatientService:
    """Dependency injection for PatientService"""
    return PatientService(db)


# ============================================================================
# LISTS AND DASHBOARD
# ============================================================================


@router.get("", response_model=list[PatientResponse])
async def list_patients(
    status: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    is_oncology: Optional[bool] = Query(None),
    _: Profile = Depends(get_approved_profile),
    service: PatientService = Depends(get_patient_service),
):
    """List patients, newest first, optionally filtered by status, search text or oncology flag"""
    return [to_response(p) for p in service.list_patients(status, search, is_oncology)]


@router.get("/stats", response_model=DashboardStats)
async def dashboard_stats(
    _: Profile = Depends(get_approved_profile),
    service: PatientService = Depends(get_patient_service),
):
    return service.dashboard_stats()


@router.get("/required-exams", response_model=list[str])
async def required_exams(_: Profile = Depends(get_approved_profile)):
    return REQUIRED_EXAMS


# ============================================================================
# CORE CRUD OPERATIONS
# ============================================================================


@router.get("/{patient_id}", response_model=PatientResponse)
async def get_patient(
    patient_id: str,
    _: Profile = Depends(get_approved_profile),
    service: PatientService = Depends(get_patient_service),
):
    return to_response(service.get_patient(patient_id))


@router.post("", response_model=PatientResponse, status_code=201)
async def create_patient(
    data: PatientCreate,
    background_tasks: BackgroundTasks,
    current_profile: Profile = Depends(require_admin),
    service: PatientService = Depends(get_patient_service),
):
    patient = service.create_patient(data, current_profile)
    background_tasks.add_task(dispatch_new_patient, patient.name, patient.procedure)
    return to_response(patient)


@router.put("/{patient_id}", response_model=PatientResponse)
async def update_patient(
    patient_id: str,
    data: PatientUpdate,
    current_profile: Profile = Depends(require_admin),
    service: PatientService = Depends(get_patient_service),
):
    return to_response(service.update_patient(patient_id, data, current_profile))


@router.delete("/{patient_id}")
async def delete_patient(
    patient_id: str,
    _: Profile = Depends(require_admin),
    service: PatientService = Depends(get_patient_service),
):
    return service.delete_patient(patient_id)


# ============================================================================
# EXAMS AND HISTORY
# ============================================================================


@router.put("/{patient_id}/exams", response_model=PatientResponse)
async def update_exams(
    patient_id: str,
    data: ExamChecklistUpdate,
    current_profile: Profile = Depends(get_approved_profile),
    service: PatientService = Depends(get_patient_service),
):
    """Replace the checked-exams list (the team ticks exams as the patient brings them)"""
    return to_response(service.update_exams(patient_id, data.exams_checklist, current_profile))


@router.get("/{patient_id}/history", response_model=list[PatientHistoryResponse])
async def patient_history(
    patient_id: str,
    _: Profile = Depends(get_approved_profile),
    service: PatientService = Depends(get_patient_service),
):
    return service.get_history(patient_id)


__all__ = ["router"]
