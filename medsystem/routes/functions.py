"""
Function endpoints called by the web app, the landing page and cron.

Every response is a JSON envelope: success bodies carry "success": true and
failures carry an "error" string. HTTPExceptions raised under /functions are
reshaped into that envelope by the handler registered in main.
"""

import hmac
import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, File, Form, Header, HTTPException, Query, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..auth import get_approved_profile, get_current_profile, is_admin, optional_security
from ..config import FUNCTIONS_SECRET
from ..database import get_db
from ..domain.landing.service import submit_landing_form
from ..domain.notifications.push import send_push_to_user
from ..domain.notifications.service import (
    get_notifications_summary,
    notify_daily_tasks,
    notify_new_note,
    notify_new_patient,
)
from ..domain.traffic.schemas import TrafficReportResponse
from ..domain.traffic.service import TrafficReportService
from ..models import Profile
from ..rate_limiter import create_rate_limiter
from ..services.status_automation import update_completed_surgeries

logger = logging.getLogger(__name__)

FUNCTIONS_PREFIX = "/functions"

router = APIRouter(prefix=FUNCTIONS_PREFIX, tags=["Functions"])

landing_rate_limit = create_rate_limiter(
    limit=5,
    window_seconds=60,
    key_prefix="landing_form",
    message="Muitas tentativas. Aguarde 1 minuto e tente novamente.",
)


def error_response(message: str, status_code: int = 500, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


async def require_functions_caller(
    x_functions_secret: Optional[str] = Header(None),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
    db: Session = Depends(get_db),
) -> Optional[Profile]:
    """Cron presents the shared secret; people need an approved admin token"""
    if x_functions_secret and FUNCTIONS_SECRET:
        if hmac.compare_digest(x_functions_secret, FUNCTIONS_SECRET):
            return None
        raise HTTPException(status_code=401, detail="Segredo inválido")

    if credentials is None:
        raise HTTPException(status_code=401, detail="Não autorizado")

    profile = await get_current_profile(credentials, db)
    if not profile.approved or not is_admin(db, profile):
        raise HTTPException(status_code=403, detail="Apenas administradores podem fazer isso")
    return profile


class PushRequest(BaseModel):
    user_id: Optional[str] = None
    title: Optional[str] = None
    body: Optional[str] = None
    data: Optional[dict[str, Any]] = None


class NewPatientRequest(BaseModel):
    patient_name: Optional[str] = None
    procedure: Optional[str] = None


class NewNoteRequest(BaseModel):
    patient_name: Optional[str] = None
    note_preview: Optional[str] = None
    patient_id: Optional[str] = None


# ============================================================================
# PUBLIC
# ============================================================================


@router.post("/submit-landing-form")
async def submit_landing(
    payload: Optional[dict] = Body(None),
    _: None = Depends(landing_rate_limit),
    db: Session = Depends(get_db),
):
    patient = submit_landing_form(db, payload)
    return {"success": True, "patientId": patient.id}


@router.get("/get-notifications-summary")
async def notifications_summary(
    token: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        return get_notifications_summary(db, token)
    except Exception as e:
        logger.error(f"❌ Error building notifications summary: {e}")
        return error_response(str(e), summary="❌ Erro ao buscar notificações")


# ============================================================================
# SIGNED-IN USERS
# ============================================================================


@router.post("/analyze-traffic-pdf")
async def analyze_traffic_pdf(
    file: Optional[UploadFile] = File(None),
    text: Optional[str] = Form(None),
    pdfFileName: Optional[str] = Form(None),
    profile: Profile = Depends(get_approved_profile),
    db: Session = Depends(get_db),
):
    """Upload a lead-report PDF (or text already extracted) and import it"""
    data = await file.read() if file is not None else None
    service = TrafficReportService(db)
    result = await service.analyze(
        profile,
        file_name=file.filename if file is not None else None,
        content_type=file.content_type if file is not None else None,
        data=data,
        text=text,
        pdf_file_name=pdfFileName,
    )
    report = TrafficReportResponse.model_validate(result["report"])
    return {
        "success": True,
        "data": jsonable_encoder(report),
        "patients_created": len(result["patients_created"]),
    }


@router.post("/send-push-notification")
async def send_push_notification(
    payload: PushRequest,
    _: Profile = Depends(get_approved_profile),
    db: Session = Depends(get_db),
):
    if not payload.user_id or not payload.title or not payload.body:
        return error_response("Missing required fields: user_id, title, body", 400)

    outcome = await send_push_to_user(
        db, payload.user_id, payload.title, payload.body, payload.data
    )
    if outcome is None:
        return {"message": "No push tokens found"}
    return {"success": True, "message": "Notifications sent", **outcome}


@router.post("/notify-new-patient")
async def notify_new_patient_endpoint(
    payload: NewPatientRequest,
    _: Profile = Depends(get_approved_profile),
    db: Session = Depends(get_db),
):
    if not payload.patient_name:
        return error_response("Missing required field: patient_name", 400)
    return await notify_new_patient(db, payload.patient_name, payload.procedure or "")


@router.post("/notify-new-note")
async def notify_new_note_endpoint(
    payload: NewNoteRequest,
    _: Profile = Depends(get_approved_profile),
    db: Session = Depends(get_db),
):
    if not payload.patient_name:
        return error_response("Missing required field: patient_name", 400)
    return await notify_new_note(
        db, payload.patient_name, payload.note_preview, patient_id=payload.patient_id
    )


# ============================================================================
# CRON
# ============================================================================


@router.post("/notify-daily-tasks")
async def notify_daily_tasks_endpoint(
    _: Optional[Profile] = Depends(require_functions_caller),
    db: Session = Depends(get_db),
):
    return await notify_daily_tasks(db)


@router.post("/update-completed-surgeries")
async def update_completed_surgeries_endpoint(
    _: Optional[Profile] = Depends(require_functions_caller),
    db: Session = Depends(get_db),
):
    result = update_completed_surgeries(db)
    message = "Successfully updated surgeries" if result["count"] else "No surgeries to update"
    return {"success": True, "message": message, **result}
