"""Patient exam files and feedback images"""

from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from ...auth import get_approved_profile, require_admin
from ...database import get_db
from ...models import Profile
from ...storage import SIGNED_URL_EXPIRATION
from .schemas import FeedbackResponse, PatientFileResponse, SignedUrlResponse
from .service import FEEDBACK_TYPE_LABELS, PatientFileService, file_response

router = APIRouter(tags=["Files"])


def get_file_service(db: Session = Depends(get_db)) -> PatientFileService:
    return PatientFileService(db)


# ============================================================================
# EXAM FILES
# ============================================================================


@router.get("/patients/{patient_id}/files", response_model=list[PatientFileResponse])
async def list_files(
    patient_id: str,
    _: Profile = Depends(get_approved_profile),
    service: PatientFileService = Depends(get_file_service),
):
    return [file_response(f) for f in service.list_files(patient_id)]


@router.post("/patients/{patient_id}/files", response_model=PatientFileResponse, status_code=201)
async def upload_file(
    patient_id: str,
    file: UploadFile = File(...),
    current_profile: Profile = Depends(get_approved_profile),
    service: PatientFileService = Depends(get_file_service),
):
    data = await file.read()
    record = service.upload_file(
        patient_id, file.filename or "arquivo", file.content_type, data, current_profile
    )
    return file_response(record)


@router.get("/files/{file_id}/url", response_model=SignedUrlResponse)
async def file_url(
    file_id: str,
    _: Profile = Depends(get_approved_profile),
    service: PatientFileService = Depends(get_file_service),
):
    return SignedUrlResponse(url=service.signed_url(file_id), expires_in=SIGNED_URL_EXPIRATION)


@router.get("/files/{file_id}/download")
async def download_file(
    file_id: str,
    _: Profile = Depends(get_approved_profile),
    service: PatientFileService = Depends(get_file_service),
):
    record, chunks = service.download(file_id)
    return StreamingResponse(
        chunks,
        media_type=record.file_type or "application/octet-stream",
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{quote(record.file_name)}"
        },
    )


@router.delete("/files/{file_id}")
async def delete_file(
    file_id: str,
    _: Profile = Depends(require_admin),
    service: PatientFileService = Depends(get_file_service),
):
    return service.delete_file(file_id)


# ============================================================================
# FEEDBACK IMAGES
# ============================================================================


@router.get("/feedback-types")
async def feedback_types():
    return [{"value": value, "label": label} for value, label in FEEDBACK_TYPE_LABELS.items()]


@router.get("/patients/{patient_id}/feedbacks", response_model=list[FeedbackResponse])
async def list_feedbacks(
    patient_id: str,
    _: Profile = Depends(get_approved_profile),
    service: PatientFileService = Depends(get_file_service),
):
    return service.list_feedbacks(patient_id)


@router.post(
    "/patients/{patient_id}/feedbacks", response_model=FeedbackResponse, status_code=201
)
async def upload_feedback(
    patient_id: str,
    feedback_type: str = Form(...),
    description: Optional[str] = Form(None),
    file: UploadFile = File(...),
    current_profile: Profile = Depends(get_approved_profile),
    service: PatientFileService = Depends(get_file_service),
):
    data = await file.read()
    feedback = service.upload_feedback(
        patient_id,
        feedback_type,
        description,
        file.filename or "imagem",
        file.content_type,
        data,
        current_profile,
    )
    response = FeedbackResponse.model_validate(feedback)
    response.feedback_type_label = FEEDBACK_TYPE_LABELS.get(feedback_type)
    return response


@router.delete("/feedbacks/{feedback_id}")
async def delete_feedback(
    feedback_id: str,
    _: Profile = Depends(require_admin),
    service: PatientFileService = Depends(get_file_service),
):
    return service.delete_feedback(feedback_id)
