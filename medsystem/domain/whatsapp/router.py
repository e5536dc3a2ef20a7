import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ...auth import get_approved_profile
from ...database import get_db
from ...models import Patient, Profile
from ...shared.url_security import create_whatsapp_url
from .templates import TEMPLATE_BUTTON_LABELS, TEMPLATE_TYPES, build_message

logger = logging.getLogger(__name__)

router = APIRouter(tags=["WhatsApp"])


class WhatsAppMessage(BaseModel):
    template: str
    label: str
    message: str
    url: str


@router.get("/patients/{patient_id}/whatsapp/{template}", response_model=WhatsAppMessage)
async def whatsapp_message(
    patient_id: str,
    template: str,
    exam_name: Optional[str] = Query(None),
    _: Profile = Depends(get_approved_profile),
    db: Session = Depends(get_db),
):
    """Render a template for the patient and the wa.me link that opens it"""
    if template not in TEMPLATE_TYPES:
        raise HTTPException(status_code=404, detail="Modelo de mensagem não encontrado")

    patient = db.query(Patient).filter(Patient.id == patient_id).first()
    if not patient:
        raise HTTPException(status_code=404, detail="Paciente não encontrado")

    message = build_message(template, patient, exam_name)
    if not message:
        raise HTTPException(status_code=400, detail="Paciente sem data de cirurgia agendada")

    url = create_whatsapp_url(patient.phone, message)
    if url == "#":
        raise HTTPException(status_code=400, detail="Paciente sem telefone válido")

    return WhatsAppMessage(
        template=template, label=TEMPLATE_BUTTON_LABELS[template], message=message, url=url
    )
