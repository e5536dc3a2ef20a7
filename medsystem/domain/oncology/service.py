"""Oncology timeline: dated milestones for patients flagged as oncology cases"""

import logging
from datetime import date, datetime
from typing import Optional

from fastapi import HTTPException
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from ...models import OncologyEvent, OncologyEventType, Patient, PatientStatus, Profile
from ...shared.clock import clinic_now

logger = logging.getLogger(__name__)

EVENT_TYPE_LABELS = {
    OncologyEventType.DIAGNOSIS.value: "Diagnóstico",
    OncologyEventType.EXAM.value: "Exame",
    OncologyEventType.TREATMENT_START.value: "Início de Tratamento",
    OncologyEventType.CONSULTATION.value: "Consulta",
    OncologyEventType.SURGERY.value: "Cirurgia",
    OncologyEventType.FOLLOW_UP.value: "Acompanhamento",
    OncologyEventType.REMISSION.value: "Remissão",
    OncologyEventType.OTHER.value: "Outro",
}

# Oncology dashboard card hides finished cases
INACTIVE_STATUSES = (PatientStatus.CANCELLED.value, PatientStatus.COMPLETED.value)


class OncologyEventCreate(BaseModel):
    event_type: OncologyEventType
    title: str
    description: Optional[str] = None
    event_date: Optional[date] = None

    @field_validator("title")
    @classmethod
    def check_title(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError("Informe o título do evento")
        return v[:255]


class OncologyEventResponse(BaseModel):
    id: str
    patient_id: str
    event_type: str
    event_type_label: Optional[str] = None
    event_date: date
    title: str
    description: Optional[str] = None
    created_by: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OncologyPatientSummary(BaseModel):
    id: str
    name: str
    procedure: str
    status: str
    surgery_date: Optional[datetime] = None
    oncology_stage: Optional[str] = None
    responsible_user_id: Optional[str] = None
    latest_event: Optional[OncologyEventResponse] = None


def event_response(event: OncologyEvent) -> OncologyEventResponse:
    response = OncologyEventResponse.model_validate(event)
    response.event_type_label = EVENT_TYPE_LABELS.get(event.event_type, event.event_type)
    return response


class OncologyService:
    def __init__(self, db: Session):
        self.db = db

    def _patient(self, patient_id: str) -> Patient:
        patient = self.db.query(Patient).filter(Patient.id == patient_id).first()
        if not patient:
            raise HTTPException(status_code=404, detail="Paciente não encontrado")
        return patient

    def _events_query(self, patient_id: str):
        return (
            self.db.query(OncologyEvent)
            .filter(OncologyEvent.patient_id == patient_id)
            .order_by(OncologyEvent.event_date.desc(), OncologyEvent.created_at.desc())
        )

    def list_events(self, patient_id: str) -> list[OncologyEvent]:
        self._patient(patient_id)
        return self._events_query(patient_id).all()

    def add_event(
        self, patient_id: str, data: OncologyEventCreate, profile: Profile
    ) -> OncologyEvent:
        patient = self._patient(patient_id)
        if not patient.is_oncology:
            raise HTTPException(
                status_code=400, detail="Paciente não está marcado como oncológico"
            )

        event = OncologyEvent(
            patient_id=patient_id,
            event_type=data.event_type.value,
            event_date=data.event_date or clinic_now().date(),
            title=data.title,
            description=(data.description or "").strip() or None,
            created_by=profile.id,
        )
        try:
            self.db.add(event)
            self.db.commit()
            self.db.refresh(event)
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to add oncology event for {patient_id}: {e}")
            raise HTTPException(status_code=500, detail="Erro ao adicionar evento") from e
        return event

    def delete_event(self, event_id: str) -> dict:
        event = self.db.query(OncologyEvent).filter(OncologyEvent.id == event_id).first()
        if not event:
            raise HTTPException(status_code=404, detail="Evento não encontrado")
        self.db.delete(event)
        self.db.commit()
        return {"message": "Evento removido"}

    def active_patients(
        self, responsible_user_id: Optional[str] = None
    ) -> list[OncologyPatientSummary]:
        query = self.db.query(Patient).filter(
            Patient.is_oncology.is_(True), Patient.status.notin_(INACTIVE_STATUSES)
        )
        if responsible_user_id:
            query = query.filter(Patient.responsible_user_id == responsible_user_id)

        summaries = []
        for patient in query.order_by(Patient.name.asc()).all():
            latest = self._events_query(patient.id).first()
            summaries.append(
                OncologyPatientSummary(
                    id=patient.id,
                    name=patient.name,
                    procedure=patient.procedure,
                    status=patient.status,
                    surgery_date=patient.surgery_date,
                    oncology_stage=patient.oncology_stage,
                    responsible_user_id=patient.responsible_user_id,
                    latest_event=event_response(latest) if latest else None,
                )
            )
        return summaries
