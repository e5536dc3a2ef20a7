"""Patient notes - free-text annotations left by the team"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from ...auth import is_admin
from ...models import Patient, PatientNote, Profile

logger = logging.getLogger(__name__)

NOTE_PREVIEW_LENGTH = 100


class NoteCreate(BaseModel):
    note: str

    @field_validator("note")
    @classmethod
    def non_empty(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError("Digite uma nota antes de salvar")
        return v


class NoteResponse(BaseModel):
    id: str
    patient_id: str
    note: str
    created_by: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


def note_preview(text: str) -> str:
    if len(text) <= NOTE_PREVIEW_LENGTH:
        return text
    return text[:NOTE_PREVIEW_LENGTH] + "..."


class NoteService:
    def __init__(self, db: Session):
        self.db = db

    def _patient(self, patient_id: str) -> Patient:
        patient = self.db.query(Patient).filter(Patient.id == patient_id).first()
        if not patient:
            raise HTTPException(status_code=404, detail="Paciente não encontrado")
        return patient

    def _editable_note(self, note_id: str, profile: Profile) -> PatientNote:
        note = self.db.query(PatientNote).filter(PatientNote.id == note_id).first()
        if not note:
            raise HTTPException(status_code=404, detail="Nota não encontrada")
        if note.created_by != profile.id and not is_admin(self.db, profile):
            raise HTTPException(status_code=403, detail="Apenas o autor pode alterar esta nota")
        return note

    def list_notes(self, patient_id: str) -> list[PatientNote]:
        self._patient(patient_id)
        return (
            self.db.query(PatientNote)
            .filter(PatientNote.patient_id == patient_id)
            .order_by(PatientNote.created_at.desc())
            .all()
        )

    def create_note(self, patient_id: str, data: NoteCreate, profile: Profile) -> tuple[PatientNote, Patient]:
        patient = self._patient(patient_id)
        note = PatientNote(patient_id=patient_id, note=data.note, created_by=profile.id)
        try:
            self.db.add(note)
            self.db.commit()
            self.db.refresh(note)
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to save note for patient {patient_id}: {e}")
            raise HTTPException(status_code=500, detail="Erro ao salvar nota") from e
        logger.info(f"📝 Note {note.id} added to patient {patient_id}")
        return note, patient

    def update_note(self, note_id: str, data: NoteCreate, profile: Profile) -> PatientNote:
        note = self._editable_note(note_id, profile)
        note.note = data.note
        self.db.commit()
        self.db.refresh(note)
        return note

    def delete_note(self, note_id: str, profile: Profile) -> dict:
        note = self._editable_note(note_id, profile)
        self.db.delete(note)
        self.db.commit()
        return {"message": "Nota excluída"}
