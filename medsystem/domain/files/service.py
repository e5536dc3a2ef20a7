"""Exam files and feedback images stored in R2, indexed in the database"""

import logging
from typing import Iterator, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ... import storage
from ...models import FeedbackType, Patient, PatientFeedback, PatientFile, Profile
from .schemas import FEEDBACK_TYPE_LABELS, FeedbackResponse, PatientFileResponse

logger = logging.getLogger(__name__)


def file_kind(name: str) -> str:
    ext = storage.file_extension(name)
    if ext == "pdf":
        return "pdf"
    if f".{ext}" in storage.IMAGE_EXTENSIONS:
        return "image"
    return "other"


def validate_upload(
    content_type: Optional[str], size: int, allowed_types: list[str], error_message: str
) -> None:
    if (content_type or "").lower() not in allowed_types:
        raise HTTPException(status_code=400, detail=error_message)
    if size > storage.MAX_UPLOAD_SIZE:
        raise HTTPException(status_code=400, detail="Arquivo muito grande. Máximo 10MB")
    if size == 0:
        raise HTTPException(status_code=400, detail="Arquivo vazio")


def file_response(record: PatientFile) -> PatientFileResponse:
    response = PatientFileResponse.model_validate(record)
    response.kind = file_kind(record.file_name)
    return response


class PatientFileService:
    def __init__(self, db: Session):
        self.db = db

    def _patient(self, patient_id: str) -> Patient:
        patient = self.db.query(Patient).filter(Patient.id == patient_id).first()
        if not patient:
            raise HTTPException(status_code=404, detail="Paciente não encontrado")
        return patient

    # ------------------------------------------------------------------ exams

    def list_files(self, patient_id: str) -> list[PatientFile]:
        self._patient(patient_id)
        return (
            self.db.query(PatientFile)
            .filter(PatientFile.patient_id == patient_id)
            .order_by(PatientFile.created_at.desc())
            .all()
        )

    def get_file(self, file_id: str) -> PatientFile:
        record = self.db.query(PatientFile).filter(PatientFile.id == file_id).first()
        if not record:
            raise HTTPException(status_code=404, detail="Arquivo não encontrado")
        return record

    def upload_file(
        self,
        patient_id: str,
        file_name: str,
        content_type: Optional[str],
        data: bytes,
        profile: Profile,
    ) -> PatientFile:
        self._patient(patient_id)
        validate_upload(
            content_type,
            len(data),
            storage.ALLOWED_DOCUMENT_TYPES,
            "Tipo de arquivo não permitido. Use PDF ou imagem",
        )

        path = storage.build_patient_file_key(patient_id, file_name)
        try:
            storage.upload_object(storage.PATIENT_FILES_BUCKET, path, data, content_type)
        except storage.StorageError as e:
            raise HTTPException(status_code=500, detail="Erro ao enviar arquivo") from e

        record = PatientFile(
            patient_id=patient_id,
            file_name=file_name,
            file_path=path,
            file_size=len(data),
            file_type=content_type,
            uploaded_by=profile.id,
        )
        self.db.add(record)
        try:
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to index uploaded file {path}: {e}")
            # Don't leave an unindexed object behind
            try:
                storage.delete_object(storage.PATIENT_FILES_BUCKET, path)
            except storage.StorageError:
                logger.warning(f"⚠️ Orphaned object {storage.PATIENT_FILES_BUCKET}/{path}")
            raise HTTPException(status_code=500, detail="Erro ao enviar arquivo") from e
        self.db.refresh(record)
        logger.info(f"📎 File {record.id} uploaded for patient {patient_id}")
        return record

    def signed_url(self, file_id: str) -> str:
        record = self.get_file(file_id)
        try:
            return storage.generate_signed_url(storage.PATIENT_FILES_BUCKET, record.file_path)
        except storage.StorageError as e:
            raise HTTPException(status_code=500, detail="Erro ao abrir arquivo") from e

    def download(self, file_id: str) -> tuple[PatientFile, Iterator[bytes]]:
        record = self.get_file(file_id)
        try:
            return record, storage.stream_object(storage.PATIENT_FILES_BUCKET, record.file_path)
        except storage.StorageError as e:
            raise HTTPException(status_code=500, detail="Erro ao fazer download do arquivo") from e

    def delete_file(self, file_id: str) -> dict:
        record = self.get_file(file_id)
        try:
            storage.delete_object(storage.PATIENT_FILES_BUCKET, record.file_path)
        except storage.StorageError as e:
            raise HTTPException(status_code=500, detail="Erro ao remover arquivo") from e
        self.db.delete(record)
        self.db.commit()
        return {"message": "Arquivo removido"}

    # -------------------------------------------------------------- feedbacks

    def list_feedbacks(self, patient_id: str) -> list[FeedbackResponse]:
        self._patient(patient_id)
        feedbacks = (
            self.db.query(PatientFeedback)
            .filter(PatientFeedback.patient_id == patient_id)
            .order_by(PatientFeedback.created_at.desc())
            .all()
        )

        responses = []
        for feedback in feedbacks:
            response = FeedbackResponse.model_validate(feedback)
            response.feedback_type_label = FEEDBACK_TYPE_LABELS.get(
                feedback.feedback_type, feedback.feedback_type
            )
            try:
                response.image_url = storage.generate_signed_url(
                    storage.PATIENT_FEEDBACKS_BUCKET, feedback.image_path
                )
            except storage.StorageError:
                # One broken image should not hide the rest of the list
                response.image_url = None
            responses.append(response)
        return responses

    def upload_feedback(
        self,
        patient_id: str,
        feedback_type: str,
        description: Optional[str],
        file_name: str,
        content_type: Optional[str],
        data: bytes,
        profile: Profile,
    ) -> PatientFeedback:
        self._patient(patient_id)
        if feedback_type not in {t.value for t in FeedbackType}:
            raise HTTPException(status_code=400, detail="Tipo de feedback inválido")
        validate_upload(
            content_type,
            len(data),
            storage.ALLOWED_IMAGE_TYPES,
            "Tipo de arquivo não permitido. Use JPEG, PNG, GIF ou WEBP",
        )

        path = storage.build_feedback_key(patient_id, file_name)
        try:
            storage.upload_object(storage.PATIENT_FEEDBACKS_BUCKET, path, data, content_type)
        except storage.StorageError as e:
            raise HTTPException(status_code=500, detail="Erro ao fazer upload") from e

        feedback = PatientFeedback(
            patient_id=patient_id,
            feedback_type=feedback_type,
            description=(description or "").strip() or None,
            image_path=path,
            image_name=file_name,
            created_by=profile.id,
        )
        self.db.add(feedback)
        self.db.commit()
        self.db.refresh(feedback)
        logger.info(f"🖼️ Feedback {feedback.id} ({feedback_type}) saved for patient {patient_id}")
        return feedback

    def delete_feedback(self, feedback_id: str) -> dict:
        feedback = self.db.query(PatientFeedback).filter(PatientFeedback.id == feedback_id).first()
        if not feedback:
            raise HTTPException(status_code=404, detail="Feedback não encontrado")
        try:
            storage.delete_object(storage.PATIENT_FEEDBACKS_BUCKET, feedback.image_path)
        except storage.StorageError as e:
            raise HTTPException(status_code=500, detail="Erro ao remover feedback") from e
        self.db.delete(feedback)
        self.db.commit()
        return {"message": "Feedback removido"}
