"""Patient service - Business logic for patient operations"""

import enum
import logging
from datetime import date, datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import REQUIRED_EXAMS
from ...models import Patient, PatientHistory, PatientStatus, Profile
from ...shared.clock import clinic_now, day_bounds_utc, to_naive_utc
from ... import storage
from .metrics import calculate_age, exam_progress
from .repository import PatientRepository
from .schemas import DashboardStats, ExamProgress, PatientCreate, PatientResponse, PatientUpdate

logger = logging.getLogger(__name__)

# Changes to these fields are written to patient_history
TRACKED_FIELDS = ("status", "surgery_date", "hospital", "procedure")


def _plain(value):
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, datetime):
        return to_naive_utc(value)
    return value


def to_response(patient: Patient, today: Optional[date] = None) -> PatientResponse:
    today = today or clinic_now().date()
    response = PatientResponse.model_validate(patient)
    response.age = calculate_age(patient.birth_date, today)
    response.exam_progress = ExamProgress(**exam_progress(patient.exams_checklist, REQUIRED_EXAMS))
    return response


class PatientService:
    """Service layer for patient business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PatientRepository()

    def list_patients(
        self,
        status: Optional[str] = None,
        search: Optional[str] = None,
        is_oncology: Optional[bool] = None,
    ) -> list[Patient]:
        if status and status not in {s.value for s in PatientStatus}:
            raise HTTPException(status_code=400, detail="Status inválido")
        return self.repo.list_patients(self.db, status, search, is_oncology)

    def get_patient(self, patient_id: str) -> Patient:
        patient = self.repo.get_patient(self.db, patient_id)
        if not patient:
            raise HTTPException(status_code=404, detail="Paciente não encontrado")
        return patient

    def create_patient(self, data: PatientCreate, profile: Profile) -> Patient:
        logger.info(f"📥 Creating patient by {profile.email}")

        values = {key: _plain(value) for key, value in data.model_dump().items()}
        if values.get("is_oncology") is None:
            values["is_oncology"] = False

        try:
            patient = self.repo.add_patient(self.db, created_by=profile.id, **values)
            self.db.commit()
            self.db.refresh(patient)
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to create patient: {e}")
            raise HTTPException(status_code=500, detail="Erro ao cadastrar paciente") from e

        logger.info(f"✅ Patient {patient.id} created")
        return patient

    def update_patient(self, patient_id: str, data: PatientUpdate, profile: Profile) -> Patient:
        patient = self.get_patient(patient_id)
        updates = {key: _plain(value) for key, value in data.model_dump(exclude_unset=True).items()}

        # Required columns cannot be cleared
        for required in ("name", "procedure", "status", "is_oncology"):
            if required in updates and updates[required] is None:
                updates.pop(required)

        try:
            for field, new_value in updates.items():
                old_value = getattr(patient, field)
                if old_value == new_value:
                    continue
                if field in TRACKED_FIELDS:
                    self.repo.add_history(
                        self.db, patient.id, field, old_value, new_value, profile.id
                    )
                setattr(patient, field, new_value)
            self.db.commit()
            self.db.refresh(patient)
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to update patient {patient_id}: {e}")
            raise HTTPException(status_code=500, detail="Erro ao atualizar paciente") from e

        return patient

    def update_exams(self, patient_id: str, exams: list[str], profile: Profile) -> Patient:
        patient = self.get_patient(patient_id)
        patient.exams_checklist = list(exams)
        self.db.commit()
        self.db.refresh(patient)
        logger.info(f"✅ Exam checklist for {patient_id} updated by {profile.email}: {exams}")
        return patient

    def delete_patient(self, patient_id: str) -> dict:
        patient = self.get_patient(patient_id)

        stored = [(storage.PATIENT_FILES_BUCKET, f.file_path) for f in patient.files]
        stored += [(storage.PATIENT_FEEDBACKS_BUCKET, f.image_path) for f in patient.feedbacks]

        self.db.delete(patient)
        self.db.commit()

        # Rows are gone; leftover objects are only a storage cost
        for bucket, path in stored:
            try:
                storage.delete_object(bucket, path)
            except storage.StorageError as e:
                logger.warning(f"⚠️ Orphaned object {bucket}/{path}: {e}")

        logger.info(f"🗑️ Patient {patient_id} deleted")
        return {"message": "Paciente excluído"}

    def get_history(self, patient_id: str) -> list[PatientHistory]:
        self.get_patient(patient_id)
        return self.repo.get_history(self.db, patient_id)

    def dashboard_stats(self, now: Optional[datetime] = None) -> DashboardStats:
        now = now or clinic_now()
        month_start = now.date().replace(day=1)
        next_month = (
            month_start.replace(year=month_start.year + 1, month=1)
            if month_start.month == 12
            else month_start.replace(month=month_start.month + 1)
        )
        start, _ = day_bounds_utc(month_start)
        end, _ = day_bounds_utc(next_month)

        return DashboardStats(
            total_patients=self.repo.count_by_status(self.db),
            scheduled_surgeries=self.repo.count_by_status(
                self.db, PatientStatus.SURGERY_SCHEDULED.value
            ),
            completed_surgeries=self.repo.count_by_status(
                self.db, PatientStatus.SURGERY_COMPLETED.value
            ),
            pending_authorization=self.repo.count_by_status(
                self.db, PatientStatus.AWAITING_AUTHORIZATION.value
            ),
            monthly_surgeries=self.repo.count_surgeries_between(self.db, start, end),
            active_patients=self.repo.count_active(self.db),
            pending_tasks=self.repo.count_pending_tasks(self.db),
        )
