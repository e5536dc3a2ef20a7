"""Patient repository - Database operations for patients"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ...models import Patient, PatientHistory, PatientStatus, PatientTask

# Statuses that no longer need follow-up from the team
CLOSED_STATUSES = (
    PatientStatus.SURGERY_COMPLETED.value,
    PatientStatus.COMPLETED.value,
    PatientStatus.CANCELLED.value,
)


class PatientRepository:
    """Repository for patient database operations"""

    @staticmethod
    def list_patients(
        db: Session,
        status: Optional[str] = None,
        search: Optional[str] = None,
        is_oncology: Optional[bool] = None,
    ) -> list[Patient]:
        query = db.query(Patient)

        if status:
            query = query.filter(Patient.status == status)
        if is_oncology is not None:
            query = query.filter(Patient.is_oncology == is_oncology)
        if search:
            term = f"%{search.strip().lower()}%"
            query = query.filter(
                or_(
                    func.lower(Patient.name).like(term),
                    func.lower(Patient.procedure).like(term),
                    func.lower(func.coalesce(Patient.hospital, "")).like(term),
                    Patient.phone.like(term),
                )
            )

        return query.order_by(Patient.created_at.desc()).all()

    @staticmethod
    def get_patient(db: Session, patient_id: str) -> Optional[Patient]:
        return db.query(Patient).filter(Patient.id == patient_id).first()

    @staticmethod
    def add_patient(db: Session, **patient_data) -> Patient:
        """Stage a patient without committing"""
        patient = Patient(**patient_data)
        db.add(patient)
        return patient

    @staticmethod
    def add_history(
        db: Session,
        patient_id: str,
        field: str,
        old_value,
        new_value,
        changed_by: Optional[str],
    ) -> PatientHistory:
        entry = PatientHistory(
            patient_id=patient_id,
            field_changed=field,
            old_value=None if old_value is None else str(old_value),
            new_value=None if new_value is None else str(new_value),
            changed_by=changed_by,
        )
        db.add(entry)
        return entry

    @staticmethod
    def get_history(db: Session, patient_id: str) -> list[PatientHistory]:
        return (
            db.query(PatientHistory)
            .filter(PatientHistory.patient_id == patient_id)
            .order_by(PatientHistory.created_at.desc())
            .all()
        )

    @staticmethod
    def count_by_status(db: Session, status: Optional[str] = None) -> int:
        query = db.query(func.count(Patient.id))
        if status:
            query = query.filter(Patient.status == status)
        return query.scalar() or 0

    @staticmethod
    def count_active(db: Session) -> int:
        return (
            db.query(func.count(Patient.id))
            .filter(Patient.status.notin_(CLOSED_STATUSES))
            .scalar()
            or 0
        )

    @staticmethod
    def count_surgeries_between(db: Session, start: datetime, end: datetime) -> int:
        return (
            db.query(func.count(Patient.id))
            .filter(
                Patient.surgery_date.isnot(None),
                Patient.surgery_date >= start,
                Patient.surgery_date < end,
                Patient.status != PatientStatus.CANCELLED.value,
            )
            .scalar()
            or 0
        )

    @staticmethod
    def count_pending_tasks(db: Session) -> int:
        return (
            db.query(func.count(PatientTask.id)).filter(PatientTask.completed.is_(False)).scalar()
            or 0
        )
