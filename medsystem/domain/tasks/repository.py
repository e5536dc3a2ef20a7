"""Task repository - Database operations for patient tasks"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import PatientTask


class TaskRepository:
    """Repository for task database operations"""

    @staticmethod
    def list_tasks(db: Session, include_completed: bool = True) -> list[PatientTask]:
        query = db.query(PatientTask).options(joinedload(PatientTask.patient))
        if not include_completed:
            query = query.filter(PatientTask.completed.is_(False))
        return query.order_by(PatientTask.due_date.asc()).all()

    @staticmethod
    def list_for_patient(db: Session, patient_id: str) -> list[PatientTask]:
        return (
            db.query(PatientTask)
            .filter(PatientTask.patient_id == patient_id)
            .order_by(PatientTask.due_date.asc())
            .all()
        )

    @staticmethod
    def get_task(db: Session, task_id: str) -> Optional[PatientTask]:
        return (
            db.query(PatientTask)
            .options(joinedload(PatientTask.patient))
            .filter(PatientTask.id == task_id)
            .first()
        )

    @staticmethod
    def create_task(db: Session, **task_data) -> PatientTask:
        task = PatientTask(**task_data)
        db.add(task)
        db.commit()
        db.refresh(task)
        return task

    @staticmethod
    def count_open_due_between(db: Session, start: datetime, end: datetime) -> int:
        return (
            db.query(func.count(PatientTask.id))
            .filter(
                PatientTask.completed.is_(False),
                PatientTask.due_date >= start,
                PatientTask.due_date < end,
            )
            .scalar()
            or 0
        )

    @staticmethod
    def open_due_before(db: Session, before: datetime) -> list[PatientTask]:
        return (
            db.query(PatientTask)
            .options(joinedload(PatientTask.patient))
            .filter(PatientTask.completed.is_(False), PatientTask.due_date < before)
            .order_by(PatientTask.due_date.asc())
            .all()
        )

    @staticmethod
    def open_due_between(db: Session, start: datetime, end: datetime) -> list[PatientTask]:
        return (
            db.query(PatientTask)
            .options(joinedload(PatientTask.patient))
            .filter(
                PatientTask.completed.is_(False),
                PatientTask.due_date >= start,
                PatientTask.due_date < end,
            )
            .order_by(PatientTask.due_date.asc())
            .all()
        )
