"""Task service - Business logic for patient task reminders"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import PatientTask, Profile
from ...shared.clock import clinic_now, to_naive_utc, utcnow
from ..patients.repository import PatientRepository
from .classification import BUCKETS, partition_tasks
from .repository import TaskRepository
from .schemas import TASK_TYPE_LABELS, TaskBoard, TaskCreate, TaskResponse, TaskUpdate

logger = logging.getLogger(__name__)


def to_response(task: PatientTask) -> TaskResponse:
    response = TaskResponse.model_validate(task)
    response.task_type_label = TASK_TYPE_LABELS.get(task.task_type, task.task_type)
    return response


class TaskService:
    """Service layer for task business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = TaskRepository()

    def _get_task(self, task_id: str) -> PatientTask:
        task = self.repo.get_task(self.db, task_id)
        if not task:
            raise HTTPException(status_code=404, detail="Tarefa não encontrada")
        return task

    def list_tasks(self) -> list[PatientTask]:
        return self.repo.list_tasks(self.db)

    def list_for_patient(self, patient_id: str) -> list[PatientTask]:
        if not PatientRepository.get_patient(self.db, patient_id):
            raise HTTPException(status_code=404, detail="Paciente não encontrado")
        return self.repo.list_for_patient(self.db, patient_id)

    def board(self, now: Optional[datetime] = None) -> TaskBoard:
        now = now or clinic_now()
        buckets = partition_tasks(self.repo.list_tasks(self.db), now)
        return TaskBoard(
            **{name: [to_response(t) for t in buckets[name]] for name in BUCKETS},
            counts={name: len(buckets[name]) for name in BUCKETS},
        )

    def create_task(self, patient_id: str, data: TaskCreate, profile: Profile) -> PatientTask:
        if not PatientRepository.get_patient(self.db, patient_id):
            raise HTTPException(status_code=404, detail="Paciente não encontrado")

        task = self.repo.create_task(
            self.db,
            patient_id=patient_id,
            task_type=data.task_type.value,
            title=data.title,
            description=data.description,
            due_date=to_naive_utc(data.due_date),
            created_by=profile.id,
        )
        logger.info(f"✅ Task {task.id} ({task.task_type}) created for patient {patient_id}")
        return task

    def update_task(self, task_id: str, data: TaskUpdate) -> PatientTask:
        task = self._get_task(task_id)
        updates = data.model_dump(exclude_unset=True)

        if updates.get("task_type") is not None:
            task.task_type = updates["task_type"].value
        if updates.get("title") is not None:
            task.title = updates["title"]
        if "description" in updates:
            task.description = updates["description"]
        if updates.get("due_date") is not None:
            task.due_date = to_naive_utc(updates["due_date"])

        self.db.commit()
        self.db.refresh(task)
        return task

    def toggle_completion(self, task_id: str, profile: Profile) -> PatientTask:
        """Complete an open task or reopen a completed one"""
        task = self._get_task(task_id)

        if task.completed:
            task.completed = False
            task.completed_at = None
            task.completed_by = None
        else:
            task.completed = True
            task.completed_at = utcnow()
            task.completed_by = profile.id

        self.db.commit()
        self.db.refresh(task)
        logger.info(
            f"✅ Task {task_id} {'completed' if task.completed else 'reopened'} by {profile.email}"
        )
        return task

    def delete_task(self, task_id: str) -> dict:
        task = self._get_task(task_id)
        self.db.delete(task)
        self.db.commit()
        return {"message": "Tarefa excluída"}
