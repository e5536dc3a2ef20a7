"""Task domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import TaskType

TASK_TYPE_LABELS = {
    TaskType.EXAM_FOLLOWUP.value: "Cobrança de Exame",
    TaskType.PRE_OP_INSTRUCTIONS.value: "Instruções Pré-Op",
    TaskType.POST_OP_INSTRUCTIONS.value: "Recomendações Pós-Op",
    TaskType.CUSTOM.value: "Personalizado",
}


def _required_title(v):
    v = (v or "").strip()
    if not v:
        raise ValueError("Título é obrigatório")
    return v[:255]


class TaskCreate(BaseModel):
    task_type: TaskType = TaskType.CUSTOM
    title: str
    description: Optional[str] = None
    due_date: datetime

    @field_validator("title")
    @classmethod
    def check_title(cls, v):
        return _required_title(v)


class TaskUpdate(BaseModel):
    task_type: Optional[TaskType] = None
    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[datetime] = None

    @field_validator("title")
    @classmethod
    def check_title(cls, v):
        return _required_title(v) if v is not None else None


class TaskPatientSummary(BaseModel):
    id: str
    name: str
    phone: Optional[str] = None
    procedure: Optional[str] = None

    class Config:
        from_attributes = True


class TaskResponse(BaseModel):
    id: str
    patient_id: str
    task_type: str
    task_type_label: Optional[str] = None
    title: str
    description: Optional[str] = None
    due_date: datetime
    completed: bool
    completed_at: Optional[datetime] = None
    completed_by: Optional[str] = None
    created_at: Optional[datetime] = None
    patient: Optional[TaskPatientSummary] = None

    class Config:
        from_attributes = True


class TaskBoard(BaseModel):
    """Tasks page: the four urgency buckets plus their sizes"""

    overdue: list[TaskResponse]
    today: list[TaskResponse]
    future: list[TaskResponse]
    completed: list[TaskResponse]
    counts: dict[str, int]
