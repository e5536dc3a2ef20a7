"""Patient domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import PatientStatus
from ...shared.validators import (
    validate_br_phone,
    validate_cpf,
    validate_email,
    validate_person_name,
    validate_procedure,
)

GENDERS = ("masculino", "feminino", "outro")


def _validate_gender(v):
    if v is None or v == "":
        return None
    v = v.strip().lower()
    if v not in GENDERS:
        raise ValueError("Sexo deve ser masculino, feminino ou outro")
    return v


class PatientBase(BaseModel):
    cpf: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    birth_date: Optional[date] = None
    gender: Optional[str] = None
    hospital: Optional[str] = None
    insurance: Optional[str] = None
    insurance_number: Optional[str] = None
    surgery_date: Optional[datetime] = None
    authorization_date: Optional[date] = None
    guide_validity_date: Optional[date] = None
    contact_date: Optional[date] = None
    origem: Optional[str] = None
    notes: Optional[str] = None
    is_oncology: Optional[bool] = None
    oncology_stage: Optional[str] = None
    responsible_user_id: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return validate_br_phone(v) if v else None

    @field_validator("cpf")
    @classmethod
    def check_cpf(cls, v):
        return validate_cpf(v) if v else None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v) if v else None

    @field_validator("gender")
    @classmethod
    def check_gender(cls, v):
        return _validate_gender(v)


class PatientCreate(PatientBase):
    """Schema for creating a new patient"""

    name: str
    procedure: str
    status: PatientStatus = PatientStatus.AWAITING_AUTHORIZATION
    exams_checklist: list[str] = []

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        return validate_person_name(v)

    @field_validator("procedure")
    @classmethod
    def check_procedure(cls, v):
        return validate_procedure(v)


class PatientUpdate(PatientBase):
    """Schema for updating an existing patient; only fields sent are applied"""

    name: Optional[str] = None
    procedure: Optional[str] = None
    status: Optional[PatientStatus] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        return validate_person_name(v) if v is not None else None

    @field_validator("procedure")
    @classmethod
    def check_procedure(cls, v):
        return validate_procedure(v) if v is not None else None


class ExamChecklistUpdate(BaseModel):
    exams_checklist: list[str]

    @field_validator("exams_checklist")
    @classmethod
    def normalize_exams(cls, v):
        seen = []
        for exam in v:
            name = (exam or "").strip()
            if not name:
                raise ValueError("Nome do exame não pode ser vazio")
            if name not in seen:
                seen.append(name)
        return seen


class ExamProgress(BaseModel):
    checked: int
    required: int
    all_checked: bool
    pending: bool


class PatientResponse(BaseModel):
    id: str
    name: str
    cpf: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    birth_date: Optional[date] = None
    age: Optional[int] = None
    gender: Optional[str] = None
    procedure: str
    hospital: Optional[str] = None
    insurance: Optional[str] = None
    insurance_number: Optional[str] = None
    status: str
    surgery_date: Optional[datetime] = None
    authorization_date: Optional[date] = None
    guide_validity_date: Optional[date] = None
    contact_date: Optional[date] = None
    exams_checklist: list[str] = []
    exam_progress: Optional[ExamProgress] = None
    origem: Optional[str] = None
    notes: Optional[str] = None
    is_oncology: bool = False
    oncology_stage: Optional[str] = None
    responsible_user_id: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PatientHistoryResponse(BaseModel):
    id: str
    field_changed: str
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    changed_by: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DashboardStats(BaseModel):
    total_patients: int
    scheduled_surgeries: int
    completed_surgeries: int
    pending_authorization: int
    monthly_surgeries: int
    active_patients: int
    pending_tasks: int
