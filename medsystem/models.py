import enum
import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

# Used as created_by when a landing-page lead arrives and no admin exists yet
NIL_UUID = "00000000-0000-0000-0000-000000000000"


def generate_uuid():
    return str(uuid.uuid4())


class PatientStatus(str, enum.Enum):
    AWAITING_CONSULTATION = "awaiting_consultation"
    AWAITING_AUTHORIZATION = "awaiting_authorization"
    AUTHORIZED = "authorized"
    PENDING_SCHEDULING = "pending_scheduling"
    SURGERY_SCHEDULED = "surgery_scheduled"
    SURGERY_COMPLETED = "surgery_completed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AppRole(str, enum.Enum):
    ADMIN = "admin"
    USER = "user"
    DOCTOR = "doctor"
    DENTIST = "dentist"


class TaskType(str, enum.Enum):
    EXAM_FOLLOWUP = "exam_followup"
    PRE_OP_INSTRUCTIONS = "pre_op_instructions"
    POST_OP_INSTRUCTIONS = "post_op_instructions"
    CUSTOM = "custom"


class FeedbackType(str, enum.Enum):
    PRE_OP = "pre_op"
    POST_OP = "post_op"
    POST_OP_30_DAYS = "post_op_30_days"
    EXAM_FOLLOWUP = "exam_followup"
    CONFIRMATION = "confirmation"
    OTHER = "other"


class OncologyEventType(str, enum.Enum):
    DIAGNOSIS = "diagnosis"
    EXAM = "exam"
    TREATMENT_START = "treatment_start"
    CONSULTATION = "consultation"
    SURGERY = "surgery"
    FOLLOW_UP = "follow_up"
    REMISSION = "remission"
    OTHER = "other"


class PushPlatform(str, enum.Enum):
    IOS = "ios"
    ANDROID = "android"
    WEB = "web"


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    firebase_uid = Column(String(255), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=True)
    username = Column(String(100), unique=True, index=True, nullable=True)
    full_name = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)
    user_type = Column(String(20), nullable=True)  # medico, dentista
    # New sign-ups wait for an admin before reaching clinical data
    approved = Column(Boolean, default=False, nullable=False)
    approved_at = Column(DateTime, nullable=True)
    approved_by = Column(String(36), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    roles = relationship("UserRole", back_populates="profile", cascade="all, delete-orphan")
    push_tokens = relationship(
        "UserPushToken", back_populates="profile", cascade="all, delete-orphan"
    )


class UserRole(Base):
    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),)

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role = Column(String(20), nullable=False, default=AppRole.USER.value)
    created_at = Column(DateTime, server_default=func.now())

    profile = relationship("Profile", back_populates="roles")


class Patient(Base):
    __tablename__ = "patients"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(200), nullable=False, index=True)
    cpf = Column(String(11), nullable=True)
    phone = Column(String(20), nullable=True, index=True)
    email = Column(String(255), nullable=True)
    birth_date = Column(Date, nullable=True)
    gender = Column(String(20), nullable=True)  # masculino, feminino, outro
    procedure = Column(String(200), nullable=False)
    hospital = Column(String(200), nullable=True)
    insurance = Column(String(200), nullable=True)
    insurance_number = Column(String(100), nullable=True)
    status = Column(
        String(40), nullable=False, default=PatientStatus.AWAITING_AUTHORIZATION.value, index=True
    )
    surgery_date = Column(DateTime, nullable=True, index=True)  # stored as naive UTC
    authorization_date = Column(Date, nullable=True)
    guide_validity_date = Column(Date, nullable=True)
    contact_date = Column(Date, nullable=True)
    exams_checklist = Column(JSON, default=list, nullable=False)
    origem = Column(String(100), nullable=True)  # lead origin: Landing Page, trafego pago...
    notes = Column(Text, nullable=True)
    is_oncology = Column(Boolean, default=False, nullable=False)
    oncology_stage = Column(String(50), nullable=True)
    responsible_user_id = Column(String(36), nullable=True)
    created_by = Column(String(36), nullable=False)
    created_at = Column(DateTime, server_default=func.now(), index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    tasks = relationship("PatientTask", back_populates="patient", cascade="all, delete-orphan")
    notes_entries = relationship(
        "PatientNote", back_populates="patient", cascade="all, delete-orphan"
    )
    files = relationship("PatientFile", back_populates="patient", cascade="all, delete-orphan")
    feedbacks = relationship(
        "PatientFeedback", back_populates="patient", cascade="all, delete-orphan"
    )
    oncology_events = relationship(
        "OncologyEvent", back_populates="patient", cascade="all, delete-orphan"
    )
    history = relationship(
        "PatientHistory", back_populates="patient", cascade="all, delete-orphan"
    )


class PatientHistory(Base):
    __tablename__ = "patient_history"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    patient_id = Column(
        String(36), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    field_changed = Column(String(50), nullable=False)
    old_value = Column(Text, nullable=True)
    new_value = Column(Text, nullable=True)
    changed_by = Column(String(36), nullable=True)  # None for automated transitions
    created_at = Column(DateTime, server_default=func.now())

    patient = relationship("Patient", back_populates="history")


class PatientTask(Base):
    __tablename__ = "patient_tasks"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    patient_id = Column(
        String(36), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    task_type = Column(String(40), nullable=False, default=TaskType.CUSTOM.value)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    due_date = Column(DateTime, nullable=False, index=True)
    completed = Column(Boolean, default=False, nullable=False)
    completed_at = Column(DateTime, nullable=True)
    completed_by = Column(String(36), nullable=True)
    created_by = Column(String(36), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    patient = relationship("Patient", back_populates="tasks")


class PatientNote(Base):
    __tablename__ = "patient_notes"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    patient_id = Column(
        String(36), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    note = Column(Text, nullable=False)
    created_by = Column(String(36), nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    patient = relationship("Patient", back_populates="notes_entries")


class PatientFile(Base):
    __tablename__ = "patient_files"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    patient_id = Column(
        String(36), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    file_name = Column(String(255), nullable=False)
    file_path = Column(String(500), nullable=False)  # key inside the patient-files bucket
    file_size = Column(Integer, nullable=True)
    file_type = Column(String(100), nullable=True)
    uploaded_by = Column(String(36), nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    patient = relationship("Patient", back_populates="files")


class PatientFeedback(Base):
    __tablename__ = "patient_feedbacks"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    patient_id = Column(
        String(36), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    feedback_type = Column(String(40), nullable=False)
    description = Column(Text, nullable=True)
    image_path = Column(String(500), nullable=False)
    image_name = Column(String(255), nullable=False)
    created_by = Column(String(36), nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    patient = relationship("Patient", back_populates="feedbacks")


class OncologyEvent(Base):
    __tablename__ = "oncology_timeline"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    patient_id = Column(
        String(36), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    event_type = Column(String(40), nullable=False)
    event_date = Column(Date, nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    created_by = Column(String(36), nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    patient = relationship("Patient", back_populates="oncology_events")


class UserPushToken(Base):
    __tablename__ = "user_push_tokens"
    __table_args__ = (UniqueConstraint("user_id", "token", name="uq_user_push_tokens_user_token"),)

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    token = Column(String(512), nullable=False)
    platform = Column(String(10), nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    profile = relationship("Profile", back_populates="push_tokens")


class PaidTrafficReport(Base):
    __tablename__ = "paid_traffic_reports"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    report_date = Column(Date, nullable=False, index=True)
    platform = Column(String(50), nullable=False, default="Leads")
    period_start = Column(Date, nullable=True)
    period_end = Column(Date, nullable=True)
    total_leads = Column(Integer, default=0, nullable=False)
    scheduled_appointments = Column(Integer, default=0, nullable=False)
    not_scheduled = Column(Integer, default=0, nullable=False)
    awaiting_response = Column(Integer, default=0, nullable=False)
    no_continuity = Column(Integer, default=0, nullable=False)
    no_contact_after_attempts = Column(Integer, default=0, nullable=False)
    leads_outside_brasilia = Column(Integer, default=0, nullable=False)
    active_leads = Column(Integer, default=0, nullable=False)
    in_progress = Column(Integer, default=0, nullable=False)
    concierge_name = Column(String(200), nullable=True)
    pdf_file_path = Column(String(500), nullable=True)
    pdf_file_name = Column(String(255), nullable=True)
    raw_data = Column(JSON, nullable=True)  # model output as returned by the AI gateway
    created_by = Column(String(36), nullable=False)
    created_at = Column(DateTime, server_default=func.now())
