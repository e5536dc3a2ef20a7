from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ...models import FeedbackType

FEEDBACK_TYPE_LABELS = {
    FeedbackType.PRE_OP.value: "Pré-Operatório",
    FeedbackType.POST_OP.value: "Pós-Operatório",
    FeedbackType.POST_OP_30_DAYS.value: "30 Dias Pós-Cirurgia",
    FeedbackType.EXAM_FOLLOWUP.value: "Cobrança de Exame",
    FeedbackType.CONFIRMATION.value: "Confirmação de Cirurgia",
    FeedbackType.OTHER.value: "Outro",
}


class PatientFileResponse(BaseModel):
    id: str
    patient_id: str
    file_name: str
    file_path: str
    file_size: Optional[int] = None
    file_type: Optional[str] = None
    kind: Optional[str] = None  # pdf, image, other
    uploaded_by: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SignedUrlResponse(BaseModel):
    url: str
    expires_in: int


class FeedbackResponse(BaseModel):
    id: str
    patient_id: str
    feedback_type: str
    feedback_type_label: Optional[str] = None
    description: Optional[str] = None
    image_path: str
    image_name: str
    image_url: Optional[str] = None
    created_by: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
