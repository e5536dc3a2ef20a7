from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class CalendarEntry(BaseModel):
    patient_id: str
    name: str
    procedure: Optional[str] = None
    hospital: Optional[str] = None
    status: str
    surgery_date: datetime  # clinic-local
    color_index: int = 0
    urgency: Optional[str] = None  # HOJE / AMANHÃ


class CalendarMonth(BaseModel):
    year: int
    month: int
    days: dict[int, list[CalendarEntry]]
    total: int
