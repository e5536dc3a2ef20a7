from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel


class TrafficReportResponse(BaseModel):
    id: str
    report_date: date
    platform: str
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    total_leads: int
    scheduled_appointments: int
    not_scheduled: int
    awaiting_response: int
    no_continuity: int
    no_contact_after_attempts: int
    leads_outside_brasilia: int
    active_leads: int
    in_progress: int
    concierge_name: Optional[str] = None
    pdf_file_name: Optional[str] = None
    raw_data: Optional[dict[str, Any]] = None
    created_by: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
