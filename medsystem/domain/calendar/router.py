"""Calendar router - month view and upcoming surgeries"""

import logging
from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import get_approved_profile
from ...database import get_db
from ...models import Patient, PatientStatus, Profile
from ...shared.clock import clinic_now, day_bounds_utc
from .bucketing import bucket_by_day, next_surgery, upcoming_surgeries
from .schemas import CalendarEntry, CalendarMonth

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/calendar", tags=["Calendar"])


def _scheduled(db: Session, start, end) -> list[Patient]:
    return (
        db.query(Patient)
        .filter(
            Patient.surgery_date.isnot(None),
            Patient.surgery_date >= start,
            Patient.surgery_date < end,
            Patient.status != PatientStatus.CANCELLED.value,
        )
        .all()
    )


@router.get("/month", response_model=CalendarMonth)
async def calendar_month(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    month: Optional[int] = Query(None, ge=1, le=12),
    _: Profile = Depends(get_approved_profile),
    db: Session = Depends(get_db),
):
    """Surgeries of the month grouped by day (defaults to the current month)"""
    today = clinic_now().date()
    year = year or today.year
    month = month or today.month

    first = today.replace(year=year, month=month, day=1)
    # A day of margin on each side; bucketing does the exact local-month cut
    start, _ = day_bounds_utc(first - timedelta(days=1))
    _, end = day_bounds_utc(first + timedelta(days=32))

    days = bucket_by_day(_scheduled(db, start, end), year, month)
    return CalendarMonth(
        year=year, month=month, days=days, total=sum(len(v) for v in days.values())
    )


@router.get("/upcoming", response_model=list[CalendarEntry])
async def calendar_upcoming(
    days: int = Query(7, ge=0, le=60),
    _: Profile = Depends(get_approved_profile),
    db: Session = Depends(get_db),
):
    """Scheduled surgeries from today through today+days (1 = today and tomorrow)"""
    now = clinic_now()
    start, _ = day_bounds_utc(now.date())
    _, end = day_bounds_utc(now.date() + timedelta(days=days))
    patients = [
        p
        for p in _scheduled(db, start, end)
        if p.status == PatientStatus.SURGERY_SCHEDULED.value
    ]
    return upcoming_surgeries(patients, now, days)


@router.get("/next", response_model=CalendarEntry)
async def calendar_next(
    _: Profile = Depends(get_approved_profile),
    db: Session = Depends(get_db),
):
    now = clinic_now()
    patients = (
        db.query(Patient)
        .filter(
            Patient.status == PatientStatus.SURGERY_SCHEDULED.value,
            Patient.surgery_date.isnot(None),
        )
        .all()
    )
    entry = next_surgery(patients, now)
    if entry is None:
        raise HTTPException(status_code=404, detail="Nenhuma cirurgia agendada")
    return entry
