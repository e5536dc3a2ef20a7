"""
Surgery calendar grouping.

Surgeries are stored in UTC and grouped by their clinic-local day. When a day
holds more than one surgery each gets a rotating color index so the calendar
can tell them apart; a lone surgery always uses color 0.
"""

from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from ...shared.clock import day_bounds, to_clinic_tz
from .schemas import CalendarEntry

PALETTE_SIZE = 6

TODAY_LABEL = "HOJE"
TOMORROW_LABEL = "AMANHÃ"


def _entry(patient, local_dt: datetime) -> CalendarEntry:
    return CalendarEntry(
        patient_id=patient.id,
        name=patient.name,
        procedure=patient.procedure,
        hospital=patient.hospital,
        status=patient.status,
        surgery_date=local_dt,
    )


def bucket_by_day(patients: Iterable, year: int, month: int) -> dict[int, list[CalendarEntry]]:
    """
    Group patients with a surgery date in (year, month) by local day of month.

    Returns {day: [entries sorted by time]}; days without surgeries are absent.
    """
    days: dict[int, list[CalendarEntry]] = {}
    for patient in patients:
        if patient.surgery_date is None:
            continue
        local_dt = to_clinic_tz(patient.surgery_date)
        if local_dt.year != year or local_dt.month != month:
            continue
        days.setdefault(local_dt.day, []).append(_entry(patient, local_dt))

    for entries in days.values():
        entries.sort(key=lambda e: e.surgery_date)
        if len(entries) > 1:
            for position, entry in enumerate(entries):
                entry.color_index = position % PALETTE_SIZE

    return dict(sorted(days.items()))


def upcoming_surgeries(patients: Iterable, now: datetime, days: int) -> list[CalendarEntry]:
    """Surgeries from the start of today through the end of day today+days."""
    today = to_clinic_tz(now).date()
    window_start, _ = day_bounds(today)
    _, window_end = day_bounds(today + timedelta(days=days))

    entries = []
    for patient in patients:
        if patient.surgery_date is None:
            continue
        local_dt = to_clinic_tz(patient.surgery_date)
        if window_start <= local_dt < window_end:
            entries.append(_entry(patient, local_dt))

    entries.sort(key=lambda e: e.surgery_date)
    for entry in entries:
        entry.urgency = urgency_label(entry.surgery_date, now)
    return entries


def next_surgery(patients: Iterable, now: datetime) -> Optional[CalendarEntry]:
    """Closest surgery that has not started yet."""
    local_now = to_clinic_tz(now)
    future = [
        _entry(p, to_clinic_tz(p.surgery_date))
        for p in patients
        if p.surgery_date is not None and to_clinic_tz(p.surgery_date) >= local_now
    ]
    if not future:
        return None
    entry = min(future, key=lambda e: e.surgery_date)
    entry.urgency = urgency_label(entry.surgery_date, now)
    return entry


def urgency_label(surgery_dt: datetime, now: datetime) -> Optional[str]:
    surgery_day: date = to_clinic_tz(surgery_dt).date()
    today = to_clinic_tz(now).date()
    if surgery_day == today:
        return TODAY_LABEL
    if surgery_day == today + timedelta(days=1):
        return TOMORROW_LABEL
    return None
