"""Notification events and the public daily summary"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ...config import FRONTEND_URL, NOTIFICATION_TOKEN
from ...models import Patient, PatientTask
from ...shared.clock import day_bounds_utc, local_date, utcnow
from ..tasks.repository import TaskRepository
from .push import notify_admins

logger = logging.getLogger(__name__)

MASK = "***"
ALL_CLEAR = "✅ Tudo em dia!"


# ============================================================================
# EVENTS
# ============================================================================


async def notify_new_patient(db: Session, patient_name: str, procedure: str) -> dict:
    return await notify_admins(
        db,
        title="Novo Paciente",
        body=f"{patient_name} foi cadastrado - {procedure}",
        data={"type": "new_patient", "patient_name": patient_name, "procedure": procedure},
    )


async def notify_new_note(
    db: Session,
    patient_name: str,
    note_preview: Optional[str] = None,
    patient_id: Optional[str] = None,
) -> dict:
    data = {
        "type": "new_note",
        "patient_name": patient_name,
        "note_preview": note_preview or "",
    }
    if patient_id:
        data["patient_id"] = patient_id
        data["url"] = f"{FRONTEND_URL}/patients/{patient_id}"

    return await notify_admins(
        db,
        title="Nova Anotação",
        body=f"Anotação adicionada para {patient_name}",
        data=data,
    )


async def notify_daily_tasks(db: Session, now: Optional[datetime] = None) -> dict:
    """Tell admins how many open tasks fall on today's clinic-local date"""
    now = now or utcnow()
    start, end = day_bounds_utc(local_date(now))
    count = TaskRepository.count_open_due_between(db, start, end)

    if count == 0:
        logger.info("📭 No tasks due today, skipping daily push")
        return {"success": True, "tasks_count": 0, "notifications_sent": 0}

    outcome = await notify_admins(
        db,
        title="Tarefas do Dia",
        body=f"Você tem {count} tarefa(s) para hoje",
        data={"type": "daily_tasks", "count": str(count), "url": f"{FRONTEND_URL}/tasks"},
    )
    return {
        "success": True,
        "tasks_count": count,
        "notifications_sent": outcome.get("admins_notified", 0),
    }


# ============================================================================
# SUMMARY
# ============================================================================


def _plural(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


def summary_line(overdue: int, today: int, new_patients: int, surgeries: int) -> str:
    parts = []
    if overdue:
        parts.append(
            f"⚠️ {overdue} {_plural(overdue, 'tarefa atrasada', 'tarefas atrasadas')}"
        )
    if today:
        parts.append(f"📅 {today} {_plural(today, 'tarefa', 'tarefas')} hoje")
    if new_patients:
        parts.append(
            f"👤 {new_patients} {_plural(new_patients, 'novo paciente', 'novos pacientes')}"
        )
    if surgeries:
        parts.append(
            f"🏥 {surgeries} {_plural(surgeries, 'cirurgia próxima', 'cirurgias próximas')}"
        )
    return ", ".join(parts) if parts else ALL_CLEAR


def _task_entry(task: PatientTask, unmasked: bool) -> dict:
    patient = task.patient
    return {
        "patient_name": patient.name if unmasked and patient else MASK,
        "patient_id": patient.id if unmasked and patient else None,
        "task_id": task.id,
        "task_title": task.title,
        "due_date": task.due_date.isoformat() if task.due_date else None,
        "task_type": task.task_type,
        "task_url": f"{FRONTEND_URL}/tasks",
    }


def get_notifications_summary(
    db: Session, token: Optional[str] = None, now: Optional[datetime] = None
) -> dict:
    """Counts for the home-screen widget.

    Names, hospitals and patient ids are masked unless the caller presents
    NOTIFICATION_TOKEN. Overdue means due before today's clinic-local start,
    so an open task is never counted as both overdue and due today.
    """
    now = now or utcnow()
    unmasked = bool(token) and bool(NOTIFICATION_TOKEN) and token == NOTIFICATION_TOKEN

    today = local_date(now)
    today_start, today_end = day_bounds_utc(today)
    _, tomorrow_end = day_bounds_utc(today + timedelta(days=1))

    overdue = TaskRepository.open_due_before(db, today_start)
    due_today = TaskRepository.open_due_between(db, today_start, today_end)

    new_patients = (
        db.query(Patient)
        .filter(Patient.created_at >= now - timedelta(hours=24))
        .order_by(Patient.created_at.desc())
        .all()
    )
    surgeries = (
        db.query(Patient)
        .filter(
            Patient.surgery_date.isnot(None),
            Patient.surgery_date >= today_start,
            Patient.surgery_date < tomorrow_end,
        )
        .order_by(Patient.surgery_date.asc())
        .all()
    )

    return {
        "overdue_tasks": {
            "count": len(overdue),
            "tasks": [_task_entry(t, unmasked) for t in overdue],
        },
        "today_tasks": {
            "count": len(due_today),
            "tasks": [_task_entry(t, unmasked) for t in due_today],
        },
        "new_patients_today": {
            "count": len(new_patients),
            "patients": [
                {
                    "name": p.name if unmasked else MASK,
                    "procedure": p.procedure,
                    "created_at": p.created_at.isoformat() if p.created_at else None,
                }
                for p in new_patients
            ],
        },
        "upcoming_surgeries": {
            "count": len(surgeries),
            "surgeries": [
                {
                    "patient_name": p.name if unmasked else MASK,
                    "procedure": p.procedure,
                    "surgery_date": p.surgery_date.isoformat(),
                    "hospital": p.hospital if unmasked else MASK,
                }
                for p in surgeries
            ],
        },
        "summary": summary_line(len(overdue), len(due_today), len(new_patients), len(surgeries)),
        "authenticated": unmasked,
    }
