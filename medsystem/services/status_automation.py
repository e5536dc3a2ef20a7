"""
Automated status transitions for patients
Handles surgery_scheduled → surgery_completed once the surgery date has passed
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ..domain.patients.repository import PatientRepository
from ..models import Patient, PatientStatus
from ..shared.clock import utcnow

logger = logging.getLogger(__name__)


def update_completed_surgeries(db: Session, now: Optional[datetime] = None) -> dict:
    """
    Mark past surgeries as completed
    Should be run as a scheduled job (daily cron)

    Each transition is recorded in the patient history with no author, so the
    timeline shows it as an automatic change.

    Returns:
        dict: {"count": int, "patients": [{"id", "name"}]}
    """
    now = now or utcnow()

    try:
        patients = (
            db.query(Patient)
            .filter(
                Patient.status == PatientStatus.SURGERY_SCHEDULED.value,
                Patient.surgery_date.isnot(None),
                Patient.surgery_date < now,
            )
            .all()
        )

        for patient in patients:
            PatientRepository.add_history(
                db,
                patient.id,
                "status",
                patient.status,
                PatientStatus.SURGERY_COMPLETED.value,
                changed_by=None,
            )
            patient.status = PatientStatus.SURGERY_COMPLETED.value
            logger.info(f"✅ Patient {patient.id} transitioned: surgery_scheduled → surgery_completed")

        if patients:
            db.commit()
            logger.info(f"📊 Status automation: {len(patients)} surgery(ies) marked completed")
        else:
            logger.debug("ℹ️ No surgeries to update")

        return {
            "count": len(patients),
            "patients": [{"id": p.id, "name": p.name} for p in patients],
        }

    except Exception as e:
        logger.error(f"❌ Error updating completed surgeries: {str(e)}")
        db.rollback()
        raise
