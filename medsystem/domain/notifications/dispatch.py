"""Background-task entry points; each opens its own session after the response is sent"""

import logging

from firebase_admin import exceptions as firebase_exceptions
from sqlalchemy.exc import SQLAlchemyError

from ...database import SessionLocal
from .service import notify_new_note, notify_new_patient

logger = logging.getLogger(__name__)


async def dispatch_new_patient(patient_name: str, procedure: str) -> None:
    db = SessionLocal()
    try:
        result = await notify_new_patient(db, patient_name, procedure)
        logger.info(f"🔔 New patient push for {patient_name}: {result}")
    except (SQLAlchemyError, firebase_exceptions.FirebaseError) as e:
        logger.error(f"❌ New patient push failed for {patient_name}: {e}")
    finally:
        db.close()


async def dispatch_new_note(patient_id: str, patient_name: str, note_preview: str) -> None:
    db = SessionLocal()
    try:
        result = await notify_new_note(db, patient_name, note_preview, patient_id=patient_id)
        logger.info(f"🔔 New note push for patient {patient_id}: {result}")
    except (SQLAlchemyError, firebase_exceptions.FirebaseError) as e:
        logger.error(f"❌ New note push failed for patient {patient_id}: {e}")
    finally:
        db.close()
