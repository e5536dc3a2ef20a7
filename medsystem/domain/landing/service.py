"""
Public landing-page lead capture.

Anonymous visitors leave name, phone and procedure; the lead lands in the
patient list as awaiting authorization, attributed to the first admin.
"""

import logging
from datetime import timedelta
from typing import Any, Optional

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models import NIL_UUID, AppRole, Patient, PatientStatus, UserRole
from ...shared.clock import utcnow
from ...shared.validators import (
    NAME_MAX_LENGTH,
    only_digits,
    validate_person_name,
    validate_procedure,
)

logger = logging.getLogger(__name__)

LANDING_ORIGIN = "Landing Page"
DUPLICATE_WINDOW = timedelta(minutes=5)
PHONE_MAX_DIGITS = 11


def validate_landing_phone(phone: Any) -> str:
    if not phone or not isinstance(phone, str):
        raise ValueError("Telefone é obrigatório")
    digits = only_digits(phone)
    if len(digits) < 10 or len(digits) > PHONE_MAX_DIGITS:
        raise ValueError("Telefone deve ter 10 ou 11 dígitos")
    return digits


def validate_landing_form(payload: Optional[dict]) -> dict:
    """Validated and sanitized {name, phone, procedure}; raises ValueError with a pt-BR message"""
    payload = payload or {}
    name = validate_person_name(payload.get("name"))
    phone = validate_landing_phone(payload.get("phone"))
    procedure = validate_procedure(payload.get("procedure"))
    return {
        "name": name[:NAME_MAX_LENGTH],
        "phone": phone[:PHONE_MAX_DIGITS],
        "procedure": procedure[:NAME_MAX_LENGTH],
    }


def landing_owner_id(db: Session) -> str:
    row = db.query(UserRole.user_id).filter(UserRole.role == AppRole.ADMIN.value).first()
    return row[0] if row else NIL_UUID


def submit_landing_form(db: Session, payload: Optional[dict]) -> Patient:
    try:
        form = validate_landing_form(payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    since = utcnow() - DUPLICATE_WINDOW
    duplicate = (
        db.query(Patient.id)
        .filter(Patient.phone == form["phone"], Patient.created_at >= since)
        .first()
    )
    if duplicate:
        logger.info(f"🔁 Duplicate landing submission for phone ending {form['phone'][-4:]}")
        raise HTTPException(
            status_code=429, detail="Cadastro já realizado recentemente. Aguarde alguns minutos."
        )

    patient = Patient(
        name=form["name"],
        phone=form["phone"],
        procedure=form["procedure"],
        status=PatientStatus.AWAITING_AUTHORIZATION.value,
        origem=LANDING_ORIGIN,
        exams_checklist=[],
        created_by=landing_owner_id(db),
        # Explicit so the duplicate check matches regardless of the DB clock
        created_at=utcnow(),
    )
    db.add(patient)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"❌ Failed to insert landing lead: {e}")
        raise HTTPException(
            status_code=500, detail="Erro ao cadastrar. Tente novamente mais tarde."
        ) from e
    db.refresh(patient)
    logger.info(f"🆕 Landing lead created: {patient.id}")
    return patient
