"""Push token registration for the signed-in device"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...auth import get_approved_profile
from ...database import get_db
from ...models import Profile, UserPushToken
from .schemas import PushTokenRegister, PushTokenResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/push-tokens", tags=["Notifications"])


@router.post("", response_model=PushTokenResponse)
async def register_push_token(
    data: PushTokenRegister,
    profile: Profile = Depends(get_approved_profile),
    db: Session = Depends(get_db),
):
    """Upsert on (user, token) so re-registering only refreshes the platform"""
    existing = (
        db.query(UserPushToken)
        .filter(UserPushToken.user_id == profile.id, UserPushToken.token == data.token)
        .first()
    )
    try:
        if existing:
            existing.platform = data.platform.value
            token = existing
        else:
            token = UserPushToken(user_id=profile.id, token=data.token, platform=data.platform.value)
            db.add(token)
        db.commit()
        db.refresh(token)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"❌ Failed to register push token for {profile.id}: {e}")
        raise HTTPException(status_code=500, detail="Erro ao ativar notificações")

    logger.info(f"📲 Push token registered for {profile.id} ({data.platform.value})")
    return token


@router.delete("")
async def unregister_push_token(
    data: PushTokenRegister,
    profile: Profile = Depends(get_approved_profile),
    db: Session = Depends(get_db),
):
    deleted = (
        db.query(UserPushToken)
        .filter(UserPushToken.user_id == profile.id, UserPushToken.token == data.token)
        .delete(synchronize_session=False)
    )
    db.commit()
    return {"success": True, "deleted": deleted}
