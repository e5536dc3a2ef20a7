"""
Push delivery through Firebase Cloud Messaging.

One FCM message per registered device token. Sends for a user run in parallel
worker threads since the Admin SDK client is blocking. Tokens FCM reports as
unregistered are removed so the next fan-out skips them.
"""

import asyncio
import logging
from typing import Optional

import firebase_admin
from firebase_admin import exceptions as firebase_exceptions
from firebase_admin import messaging
from sqlalchemy.orm import Session

from ...config import FRONTEND_URL
from ...firebase import get_firebase_app
from ...models import AppRole, UserPushToken, UserRole

logger = logging.getLogger(__name__)

ICON_URL = "/icons/icon-192x192.png"
BADGE_URL = "/icons/icon-72x72.png"
TOKEN_PREVIEW_LENGTH = 20


def token_preview(token: str) -> str:
    return token[:TOKEN_PREVIEW_LENGTH] + "..."


def build_message(
    token: str, platform: str, title: str, body: str, data: Optional[dict] = None
) -> messaging.Message:
    """FCM message carrying both a notification block and string-only data"""
    payload = {k: str(v) for k, v in (data or {}).items()}
    link = payload.get("url") or f"{FRONTEND_URL}/tasks"

    return messaging.Message(
        token=token,
        notification=messaging.Notification(title=title, body=body),
        data=payload,
        webpush=messaging.WebpushConfig(
            headers={"Urgency": "high"},
            notification=messaging.WebpushNotification(
                title=title, body=body, icon=ICON_URL, badge=BADGE_URL
            ),
            fcm_options=messaging.WebpushFCMOptions(link=link),
        ),
        android=messaging.AndroidConfig(
            priority="high",
            notification=messaging.AndroidNotification(title=title, body=body, sound="default"),
        ),
        apns=messaging.APNSConfig(
            headers={"apns-priority": "10"},
            payload=messaging.APNSPayload(
                aps=messaging.Aps(alert=messaging.ApsAlert(title=title, body=body), sound="default")
            ),
        ),
    )


def _send_one(message: messaging.Message, app: firebase_admin.App) -> str:
    return messaging.send(message, app=app)


async def _deliver(
    app: firebase_admin.App,
    push_token: UserPushToken,
    title: str,
    body: str,
    data: Optional[dict],
) -> dict:
    result = {
        "token": token_preview(push_token.token),
        "platform": push_token.platform,
        "success": False,
        "error": None,
        "unregistered": False,
    }
    try:
        message = build_message(push_token.token, push_token.platform, title, body, data)
        await asyncio.to_thread(_send_one, message, app)
        result["success"] = True
    except messaging.UnregisteredError as e:
        result["error"] = str(e)
        result["unregistered"] = True
    except (firebase_exceptions.FirebaseError, ValueError) as e:
        result["error"] = str(e)
    except Exception as e:
        # One device's failure never aborts the rest of the fan-out
        logger.error(f"❌ Unexpected push error for {result['token']}: {e}")
        result["error"] = str(e)
    return result


async def send_push_to_user(
    db: Session, user_id: str, title: str, body: str, data: Optional[dict] = None
) -> Optional[dict]:
    """Send a notification to every device of one user.

    Returns None when the user has no registered tokens, otherwise
    {total_tokens, successful, failed, results}.
    """
    tokens = db.query(UserPushToken).filter(UserPushToken.user_id == user_id).all()
    if not tokens:
        logger.info(f"📭 No push tokens for user {user_id}")
        return None

    app = await asyncio.to_thread(get_firebase_app)
    results = await asyncio.gather(*(_deliver(app, t, title, body, data) for t in tokens))

    stale = [t.id for t, r in zip(tokens, results) if r["unregistered"]]
    if stale:
        db.query(UserPushToken).filter(UserPushToken.id.in_(stale)).delete(
            synchronize_session=False
        )
        db.commit()
        logger.info(f"🧹 Removed {len(stale)} unregistered push token(s) for user {user_id}")

    for r in results:
        r.pop("unregistered")
        if not r["success"]:
            logger.warning(f"⚠️ Push to {r['token']} ({r['platform']}) failed: {r['error']}")

    successful = sum(1 for r in results if r["success"])
    logger.info(f"🔔 Push for user {user_id}: {successful}/{len(results)} delivered")
    return {
        "total_tokens": len(results),
        "successful": successful,
        "failed": len(results) - successful,
        "results": list(results),
    }


def admin_user_ids(db: Session) -> list[str]:
    rows = db.query(UserRole.user_id).filter(UserRole.role == AppRole.ADMIN.value).distinct().all()
    return [row[0] for row in rows]


async def notify_admins(db: Session, title: str, body: str, data: Optional[dict] = None) -> dict:
    admins = admin_user_ids(db)
    if not admins:
        return {"message": "No admins to notify"}

    outcomes = await asyncio.gather(
        *(send_push_to_user(db, admin_id, title, body, data) for admin_id in admins)
    )
    notified = sum(1 for outcome in outcomes if outcome and outcome["successful"] > 0)

    return {"success": True, "admins_notified": notified, "total_admins": len(admins)}
