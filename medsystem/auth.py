import base64
import json
import logging
import time

import httpx
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.x509 import load_pem_x509_certificate
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import FIREBASE_PROJECT_ID
from .database import get_db
from .models import AppRole, Profile, UserRole

logger = logging.getLogger(__name__)

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)

GOOGLE_CERTS_URL = (
    "https://www.googleapis.com/robot/v1/metadata/x509/securetoken@system.gserviceaccount.com"
)

# Cache for Google's public keys
_cached_keys = None


async def get_google_public_keys(force_refresh: bool = False):
    """Fetch Google's public keys for Firebase token verification"""
    global _cached_keys
    if _cached_keys and not force_refresh:
        return _cached_keys

    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(GOOGLE_CERTS_URL)
        if response.status_code == 200:
            _cached_keys = response.json()
            logger.info(f"✅ Fetched {len(_cached_keys)} Google public keys")
            return _cached_keys
        logger.error(f"❌ Failed to fetch Google public keys: HTTP {response.status_code}")
    except httpx.HTTPError as e:
        logger.error(f"❌ Error fetching Google public keys: {str(e)}")
    return None


def _b64decode(segment: str) -> bytes:
    return base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))


async def verify_firebase_token(token: str) -> dict:
    """
    Verify a Firebase ID token: RS256 signature against Google's certificates,
    then audience, issuer, expiry and issued-at claims.
    """
    if not FIREBASE_PROJECT_ID:
        logger.error("❌ FIREBASE_PROJECT_ID not configured")
        raise HTTPException(status_code=500, detail="Autenticação não configurada")

    parts = token.split(".")
    if len(parts) != 3:
        raise HTTPException(status_code=401, detail="Token inválido")
    header_b64, payload_b64, signature_b64 = parts

    try:
        header = json.loads(_b64decode(header_b64))
        payload = json.loads(_b64decode(payload_b64))
        signature = _b64decode(signature_b64)
    except (ValueError, json.JSONDecodeError) as e:
        logger.warning(f"⚠️ Undecodable token: {e}")
        raise HTTPException(status_code=401, detail="Token inválido") from e

    kid = header.get("kid")
    if header.get("alg") != "RS256" or not kid:
        logger.warning(f"⚠️ Rejected token header: alg={header.get('alg')}, kid={kid}")
        raise HTTPException(status_code=401, detail="Token inválido")

    public_keys = await get_google_public_keys()
    if not public_keys or kid not in public_keys:
        # Google rotates keys; refetch once before giving up
        logger.warning(f"⚠️ Key ID {kid} not cached, refreshing Google keys")
        public_keys = await get_google_public_keys(force_refresh=True)
        if not public_keys or kid not in public_keys:
            raise HTTPException(status_code=401, detail="Não foi possível verificar o token")

    cert = load_pem_x509_certificate(public_keys[kid].encode())
    try:
        cert.public_key().verify(
            signature,
            f"{header_b64}.{payload_b64}".encode(),
            padding.PKCS1v15(),
            hashes.SHA256(),
        )
    except Exception as e:
        logger.error(f"❌ Token signature verification failed: {str(e)}")
        raise HTTPException(status_code=401, detail="Assinatura do token inválida") from e

    if payload.get("aud") != FIREBASE_PROJECT_ID:
        raise HTTPException(status_code=401, detail="Token inválido")
    if payload.get("iss") != f"https://securetoken.google.com/{FIREBASE_PROJECT_ID}":
        raise HTTPException(status_code=401, detail="Token inválido")

    now = time.time()
    if payload.get("exp", 0) < now:
        raise HTTPException(
            status_code=401,
            detail="Sessão expirada. Faça login novamente.",
            headers={"X-Token-Expired": "true"},
        )
    # 60 seconds of clock skew
    if payload.get("iat", 0) > now + 60 or "auth_time" not in payload:
        raise HTTPException(status_code=401, detail="Token inválido")

    return payload


def get_role(db: Session, user_id: str) -> str:
    """Highest role held by the user; admin wins over anything else."""
    roles = {r.role for r in db.query(UserRole).filter(UserRole.user_id == user_id).all()}
    if AppRole.ADMIN.value in roles:
        return AppRole.ADMIN.value
    for role in (AppRole.DOCTOR.value, AppRole.DENTIST.value):
        if role in roles:
            return role
    return AppRole.USER.value


def is_admin(db: Session, profile: Profile) -> bool:
    return get_role(db, profile.id) == AppRole.ADMIN.value


def _create_profile(db: Session, firebase_uid: str, email: str, name: str) -> Profile:
    # The very first account bootstraps the clinic: approved admin
    is_first = db.query(Profile.id).first() is None

    profile = Profile(
        firebase_uid=firebase_uid,
        email=email,
        full_name=name or None,
        approved=is_first,
    )
    db.add(profile)
    db.flush()
    role = AppRole.ADMIN.value if is_first else AppRole.USER.value
    db.add(UserRole(user_id=profile.id, role=role))
    db.commit()
    db.refresh(profile)
    logger.info(f"🆕 Profile created for {email} (role={role}, approved={profile.approved})")
    return profile


async def get_current_profile(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> Profile:
    """Resolve the Firebase bearer token to a profile, creating it on first sign-in"""
    decoded = await verify_firebase_token(credentials.credentials)

    firebase_uid = decoded.get("sub") or decoded.get("user_id")
    if not firebase_uid:
        logger.error(f"❌ Token missing user ID claim. Claims: {list(decoded.keys())}")
        raise HTTPException(status_code=401, detail="Token inválido")

    email = decoded.get("email")
    profile = db.query(Profile).filter(Profile.firebase_uid == firebase_uid).first()
    if profile:
        return profile

    if email:
        # Same person, new sign-in method (e.g. password first, Google later)
        existing = db.query(Profile).filter(Profile.email == email).first()
        if existing:
            logger.info(f"🔄 Linking {email} to Firebase UID {firebase_uid}")
            existing.firebase_uid = firebase_uid
            db.commit()
            db.refresh(existing)
            return existing

    try:
        return _create_profile(db, firebase_uid, email, decoded.get("name", ""))
    except Exception as e:
        db.rollback()
        logger.error(f"❌ Failed to create profile for {email}: {e}")
        raise HTTPException(status_code=500, detail="Erro ao criar perfil") from e


async def get_approved_profile(profile: Profile = Depends(get_current_profile)) -> Profile:
    """Signed-in users still waiting for admin approval cannot reach clinical data"""
    if not profile.approved:
        logger.warning(f"⚠️ Unapproved profile {profile.email} tried to access protected route")
        raise HTTPException(
            status_code=403,
            detail="Cadastro aguardando aprovação do administrador",
            headers={"X-Approval-Required": "true"},
        )
    return profile


async def require_admin(
    profile: Profile = Depends(get_approved_profile),
    db: Session = Depends(get_db),
) -> Profile:
    if not is_admin(db, profile):
        raise HTTPException(status_code=403, detail="Apenas administradores podem fazer isso")
    return profile
