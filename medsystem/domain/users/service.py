"""User management: approval queue, admin-created accounts, professionals"""

import logging
from typing import Optional

from fastapi import HTTPException
from firebase_admin import auth as firebase_auth
from firebase_admin import exceptions as firebase_exceptions
from sqlalchemy.orm import Session

from ...auth import get_role
from ...config import USERNAME_EMAIL_DOMAIN
from ...firebase import get_firebase_app
from ...models import AppRole, Profile, UserRole
from ...shared.clock import utcnow
from .schemas import Professional, ProfileResponse, ProfileUpdate, UserCreate

logger = logging.getLogger(__name__)

PROFESSIONAL_ROLES = (AppRole.DOCTOR.value, AppRole.DENTIST.value, AppRole.ADMIN.value)


def profile_response(db: Session, profile: Profile) -> ProfileResponse:
    response = ProfileResponse.model_validate(profile)
    response.role = get_role(db, profile.id)
    return response


def professional_label(full_name: Optional[str], user_type: Optional[str]) -> str:
    kind = "Dentista" if user_type == "dentista" else "Médico"
    return f"{full_name or 'Sem nome'} ({kind})"


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def _profile(self, user_id: str) -> Profile:
        profile = self.db.query(Profile).filter(Profile.id == user_id).first()
        if not profile:
            raise HTTPException(status_code=404, detail="Usuário não encontrado")
        return profile

    def update_me(self, profile: Profile, data: ProfileUpdate) -> Profile:
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(profile, field, value)
        self.db.commit()
        self.db.refresh(profile)
        return profile

    def email_for_login(self, identifier: str) -> str:
        """Sign-in accepts a username; the frontend needs the e-mail Firebase knows"""
        identifier = (identifier or "").strip().lower()
        if "@" in identifier:
            return identifier
        profile = self.db.query(Profile).filter(Profile.username == identifier).first()
        if not profile or not profile.email:
            raise HTTPException(status_code=404, detail="Usuário não encontrado")
        return profile.email

    def list_pending(self) -> list[Profile]:
        return (
            self.db.query(Profile)
            .filter(Profile.approved.is_(False))
            .order_by(Profile.created_at.desc())
            .all()
        )

    def approve(self, user_id: str, admin: Profile) -> Profile:
        profile = self._profile(user_id)
        profile.approved = True
        profile.approved_at = utcnow()
        profile.approved_by = admin.id
        self.db.commit()
        self.db.refresh(profile)
        logger.info(f"✅ Profile {profile.email} approved by {admin.email}")
        return profile

    def delete_user(self, user_id: str, admin: Profile) -> dict:
        """Reject a pending sign-up or remove an account (Firebase user, profile and roles)"""
        if user_id == admin.id:
            raise HTTPException(status_code=400, detail="Você não pode excluir a si mesmo")
        profile = self._profile(user_id)

        try:
            firebase_auth.delete_user(profile.firebase_uid, app=get_firebase_app())
        except firebase_auth.UserNotFoundError:
            logger.warning(f"⚠️ Firebase user {profile.firebase_uid} already gone")
        except firebase_exceptions.FirebaseError as e:
            logger.error(f"❌ Firebase delete failed for {profile.email}: {e}")
            raise HTTPException(status_code=500, detail="Erro ao excluir usuário") from e

        email = profile.email
        self.db.delete(profile)
        self.db.commit()
        logger.info(f"🗑️ User {email} deleted by {admin.email}")
        return {"success": True}

    def create_user(self, data: UserCreate, admin: Profile) -> Profile:
        if self.db.query(Profile).filter(Profile.username == data.username).first():
            raise HTTPException(status_code=409, detail="Nome de usuário já existe")

        email = f"{data.username}@{USERNAME_EMAIL_DOMAIN}"
        full_name = data.full_name or data.username

        try:
            firebase_user = firebase_auth.create_user(
                email=email,
                password=data.password,
                display_name=full_name,
                app=get_firebase_app(),
            )
        except firebase_auth.EmailAlreadyExistsError as e:
            raise HTTPException(status_code=409, detail="Nome de usuário já existe") from e
        except firebase_exceptions.FirebaseError as e:
            logger.error(f"❌ Firebase create_user failed for {data.username}: {e}")
            raise HTTPException(status_code=500, detail="Erro ao criar usuário") from e

        profile = Profile(
            firebase_uid=firebase_user.uid,
            email=email,
            username=data.username,
            full_name=full_name,
            user_type=data.user_type,
            # Created by an admin, so no approval round-trip
            approved=True,
            approved_at=utcnow(),
            approved_by=admin.id,
        )
        self.db.add(profile)
        self.db.flush()
        self.db.add(UserRole(user_id=profile.id, role=data.role.value))
        self.db.commit()
        self.db.refresh(profile)
        logger.info(f"🆕 User {data.username} created by {admin.email} (role={data.role.value})")
        return profile

    def set_role(self, user_id: str, role: AppRole) -> Profile:
        profile = self._profile(user_id)
        self.db.query(UserRole).filter(UserRole.user_id == user_id).delete()
        self.db.add(UserRole(user_id=user_id, role=role.value))
        self.db.commit()
        return profile

    def professionals(self) -> list[Professional]:
        rows = (
            self.db.query(Profile, UserRole.role)
            .join(UserRole, UserRole.user_id == Profile.id)
            .filter(UserRole.role.in_(PROFESSIONAL_ROLES), Profile.approved.is_(True))
            .order_by(Profile.full_name.asc())
            .all()
        )
        seen: dict[str, Professional] = {}
        for profile, role in rows:
            if profile.id in seen:
                continue
            seen[profile.id] = Professional(
                id=profile.id,
                full_name=profile.full_name,
                user_type=profile.user_type,
                role=role,
                label=professional_label(profile.full_name, profile.user_type),
            )
        return list(seen.values())
