"""User router - profile, approval queue and account management"""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ...auth import get_approved_profile, get_current_profile, require_admin
from ...database import get_db
from ...models import AppRole, Profile
from ...rate_limiter import create_rate_limiter
from .schemas import LoginLookup, Professional, ProfileResponse, ProfileUpdate, UserCreate
from .service import UserService, profile_response

router = APIRouter(prefix="/users", tags=["Users"])

login_lookup_rate_limit = create_rate_limiter(
    limit=10,
    window_seconds=60,
    key_prefix="login_lookup",
    message="Muitas tentativas. Aguarde 1 minuto e tente novamente.",
)


class RoleUpdate(BaseModel):
    role: AppRole


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db)


# ============================================================================
# CURRENT USER
# ============================================================================


@router.get("/me", response_model=ProfileResponse)
async def me(
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    """Works for unapproved users too; the frontend uses it to show the waiting screen"""
    return profile_response(db, profile)


@router.put("/me", response_model=ProfileResponse)
async def update_me(
    data: ProfileUpdate,
    profile: Profile = Depends(get_current_profile),
    service: UserService = Depends(get_user_service),
):
    return profile_response(service.db, service.update_me(profile, data))


@router.get("/login-email", response_model=LoginLookup)
async def login_email(
    identifier: str = Query(..., min_length=1, max_length=255),
    _: None = Depends(login_lookup_rate_limit),
    service: UserService = Depends(get_user_service),
):
    return LoginLookup(email=service.email_for_login(identifier))


@router.get("/professionals", response_model=list[Professional])
async def professionals(
    _: Profile = Depends(get_approved_profile),
    service: UserService = Depends(get_user_service),
):
    return service.professionals()


# ============================================================================
# ADMIN
# ============================================================================


@router.get("/pending", response_model=list[ProfileResponse])
async def pending_users(
    _: Profile = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return [profile_response(service.db, p) for p in service.list_pending()]


@router.post("/{user_id}/approve", response_model=ProfileResponse)
async def approve_user(
    user_id: str,
    admin: Profile = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return profile_response(service.db, service.approve(user_id, admin))


@router.put("/{user_id}/role", response_model=ProfileResponse)
async def update_role(
    user_id: str,
    data: RoleUpdate,
    _: Profile = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return profile_response(service.db, service.set_role(user_id, data.role))


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    admin: Profile = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    """Reject a pending sign-up or remove an existing account"""
    return service.delete_user(user_id, admin)


@router.post("", response_model=ProfileResponse, status_code=201)
async def create_user(
    data: UserCreate,
    admin: Profile = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return profile_response(service.db, service.create_user(data, admin))
