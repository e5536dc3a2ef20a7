"""User/profile schemas"""

import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import AppRole
from ...shared.validators import validate_br_phone

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9._-]{3,50}$")
USER_TYPES = ("medico", "dentista")


class ProfileResponse(BaseModel):
    id: str
    email: Optional[str] = None
    username: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    user_type: Optional[str] = None
    approved: bool
    approved_at: Optional[datetime] = None
    role: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    phone: Optional[str] = None
    user_type: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_br_phone(v) if v else None

    @field_validator("user_type")
    @classmethod
    def check_user_type(cls, v):
        if v is not None and v not in USER_TYPES:
            raise ValueError("Tipo de usuário deve ser medico ou dentista")
        return v


class UserCreate(BaseModel):
    """Admin-created account that signs in with a username instead of an e-mail"""

    username: str
    password: str
    full_name: Optional[str] = None
    role: AppRole = AppRole.USER
    user_type: Optional[str] = None

    @field_validator("username")
    @classmethod
    def check_username(cls, v):
        v = (v or "").strip().lower()
        if not USERNAME_PATTERN.match(v):
            raise ValueError(
                "Nome de usuário deve ter de 3 a 50 caracteres (letras, números, ponto, hífen)"
            )
        return v

    @field_validator("password")
    @classmethod
    def check_password(cls, v):
        # Firebase minimum
        if len(v or "") < 6:
            raise ValueError("Senha deve ter pelo menos 6 caracteres")
        return v

    @field_validator("user_type")
    @classmethod
    def check_user_type(cls, v):
        if v is not None and v not in USER_TYPES:
            raise ValueError("Tipo de usuário deve ser medico ou dentista")
        return v


class Professional(BaseModel):
    id: str
    full_name: Optional[str] = None
    user_type: Optional[str] = None
    role: str
    label: str


class LoginLookup(BaseModel):
    email: str
