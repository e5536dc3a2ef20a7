from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import PushPlatform


class PushTokenRegister(BaseModel):
    token: str
    platform: PushPlatform

    @field_validator("token")
    @classmethod
    def check_token(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError("Token de notificação inválido")
        if len(v) > 512:
            raise ValueError("Token de notificação muito longo")
        return v


class PushTokenResponse(BaseModel):
    id: str
    platform: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
