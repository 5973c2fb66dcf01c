# src/app/schemas/users.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from src.app.domain.models import User


class UserResponse(BaseModel):
    userId: str
    email: str
    name: str
    isPro: bool
    proSince: Optional[str] = None

    @classmethod
    def from_domain(cls, user: User) -> "UserResponse":
        return cls(
            userId=user.user_id,
            email=user.email,
            name=user.name,
            isPro=user.is_pro,
            proSince=user.pro_since.isoformat() if user.pro_since else None,
        )


class PricingResponse(BaseModel):
    checkoutUrl: str
    freeLanguages: list[str]


class WebhookAck(BaseModel):
    received: bool = True
    event: str
