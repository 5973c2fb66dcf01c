# src/app/routers/users.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from src.app.config import settings
from src.app.deps import CurrentUser, get_current_user, get_identity_service
from src.app.schemas.users import PricingResponse, UserResponse
from src.app.services.identity_service import IdentityService

router = APIRouter(tags=["users"])


@router.get("/auth/me", response_model=CurrentUser)
async def me(user: CurrentUser = Depends(get_current_user)):
    return user


@router.get("/users/me", response_model=UserResponse)
async def get_my_record(
    user: CurrentUser = Depends(get_current_user),
    identity: IdentityService = Depends(get_identity_service),
) -> UserResponse:
    record = identity.get_user(user.id)
    if record is None:
        raise HTTPException(status_code=404, detail="User not synced yet")
    return UserResponse.from_domain(record)


@router.get("/pricing", response_model=PricingResponse)
async def pricing() -> PricingResponse:
    return PricingResponse(
        checkoutUrl=settings.LEMON_SQUEEZY_CHECKOUT_URL,
        freeLanguages=sorted(settings.FREE_LANGUAGES),
    )
