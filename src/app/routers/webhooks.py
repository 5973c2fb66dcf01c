# src/app/routers/webhooks.py
"""
Webhook endpoints. The raw body is read unparsed so signatures are checked
against the exact bytes the provider signed.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status

from src.app.deps import get_webhook_service
from src.app.domain.errors import InvalidSignatureError
from src.app.schemas.users import WebhookAck
from src.app.services.webhook_service import WebhookService

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/clerk", response_model=WebhookAck)
async def clerk_webhook(
    request: Request,
    service: WebhookService = Depends(get_webhook_service),
) -> WebhookAck:
    body = await request.body()
    try:
        event = service.handle_clerk(
            body,
            request.headers.get("svix-id"),
            request.headers.get("svix-timestamp"),
            request.headers.get("svix-signature"),
        )
    except InvalidSignatureError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid signature")
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return WebhookAck(event=event.event_type)


@router.post("/lemon-squeezy", response_model=WebhookAck)
async def lemon_squeezy_webhook(
    request: Request,
    service: WebhookService = Depends(get_webhook_service),
) -> WebhookAck:
    body = await request.body()
    try:
        event = service.handle_lemon_squeezy(body, request.headers.get("x-signature"))
    except InvalidSignatureError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid signature")
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return WebhookAck(event=event.event_type)
