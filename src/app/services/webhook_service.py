# src/app/services/webhook_service.py
"""
Inbound webhooks from Clerk (user sync) and Lemon Squeezy (payments).

Each handler verifies the signature before touching the store, decodes the
payload once into an event dataclass and dispatches a single mutation.
"""
from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import logging
import time
from typing import Any, Callable, Optional

from src.app.domain.errors import InvalidSignatureError
from src.app.domain.models import (
    ClerkEvent,
    IgnoredEvent,
    LemonSqueezyEvent,
    OrderCreatedEvent,
    UserCreatedEvent,
)
from src.app.services.identity_service import IdentityService

logger = logging.getLogger(__name__)

CLERK = "clerk"
LEMON_SQUEEZY = "lemon_squeezy"

SVIX_SECRET_PREFIX = "whsec_"
SVIX_TOLERANCE_SECONDS = 5 * 60


def verify_clerk_signature(
    secret: str,
    body: bytes,
    svix_id: Optional[str],
    svix_timestamp: Optional[str],
    svix_signature: Optional[str],
    now: Optional[float] = None,
) -> None:
    """
    Verify a Svix-signed Clerk delivery.

    The signed content is "{id}.{timestamp}.{body}", signed with HMAC-SHA256
    using the base64 key after the "whsec_" prefix. The header carries one or
    more space separated "v1,<base64 signature>" entries.

    Raises:
        InvalidSignatureError: On any mismatch, missing header or stale timestamp
    """
    if not secret:
        raise InvalidSignatureError(CLERK, "Webhook secret not configured")
    if not svix_id or not svix_timestamp or not svix_signature:
        raise InvalidSignatureError(CLERK, "Missing svix headers")

    try:
        timestamp = int(svix_timestamp)
    except ValueError as error:
        raise InvalidSignatureError(CLERK, "Invalid timestamp") from error

    current = time.time() if now is None else now
    if abs(current - timestamp) > SVIX_TOLERANCE_SECONDS:
        raise InvalidSignatureError(CLERK, "Timestamp outside tolerance")

    raw_secret = secret[len(SVIX_SECRET_PREFIX):] if secret.startswith(SVIX_SECRET_PREFIX) else secret
    try:
        key = base64.b64decode(raw_secret)
    except (binascii.Error, ValueError) as error:
        raise InvalidSignatureError(CLERK, "Malformed webhook secret") from error

    signed_content = f"{svix_id}.{svix_timestamp}.".encode() + body
    expected = base64.b64encode(hmac.new(key, signed_content, hashlib.sha256).digest()).decode()

    for entry in svix_signature.split():
        version, _, signature = entry.partition(",")
        if version == "v1" and hmac.compare_digest(expected, signature):
            return

    raise InvalidSignatureError(CLERK)


def verify_lemon_squeezy_signature(secret: str, body: bytes, signature: Optional[str]) -> None:
    """
    Verify the X-Signature header: hex HMAC-SHA256 of the raw body.

    Raises:
        InvalidSignatureError: On mismatch or missing header/secret
    """
    if not secret:
        raise InvalidSignatureError(LEMON_SQUEEZY, "Webhook secret not configured")
    if not signature:
        raise InvalidSignatureError(LEMON_SQUEEZY, "Missing X-Signature header")

    expected = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    if not hmac.compare_digest(expected, signature.strip()):
        raise InvalidSignatureError(LEMON_SQUEEZY)


def _primary_email(data: dict[str, Any]) -> str:
    addresses = data.get("email_addresses") or []
    primary_id = data.get("primary_email_address_id")
    for address in addresses:
        if primary_id and address.get("id") == primary_id:
            return str(address.get("email_address") or "")
    if addresses:
        return str(addresses[0].get("email_address") or "")
    return ""


def parse_clerk_event(payload: dict[str, Any]) -> ClerkEvent:
    event_type = str(payload.get("type") or "")
    if event_type != "user.created":
        return IgnoredEvent(event_type=event_type)

    data = payload.get("data") or {}
    user_id = data.get("id")
    if not user_id:
        raise ValueError("user.created event without user id")

    name = f"{data.get('first_name') or ''} {data.get('last_name') or ''}".strip()
    return UserCreatedEvent(user_id=str(user_id), email=_primary_email(data), name=name)


def parse_lemon_squeezy_event(payload: dict[str, Any]) -> LemonSqueezyEvent:
    meta = payload.get("meta") or {}
    event_name = str(meta.get("event_name") or "")
    if event_name != "order_created":
        return IgnoredEvent(event_type=event_name)

    data = payload.get("data") or {}
    attributes = data.get("attributes") or {}
    email = attributes.get("user_email")
    if not email:
        raise ValueError("order_created event without user_email")

    return OrderCreatedEvent(
        customer_email=str(email),
        customer_id=str(attributes.get("customer_id") or ""),
        order_id=str(data.get("id") or ""),
        total_amount=int(attributes.get("total") or 0),
    )


def _decode_json(body: bytes) -> dict[str, Any]:
    try:
        payload = json.loads(body)
    except (UnicodeDecodeError, json.JSONDecodeError) as error:
        raise ValueError("Invalid JSON payload") from error
    if not isinstance(payload, dict):
        raise ValueError("Invalid JSON payload")
    return payload


class WebhookService:
    def __init__(
        self,
        identity: IdentityService,
        clerk_secret: str,
        lemon_squeezy_secret: str,
        clock: Callable[[], float] = time.time,
    ):
        self._identity = identity
        self._clerk_secret = clerk_secret
        self._lemon_squeezy_secret = lemon_squeezy_secret
        self._clock = clock

    def handle_clerk(
        self,
        body: bytes,
        svix_id: Optional[str],
        svix_timestamp: Optional[str],
        svix_signature: Optional[str],
    ) -> ClerkEvent:
        """
        Raises:
            InvalidSignatureError: Before any store access
            ValueError: Malformed payload
        """
        try:
            verify_clerk_signature(
                self._clerk_secret, body, svix_id, svix_timestamp, svix_signature, now=self._clock()
            )
        except InvalidSignatureError as error:
            logger.warning("Rejected Clerk webhook: %s", error.reason)
            raise

        event = parse_clerk_event(_decode_json(body))
        if isinstance(event, UserCreatedEvent):
            self._identity.ensure_user(event.user_id, event.email, event.name)
        else:
            logger.info("Ignoring Clerk event: %s", event.event_type)
        return event

    def handle_lemon_squeezy(self, body: bytes, signature: Optional[str]) -> LemonSqueezyEvent:
        try:
            verify_lemon_squeezy_signature(self._lemon_squeezy_secret, body, signature)
        except InvalidSignatureError as error:
            logger.warning("Rejected Lemon Squeezy webhook: %s", error.reason)
            raise

        event = parse_lemon_squeezy_event(_decode_json(body))
        if isinstance(event, OrderCreatedEvent):
            upgraded = self._identity.upgrade_to_pro(
                email=event.customer_email,
                customer_id=event.customer_id,
                order_id=event.order_id,
                amount=event.total_amount,
            )
            if upgraded is None:
                logger.warning("Order %s dropped, no user with email yet", event.order_id)
        else:
            logger.info("Ignoring Lemon Squeezy event: %s", event.event_type)
        return event
