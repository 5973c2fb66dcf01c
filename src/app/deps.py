# src/app/deps.py (singletons exposed as FastAPI dependencies)

from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel
from supabase import Client, create_client

from src.app.config import settings
from src.app.infra.db.supabase_repos import (
    SupabaseCommentRepository,
    SupabaseExecutionRepository,
    SupabaseSnippetRepository,
    SupabaseStarRepository,
    SupabaseUserRepository,
)
from src.app.services.engagement_service import EngagementService
from src.app.services.entitlement import EntitlementPolicy
from src.app.services.execution_service import ExecutionService
from src.app.services.identity_service import IdentityService
from src.app.services.snippet_service import SnippetService
from src.app.services.webhook_service import WebhookService
from src.services.piston_client import PistonClient

logger = logging.getLogger(__name__)

_client: Client | None = None

def get_supabase() -> Client:
    global _client
    if _client is None:
        _client = create_client(str(settings.SUPABASE_URL),
                                settings.SUPABASE_SERVICE_ROLE_KEY)
    return _client


auth_scheme = HTTPBearer(auto_error=False)

class CurrentUser(BaseModel):
    id: str
    email: str | None = None
    name: str | None = None


def decode_session_token(token: str) -> CurrentUser:
    """
    Validate a Clerk session JWT (RS256) against the configured public key.
    Raises JWTError on any validation failure.
    """
    if not settings.CLERK_JWT_PUBLIC_KEY:
        raise JWTError("CLERK_JWT_PUBLIC_KEY not configured")

    claims = jwt.decode(
        token,
        settings.CLERK_JWT_PUBLIC_KEY,
        algorithms=["RS256"],
        issuer=settings.CLERK_JWT_ISSUER,
        options={"verify_aud": False},
    )
    subject = claims.get("sub")
    if not subject:
        raise JWTError("Token without subject")
    return CurrentUser(id=str(subject), email=claims.get("email"), name=claims.get("name"))


async def get_current_user(
    cred: HTTPAuthorizationCredentials | None = Depends(auth_scheme),
) -> CurrentUser:
    """
    Recebe Authorization: Bearer <session_token> do Clerk e devolve o usuário.
    """
    if cred is None or cred.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")

    try:
        return decode_session_token(cred.credentials)
    except JWTError as exc:
        logger.info("Rejected session token: %s", exc)
        raise HTTPException(status_code=401, detail="Invalid/expired token")


async def get_optional_user(
    cred: HTTPAuthorizationCredentials | None = Depends(auth_scheme),
) -> CurrentUser | None:
    if cred is None or cred.scheme.lower() != "bearer":
        return None
    try:
        return decode_session_token(cred.credentials)
    except JWTError:
        return None


def get_identity_service(supa: Client = Depends(get_supabase)) -> IdentityService:
    return IdentityService(SupabaseUserRepository(supa))


def get_entitlement_policy() -> EntitlementPolicy:
    return EntitlementPolicy(settings.FREE_LANGUAGES)


def get_snippet_service(
    supa: Client = Depends(get_supabase),
    identity: IdentityService = Depends(get_identity_service),
) -> SnippetService:
    return SnippetService(
        snippets=SupabaseSnippetRepository(supa),
        comments=SupabaseCommentRepository(supa),
        stars=SupabaseStarRepository(supa),
        identity=identity,
    )


def get_engagement_service(
    supa: Client = Depends(get_supabase),
    identity: IdentityService = Depends(get_identity_service),
) -> EngagementService:
    return EngagementService(
        snippets=SupabaseSnippetRepository(supa),
        comments=SupabaseCommentRepository(supa),
        stars=SupabaseStarRepository(supa),
        identity=identity,
    )


def get_execution_service(
    supa: Client = Depends(get_supabase),
    identity: IdentityService = Depends(get_identity_service),
    policy: EntitlementPolicy = Depends(get_entitlement_policy),
) -> ExecutionService:
    return ExecutionService(
        executions=SupabaseExecutionRepository(supa),
        identity=identity,
        policy=policy,
        stars=SupabaseStarRepository(supa),
        snippets=SupabaseSnippetRepository(supa),
        sandbox=PistonClient(settings.PISTON_API_URL, timeout=settings.PISTON_TIMEOUT_SECONDS),
    )


def get_webhook_service(identity: IdentityService = Depends(get_identity_service)) -> WebhookService:
    return WebhookService(
        identity=identity,
        clerk_secret=settings.CLERK_WEBHOOK_SECRET,
        lemon_squeezy_secret=settings.LEMON_SQUEEZY_WEBHOOK_SECRET,
    )
