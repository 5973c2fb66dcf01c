# src/app/routers/executions.py
"""
Execution routes: record runs, run through the sandbox, history and stats.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from src.app.config import settings
from src.app.deps import CurrentUser, get_current_user, get_execution_service
from src.app.domain.errors import EntitlementDeniedError, UserNotFoundError
from src.app.schemas.executions import (
    ExecutionCreate,
    ExecutionPageResponse,
    ExecutionResponse,
    ExecutionRunRequest,
    UserStatsResponse,
)
from src.app.services.execution_service import ExecutionService
from src.services.errors import UnsupportedLanguageError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/executions", tags=["executions"])


def _upgrade_required(exc: EntitlementDeniedError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_402_PAYMENT_REQUIRED,
        detail={
            "message": "Upgrade required",
            "language": exc.language,
            "checkoutUrl": settings.LEMON_SQUEEZY_CHECKOUT_URL,
        },
    )


@router.post("/", response_model=ExecutionResponse, status_code=status.HTTP_201_CREATED)
async def record_execution(
    payload: ExecutionCreate,
    user: CurrentUser = Depends(get_current_user),
    service: ExecutionService = Depends(get_execution_service),
) -> ExecutionResponse:
    try:
        execution = service.record_execution(
            user.id,
            payload.language,
            payload.code,
            output=payload.output,
            error=payload.error,
        )
    except EntitlementDeniedError as exc:
        raise _upgrade_required(exc)
    except UserNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return ExecutionResponse.from_domain(execution)


@router.post("/run", response_model=ExecutionResponse, status_code=status.HTTP_201_CREATED)
async def run_code(
    payload: ExecutionRunRequest,
    user: CurrentUser = Depends(get_current_user),
    service: ExecutionService = Depends(get_execution_service),
) -> ExecutionResponse:
    """
    Run code in the sandbox and record the result.
    Pro languages are refused before the sandbox is called.
    """
    try:
        execution = service.run_and_record(user.id, payload.language, payload.code)
    except EntitlementDeniedError as exc:
        raise _upgrade_required(exc)
    except UserNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except UnsupportedLanguageError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return ExecutionResponse.from_domain(execution)


@router.get("/me", response_model=ExecutionPageResponse)
async def list_my_executions(
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    user: CurrentUser = Depends(get_current_user),
    service: ExecutionService = Depends(get_execution_service),
) -> ExecutionPageResponse:
    page = service.list_user_executions(user.id, limit=limit, offset=offset)
    return ExecutionPageResponse(
        items=[ExecutionResponse.from_domain(item) for item in page.items],
        limit=page.limit,
        offset=page.offset,
        hasMore=page.has_more,
    )


@router.get("/stats/{user_id}", response_model=UserStatsResponse)
async def get_user_stats(
    user_id: str,
    service: ExecutionService = Depends(get_execution_service),
) -> UserStatsResponse:
    return UserStatsResponse.from_domain(service.get_user_stats(user_id))
