# src/app/routers/snippets.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status

from src.app.deps import (
    CurrentUser,
    get_current_user,
    get_engagement_service,
    get_optional_user,
    get_snippet_service,
)
from src.app.domain.errors import (
    CommentNotFoundError,
    ForbiddenError,
    SnippetNotFoundError,
    UnauthenticatedError,
    UserNotFoundError,
)
from src.app.schemas.snippets import (
    CommentCreate,
    CommentResponse,
    SnippetCreate,
    SnippetDetail,
    SnippetResponse,
    StarToggleResponse,
)
from src.app.services.engagement_service import EngagementService
from src.app.services.snippet_service import SnippetService

router = APIRouter(prefix="/snippets", tags=["snippets"])


@router.get("/", response_model=list[SnippetResponse])
async def list_snippets(
    service: SnippetService = Depends(get_snippet_service),
) -> list[SnippetResponse]:
    return [SnippetResponse.from_domain(snippet) for snippet in service.list_snippets()]


@router.post("/", response_model=SnippetResponse, status_code=status.HTTP_201_CREATED)
async def create_snippet(
    payload: SnippetCreate,
    user: CurrentUser = Depends(get_current_user),
    service: SnippetService = Depends(get_snippet_service),
) -> SnippetResponse:
    try:
        snippet = service.create_snippet(user.id, payload.title, payload.language, payload.code)
    except UnauthenticatedError as exc:
        raise HTTPException(status_code=401, detail=str(exc))
    except UserNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return SnippetResponse.from_domain(snippet)


@router.get("/starred", response_model=list[SnippetResponse])
async def list_starred_snippets(
    user: CurrentUser = Depends(get_current_user),
    service: SnippetService = Depends(get_snippet_service),
) -> list[SnippetResponse]:
    try:
        snippets = service.list_starred_snippets(user.id)
    except UserNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return [SnippetResponse.from_domain(snippet) for snippet in snippets]


@router.get("/{snippet_id}", response_model=SnippetDetail)
async def get_snippet(
    snippet_id: str,
    user: CurrentUser | None = Depends(get_optional_user),
    service: SnippetService = Depends(get_snippet_service),
) -> SnippetDetail:
    try:
        snippet = service.get_snippet(snippet_id)
    except SnippetNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    base = SnippetResponse.from_domain(snippet)
    return SnippetDetail(
        **base.model_dump(),
        starCount=service.star_count(snippet_id),
        isStarred=service.is_starred(user.id if user else None, snippet_id),
    )


@router.delete("/{snippet_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_snippet(
    snippet_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: SnippetService = Depends(get_snippet_service),
) -> Response:
    try:
        service.delete_snippet(user.id, snippet_id)
    except SnippetNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ForbiddenError as exc:
        raise HTTPException(status_code=403, detail=str(exc))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{snippet_id}/star", response_model=StarToggleResponse)
async def toggle_star(
    snippet_id: str,
    user: CurrentUser = Depends(get_current_user),
    engagement: EngagementService = Depends(get_engagement_service),
    service: SnippetService = Depends(get_snippet_service),
) -> StarToggleResponse:
    try:
        starred = engagement.toggle_star(user.id, snippet_id)
    except SnippetNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return StarToggleResponse(starred=starred, starCount=service.star_count(snippet_id))


@router.get("/{snippet_id}/comments", response_model=list[CommentResponse])
async def list_comments(
    snippet_id: str,
    service: SnippetService = Depends(get_snippet_service),
) -> list[CommentResponse]:
    try:
        comments = service.list_comments(snippet_id)
    except SnippetNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return [CommentResponse.from_domain(comment) for comment in comments]


@router.post(
    "/{snippet_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    snippet_id: str,
    payload: CommentCreate,
    user: CurrentUser = Depends(get_current_user),
    engagement: EngagementService = Depends(get_engagement_service),
) -> CommentResponse:
    try:
        comment = engagement.add_comment(user.id, snippet_id, payload.content)
    except (SnippetNotFoundError, UserNotFoundError) as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return CommentResponse.from_domain(comment)


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    comment_id: str,
    user: CurrentUser = Depends(get_current_user),
    engagement: EngagementService = Depends(get_engagement_service),
) -> Response:
    try:
        engagement.delete_comment(user.id, comment_id)
    except CommentNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ForbiddenError as exc:
        raise HTTPException(status_code=403, detail=str(exc))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
