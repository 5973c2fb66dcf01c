# src/app/schemas/executions.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from src.app.domain.models import CodeExecution, UserStats


class ExecutionCreate(BaseModel):
    """Result of a run the browser already made against the sandbox."""
    language: str = Field(..., min_length=1, max_length=40)
    code: str = Field(..., max_length=100_000)
    output: Optional[str] = None
    error: Optional[str] = None


class ExecutionRunRequest(BaseModel):
    language: str = Field(..., min_length=1, max_length=40)
    code: str = Field(..., max_length=100_000)


class ExecutionResponse(BaseModel):
    id: str
    userId: str
    language: str
    code: str
    output: Optional[str] = None
    error: Optional[str] = None
    createdAt: Optional[str] = None

    @classmethod
    def from_domain(cls, execution: CodeExecution) -> "ExecutionResponse":
        return cls(
            id=execution.id,
            userId=execution.user_id,
            language=execution.language,
            code=execution.code,
            output=execution.output,
            error=execution.error,
            createdAt=execution.created_at.isoformat() if execution.created_at else None,
        )


class ExecutionPageResponse(BaseModel):
    items: list[ExecutionResponse]
    limit: int
    offset: int
    hasMore: bool


class UserStatsResponse(BaseModel):
    totalExecutions: int
    languagesCount: int
    languages: list[str]
    languageStats: dict[str, int]
    favoriteLanguage: Optional[str] = None
    last24Hours: int
    starredCount: int = 0
    mostStarredLanguage: Optional[str] = None

    @classmethod
    def from_domain(cls, stats: UserStats) -> "UserStatsResponse":
        return cls(
            totalExecutions=stats.total_executions,
            languagesCount=stats.languages_count,
            languages=stats.languages,
            languageStats=stats.language_stats,
            favoriteLanguage=stats.favorite_language,
            last24Hours=stats.last_24_hours,
            starredCount=stats.starred_count,
            mostStarredLanguage=stats.most_starred_language,
        )
