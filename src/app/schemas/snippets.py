# src/app/schemas/snippets.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from src.app.domain.models import Comment, Snippet


class SnippetCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    language: str = Field(..., min_length=1, max_length=40)
    code: str = Field(..., max_length=100_000)


class SnippetResponse(BaseModel):
    id: str
    userId: str
    userName: str
    title: str
    language: str
    code: str
    createdAt: Optional[str] = None

    @classmethod
    def from_domain(cls, snippet: Snippet) -> "SnippetResponse":
        return cls(
            id=snippet.id,
            userId=snippet.user_id,
            userName=snippet.user_name,
            title=snippet.title,
            language=snippet.language,
            code=snippet.code,
            createdAt=snippet.created_at.isoformat() if snippet.created_at else None,
        )


class SnippetDetail(SnippetResponse):
    starCount: int = 0
    isStarred: bool = False


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5_000)


class CommentResponse(BaseModel):
    id: str
    snippetId: str
    userId: str
    userName: str
    content: str
    createdAt: Optional[str] = None

    @classmethod
    def from_domain(cls, comment: Comment) -> "CommentResponse":
        return cls(
            id=comment.id,
            snippetId=comment.snippet_id,
            userId=comment.user_id,
            userName=comment.user_name,
            content=comment.content,
            createdAt=comment.created_at.isoformat() if comment.created_at else None,
        )


class StarToggleResponse(BaseModel):
    starred: bool
    starCount: int
