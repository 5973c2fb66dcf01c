# src/app/domain/models.py
"""
Domain models for snippets, engagement, executions and billing events.
These are pure data structures with no infrastructure dependencies.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar, Optional, Union


@dataclass
class User:
    """A synced identity-provider account."""
    user_id: str
    email: str
    name: str
    is_pro: bool = False
    pro_since: Optional[datetime] = None

    # Lemon Squeezy references, set by the upgrade path only
    lemon_squeezy_customer_id: Optional[str] = None
    lemon_squeezy_order_id: Optional[str] = None

    id: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class Snippet:
    """
    A saved piece of code.
    `user_name` is copied from the owner at creation time and never refreshed.
    """
    id: str
    user_id: str
    user_name: str
    title: str
    language: str
    code: str
    created_at: Optional[datetime] = None


@dataclass
class Comment:
    id: str
    snippet_id: str
    user_id: str
    user_name: str
    content: str
    created_at: Optional[datetime] = None


@dataclass
class Star:
    user_id: str
    snippet_id: str
    id: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class CodeExecution:
    """One execution attempt. Append-only."""
    id: str
    user_id: str
    language: str
    code: str
    output: Optional[str] = None
    error: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class ExecutionPage:
    items: list[CodeExecution]
    limit: int
    offset: int

    @property
    def has_more(self) -> bool:
        return len(self.items) == self.limit


@dataclass
class UserStats:
    """Aggregates derived from a user's execution history and stars."""
    total_executions: int = 0
    languages_count: int = 0
    languages: list[str] = field(default_factory=list)
    language_stats: dict[str, int] = field(default_factory=dict)
    favorite_language: Optional[str] = None
    last_24_hours: int = 0
    starred_count: int = 0
    most_starred_language: Optional[str] = None


@dataclass
class ExecutionOutcome:
    """Result of a sandbox run, reduced to what gets recorded."""
    output: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class UserCreatedEvent:
    event_type: ClassVar[str] = "user.created"

    user_id: str
    email: str
    name: str


@dataclass(frozen=True)
class OrderCreatedEvent:
    event_type: ClassVar[str] = "order_created"

    customer_email: str
    customer_id: str
    order_id: str
    total_amount: int


@dataclass(frozen=True)
class IgnoredEvent:
    event_type: str


ClerkEvent = Union[UserCreatedEvent, IgnoredEvent]
LemonSqueezyEvent = Union[OrderCreatedEvent, IgnoredEvent]
