from __future__ import annotations

import os

# Settings are read at import time by the app modules
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")

from datetime import datetime, timezone
from itertools import count
from typing import Optional

import pytest

from src.app.domain.models import CodeExecution, Comment, Snippet, Star, User
from src.app.infra.db.base import (
    CommentRepository,
    ExecutionRepository,
    SnippetRepository,
    StarRepository,
    UserRepository,
)
from src.app.services.engagement_service import EngagementService
from src.app.services.entitlement import EntitlementPolicy
from src.app.services.execution_service import ExecutionService
from src.app.services.identity_service import IdentityService
from src.app.services.snippet_service import SnippetService

BASE_TIME = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


class InMemoryStore:
    def __init__(self) -> None:
        self.users: dict[str, User] = {}
        self.snippets: dict[str, Snippet] = {}
        self.comments: dict[str, Comment] = {}
        self.stars: dict[tuple[str, str], Star] = {}
        self.executions: list[CodeExecution] = []
        self._ids = count(1)
        self._ticks = count(0)

    def next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    def next_time(self) -> datetime:
        return BASE_TIME.replace(minute=next(self._ticks) % 60)


class UserRepositoryStub(UserRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store
        self.insert_calls = 0

    def insert_if_absent(self, user_id: str, email: str, name: str) -> User:
        self.insert_calls += 1
        if user_id not in self.store.users:
            self.store.users[user_id] = User(user_id=user_id, email=email, name=name)
        return self.store.users[user_id]

    def get_by_id(self, user_id: str) -> Optional[User]:
        return self.store.users.get(user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.store.users.values() if u.email == email), None)

    def mark_pro(self, user_id: str, customer_id: str, order_id: str, pro_since: datetime) -> Optional[User]:
        user = self.store.users.get(user_id)
        if user is None:
            return None
        user.is_pro = True
        user.pro_since = pro_since
        user.lemon_squeezy_customer_id = customer_id
        user.lemon_squeezy_order_id = order_id
        return user


class SnippetRepositoryStub(SnippetRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store
        self.cascade_calls: list[str] = []

    def create(self, user_id: str, user_name: str, title: str, language: str, code: str) -> Snippet:
        snippet = Snippet(
            id=self.store.next_id("snippet"),
            user_id=user_id,
            user_name=user_name,
            title=title,
            language=language,
            code=code,
            created_at=self.store.next_time(),
        )
        self.store.snippets[snippet.id] = snippet
        return snippet

    def get_by_id(self, snippet_id: str) -> Optional[Snippet]:
        return self.store.snippets.get(snippet_id)

    def list_recent(self) -> list[Snippet]:
        return sorted(self.store.snippets.values(), key=lambda s: s.created_at, reverse=True)

    def list_by_ids(self, snippet_ids: list[str]) -> list[Snippet]:
        return [s for s in self.list_recent() if s.id in snippet_ids]

    def delete_cascade(self, snippet_id: str) -> bool:
        self.cascade_calls.append(snippet_id)
        if snippet_id not in self.store.snippets:
            return False
        self.store.comments = {k: c for k, c in self.store.comments.items() if c.snippet_id != snippet_id}
        self.store.stars = {k: s for k, s in self.store.stars.items() if s.snippet_id != snippet_id}
        del self.store.snippets[snippet_id]
        return True


class CommentRepositoryStub(CommentRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    def create(self, snippet_id: str, user_id: str, user_name: str, content: str) -> Comment:
        comment = Comment(
            id=self.store.next_id("comment"),
            snippet_id=snippet_id,
            user_id=user_id,
            user_name=user_name,
            content=content,
            created_at=self.store.next_time(),
        )
        self.store.comments[comment.id] = comment
        return comment

    def get_by_id(self, comment_id: str) -> Optional[Comment]:
        return self.store.comments.get(comment_id)

    def list_by_snippet(self, snippet_id: str) -> list[Comment]:
        rows = [c for c in self.store.comments.values() if c.snippet_id == snippet_id]
        return sorted(rows, key=lambda c: c.created_at, reverse=True)

    def delete(self, comment_id: str) -> bool:
        return self.store.comments.pop(comment_id, None) is not None


class StarRepositoryStub(StarRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    def delete_pair(self, user_id: str, snippet_id: str) -> bool:
        return self.store.stars.pop((user_id, snippet_id), None) is not None

    def insert_pair(self, user_id: str, snippet_id: str) -> None:
        self.store.stars.setdefault((user_id, snippet_id), Star(user_id=user_id, snippet_id=snippet_id))

    def exists(self, user_id: str, snippet_id: str) -> bool:
        return (user_id, snippet_id) in self.store.stars

    def count_by_snippet(self, snippet_id: str) -> int:
        return sum(1 for s in self.store.stars.values() if s.snippet_id == snippet_id)

    def list_by_user(self, user_id: str) -> list[Star]:
        return [s for s in self.store.stars.values() if s.user_id == user_id]


class ExecutionRepositoryStub(ExecutionRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    def append(
        self,
        user_id: str,
        language: str,
        code: str,
        output: Optional[str] = None,
        error: Optional[str] = None,
    ) -> CodeExecution:
        execution = CodeExecution(
            id=self.store.next_id("execution"),
            user_id=user_id,
            language=language,
            code=code,
            output=output,
            error=error,
            created_at=BASE_TIME,
        )
        self.store.executions.append(execution)
        return execution

    def list_by_user(self, user_id: str) -> list[CodeExecution]:
        return [e for e in self.store.executions if e.user_id == user_id]

    def page_by_user(self, user_id: str, limit: int = 20, offset: int = 0) -> list[CodeExecution]:
        rows = list(reversed(self.list_by_user(user_id)))
        return rows[offset:offset + limit]


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def user_repo(store: InMemoryStore) -> UserRepositoryStub:
    return UserRepositoryStub(store)


@pytest.fixture
def snippet_repo(store: InMemoryStore) -> SnippetRepositoryStub:
    return SnippetRepositoryStub(store)


@pytest.fixture
def comment_repo(store: InMemoryStore) -> CommentRepositoryStub:
    return CommentRepositoryStub(store)


@pytest.fixture
def star_repo(store: InMemoryStore) -> StarRepositoryStub:
    return StarRepositoryStub(store)


@pytest.fixture
def execution_repo(store: InMemoryStore) -> ExecutionRepositoryStub:
    return ExecutionRepositoryStub(store)


@pytest.fixture
def identity(user_repo: UserRepositoryStub) -> IdentityService:
    return IdentityService(user_repo, clock=lambda: BASE_TIME)


@pytest.fixture
def snippet_service(snippet_repo, comment_repo, star_repo, identity) -> SnippetService:
    return SnippetService(snippet_repo, comment_repo, star_repo, identity)


@pytest.fixture
def engagement_service(snippet_repo, comment_repo, star_repo, identity) -> EngagementService:
    return EngagementService(snippet_repo, comment_repo, star_repo, identity)


@pytest.fixture
def policy() -> EntitlementPolicy:
    return EntitlementPolicy({"javascript"})


@pytest.fixture
def execution_service(execution_repo, identity, policy, star_repo, snippet_repo) -> ExecutionService:
    return ExecutionService(
        executions=execution_repo,
        identity=identity,
        policy=policy,
        stars=star_repo,
        snippets=snippet_repo,
    )


@pytest.fixture
def alice(identity: IdentityService) -> User:
    return identity.ensure_user("user_alice", "alice@example.com", "Alice Doe")


@pytest.fixture
def bob(identity: IdentityService) -> User:
    return identity.ensure_user("user_bob", "bob@example.com", "Bob Roe")
