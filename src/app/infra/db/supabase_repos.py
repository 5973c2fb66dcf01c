from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from src.app.domain.errors import UpstreamUnavailableError
from src.app.domain.models import CodeExecution, Comment, Snippet, Star, User
from src.app.infra.db.base import (
    CommentRepository,
    ExecutionRepository,
    SnippetRepository,
    StarRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
INVALID_TEXT_REPRESENTATION = "22P02"

_STORE_ERRORS = (ConnectionError, TimeoutError, httpx.HTTPError, APIError)

Row = dict[str, Any]


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _parse_datetime(value: str | datetime | None) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        return None

    try:
        normalized = value.replace("Z", "+00:00") if value.endswith("Z") else value
        return datetime.fromisoformat(normalized)
    except ValueError:
        return None


def _safe_str(value: object) -> str | None:
    return str(value) if value is not None else None


def _first(rows: list[Row] | None) -> Row | None:
    return rows[0] if rows else None


def _run(query: Any, operation: str) -> Any:
    """Execute a PostgREST query, translating transport and API failures."""
    try:
        return query.execute()
    except _STORE_ERRORS as error:
        logger.error("Store error during %s: %s", operation, error)
        raise UpstreamUnavailableError(operation, str(error)) from error


def _run_by_id(query: Any, operation: str) -> Any:
    """
    Execute a query keyed by a uuid column and return its data.

    An id that is not a valid uuid cannot match any row, so it reads as
    absent (None) instead of a store failure.
    """
    try:
        return query.execute().data
    except APIError as error:
        if error.code == INVALID_TEXT_REPRESENTATION:
            logger.info("Malformed id during %s: %s", operation, error.message)
            return None
        logger.error("Store error during %s: %s", operation, error)
        raise UpstreamUnavailableError(operation, str(error)) from error
    except (ConnectionError, TimeoutError, httpx.HTTPError) as error:
        logger.error("Store error during %s: %s", operation, error)
        raise UpstreamUnavailableError(operation, str(error)) from error


def _row_to_user(row: Row) -> User:
    return User(
        id=_safe_str(row.get("id")),
        user_id=str(row["user_id"]),
        email=str(row.get("email") or ""),
        name=str(row.get("name") or ""),
        is_pro=bool(row.get("is_pro")),
        pro_since=_parse_datetime(row.get("pro_since")),
        lemon_squeezy_customer_id=_safe_str(row.get("lemon_squeezy_customer_id")),
        lemon_squeezy_order_id=_safe_str(row.get("lemon_squeezy_order_id")),
        created_at=_parse_datetime(row.get("created_at")),
    )


def _row_to_snippet(row: Row) -> Snippet:
    return Snippet(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        user_name=str(row.get("user_name") or ""),
        title=str(row.get("title") or ""),
        language=str(row.get("language") or ""),
        code=str(row.get("code") or ""),
        created_at=_parse_datetime(row.get("created_at")),
    )


def _row_to_comment(row: Row) -> Comment:
    return Comment(
        id=str(row["id"]),
        snippet_id=str(row["snippet_id"]),
        user_id=str(row["user_id"]),
        user_name=str(row.get("user_name") or ""),
        content=str(row.get("content") or ""),
        created_at=_parse_datetime(row.get("created_at")),
    )


def _row_to_star(row: Row) -> Star:
    return Star(
        id=_safe_str(row.get("id")),
        user_id=str(row["user_id"]),
        snippet_id=str(row["snippet_id"]),
        created_at=_parse_datetime(row.get("created_at")),
    )


def _row_to_execution(row: Row) -> CodeExecution:
    return CodeExecution(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        language=str(row.get("language") or ""),
        code=str(row.get("code") or ""),
        output=_safe_str(row.get("output")),
        error=_safe_str(row.get("error")),
        created_at=_parse_datetime(row.get("created_at")),
    )


class SupabaseUserRepository(UserRepository):
    TABLE_NAME = "users"

    def __init__(self, client: Client):
        self._client = client

    def insert_if_absent(self, user_id: str, email: str, name: str) -> User:
        payload = {"user_id": user_id, "email": email, "name": name, "is_pro": False}
        query = self._client.table(self.TABLE_NAME).upsert(
            payload, on_conflict="user_id", ignore_duplicates=True
        )

        try:
            query.execute()
        except APIError as error:
            # a concurrent insert won the race; the row is there to re-read
            if error.code != UNIQUE_VIOLATION:
                logger.error("Store error during ensure_user: %s", error)
                raise UpstreamUnavailableError("ensure_user", str(error)) from error
        except (ConnectionError, TimeoutError, httpx.HTTPError) as error:
            logger.error("Store error during ensure_user: %s", error)
            raise UpstreamUnavailableError("ensure_user", str(error)) from error

        user = self.get_by_id(user_id)
        if user is None:
            raise UpstreamUnavailableError("ensure_user", "user row missing after upsert")
        return user

    def get_by_id(self, user_id: str) -> User | None:
        query = self._client.table(self.TABLE_NAME).select("*").eq("user_id", user_id).limit(1)
        row = _first(_run(query, "get_user").data)
        return _row_to_user(row) if row else None

    def get_by_email(self, email: str) -> User | None:
        query = self._client.table(self.TABLE_NAME).select("*").eq("email", email).limit(1)
        row = _first(_run(query, "get_user_by_email").data)
        return _row_to_user(row) if row else None

    def mark_pro(
        self,
        user_id: str,
        customer_id: str,
        order_id: str,
        pro_since: datetime,
    ) -> User | None:
        update_data = {
            "is_pro": True,
            "pro_since": pro_since.isoformat(),
            "lemon_squeezy_customer_id": customer_id,
            "lemon_squeezy_order_id": order_id,
        }
        query = self._client.table(self.TABLE_NAME).update(update_data).eq("user_id", user_id)
        row = _first(_run(query, "upgrade_to_pro").data)
        return _row_to_user(row) if row else None


class SupabaseSnippetRepository(SnippetRepository):
    TABLE_NAME = "snippets"
    CASCADE_RPC = "delete_snippet_cascade"

    def __init__(self, client: Client):
        self._client = client

    def create(
        self,
        user_id: str,
        user_name: str,
        title: str,
        language: str,
        code: str,
    ) -> Snippet:
        payload = {
            "user_id": user_id,
            "user_name": user_name,
            "title": title,
            "language": language,
            "code": code,
            "created_at": _now_utc().isoformat(),
        }
        result = _run(self._client.table(self.TABLE_NAME).insert(payload), "create_snippet")
        row = _first(result.data)
        if not row:
            raise UpstreamUnavailableError("create_snippet", "insert returned no row")
        return _row_to_snippet(row)

    def get_by_id(self, snippet_id: str) -> Snippet | None:
        query = self._client.table(self.TABLE_NAME).select("*").eq("id", snippet_id).limit(1)
        row = _first(_run_by_id(query, "get_snippet"))
        return _row_to_snippet(row) if row else None

    def list_recent(self) -> list[Snippet]:
        query = self._client.table(self.TABLE_NAME).select("*").order("created_at", desc=True)
        return [_row_to_snippet(row) for row in (_run(query, "list_snippets").data or [])]

    def list_by_ids(self, snippet_ids: list[str]) -> list[Snippet]:
        if not snippet_ids:
            return []
        query = (
            self._client.table(self.TABLE_NAME)
            .select("*")
            .in_("id", snippet_ids)
            .order("created_at", desc=True)
        )
        return [_row_to_snippet(row) for row in (_run(query, "list_snippets_by_ids").data or [])]

    def delete_cascade(self, snippet_id: str) -> bool:
        # comments, stars and the snippet go in one Postgres transaction
        data = _run_by_id(
            self._client.rpc(self.CASCADE_RPC, {"p_snippet_id": snippet_id}),
            "delete_snippet",
        )
        deleted = bool(data)
        if deleted:
            logger.info("Snippet deleted with cascade: id=%s", snippet_id)
        return deleted


class SupabaseCommentRepository(CommentRepository):
    TABLE_NAME = "snippet_comments"

    def __init__(self, client: Client):
        self._client = client

    def create(
        self,
        snippet_id: str,
        user_id: str,
        user_name: str,
        content: str,
    ) -> Comment:
        payload = {
            "snippet_id": snippet_id,
            "user_id": user_id,
            "user_name": user_name,
            "content": content,
            "created_at": _now_utc().isoformat(),
        }
        result = _run(self._client.table(self.TABLE_NAME).insert(payload), "add_comment")
        row = _first(result.data)
        if not row:
            raise UpstreamUnavailableError("add_comment", "insert returned no row")
        return _row_to_comment(row)

    def get_by_id(self, comment_id: str) -> Comment | None:
        query = self._client.table(self.TABLE_NAME).select("*").eq("id", comment_id).limit(1)
        row = _first(_run_by_id(query, "get_comment"))
        return _row_to_comment(row) if row else None

    def list_by_snippet(self, snippet_id: str) -> list[Comment]:
        query = (
            self._client.table(self.TABLE_NAME)
            .select("*")
            .eq("snippet_id", snippet_id)
            .order("created_at", desc=True)
        )
        return [_row_to_comment(row) for row in (_run(query, "list_comments").data or [])]

    def delete(self, comment_id: str) -> bool:
        query = self._client.table(self.TABLE_NAME).delete().eq("id", comment_id)
        return bool(_run_by_id(query, "delete_comment"))


class SupabaseStarRepository(StarRepository):
    TABLE_NAME = "stars"

    def __init__(self, client: Client):
        self._client = client

    def delete_pair(self, user_id: str, snippet_id: str) -> bool:
        query = (
            self._client.table(self.TABLE_NAME)
            .delete()
            .eq("user_id", user_id)
            .eq("snippet_id", snippet_id)
        )
        return bool(_run(query, "unstar").data)

    def insert_pair(self, user_id: str, snippet_id: str) -> None:
        # the unique key turns a concurrent duplicate into a no-op
        query = self._client.table(self.TABLE_NAME).upsert(
            {"user_id": user_id, "snippet_id": snippet_id},
            on_conflict="user_id,snippet_id",
            ignore_duplicates=True,
        )
        _run(query, "star")

    def exists(self, user_id: str, snippet_id: str) -> bool:
        query = (
            self._client.table(self.TABLE_NAME)
            .select("id")
            .eq("user_id", user_id)
            .eq("snippet_id", snippet_id)
            .limit(1)
        )
        return bool(_run(query, "is_starred").data)

    def count_by_snippet(self, snippet_id: str) -> int:
        query = (
            self._client.table(self.TABLE_NAME)
            .select("id", count="exact")
            .eq("snippet_id", snippet_id)
            .limit(1)
        )
        return getattr(_run(query, "count_stars"), "count", 0) or 0

    def list_by_user(self, user_id: str) -> list[Star]:
        query = self._client.table(self.TABLE_NAME).select("*").eq("user_id", user_id)
        return [_row_to_star(row) for row in (_run(query, "list_stars").data or [])]


class SupabaseExecutionRepository(ExecutionRepository):
    TABLE_NAME = "code_executions"

    def __init__(self, client: Client):
        self._client = client

    def append(
        self,
        user_id: str,
        language: str,
        code: str,
        output: str | None = None,
        error: str | None = None,
    ) -> CodeExecution:
        payload = {
            "user_id": user_id,
            "language": language,
            "code": code,
            "output": output,
            "error": error,
            "created_at": _now_utc().isoformat(),
        }
        result = _run(self._client.table(self.TABLE_NAME).insert(payload), "record_execution")
        row = _first(result.data)
        if not row:
            raise UpstreamUnavailableError("record_execution", "insert returned no row")
        return _row_to_execution(row)

    def list_by_user(self, user_id: str) -> list[CodeExecution]:
        query = (
            self._client.table(self.TABLE_NAME)
            .select("*")
            .eq("user_id", user_id)
            .order("created_at")
        )
        return [_row_to_execution(row) for row in (_run(query, "list_executions").data or [])]

    def page_by_user(self, user_id: str, limit: int = 20, offset: int = 0) -> list[CodeExecution]:
        query = (
            self._client.table(self.TABLE_NAME)
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .range(offset, offset + limit - 1)
        )
        return [_row_to_execution(row) for row in (_run(query, "page_executions").data or [])]
