# src/app/infra/db/base.py
"""
Abstract repositories for users, snippets, engagement and executions.
These interfaces allow swapping the store backend (and stubbing it in tests).
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from src.app.domain.models import CodeExecution, Comment, Snippet, Star, User


class UserRepository(ABC):
    """
    Users keyed by identity-provider id.

    Implementations:
    - SupabaseUserRepository: `users` table with a unique key on user_id
    """

    @abstractmethod
    def insert_if_absent(self, user_id: str, email: str, name: str) -> User:
        """
        Create the user unless one already exists for this id.

        Must be atomic: concurrent calls for the same id leave exactly one row.

        Returns:
            The stored User (existing or newly created)
        """
        pass

    @abstractmethod
    def get_by_id(self, user_id: str) -> Optional[User]:
        pass

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[User]:
        pass

    @abstractmethod
    def mark_pro(
        self,
        user_id: str,
        customer_id: str,
        order_id: str,
        pro_since: datetime,
    ) -> Optional[User]:
        """
        Set the pro flag and store the payment references.

        Returns:
            The updated User, or None if it no longer exists
        """
        pass


class SnippetRepository(ABC):
    @abstractmethod
    def create(
        self,
        user_id: str,
        user_name: str,
        title: str,
        language: str,
        code: str,
    ) -> Snippet:
        pass

    @abstractmethod
    def get_by_id(self, snippet_id: str) -> Optional[Snippet]:
        pass

    @abstractmethod
    def list_recent(self) -> list[Snippet]:
        """All snippets, newest first."""
        pass

    @abstractmethod
    def list_by_ids(self, snippet_ids: list[str]) -> list[Snippet]:
        pass

    @abstractmethod
    def delete_cascade(self, snippet_id: str) -> bool:
        """
        Delete a snippet together with its comments and stars.

        All three deletes commit as one unit; on failure nothing is removed.
        Children are removed before the snippet row.

        Returns:
            True if the snippet existed and was removed
        """
        pass


class CommentRepository(ABC):
    @abstractmethod
    def create(
        self,
        snippet_id: str,
        user_id: str,
        user_name: str,
        content: str,
    ) -> Comment:
        pass

    @abstractmethod
    def get_by_id(self, comment_id: str) -> Optional[Comment]:
        pass

    @abstractmethod
    def list_by_snippet(self, snippet_id: str) -> list[Comment]:
        """Comments for a snippet, newest first."""
        pass

    @abstractmethod
    def delete(self, comment_id: str) -> bool:
        pass


class StarRepository(ABC):
    """
    Join rows between users and snippets.
    The (user_id, snippet_id) pair is unique in the store.
    """

    @abstractmethod
    def delete_pair(self, user_id: str, snippet_id: str) -> bool:
        """
        Remove the star for this pair.

        Returns:
            True if a row was removed
        """
        pass

    @abstractmethod
    def insert_pair(self, user_id: str, snippet_id: str) -> None:
        """
        Insert the star for this pair; an existing row is a no-op, never a
        second row.
        """
        pass

    @abstractmethod
    def exists(self, user_id: str, snippet_id: str) -> bool:
        pass

    @abstractmethod
    def count_by_snippet(self, snippet_id: str) -> int:
        pass

    @abstractmethod
    def list_by_user(self, user_id: str) -> list[Star]:
        pass


class ExecutionRepository(ABC):
    """Append-only log of execution attempts."""

    @abstractmethod
    def append(
        self,
        user_id: str,
        language: str,
        code: str,
        output: Optional[str] = None,
        error: Optional[str] = None,
    ) -> CodeExecution:
        pass

    @abstractmethod
    def list_by_user(self, user_id: str) -> list[CodeExecution]:
        """Every execution for the user, oldest first."""
        pass

    @abstractmethod
    def page_by_user(
        self,
        user_id: str,
        limit: int = 20,
        offset: int = 0,
    ) -> list[CodeExecution]:
        """
        A page of executions, newest first.

        Args:
            user_id: The owner
            limit: Max rows to return
            offset: Pagination offset
        """
        pass
