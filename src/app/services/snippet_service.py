# src/app/services/snippet_service.py
"""
Snippet lifecycle: create, read, delete with cascade.
"""
from __future__ import annotations

import logging
from typing import Optional

from src.app.domain.errors import ForbiddenError, SnippetNotFoundError, UnauthenticatedError
from src.app.domain.models import Comment, Snippet
from src.app.infra.db.base import CommentRepository, SnippetRepository, StarRepository
from src.app.services.identity_service import IdentityService

logger = logging.getLogger(__name__)


class SnippetService:
    def __init__(
        self,
        snippets: SnippetRepository,
        comments: CommentRepository,
        stars: StarRepository,
        identity: IdentityService,
    ):
        self._snippets = snippets
        self._comments = comments
        self._stars = stars
        self._identity = identity

    def create_snippet(
        self,
        caller_id: Optional[str],
        title: str,
        language: str,
        code: str,
    ) -> Snippet:
        """
        Save a snippet under the caller's name.

        The owner's display name is copied onto the snippet now and is not
        updated if the user renames later.

        Raises:
            UnauthenticatedError: No caller
            UserNotFoundError: Caller has no synced user record
            ValueError: Empty title
        """
        user = self._identity.require_user(caller_id)

        clean_title = (title or "").strip()
        if not clean_title:
            raise ValueError("Snippet title is required")

        snippet = self._snippets.create(
            user_id=user.user_id,
            user_name=user.name,
            title=clean_title,
            language=language,
            code=code,
        )
        logger.info("Snippet created: id=%s, user=%s, language=%s", snippet.id, user.user_id, language)
        return snippet

    def get_snippet(self, snippet_id: str) -> Snippet:
        snippet = self._snippets.get_by_id(snippet_id)
        if snippet is None:
            raise SnippetNotFoundError(snippet_id)
        return snippet

    def list_snippets(self) -> list[Snippet]:
        return self._snippets.list_recent()

    def delete_snippet(self, caller_id: Optional[str], snippet_id: str) -> None:
        """
        Delete an owned snippet along with its comments and stars.

        Raises:
            UnauthenticatedError: No caller
            SnippetNotFoundError: Unknown snippet
            ForbiddenError: Caller is not the owner
        """
        if not caller_id:
            raise UnauthenticatedError()
        snippet = self.get_snippet(snippet_id)

        if snippet.user_id != caller_id:
            logger.warning("Delete refused: snippet=%s, owner=%s, caller=%s", snippet_id, snippet.user_id, caller_id)
            raise ForbiddenError("Not authorized to delete this snippet")

        if not self._snippets.delete_cascade(snippet_id):
            # removed between the read and the delete
            raise SnippetNotFoundError(snippet_id)

    def list_comments(self, snippet_id: str) -> list[Comment]:
        self.get_snippet(snippet_id)
        return self._comments.list_by_snippet(snippet_id)

    def star_count(self, snippet_id: str) -> int:
        return self._stars.count_by_snippet(snippet_id)

    def is_starred(self, caller_id: Optional[str], snippet_id: str) -> bool:
        if not caller_id:
            return False
        return self._stars.exists(caller_id, snippet_id)

    def list_starred_snippets(self, caller_id: Optional[str]) -> list[Snippet]:
        user = self._identity.require_user(caller_id)
        stars = self._stars.list_by_user(user.user_id)
        return self._snippets.list_by_ids([star.snippet_id for star in stars])
