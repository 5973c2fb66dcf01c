# src/app/services/engagement_service.py
from __future__ import annotations

import logging
from typing import Optional

from src.app.domain.errors import CommentNotFoundError, ForbiddenError, SnippetNotFoundError, UnauthenticatedError
from src.app.domain.models import Comment
from src.app.infra.db.base import CommentRepository, SnippetRepository, StarRepository
from src.app.services.identity_service import IdentityService

logger = logging.getLogger(__name__)


class EngagementService:
    """Stars and comments on snippets."""

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

    def _require_snippet(self, snippet_id: str) -> None:
        if self._snippets.get_by_id(snippet_id) is None:
            raise SnippetNotFoundError(snippet_id)

    def toggle_star(self, caller_id: Optional[str], snippet_id: str) -> bool:
        """
        Flip the caller's star on a snippet.

        Removing first and inserting only when nothing was removed keeps the
        pair unique; a racing duplicate insert is absorbed by the store's
        unique key.

        Returns:
            True if the snippet is starred after the call
        """
        if not caller_id:
            raise UnauthenticatedError()
        self._require_snippet(snippet_id)

        if self._stars.delete_pair(caller_id, snippet_id):
            logger.info("Star removed: user=%s, snippet=%s", caller_id, snippet_id)
            return False

        self._stars.insert_pair(caller_id, snippet_id)
        logger.info("Star added: user=%s, snippet=%s", caller_id, snippet_id)
        return True

    def add_comment(self, caller_id: Optional[str], snippet_id: str, content: str) -> Comment:
        """
        Raises:
            UnauthenticatedError, UserNotFoundError, SnippetNotFoundError
            ValueError: Empty content
        """
        user = self._identity.require_user(caller_id)
        self._require_snippet(snippet_id)

        body = (content or "").strip()
        if not body:
            raise ValueError("Comment content is required")

        comment = self._comments.create(
            snippet_id=snippet_id,
            user_id=user.user_id,
            user_name=user.name,
            content=body,
        )
        logger.info("Comment added: id=%s, snippet=%s, user=%s", comment.id, snippet_id, user.user_id)
        return comment

    def delete_comment(self, caller_id: Optional[str], comment_id: str) -> None:
        if not caller_id:
            raise UnauthenticatedError()

        comment = self._comments.get_by_id(comment_id)
        if comment is None:
            raise CommentNotFoundError(comment_id)
        if comment.user_id != caller_id:
            raise ForbiddenError("Not authorized to delete this comment")

        if not self._comments.delete(comment_id):
            raise CommentNotFoundError(comment_id)
        logger.info("Comment deleted: id=%s, user=%s", comment_id, caller_id)
