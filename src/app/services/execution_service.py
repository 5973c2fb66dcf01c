# src/app/services/execution_service.py
"""
Execution recording and statistics.
Handles the Pro gate for languages and the per-user stats page.
"""
from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol

from src.app.domain.models import CodeExecution, ExecutionOutcome, ExecutionPage, UserStats
from src.app.infra.db.base import ExecutionRepository, SnippetRepository, StarRepository
from src.app.services.entitlement import EntitlementPolicy, normalize_language
from src.app.services.identity_service import IdentityService

logger = logging.getLogger(__name__)

STATS_WINDOW = timedelta(hours=24)
MAX_PAGE_SIZE = 100


class Sandbox(Protocol):
    def execute(self, language: str, code: str) -> ExecutionOutcome:
        ...


def _favorite(counts: dict[str, int]) -> Optional[str]:
    # dicts keep insertion order, so ties go to the first language seen
    best: Optional[str] = None
    for language, count in counts.items():
        if best is None or count > counts[best]:
            best = language
    return best


def compute_stats(executions: list[CodeExecution], now: datetime) -> UserStats:
    """
    Aggregate an execution history.

    Args:
        executions: The user's executions in scan order
        now: Reference time for the 24 hour window
    """
    language_stats: dict[str, int] = {}
    last_24_hours = 0
    cutoff = now - STATS_WINDOW

    for execution in executions:
        language_stats[execution.language] = language_stats.get(execution.language, 0) + 1
        if execution.created_at is not None and execution.created_at >= cutoff:
            last_24_hours += 1

    return UserStats(
        total_executions=len(executions),
        languages_count=len(language_stats),
        languages=list(language_stats),
        language_stats=language_stats,
        favorite_language=_favorite(language_stats),
        last_24_hours=last_24_hours,
    )


class ExecutionService:
    """
    Responsibilities:
    - Check entitlement server-side before anything is written
    - Append execution records
    - Optionally run code through the sandbox first
    - Derive stats from the full history on every call
    """

    def __init__(
        self,
        executions: ExecutionRepository,
        identity: IdentityService,
        policy: EntitlementPolicy,
        stars: Optional[StarRepository] = None,
        snippets: Optional[SnippetRepository] = None,
        sandbox: Optional[Sandbox] = None,
    ):
        self._executions = executions
        self._identity = identity
        self._policy = policy
        self._stars = stars
        self._snippets = snippets
        self._sandbox = sandbox

    def record_execution(
        self,
        caller_id: Optional[str],
        language: str,
        code: str,
        output: Optional[str] = None,
        error: Optional[str] = None,
    ) -> CodeExecution:
        """
        Append one execution for the caller.

        Raises:
            UnauthenticatedError, UserNotFoundError
            EntitlementDeniedError: Language needs Pro and the caller is free tier
        """
        user = self._identity.require_user(caller_id)
        self._policy.ensure_can_execute(user, language)

        execution = self._executions.append(
            user_id=user.user_id,
            language=normalize_language(language),
            code=code,
            output=output,
            error=error,
        )
        logger.info(
            "Execution recorded: id=%s, user=%s, language=%s, failed=%s",
            execution.id,
            user.user_id,
            execution.language,
            error is not None,
        )
        return execution

    def run_and_record(self, caller_id: Optional[str], language: str, code: str) -> CodeExecution:
        """
        Run code in the sandbox and record the outcome.
        The entitlement check happens before the sandbox is called.
        """
        if self._sandbox is None:
            raise RuntimeError("No sandbox configured")

        user = self._identity.require_user(caller_id)
        self._policy.ensure_can_execute(user, language)

        outcome = self._sandbox.execute(normalize_language(language), code)
        return self.record_execution(
            user.user_id,
            language,
            code,
            output=outcome.output,
            error=outcome.error,
        )

    def list_user_executions(self, user_id: str, limit: int = 20, offset: int = 0) -> ExecutionPage:
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        offset = max(0, offset)
        items = self._executions.page_by_user(user_id, limit=limit, offset=offset)
        return ExecutionPage(items=items, limit=limit, offset=offset)

    def get_user_stats(self, user_id: str, now: Optional[datetime] = None) -> UserStats:
        now = now or datetime.now(timezone.utc)
        stats = compute_stats(self._executions.list_by_user(user_id), now)

        if self._stars is not None and self._snippets is not None:
            stars = self._stars.list_by_user(user_id)
            starred = self._snippets.list_by_ids([star.snippet_id for star in stars])
            stats.starred_count = len(stars)
            stats.most_starred_language = _favorite(dict(Counter(s.language for s in starred)))

        return stats
