# src/app/services/entitlement.py
"""
Language entitlement rules.
Free languages run for everyone; everything else needs the Pro plan.
"""
from __future__ import annotations

from typing import Iterable

from src.app.domain.errors import EntitlementDeniedError
from src.app.domain.models import User

DEFAULT_FREE_LANGUAGES = frozenset({"javascript"})


def normalize_language(language: str) -> str:
    return (language or "").strip().lower()


class EntitlementPolicy:
    """
    Decides whether a user may execute code in a language.

    The free set is fixed at construction; the check itself has no side effects
    and only trusts the stored User record.
    """

    def __init__(self, free_languages: Iterable[str] = DEFAULT_FREE_LANGUAGES):
        self.free_languages = frozenset(normalize_language(lang) for lang in free_languages)

    def is_free(self, language: str) -> bool:
        return normalize_language(language) in self.free_languages

    def can_execute(self, user: User, language: str) -> bool:
        return self.is_free(language) or user.is_pro

    def ensure_can_execute(self, user: User, language: str) -> None:
        """
        Raises:
            EntitlementDeniedError: If the language needs Pro and the user lacks it
        """
        if not self.can_execute(user, language):
            raise EntitlementDeniedError(normalize_language(language))
