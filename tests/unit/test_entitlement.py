from __future__ import annotations

import pytest

from src.app.domain.errors import EntitlementDeniedError
from src.app.domain.models import User
from src.app.services.entitlement import DEFAULT_FREE_LANGUAGES, EntitlementPolicy


def _user(is_pro: bool) -> User:
    return User(user_id="u", email="u@example.com", name="U", is_pro=is_pro)


class TestEntitlementPolicy:
    def test_default_free_set(self) -> None:
        assert DEFAULT_FREE_LANGUAGES == frozenset({"javascript"})
        assert EntitlementPolicy().is_free("javascript")

    @pytest.mark.parametrize("is_pro", [False, True])
    def test_free_language_always_allowed(self, is_pro: bool) -> None:
        policy = EntitlementPolicy({"javascript", "python"})

        assert policy.can_execute(_user(is_pro), "javascript") is True
        assert policy.can_execute(_user(is_pro), "python") is True

    def test_gated_language_needs_pro(self) -> None:
        policy = EntitlementPolicy({"javascript"})

        assert policy.can_execute(_user(False), "rust") is False
        assert policy.can_execute(_user(True), "rust") is True

    def test_language_tags_are_normalized(self) -> None:
        policy = EntitlementPolicy({"JavaScript"})

        assert policy.can_execute(_user(False), "  javascript ") is True

    def test_ensure_raises_entitlement_denied(self) -> None:
        policy = EntitlementPolicy({"javascript"})

        with pytest.raises(EntitlementDeniedError) as exc_info:
            policy.ensure_can_execute(_user(False), "Rust")

        assert exc_info.value.language == "rust"

    def test_alternate_tier(self) -> None:
        policy = EntitlementPolicy(set())

        assert policy.can_execute(_user(False), "javascript") is False
