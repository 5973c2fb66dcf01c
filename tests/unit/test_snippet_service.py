from __future__ import annotations

import pytest

from src.app.domain.errors import (
    ForbiddenError,
    SnippetNotFoundError,
    UnauthenticatedError,
    UserNotFoundError,
)


class TestCreateSnippet:
    def test_creates_with_denormalized_name(self, snippet_service, alice) -> None:
        snippet = snippet_service.create_snippet("user_alice", "  Hello  ", "python", "print('hi')")

        assert snippet.user_id == "user_alice"
        assert snippet.user_name == "Alice Doe"
        assert snippet.title == "Hello"

    def test_name_is_not_refreshed(self, snippet_service, alice) -> None:
        snippet = snippet_service.create_snippet("user_alice", "Hello", "python", "")
        alice.name = "Alice Renamed"

        assert snippet_service.get_snippet(snippet.id).user_name == "Alice Doe"

    def test_requires_caller(self, snippet_service) -> None:
        with pytest.raises(UnauthenticatedError):
            snippet_service.create_snippet(None, "t", "python", "")

    def test_requires_synced_user(self, snippet_service, store) -> None:
        with pytest.raises(UserNotFoundError):
            snippet_service.create_snippet("user_ghost", "t", "python", "")
        assert store.snippets == {}

    def test_rejects_blank_title(self, snippet_service, alice) -> None:
        with pytest.raises(ValueError):
            snippet_service.create_snippet("user_alice", "   ", "python", "")


class TestReadSnippets:
    def test_newest_first(self, snippet_service, alice) -> None:
        first = snippet_service.create_snippet("user_alice", "first", "python", "")
        second = snippet_service.create_snippet("user_alice", "second", "go", "")

        assert [s.id for s in snippet_service.list_snippets()] == [second.id, first.id]

    def test_get_unknown(self, snippet_service) -> None:
        with pytest.raises(SnippetNotFoundError):
            snippet_service.get_snippet("missing")


class TestDeleteSnippet:
    def test_cascades_comments_and_stars(
        self, snippet_service, engagement_service, store, alice, bob
    ) -> None:
        snippet = snippet_service.create_snippet("user_alice", "t", "python", "")
        other = snippet_service.create_snippet("user_alice", "keep", "python", "")
        engagement_service.add_comment("user_alice", snippet.id, "mine")
        engagement_service.add_comment("user_bob", snippet.id, "nice")
        engagement_service.add_comment("user_bob", other.id, "also nice")
        engagement_service.toggle_star("user_bob", snippet.id)
        engagement_service.toggle_star("user_alice", snippet.id)
        engagement_service.toggle_star("user_bob", other.id)

        snippet_service.delete_snippet("user_alice", snippet.id)

        assert snippet.id not in store.snippets
        assert all(c.snippet_id != snippet.id for c in store.comments.values())
        assert all(s.snippet_id != snippet.id for s in store.stars.values())
        assert len(store.comments) == 1
        assert len(store.stars) == 1

    def test_non_owner_is_forbidden(
        self, snippet_service, engagement_service, snippet_repo, store, alice, bob
    ) -> None:
        snippet = snippet_service.create_snippet("user_alice", "t", "python", "")
        engagement_service.add_comment("user_bob", snippet.id, "hi")
        engagement_service.toggle_star("user_bob", snippet.id)

        with pytest.raises(ForbiddenError):
            snippet_service.delete_snippet("user_bob", snippet.id)

        assert snippet.id in store.snippets
        assert len(store.comments) == 1
        assert len(store.stars) == 1
        assert snippet_repo.cascade_calls == []

    def test_unsynced_non_owner_is_forbidden(self, snippet_service, store, alice) -> None:
        snippet = snippet_service.create_snippet("user_alice", "t", "python", "")

        with pytest.raises(ForbiddenError):
            snippet_service.delete_snippet("user_ghost", snippet.id)

        assert snippet.id in store.snippets

    def test_owner_without_user_record_can_delete(self, snippet_service, store, alice) -> None:
        snippet = snippet_service.create_snippet("user_alice", "t", "python", "")
        del store.users["user_alice"]

        snippet_service.delete_snippet("user_alice", snippet.id)

        assert snippet.id not in store.snippets

    def test_unknown_snippet(self, snippet_service, alice) -> None:
        with pytest.raises(SnippetNotFoundError):
            snippet_service.delete_snippet("user_alice", "missing")

    def test_requires_caller(self, snippet_service) -> None:
        with pytest.raises(UnauthenticatedError):
            snippet_service.delete_snippet("", "anything")

    def test_concurrent_delete_reports_not_found(self, snippet_service, snippet_repo, alice) -> None:
        snippet = snippet_service.create_snippet("user_alice", "t", "python", "")
        snippet_repo.delete_cascade = lambda snippet_id: False

        with pytest.raises(SnippetNotFoundError):
            snippet_service.delete_snippet("user_alice", snippet.id)


class TestStarQueries:
    def test_counts_and_flags(self, snippet_service, engagement_service, alice, bob) -> None:
        snippet = snippet_service.create_snippet("user_alice", "t", "python", "")
        engagement_service.toggle_star("user_bob", snippet.id)

        assert snippet_service.star_count(snippet.id) == 1
        assert snippet_service.is_starred("user_bob", snippet.id) is True
        assert snippet_service.is_starred("user_alice", snippet.id) is False
        assert snippet_service.is_starred(None, snippet.id) is False

    def test_starred_snippets(self, snippet_service, engagement_service, alice, bob) -> None:
        starred = snippet_service.create_snippet("user_alice", "a", "python", "")
        snippet_service.create_snippet("user_alice", "b", "python", "")
        engagement_service.toggle_star("user_bob", starred.id)

        assert [s.id for s in snippet_service.list_starred_snippets("user_bob")] == [starred.id]

    def test_comments_of_unknown_snippet(self, snippet_service) -> None:
        with pytest.raises(SnippetNotFoundError):
            snippet_service.list_comments("missing")
