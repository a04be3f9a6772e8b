"""Tests for removing characters from campaigns."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from dnd_companion.auth.session import AuthUser
from dnd_companion.core.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    UnlinkPartiallyFailedError,
    ValidationError,
)
from dnd_companion.linking import RelationshipManager
from dnd_companion.models import LinkState
from dnd_companion.storage import MemoryDocumentStore


@pytest.fixture
def linked(
    run: Callable[..., Any],
    manager: RelationshipManager,
    player_user: AuthUser,
    character_id: str,
    campaign_id: str,
) -> tuple[str, str]:
    """A (character, campaign) pair that is linked on both sides."""
    run(manager.link(character_id, campaign_id, player_user))
    return character_id, campaign_id


class TestUnlink:
    """Tests for RelationshipManager.unlink."""

    def test_player_removes_own_character(
        self,
        run: Callable[..., Any],
        manager: RelationshipManager,
        memory_store: MemoryDocumentStore,
        player_user: AuthUser,
        linked: tuple[str, str],
    ) -> None:
        """Test both sides are cleared and the player loses campaign access."""
        character_id, campaign_id = linked

        result = run(manager.unlink(character_id, campaign_id, player_user))

        assert result.changed
        assert result.lost_campaign_access
        assert run(memory_store.get("characters", character_id))["campaignIds"] == []
        assert run(memory_store.get("campaigns", campaign_id))["players"] == []
        assert run(manager.link_state(character_id, campaign_id)) == LinkState.UNLINKED

    def test_dm_removes_player(
        self,
        run: Callable[..., Any],
        manager: RelationshipManager,
        memory_store: MemoryDocumentStore,
        dm_user: AuthUser,
        linked: tuple[str, str],
    ) -> None:
        character_id, campaign_id = linked

        result = run(manager.unlink(character_id, campaign_id, dm_user))

        assert not result.lost_campaign_access
        assert run(memory_store.get("characters", character_id))["campaignIds"] == []

    def test_player_with_second_character_keeps_access(
        self,
        run: Callable[..., Any],
        manager: RelationshipManager,
        player_user: AuthUser,
        sample_character_data: dict[str, Any],
        linked: tuple[str, str],
    ) -> None:
        character_id, campaign_id = linked
        run(manager.create_character(sample_character_data, player_user, campaign_ids=[campaign_id]))

        result = run(manager.unlink(character_id, campaign_id, player_user))

        assert not result.lost_campaign_access

    def test_stranger_rejected(
        self,
        run: Callable[..., Any],
        manager: RelationshipManager,
        stranger_user: AuthUser,
        linked: tuple[str, str],
    ) -> None:
        with pytest.raises(PermissionDeniedError):
            run(manager.unlink(*linked, stranger_user))

    def test_unlinked_pair_is_noop(
        self,
        run: Callable[..., Any],
        manager: RelationshipManager,
        flaky_store: Any,
        player_user: AuthUser,
        character_id: str,
        campaign_id: str,
    ) -> None:
        result = run(manager.unlink(character_id, campaign_id, player_user))

        assert not result.changed
        assert flaky_store.count("update", "campaigns") == 0

    def test_neither_document_exists(
        self,
        run: Callable[..., Any],
        manager: RelationshipManager,
        player_user: AuthUser,
    ) -> None:
        with pytest.raises(NotFoundError):
            run(manager.unlink("gone", "also-gone", player_user))

    def test_only_matching_owner_entry_removed(
        self,
        run: Callable[..., Any],
        manager: RelationshipManager,
        memory_store: MemoryDocumentStore,
        dm_user: AuthUser,
        linked: tuple[str, str],
    ) -> None:
        """Test entries with the same character id but another owner survive."""
        character_id, campaign_id = linked
        foreign = {"userId": "other-uid", "characterId": character_id, "characterName": "X", "playerName": "Y"}
        players = run(memory_store.get("campaigns", campaign_id))["players"]
        run(memory_store.update("campaigns", campaign_id, {"players": [*players, foreign]}))

        run(manager.unlink(character_id, campaign_id, dm_user))

        assert run(memory_store.get("campaigns", campaign_id))["players"] == [foreign]

    def test_campaign_code_whitespace_ignored(
        self,
        run: Callable[..., Any],
        manager: RelationshipManager,
        memory_store: MemoryDocumentStore,
        player_user: AuthUser,
        linked: tuple[str, str],
    ) -> None:
        """Test a pasted code with surrounding spaces unlinks like link accepts it."""
        character_id, campaign_id = linked

        result = run(manager.unlink(character_id, f"  {campaign_id} ", player_user))

        assert result.changed
        assert result.campaign_id == campaign_id
        assert run(memory_store.get("characters", character_id))["campaignIds"] == []
        assert run(memory_store.get("campaigns", campaign_id))["players"] == []

    def test_blank_campaign_code(
        self,
        run: Callable[..., Any],
        manager: RelationshipManager,
        player_user: AuthUser,
        character_id: str,
    ) -> None:
        with pytest.raises(ValidationError):
            run(manager.unlink(character_id, "   ", player_user))


class TestUnlinkRepair:
    """Tests for unlinking half-broken relationships."""

    def test_campaign_deleted(
        self,
        run: Callable[..., Any],
        manager: RelationshipManager,
        memory_store: MemoryDocumentStore,
        player_user: AuthUser,
        linked: tuple[str, str],
    ) -> None:
        """Test the character side is cleaned when the campaign is gone."""
        character_id, campaign_id = linked
        run(memory_store.delete("campaigns", campaign_id))

        result = run(manager.unlink(character_id, campaign_id, player_user))

        assert result.changed
        assert run(memory_store.get("characters", character_id))["campaignIds"] == []

    def test_character_deleted(
        self,
        run: Callable[..., Any],
        manager: RelationshipManager,
        memory_store: MemoryDocumentStore,
        dm_user: AuthUser,
        linked: tuple[str, str],
    ) -> None:
        """Test the DM can drop a dangling player row."""
        character_id, campaign_id = linked
        run(memory_store.delete("characters", character_id))

        result = run(manager.unlink(character_id, campaign_id, dm_user))

        assert result.changed
        assert run(memory_store.get("campaigns", campaign_id))["players"] == []

    def test_partial_failure_reported(
        self,
        run: Callable[..., Any],
        manager: RelationshipManager,
        flaky_store: Any,
        memory_store: MemoryDocumentStore,
        player_user: AuthUser,
        linked: tuple[str, str],
    ) -> None:
        """Test a failed character write leaves the campaign side cleared."""
        character_id, campaign_id = linked
        flaky_store.fail("update", "characters", character_id)

        with pytest.raises(UnlinkPartiallyFailedError) as exc_info:
            run(manager.unlink(character_id, campaign_id, player_user))

        assert exc_info.value.succeeded == "campaigns"
        assert run(memory_store.get("campaigns", campaign_id))["players"] == []
        assert run(memory_store.get("characters", character_id))["campaignIds"] == [campaign_id]
