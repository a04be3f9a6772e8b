"""Tests for the access policy."""

from __future__ import annotations

import pytest

from dnd_companion.access.policy import (
    CAMPAIGN_CAPABILITIES,
    campaign_access,
    campaign_view_for,
    can_unlink,
    character_access,
    require_campaign_access,
    require_character_access,
)
from dnd_companion.core.exceptions import PermissionDeniedError
from dnd_companion.models import (
    Campaign,
    Capability,
    Character,
    OwnerCampaignView,
    PlayerCampaignView,
    PlayerLink,
    Role,
)


@pytest.fixture
def character() -> Character:
    return Character(id="char-1", user_id="player-uid", character_name="Thorin", campaign_ids=["camp-1"])


@pytest.fixture
def campaign() -> Campaign:
    return Campaign(
        id="camp-1",
        user_id="dm-uid",
        campaign_name="Lost Mines",
        notes="Secret",
        players=[
            PlayerLink(user_id="player-uid", character_id="char-1", character_name="Thorin", player_name="Ada"),
        ],
    )


class TestCharacterAccess:
    """Tests for character roles."""

    def test_owner(self, character: Character) -> None:
        """Test the owner gets the full capability set."""
        access = character_access("player-uid", character)

        assert access.role == Role.OWNER
        assert access.can(Capability.DELETE)
        assert access.can(Capability.LINK_CAMPAIGN)

    def test_dm_of_linked_campaign(self, character: Character, campaign: Campaign) -> None:
        """Test the DM of a linked campaign can only view."""
        access = character_access("dm-uid", character, [campaign])

        assert access.role == Role.DM_OF_LINKED_CAMPAIGN
        assert access.capabilities == frozenset({Capability.VIEW})

    def test_failed_campaign_fetch_grants_nothing(self, character: Character) -> None:
        """Test that a None campaign counts as not DM of it."""
        assert character_access("dm-uid", character, [None]).role == Role.NONE

    def test_campaign_not_listed_by_character(self, character: Character, campaign: Campaign) -> None:
        """Test a DM of an unlinked campaign has no access."""
        unlinked = character.model_copy(update={"campaign_ids": []})

        assert character_access("dm-uid", unlinked, [campaign]).role == Role.NONE

    @pytest.mark.parametrize("user_id", [None, "", "stranger-uid"])
    def test_no_access(self, character: Character, user_id: str | None) -> None:
        """Test anonymous and unrelated users are rejected."""
        access = character_access(user_id, character)

        assert access.role == Role.NONE
        assert not access.granted
        with pytest.raises(PermissionDeniedError):
            require_character_access(user_id, character)

    def test_unloaded_character(self) -> None:
        """Test a missing document always yields NONE."""
        assert character_access("player-uid", None).role == Role.NONE


class TestCampaignAccess:
    """Tests for campaign roles."""

    def test_owner(self, campaign: Campaign) -> None:
        """Test the DM role."""
        access = campaign_access("dm-uid", campaign)

        assert access.role == Role.OWNER
        assert access.capabilities == CAMPAIGN_CAPABILITIES[Role.OWNER]
        assert access.can(Capability.SEE_NOTES)

    def test_player(self, campaign: Campaign) -> None:
        """Test the player role."""
        access = campaign_access("player-uid", campaign)

        assert access.role == Role.PLAYER
        assert access.capabilities == frozenset({Capability.VIEW, Capability.REMOVE_SELF})

    def test_stranger(self, campaign: Campaign) -> None:
        """Test non-members are rejected."""
        with pytest.raises(PermissionDeniedError):
            require_campaign_access("stranger-uid", campaign)

    def test_require_capability(self, campaign: Campaign) -> None:
        """Test Access.require rejects missing capabilities."""
        access = campaign_access("player-uid", campaign)

        access.require(Capability.VIEW)
        with pytest.raises(PermissionDeniedError):
            access.require(Capability.MANAGE_PLAYERS, user_id="player-uid")


class TestCampaignViewFor:
    """Tests for role-filtered campaign views."""

    def test_owner_sees_notes(self, campaign: Campaign) -> None:
        """Test the owner view carries notes."""
        view = campaign_view_for("dm-uid", campaign)

        assert isinstance(view, OwnerCampaignView)
        assert view.notes == "Secret"

    def test_player_view_omits_notes(self, campaign: Campaign) -> None:
        """Test notes are absent, not blanked, for players."""
        view = campaign_view_for("player-uid", campaign)

        assert isinstance(view, PlayerCampaignView)
        assert not hasattr(view, "notes")
        assert "notes" not in view.model_dump()
        assert "Secret" not in view.model_dump_json()

    def test_dangling_rows_flagged(self, campaign: Campaign) -> None:
        """Test dangling player rows are flagged."""
        view = campaign_view_for("dm-uid", campaign, dangling_character_ids={"char-1"})

        assert view.players[0].dangling is True

    def test_stranger_rejected(self, campaign: Campaign) -> None:
        """Test non-members receive no view at all."""
        with pytest.raises(PermissionDeniedError):
            campaign_view_for("stranger-uid", campaign)


class TestCanUnlink:
    """Tests for unlink authorization."""

    def test_campaign_owner(self, character: Character, campaign: Campaign) -> None:
        assert can_unlink("dm-uid", character, campaign)

    def test_character_owner(self, character: Character, campaign: Campaign) -> None:
        assert can_unlink("player-uid", character, campaign)

    def test_others(self, character: Character, campaign: Campaign) -> None:
        assert not can_unlink("stranger-uid", character, campaign)
        assert not can_unlink(None, character, campaign)
