"""Access policy for characters and campaigns.

Pure functions over (current user id, character, campaign). No I/O: the
relationship manager fetches whatever documents a decision needs and passes
them in. Roles map to capability sets through the tables below, so a new
role only needs a new table entry.

Example:
    >>> access = campaign_access("dm-uid", campaign)
    >>> access.role
    <Role.OWNER: 'owner'>
    >>> access.can(Capability.SEE_NOTES)
    True
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from dnd_companion.core.exceptions import PermissionDeniedError
from dnd_companion.models.campaign import Campaign
from dnd_companion.models.character import Character
from dnd_companion.models.enums import Capability, Role
from dnd_companion.models.views import (
    CampaignView,
    OwnerCampaignView,
    PlayerCampaignView,
    PlayerRow,
)


CHARACTER_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.OWNER: frozenset({
        Capability.VIEW,
        Capability.EDIT,
        Capability.DELETE,
        Capability.LINK_CAMPAIGN,
        Capability.UNLINK_OWN_LINKS,
    }),
    Role.DM_OF_LINKED_CAMPAIGN: frozenset({Capability.VIEW}),
    Role.NONE: frozenset(),
}

CAMPAIGN_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.OWNER: frozenset({
        Capability.VIEW,
        Capability.EDIT,
        Capability.MANAGE_PLAYERS,
        Capability.REMOVE_ANY_PLAYER,
        Capability.SEE_NOTES,
    }),
    Role.PLAYER: frozenset({Capability.VIEW, Capability.REMOVE_SELF}),
    Role.NONE: frozenset(),
}


@dataclass(frozen=True)
class Access:
    """Outcome of an access decision.

    Attributes:
        role: Derived role of the user.
        capabilities: Actions the role may perform.
    """

    role: Role
    capabilities: frozenset[Capability]

    @property
    def granted(self) -> bool:
        """True when the user may at least view the resource."""
        return Capability.VIEW in self.capabilities

    def can(self, capability: Capability) -> bool:
        """Check whether the role holds a capability."""
        return capability in self.capabilities

    def require(
        self,
        capability: Capability,
        *,
        user_id: str | None = None,
        resource: str | None = None,
    ) -> None:
        """Raise PermissionDeniedError unless the capability is held."""
        if capability not in self.capabilities:
            raise PermissionDeniedError(
                f"Action '{capability}' is not permitted for role '{self.role}'",
                user_id=user_id,
                resource=resource,
            )


# =============================================================================
# Characters
# =============================================================================


def character_role(
    current_user_id: str | None,
    character: Character | None,
    linked_campaigns: Iterable[Campaign | None] = (),
) -> Role:
    """Derive the user's role towards a character.

    Args:
        current_user_id: Signed-in user, None when anonymous.
        character: The character, None if not loaded.
        linked_campaigns: Campaigns fetched for ``character.campaign_ids``.
            None entries stand for fetches that failed and never grant access.

    Returns:
        OWNER, DM_OF_LINKED_CAMPAIGN or NONE.
    """
    if not current_user_id or character is None:
        return Role.NONE
    if character.user_id == current_user_id:
        return Role.OWNER
    for campaign in linked_campaigns:
        if (
            campaign is not None
            and campaign.id in character.campaign_ids
            and campaign.user_id == current_user_id
        ):
            return Role.DM_OF_LINKED_CAMPAIGN
    return Role.NONE


def character_access(
    current_user_id: str | None,
    character: Character | None,
    linked_campaigns: Iterable[Campaign | None] = (),
) -> Access:
    """Compute role and capabilities for a character view."""
    role = character_role(current_user_id, character, linked_campaigns)
    return Access(role=role, capabilities=CHARACTER_CAPABILITIES[role])


def require_character_access(
    current_user_id: str | None,
    character: Character | None,
    linked_campaigns: Iterable[Campaign | None] = (),
) -> Access:
    """Like character_access, but raise when the user may not view it.

    Raises:
        PermissionDeniedError: For role NONE.
    """
    access = character_access(current_user_id, character, linked_campaigns)
    if not access.granted:
        raise PermissionDeniedError(
            "You don't have permission to view this character",
            user_id=current_user_id,
            resource=character.id if character else None,
        )
    return access


# =============================================================================
# Campaigns
# =============================================================================


def campaign_role(current_user_id: str | None, campaign: Campaign | None) -> Role:
    """Derive the user's role towards a campaign."""
    if not current_user_id or campaign is None:
        return Role.NONE
    if campaign.user_id == current_user_id:
        return Role.OWNER
    if campaign.is_player(current_user_id):
        return Role.PLAYER
    return Role.NONE


def campaign_access(current_user_id: str | None, campaign: Campaign | None) -> Access:
    """Compute role and capabilities for a campaign view."""
    role = campaign_role(current_user_id, campaign)
    return Access(role=role, capabilities=CAMPAIGN_CAPABILITIES[role])


def require_campaign_access(current_user_id: str | None, campaign: Campaign | None) -> Access:
    """Like campaign_access, but raise when the user may not view it.

    Raises:
        PermissionDeniedError: For role NONE.
    """
    access = campaign_access(current_user_id, campaign)
    if not access.granted:
        raise PermissionDeniedError(
            "You don't have permission to view this campaign",
            user_id=current_user_id,
            resource=campaign.id if campaign else None,
        )
    return access


def can_unlink(acting_user_id: str | None, character: Character | None, campaign: Campaign | None) -> bool:
    """Check whether the user may remove the character from the campaign.

    The campaign owner may remove any player; the character owner may
    remove their own character.
    """
    if not acting_user_id:
        return False
    if campaign is not None and campaign.user_id == acting_user_id:
        return True
    return character is not None and character.user_id == acting_user_id


def campaign_view_for(
    current_user_id: str | None,
    campaign: Campaign,
    *,
    dangling_character_ids: Iterable[str] = (),
) -> CampaignView:
    """Build the role-filtered view of a campaign.

    Players get a PlayerCampaignView, which has no ``notes`` field.

    Raises:
        PermissionDeniedError: If the user is neither owner nor player.
    """
    access = require_campaign_access(current_user_id, campaign)
    dangling = set(dangling_character_ids)
    fields = {
        "id": campaign.id or "",
        "user_id": campaign.user_id,
        "role": access.role,
        "capabilities": access.capabilities,
        "campaign_name": campaign.campaign_name,
        "description": campaign.description,
        "setting": campaign.setting,
        "world": campaign.world,
        "dungeon_master": campaign.dungeon_master,
        "current_level": campaign.current_level,
        "start_date": campaign.start_date,
        "status": campaign.status,
        "theme": campaign.theme,
        "players": [
            PlayerRow(
                user_id=p.user_id,
                character_id=p.character_id,
                character_name=p.character_name,
                player_name=p.player_name,
                dangling=p.character_id in dangling,
            )
            for p in campaign.players
        ],
        "created_at": campaign.created_at,
        "updated_at": campaign.updated_at,
    }
    if access.can(Capability.SEE_NOTES):
        return OwnerCampaignView(**fields, notes=campaign.notes)
    return PlayerCampaignView(**fields)


__all__ = [
    "Access",
    "CHARACTER_CAPABILITIES",
    "CAMPAIGN_CAPABILITIES",
    "character_role",
    "character_access",
    "require_character_access",
    "campaign_role",
    "campaign_access",
    "require_campaign_access",
    "can_unlink",
    "campaign_view_for",
]
