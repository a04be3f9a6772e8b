"""Role-filtered view models handed to the presentation layer.

Campaign views come in two shapes. PlayerCampaignView has no ``notes``
field at all, so private DM notes cannot leak through serialization.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from dnd_companion.models.character import Character
from dnd_companion.models.enums import CampaignStatus, Capability, Role


class PlayerRow(BaseModel):
    """A campaign player entry as displayed.

    Attributes:
        dangling: True when the referenced character no longer exists or no
            longer lists the campaign.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    user_id: str
    character_id: str
    character_name: str
    player_name: str
    dangling: bool = False


class CampaignView(BaseModel):
    """Fields every authorized campaign viewer may see."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str
    user_id: str
    role: Role
    capabilities: frozenset[Capability]

    campaign_name: str
    description: str
    setting: str
    world: str
    dungeon_master: str
    current_level: int
    start_date: str
    status: CampaignStatus
    theme: str
    players: list[PlayerRow] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def can(self, capability: Capability) -> bool:
        """Check whether the viewer holds a capability."""
        return capability in self.capabilities


class PlayerCampaignView(CampaignView):
    """Campaign as seen by a player. Carries no DM notes."""


class OwnerCampaignView(CampaignView):
    """Campaign as seen by its Dungeon Master."""

    notes: str = ""


class LinkedCampaignSummary(BaseModel):
    """Name of a campaign a character is linked to.

    Attributes:
        found: False when the campaign could not be fetched.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    found: bool = True


class CharacterView(BaseModel):
    """Character with the viewer's role and resolved campaign names."""

    model_config = ConfigDict(frozen=True)

    character: Character
    role: Role
    capabilities: frozenset[Capability]
    linked_campaigns: list[LinkedCampaignSummary] = Field(default_factory=list)

    def can(self, capability: Capability) -> bool:
        """Check whether the viewer holds a capability."""
        return capability in self.capabilities


__all__ = [
    "PlayerRow",
    "CampaignView",
    "PlayerCampaignView",
    "OwnerCampaignView",
    "LinkedCampaignSummary",
    "CharacterView",
]
