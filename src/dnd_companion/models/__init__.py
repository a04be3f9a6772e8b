"""Pydantic V2 schemas for the D&D Companion.

Submodules:
    enums: Ability, Skill, CampaignStatus, LinkState.
    character: Character documents.
    campaign: Campaign documents and their PlayerLink entries.
    views: Role-filtered view models returned to the presentation layer.

Example:
    >>> from dnd_companion.models import Character, Skill
    >>> hero = Character(user_id="uid-1", character_name="Thorin", strength=16)
    >>> Skill.ATHLETICS.ability
    <Ability.STR: 'STR'>
"""

from __future__ import annotations

from dnd_companion.models.campaign import Campaign, PlayerLink
from dnd_companion.models.character import RELATIONSHIP_FIELDS, Character
from dnd_companion.models.enums import (
    Ability,
    CampaignStatus,
    Capability,
    LinkState,
    Role,
    Skill,
)
from dnd_companion.models.views import (
    CampaignView,
    CharacterView,
    LinkedCampaignSummary,
    OwnerCampaignView,
    PlayerCampaignView,
    PlayerRow,
)


__all__ = [
    # Enums
    "Ability",
    "Skill",
    "CampaignStatus",
    "Role",
    "Capability",
    "LinkState",
    # Documents
    "Character",
    "Campaign",
    "PlayerLink",
    "RELATIONSHIP_FIELDS",
    # Views
    "CampaignView",
    "OwnerCampaignView",
    "PlayerCampaignView",
    "PlayerRow",
    "CharacterView",
    "LinkedCampaignSummary",
]
