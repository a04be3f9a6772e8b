"""Pydantic V2 schemas for campaigns and their player links."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from dnd_companion.core.constants import MAX_CHARACTER_LEVEL, MIN_CHARACTER_LEVEL
from dnd_companion.models.character import DOCUMENT_MODEL_CONFIG
from dnd_companion.models.enums import CampaignStatus


class PlayerLink(BaseModel):
    """One player entry in a campaign.

    ``character_name`` and ``player_name`` are snapshots taken at link time
    and are not refreshed when the character is renamed.

    Attributes:
        user_id: Owner of the linked character.
        character_id: Linked character.
        character_name: Character name when the link was made.
        player_name: Player display name when the link was made.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    user_id: str = Field(min_length=1)
    character_id: str = Field(min_length=1)
    character_name: str = ""
    player_name: str = ""

    def matches(self, character_id: str, user_id: str) -> bool:
        """Check whether this entry is the link for (character, owner)."""
        return self.character_id == character_id and self.user_id == user_id


class Campaign(BaseModel):
    """Campaign document owned by its Dungeon Master.

    Attributes:
        id: Store-assigned identifier, also the share code given to players.
        user_id: Dungeon Master account.
        notes: Private DM notes; never exposed to players.
        players: Player links, one per linked character.
    """

    model_config = DOCUMENT_MODEL_CONFIG

    id: str | None = Field(default=None, description="Store-assigned identifier")
    user_id: str = Field(min_length=1, description="Dungeon Master account")

    campaign_name: str = Field(default="", max_length=200)
    description: str = ""
    setting: str = ""
    world: str = ""
    dungeon_master: str = ""
    current_level: Annotated[int, Field(ge=MIN_CHARACTER_LEVEL, le=MAX_CHARACTER_LEVEL)] = 1
    start_date: str = ""
    status: CampaignStatus = CampaignStatus.ACTIVE
    theme: str = ""
    notes: str = ""

    players: list[PlayerLink] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> Campaign:
        """Build a campaign from a stored document (id included)."""
        return cls.model_validate(document)

    def to_document(self) -> dict[str, Any]:
        """Serialize to the stored camelCase document (id excluded)."""
        return self.model_dump(mode="json", by_alias=True, exclude={"id"})

    def is_player(self, user_id: str | None) -> bool:
        """Check whether the user has at least one character in the campaign."""
        return user_id is not None and any(p.user_id == user_id for p in self.players)

    def has_link(self, character_id: str, user_id: str) -> bool:
        """Check whether the (character, owner) pair is in ``players``."""
        return any(p.matches(character_id, user_id) for p in self.players)

    def players_without(self, character_id: str, user_id: str) -> list[PlayerLink]:
        """Return ``players`` with the (character, owner) entry removed."""
        return [p for p in self.players if not p.matches(character_id, user_id)]


__all__ = [
    "PlayerLink",
    "Campaign",
]
