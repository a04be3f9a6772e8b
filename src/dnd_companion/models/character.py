"""Pydantic V2 schema for character documents.

Attributes are snake_case; the stored document uses the camelCase aliases
produced by ``to_camel`` (``userId``, ``campaignIds``, ...). Unknown keys in
stored documents are ignored so older or newer documents still load.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from dnd_companion.core.constants import (
    DEFAULT_ABILITY_SCORE,
    DEFAULT_HIT_DICE,
    DEFAULT_PROFICIENCY_BONUS,
    DEFAULT_SPEED,
    MAX_ABILITY_SCORE,
    MAX_CHARACTER_LEVEL,
    MIN_ABILITY_SCORE,
    MIN_CHARACTER_LEVEL,
)
from dnd_companion.engine.dice import is_valid_dice_notation
from dnd_companion.models.enums import Ability, Skill


AbilityScoreValue = Annotated[
    int,
    Field(ge=MIN_ABILITY_SCORE, le=MAX_ABILITY_SCORE),
]

DOCUMENT_MODEL_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="ignore",
    validate_assignment=True,
)

#: Fields that only the relationship layer may write.
RELATIONSHIP_FIELDS = frozenset({"id", "user_id", "campaign_ids", "created_at", "updated_at"})


def _dedupe(values: list[Any]) -> list[Any]:
    seen: set[Any] = set()
    unique = []
    for value in values:
        if value not in seen:
            seen.add(value)
            unique.append(value)
    return unique


class Character(BaseModel):
    """Player character document.

    ``campaign_ids`` is treated as a set: duplicates are dropped on load and
    order carries no meaning. It must always equal the set of campaigns whose
    player list references this character and its owner.
    """

    model_config = DOCUMENT_MODEL_CONFIG

    id: str | None = Field(default=None, description="Store-assigned identifier")
    user_id: str = Field(min_length=1, description="Owning account")

    # Basic information
    character_name: str = Field(default="", max_length=200)
    character_class: str = Field(default="", alias="class", max_length=100)
    level: Annotated[int, Field(ge=MIN_CHARACTER_LEVEL, le=MAX_CHARACTER_LEVEL)] = 1
    background: str = ""
    player_name: str = ""
    race: str = ""
    alignment: str = ""
    experience_points: Annotated[int, Field(ge=0)] = 0

    # Ability scores
    strength: AbilityScoreValue = DEFAULT_ABILITY_SCORE
    dexterity: AbilityScoreValue = DEFAULT_ABILITY_SCORE
    constitution: AbilityScoreValue = DEFAULT_ABILITY_SCORE
    intelligence: AbilityScoreValue = DEFAULT_ABILITY_SCORE
    wisdom: AbilityScoreValue = DEFAULT_ABILITY_SCORE
    charisma: AbilityScoreValue = DEFAULT_ABILITY_SCORE

    # Combat stats
    armor_class: Annotated[int, Field(ge=0)] = 10
    initiative: int = 0
    speed: Annotated[int, Field(ge=0)] = DEFAULT_SPEED
    max_hit_points: Annotated[int, Field(ge=0)] = 8
    current_hit_points: int = 8
    temporary_hit_points: Annotated[int, Field(ge=0)] = 0
    hit_dice: str = DEFAULT_HIT_DICE

    # Proficiency
    proficiency_bonus: Annotated[int, Field(ge=0)] = DEFAULT_PROFICIENCY_BONUS
    saving_throw_proficiencies: list[Ability] = Field(default_factory=list)
    skill_proficiencies: list[Skill] = Field(default_factory=list)

    # Narrative
    personality_traits: str = ""
    ideals: str = ""
    bonds: str = ""
    flaws: str = ""
    character_appearance: str = ""
    allies_and_organizations: str = ""
    additional_features_and_traits: str = ""
    equipment: str = ""
    spells: str = ""

    image_url: str | None = None
    campaign_ids: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("saving_throw_proficiencies", "skill_proficiencies", "campaign_ids")
    @classmethod
    def drop_duplicates(cls, value: list[Any]) -> list[Any]:
        """Treat the proficiency and campaign lists as sets."""
        return _dedupe(value)

    @field_validator("hit_dice")
    @classmethod
    def validate_hit_dice(cls, value: str) -> str:
        """Accept empty notation as the default and reject unparsable dice."""
        value = value.strip()
        if not value:
            return DEFAULT_HIT_DICE
        if not is_valid_dice_notation(value):
            raise ValueError(f"Invalid hit dice notation: {value!r}")
        return value

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> Character:
        """Build a character from a stored document (id included)."""
        return cls.model_validate(document)

    def to_document(self) -> dict[str, Any]:
        """Serialize to the stored camelCase document (id excluded)."""
        return self.model_dump(mode="json", by_alias=True, exclude={"id"})

    def ability_score(self, ability: Ability) -> int:
        """Return the raw score for an ability."""
        return getattr(self, ability.score_field)

    def is_proficient_in(self, skill: Skill) -> bool:
        """Check skill proficiency."""
        return skill in self.skill_proficiencies

    def has_save_proficiency(self, ability: Ability) -> bool:
        """Check saving throw proficiency."""
        return ability in self.saving_throw_proficiencies

    def is_linked_to(self, campaign_id: str) -> bool:
        """Check whether the campaign id is in ``campaign_ids``."""
        return campaign_id in self.campaign_ids


__all__ = [
    "AbilityScoreValue",
    "Character",
    "DOCUMENT_MODEL_CONFIG",
    "RELATIONSHIP_FIELDS",
]
