"""Enumeration types for the D&D Companion.

Ability abbreviations and skill display names double as the values stored
in character documents, so they must not be renamed.
"""

from __future__ import annotations

from enum import StrEnum


class Ability(StrEnum):
    """D&D 5E ability scores, keyed by their stored abbreviation."""

    STR = "STR"
    DEX = "DEX"
    CON = "CON"
    INT = "INT"
    WIS = "WIS"
    CHA = "CHA"

    @property
    def full_name(self) -> str:
        """Get the full name of the ability (e.g. 'Strength' for STR)."""
        return _ABILITY_NAMES[self]

    @property
    def score_field(self) -> str:
        """Name of the Character attribute holding this score."""
        return self.full_name.lower()


_ABILITY_NAMES: dict[Ability, str] = {
    Ability.STR: "Strength",
    Ability.DEX: "Dexterity",
    Ability.CON: "Constitution",
    Ability.INT: "Intelligence",
    Ability.WIS: "Wisdom",
    Ability.CHA: "Charisma",
}


class Skill(StrEnum):
    """D&D 5E skills and their governing abilities.

    Values are the display names stored in ``skillProficiencies``.
    """

    ACROBATICS = "Acrobatics"
    ANIMAL_HANDLING = "Animal Handling"
    ARCANA = "Arcana"
    ATHLETICS = "Athletics"
    DECEPTION = "Deception"
    HISTORY = "History"
    INSIGHT = "Insight"
    INTIMIDATION = "Intimidation"
    INVESTIGATION = "Investigation"
    MEDICINE = "Medicine"
    NATURE = "Nature"
    PERCEPTION = "Perception"
    PERFORMANCE = "Performance"
    PERSUASION = "Persuasion"
    RELIGION = "Religion"
    SLEIGHT_OF_HAND = "Sleight of Hand"
    STEALTH = "Stealth"
    SURVIVAL = "Survival"

    @property
    def ability(self) -> Ability:
        """Get the ability score that governs this skill."""
        return _SKILL_ABILITIES[self]


_SKILL_ABILITIES: dict[Skill, Ability] = {
    Skill.ACROBATICS: Ability.DEX,
    Skill.ANIMAL_HANDLING: Ability.WIS,
    Skill.ARCANA: Ability.INT,
    Skill.ATHLETICS: Ability.STR,
    Skill.DECEPTION: Ability.CHA,
    Skill.HISTORY: Ability.INT,
    Skill.INSIGHT: Ability.WIS,
    Skill.INTIMIDATION: Ability.CHA,
    Skill.INVESTIGATION: Ability.INT,
    Skill.MEDICINE: Ability.WIS,
    Skill.NATURE: Ability.INT,
    Skill.PERCEPTION: Ability.WIS,
    Skill.PERFORMANCE: Ability.CHA,
    Skill.PERSUASION: Ability.CHA,
    Skill.RELIGION: Ability.INT,
    Skill.SLEIGHT_OF_HAND: Ability.DEX,
    Skill.STEALTH: Ability.DEX,
    Skill.SURVIVAL: Ability.WIS,
}


class CampaignStatus(StrEnum):
    """Lifecycle status of a campaign."""

    ACTIVE = "Active"
    ON_HOLD = "On Hold"
    COMPLETED = "Completed"
    PLANNING = "Planning"


class Role(StrEnum):
    """Derived role of a user towards a character or campaign."""

    OWNER = "owner"
    DM_OF_LINKED_CAMPAIGN = "dm-of-linked-campaign"
    PLAYER = "player"
    NONE = "none"


class Capability(StrEnum):
    """Actions a role may perform on a character or campaign view."""

    VIEW = "view"
    EDIT = "edit"
    DELETE = "delete"
    LINK_CAMPAIGN = "link-campaign"
    UNLINK_OWN_LINKS = "unlink-own-links"
    MANAGE_PLAYERS = "manage-players"
    REMOVE_ANY_PLAYER = "remove-any-player"
    REMOVE_SELF = "remove-self"
    SEE_NOTES = "see-notes"


class LinkState(StrEnum):
    """State of one (character, campaign) pair.

    LINKING and UNLINKING are transient and only exist while the two
    symmetric writes are in flight.
    """

    UNLINKED = "unlinked"
    LINKING = "linking"
    LINKED = "linked"
    UNLINKING = "unlinking"


__all__ = [
    "Ability",
    "Skill",
    "CampaignStatus",
    "Role",
    "Capability",
    "LinkState",
]
